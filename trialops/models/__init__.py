from .base import Base

# Tier 1 - no FKs
from .participants import Participant
from .user_roles import UserRole
from .sequence_counters import SequenceCounter
from .finances import Expense, Fund
from .leads import Lead

# Tier 2
from .visits import Visit
