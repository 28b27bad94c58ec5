"""
Sequential human-readable identifiers: screening IDs (S1, S2, ...) and
randomization IDs (R1, R2, ...).

Allocation locks the matching ``sequence_counters`` row for the rest of the
caller's transaction, so two requests cannot hand out the same number. The
next value is ``max(counter, highest existing ID) + 1`` which keeps IDs that
were typed in by hand from being reissued.
"""

import logging
import re
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trialops.models.participants import Participant
from trialops.models.sequence_counters import SequenceCounter

logger = logging.getLogger(__name__)

SCREENING_PREFIX = "S"
RANDOMIZATION_PREFIX = "R"


def parse_sequence_number(token: Optional[str], prefix: str) -> Optional[int]:
    """Return ``n`` for a token shaped like ``<prefix><n>`` (case-insensitive), else None."""
    if not token:
        return None
    match = re.fullmatch(rf"{re.escape(prefix)}(\d+)", token.strip(), flags=re.IGNORECASE)
    if not match:
        return None
    return int(match.group(1))


def max_sequence_number(tokens: Iterable[Optional[str]], prefix: str) -> int:
    numbers = (parse_sequence_number(token, prefix) for token in tokens)
    return max((n for n in numbers if n is not None), default=0)


def next_sequence_id(prefix: str, existing: Iterable[Optional[str]]) -> str:
    """
    >>> next_sequence_id("R", ["R1", "R3", "R7"])
    'R8'
    >>> next_sequence_id("S", [])
    'S1'
    """
    return f"{prefix}{max_sequence_number(existing, prefix) + 1}"


class IdentifierAllocator:
    """
    Hands out screening and randomization IDs inside the caller's transaction.

    The caller commits; until then the counter row stays locked.
    """

    COUNTERS = {
        SCREENING_PREFIX: ("screening", Participant.screening_id),
        RANDOMIZATION_PREFIX: ("randomization", Participant.randomization_id),
    }

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def next_screening_id(self) -> str:
        return await self._allocate(SCREENING_PREFIX)

    async def next_randomization_id(self) -> str:
        return await self._allocate(RANDOMIZATION_PREFIX)

    async def _lock_counter(self, name: str) -> SequenceCounter:
        result = await self.db.execute(
            select(SequenceCounter).where(SequenceCounter.name == name).with_for_update()
        )
        counter = result.scalars().first()
        if counter is None:
            counter = SequenceCounter(name=name, last_value=0)
            self.db.add(counter)
            await self.db.flush()
        return counter

    async def _allocate(self, prefix: str) -> str:
        name, column = self.COUNTERS[prefix]
        counter = await self._lock_counter(name)

        existing = (await self.db.execute(select(column).where(column.is_not(None)))).scalars().all()
        highest = max(counter.last_value, max_sequence_number(existing, prefix))

        counter.last_value = highest + 1
        await self.db.flush()

        token = f"{prefix}{counter.last_value}"
        logger.info("Allocated %s identifier %s", name, token)
        return token
