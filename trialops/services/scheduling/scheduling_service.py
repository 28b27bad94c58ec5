"""
OPD appointment scheduling for existing visits.
"""

import logging
from datetime import date
from typing import Callable, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from trialops.core.errors import SchedulingRejected
from trialops.models.visits import Visit
from trialops.services.crud import CRUDBase
from trialops.services.scheduling.windows import (
    SchedulingWindow,
    is_opd_day,
    today_utc,
    validation_window,
)

logger = logging.getLogger(__name__)


def window_for(visit: Visit, today: Optional[date] = None) -> SchedulingWindow:
    return validation_window(visit.visit_number, visit.created_at, visit.due_date, today=today)


def check_proposed_date(window: SchedulingWindow, proposed: date) -> None:
    """Raise ``SchedulingRejected`` unless ``proposed`` is an OPD day inside ``window``."""
    if window.is_empty:
        raise SchedulingRejected(
            "No valid OPD dates available for this visit.", code="window_empty"
        )
    if proposed not in window:
        raise SchedulingRejected(
            f"Selected OPD date is outside the allowed window "
            f"({window.start.isoformat()} to {window.end.isoformat()}).",
            code="outside_window",
        )
    if not is_opd_day(proposed):
        raise SchedulingRejected("Only Tue, Wed, Fri allowed.", code="weekday_not_allowed")


class VisitSchedulingService:
    """
    Validates an operator-picked appointment date against the visit's window
    and persists it. Only ``scheduled_on`` is ever written here.
    """

    def __init__(self, db: AsyncSession, today: Callable[[], date] = today_utc) -> None:
        self.db = db
        self.today = today
        self.visits = CRUDBase(Visit, db)

    async def get_visit_window(self, visit_id: UUID) -> Tuple[Visit, SchedulingWindow]:
        visit = await self.visits.get_or_404(visit_id)
        return visit, window_for(visit, self.today())

    async def schedule_visit(self, visit_id: UUID, proposed: date) -> Visit:
        visit = await self.visits.get_or_404(visit_id)
        window = window_for(visit, self.today())

        try:
            check_proposed_date(window, proposed)
        except SchedulingRejected as e:
            logger.info(
                "Rejected OPD date %s for visit %s (visit %d): %s",
                proposed, visit_id, visit.visit_number, e.code,
            )
            raise

        visit.scheduled_on = proposed
        await self.db.commit()
        await self.db.refresh(visit)
        logger.info("Visit %s scheduled on %s", visit_id, proposed)
        return visit
