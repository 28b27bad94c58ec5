"""
Visit lifecycle: creation, conclusion and the screening/randomization branch.

A visit is ``Created`` until ``visit_date`` is set and ``Completed`` after.
Concluding a visit commits the completion first and only then tries to
create the successor in a second transaction. A failure in that second step
is logged and reported as ``next_visit_created=False``; it never undoes the
conclusion.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from trialops.contracts.user import CurrentUser
from trialops.core.errors import (
    DuplicateIdentifierError,
    InvalidRequestError,
    NotFoundError,
    PreconditionFailedError,
)
from trialops.dependencies.auth import require_admin
from trialops.models.enums import ScreeningOutcome, VisitDocumentField, VoucherStatus
from trialops.models.participants import Participant
from trialops.models.visits import Visit
from trialops.services.crud import CRUDBase
from trialops.services.identifiers import IdentifierAllocator
from trialops.services.scheduling.windows import (
    FIRST_VISIT,
    LAST_VISIT,
    creation_dates,
    parse_visit_date,
    to_calendar_date,
    utc_now,
)

logger = logging.getLogger(__name__)

# Visits that cannot be concluded until the voucher status is recorded
VOUCHER_REQUIRED_VISITS = frozenset({4, 5, 7})


@dataclass
class ConclusionResult:
    visit_id: UUID
    visit_date: date
    already_completed: bool = False
    next_visit_created: bool = False
    next_visit_number: Optional[int] = None


@dataclass
class ScreeningResult:
    visit_id: UUID
    concluded: bool
    outcome: Optional[ScreeningOutcome] = None
    randomization_id: Optional[str] = None
    visit_date: Optional[date] = None
    next_visit_created: bool = False
    next_visit_number: Optional[int] = None


def voucher_flag(status: VoucherStatus) -> bool:
    return VoucherStatus(status) == VoucherStatus.given


class VisitLifecycleService:
    """
    Drives the 8-visit sequence for one participant at a time.

    ``now`` is injectable so tests can pin the creation timestamp and the
    default conclusion date.
    """

    def __init__(self, db: AsyncSession, now: Callable[[], datetime] = utc_now) -> None:
        self.db = db
        self.now = now
        self.visits = CRUDBase(Visit, db)
        self.participants = CRUDBase(Participant, db)

    def today(self) -> date:
        return to_calendar_date(self.now())

    async def get_visit(self, visit_id: UUID) -> Visit:
        return await self.visits.get_or_404(visit_id)

    async def _find_visit(self, participant_id: UUID, visit_number: int) -> Optional[Visit]:
        result = await self.db.execute(
            select(Visit).where(
                Visit.participant_id == participant_id,
                Visit.visit_number == visit_number,
            )
        )
        return result.scalars().first()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_visit(
        self,
        participant_id: UUID,
        visit_number: int,
        user: Optional[CurrentUser] = None,
    ) -> Visit:
        """
        Create visit ``visit_number`` and stamp ``scheduled_on``/``due_date``.

        Visit 1 is anchored on today. Every later visit is anchored on its
        predecessor's ``visit_date`` and may only be created once that
        predecessor is completed.
        """
        if not FIRST_VISIT <= visit_number <= LAST_VISIT:
            raise InvalidRequestError(
                f"visit_number must be between {FIRST_VISIT} and {LAST_VISIT}"
            )

        await self.participants.get_or_404(participant_id)

        if await self._find_visit(participant_id, visit_number) is not None:
            raise PreconditionFailedError(
                f"Visit {visit_number} already exists for this participant",
                code="visit_exists",
            )

        created_at = self.now()
        if visit_number == FIRST_VISIT:
            anchor = to_calendar_date(created_at)
        else:
            previous = await self._find_visit(participant_id, visit_number - 1)
            if previous is None or not previous.is_completed:
                raise PreconditionFailedError(
                    f"Visit {visit_number} cannot be created before "
                    f"Visit {visit_number - 1} is completed",
                    code="predecessor_incomplete",
                )
            anchor = previous.visit_date

        stamp = creation_dates(visit_number, anchor)
        visit = Visit(
            participant_id=participant_id,
            visit_number=visit_number,
            created_at=created_at,
            scheduled_on=stamp.scheduled_on,
            due_date=stamp.due_date,
            clinical_data={},
            documents={},
            created_by=user.id if user else None,
        )
        self.db.add(visit)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise PreconditionFailedError(
                f"Visit {visit_number} already exists for this participant",
                code="visit_exists",
            ) from None

        await self.db.refresh(visit)
        logger.info(
            "Created visit %d for participant %s (scheduled %s, due %s)",
            visit_number, participant_id, stamp.scheduled_on, stamp.due_date,
        )
        return visit

    async def _create_successor(
        self, participant_id: UUID, visit_number: int, user: Optional[CurrentUser]
    ) -> bool:
        try:
            await self.create_visit(participant_id, visit_number, user=user)
            return True
        except Exception as e:
            await self.db.rollback()
            logger.warning(
                "Could not create visit %d for participant %s after conclusion: %s",
                visit_number, participant_id, e,
            )
            return False

    # ------------------------------------------------------------------
    # Conclusion
    # ------------------------------------------------------------------

    def _stamp_visit_date(self, visit: Visit, visit_date_override: Optional[str]) -> date:
        visit_date = parse_visit_date(visit_date_override) or self.today()
        visit.visit_date = visit_date
        return visit_date

    async def conclude_visit(
        self,
        visit_id: UUID,
        visit_date_override: Optional[str] = None,
        create_next: Optional[int] = None,
        user: Optional[CurrentUser] = None,
    ) -> ConclusionResult:
        """
        Mark visits 2-8 as performed.

        Concluding an already completed visit changes nothing and reports
        ``already_completed=True``.
        """
        visit = await self.visits.get_or_404(visit_id)
        visit_number = visit.visit_number
        participant_id = visit.participant_id

        if visit_number == FIRST_VISIT:
            raise InvalidRequestError(
                "The screening visit is concluded through the screening endpoint",
                code="screening_visit",
            )

        if visit.is_completed:
            logger.info("Visit %s is already completed, nothing to do", visit_id)
            return ConclusionResult(
                visit_id=visit.id, visit_date=visit.visit_date, already_completed=True
            )

        if create_next is not None and (
            visit_number == LAST_VISIT or create_next != visit_number + 1
        ):
            raise InvalidRequestError(
                f"Visit {visit_number} can only be followed by visit {visit_number + 1}"
                if visit_number < LAST_VISIT
                else f"Visit {LAST_VISIT} is the last visit",
                code="invalid_successor",
            )

        if visit_number in VOUCHER_REQUIRED_VISITS and visit.voucher_given is None:
            raise InvalidRequestError(
                f"Voucher status must be recorded before concluding visit {visit_number}",
                code="voucher_required",
            )

        visit_date = self._stamp_visit_date(visit, visit_date_override)
        await self.db.commit()
        logger.info("Concluded visit %d (%s) on %s", visit_number, visit_id, visit_date)

        result = ConclusionResult(visit_id=visit_id, visit_date=visit_date)
        if create_next is not None:
            result.next_visit_number = create_next
            result.next_visit_created = await self._create_successor(
                participant_id, create_next, user
            )
        return result

    async def conclude_screening(
        self,
        visit_id: UUID,
        voucher_status: VoucherStatus,
        outcome: Optional[ScreeningOutcome] = None,
        visit_date_override: Optional[str] = None,
        user: Optional[CurrentUser] = None,
    ) -> ScreeningResult:
        """
        Save the screening visit.

        On a completed screening visit only the voucher flag is updated. A
        randomized participant whose screening visit was reopened (visit 2
        deleted) is concluded again with the same randomization ID and gets
        visit 2 back. Otherwise ``outcome`` is mandatory:

        - ``failure`` flags the participant and ends the sequence.
        - ``success`` allocates the next randomization ID and creates visit 2.
        """
        visit = await self.visits.get_or_404(visit_id)
        if visit.visit_number != FIRST_VISIT:
            raise InvalidRequestError(
                "Only the screening visit can be concluded here", code="not_screening_visit"
            )

        participant = await self.participants.get_or_404(visit.participant_id, for_update=True)
        participant_id = participant.id
        visit.voucher_given = voucher_flag(voucher_status)

        if visit.is_completed:
            await self.db.commit()
            logger.info("Updated voucher on screening visit %s only", visit_id)
            return ScreeningResult(
                visit_id=visit_id,
                concluded=False,
                randomization_id=participant.randomization_id,
                visit_date=visit.visit_date,
            )

        if participant.randomization_id:
            # Reopened after visit 2 was deleted: keep the randomization ID
            return await self._reconclude_screening(visit, participant, visit_date_override, user)

        if outcome is None:
            await self.db.rollback()
            raise InvalidRequestError(
                "Screening outcome is required", code="outcome_required"
            )
        outcome = ScreeningOutcome(outcome)

        if outcome == ScreeningOutcome.failure:
            participant.screening_failure = True
            visit_date = self._stamp_visit_date(visit, visit_date_override)
            await self.db.commit()
            logger.info("Screening failed for participant %s", participant_id)
            return ScreeningResult(
                visit_id=visit_id, concluded=True, outcome=outcome, visit_date=visit_date
            )

        randomization_id = await IdentifierAllocator(self.db).next_randomization_id()
        participant.randomization_id = randomization_id
        visit_date = self._stamp_visit_date(visit, visit_date_override)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateIdentifierError(
                f"Randomization ID {randomization_id} is already in use"
            ) from None
        logger.info(
            "Randomized participant %s as %s (screening visit on %s)",
            participant_id, randomization_id, visit_date,
        )

        next_number = FIRST_VISIT + 1
        created = await self._create_successor(participant_id, next_number, user)
        return ScreeningResult(
            visit_id=visit_id,
            concluded=True,
            outcome=outcome,
            randomization_id=randomization_id,
            visit_date=visit_date,
            next_visit_created=created,
            next_visit_number=next_number,
        )

    async def _reconclude_screening(
        self,
        visit: Visit,
        participant: Participant,
        visit_date_override: Optional[str],
        user: Optional[CurrentUser],
    ) -> ScreeningResult:
        visit_id = visit.id
        participant_id = participant.id
        randomization_id = participant.randomization_id

        visit_date = self._stamp_visit_date(visit, visit_date_override)
        await self.db.commit()
        logger.info(
            "Re-concluded screening visit %s for %s on %s", visit_id, randomization_id, visit_date
        )

        next_number = FIRST_VISIT + 1
        created = await self._create_successor(participant_id, next_number, user)
        return ScreeningResult(
            visit_id=visit_id,
            concluded=True,
            outcome=ScreeningOutcome.success,
            randomization_id=randomization_id,
            visit_date=visit_date,
            next_visit_created=created,
            next_visit_number=next_number,
        )

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    async def update_voucher(self, visit_id: UUID, voucher_status: VoucherStatus) -> Visit:
        visit = await self.visits.get_or_404(visit_id)
        visit.voucher_given = voucher_flag(voucher_status)
        await self.db.commit()
        await self.db.refresh(visit)
        return visit

    async def update_due_date(
        self, visit_id: UUID, due_date: date, user: Optional[CurrentUser]
    ) -> Visit:
        require_admin(user, "change a due date")
        visit = await self.visits.get_or_404(visit_id)
        if visit.is_completed:
            raise PreconditionFailedError(
                "Cannot change the due date of a completed visit", code="visit_completed"
            )
        visit.due_date = due_date
        await self.db.commit()
        await self.db.refresh(visit)
        logger.info("Due date of visit %s changed to %s", visit_id, due_date)
        return visit

    async def delete_visit(
        self,
        visit_id: UUID,
        user: Optional[CurrentUser],
        participant_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete visit N (N > 1) and reopen visit N-1 by clearing its ``visit_date``.
        """
        require_admin(user, "delete visits")
        visit = await self.visits.get_or_404(visit_id)
        if participant_id is not None and visit.participant_id != participant_id:
            raise NotFoundError("Visit not found for this participant")
        if visit.visit_number == FIRST_VISIT:
            raise PreconditionFailedError(
                "The screening visit cannot be deleted", code="screening_visit"
            )

        previous = await self._find_visit(visit.participant_id, visit.visit_number - 1)
        if previous is not None:
            previous.visit_date = None

        visit_number = visit.visit_number
        await self.db.delete(visit)
        await self.db.commit()
        logger.info(
            "Deleted visit %d (%s); visit %d reopened", visit_number, visit_id, visit_number - 1
        )

    async def attach_document(
        self, visit_id: UUID, field: VisitDocumentField, object_key: str
    ) -> Visit:
        visit = await self.visits.get_or_404(visit_id)
        documents = dict(visit.documents or {})
        documents[VisitDocumentField(field).value] = object_key
        visit.documents = documents
        await self.db.commit()
        await self.db.refresh(visit)
        return visit

    async def patch_clinical_data(self, visit_id: UUID, patch: Dict[str, Any]) -> Visit:
        visit = await self.visits.get_or_404(visit_id)
        clinical_data = dict(visit.clinical_data or {})
        clinical_data.update(patch)
        visit.clinical_data = clinical_data
        await self.db.commit()
        await self.db.refresh(visit)
        return visit
