"""
Participant administration: enrolment, demographic edits, randomization
codes and the master chart.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trialops.contracts.participant import ParticipantCreate, ParticipantUpdate
from trialops.contracts.user import CurrentUser
from trialops.core.errors import DuplicateIdentifierError, NotFoundError
from trialops.dependencies.auth import require_admin
from trialops.models.enums import RandomizationCode
from trialops.models.participants import Participant
from trialops.services.crud import CRUDBase
from trialops.services.identifiers import SCREENING_PREFIX, IdentifierAllocator, parse_sequence_number

logger = logging.getLogger(__name__)


def derive_initials(*name_parts: Optional[str]) -> Optional[str]:
    """
    >>> derive_initials("Ravi", None, "kumar")
    'RK'
    """
    letters = [part.strip()[0].upper() for part in name_parts if part and part.strip()]
    return "".join(letters) or None


def full_name(participant: Participant) -> Optional[str]:
    parts = [participant.first_name, participant.middle_name, participant.last_name]
    name = " ".join(part for part in parts if part)
    return name or None


def screening_sort_key(participant: Participant) -> int:
    return parse_sequence_number(participant.screening_id, SCREENING_PREFIX) or 0


class ParticipantService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.participants = CRUDBase(Participant, db)

    async def list_participants(self) -> List[Participant]:
        """All participants, newest screening number first."""
        participants = await self.participants.get_multi()
        return sorted(participants, key=screening_sort_key, reverse=True)

    async def get_participant(self, participant_id: UUID, with_visits: bool = False) -> Participant:
        stmt = select(Participant).where(Participant.id == participant_id)
        if with_visits:
            stmt = stmt.options(selectinload(Participant.visits)).execution_options(
                populate_existing=True
            )
        participant = (await self.db.execute(stmt)).scalars().first()
        if participant is None:
            raise NotFoundError("Participant not found")
        return participant

    async def create_participant(
        self, payload: ParticipantCreate, user: Optional[CurrentUser] = None
    ) -> Participant:
        data = payload.model_dump()
        screening_id = await IdentifierAllocator(self.db).next_screening_id()
        participant = Participant(
            **data,
            screening_id=screening_id,
            initials=derive_initials(data["first_name"], data["middle_name"], data["last_name"]),
            created_by=user.id if user else None,
        )
        self.db.add(participant)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateIdentifierError(
                f"Screening ID {screening_id} is already in use"
            ) from None

        await self.db.refresh(participant)
        logger.info("Enrolled participant %s as %s", participant.id, screening_id)
        return participant

    async def update_participant(self, participant_id: UUID, payload: ParticipantUpdate) -> Participant:
        participant = await self.get_participant(participant_id)
        changes: Dict[str, Any] = payload.model_dump(exclude_unset=True)
        # Flags are never cleared by an omitted checkbox
        for flag in ("ltfu", "consent_withdrawn"):
            if changes.get(flag) is None:
                changes.pop(flag, None)

        await self.participants.update(participant, changes)
        participant.initials = derive_initials(
            participant.first_name, participant.middle_name, participant.last_name
        )
        await self.db.commit()
        await self.db.refresh(participant)
        return participant

    async def set_randomization_code(
        self,
        participant_id: UUID,
        code: Optional[RandomizationCode],
        user: Optional[CurrentUser],
    ) -> Participant:
        require_admin(user, "set randomization codes")
        participant = await self.get_participant(participant_id)
        participant.randomization_code = RandomizationCode(code).value if code else None
        await self.db.commit()
        await self.db.refresh(participant)
        logger.info(
            "Randomization code for %s set to %s", participant.screening_id, participant.randomization_code
        )
        return participant

    async def master_chart(self) -> List[Participant]:
        """Every participant with all of their visits, in screening order."""
        result = await self.db.execute(
            select(Participant)
            .options(selectinload(Participant.visits))
            .execution_options(populate_existing=True)
        )
        participants = list(result.scalars().all())
        return sorted(participants, key=screening_sort_key)
