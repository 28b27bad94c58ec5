"""
Outreach leads: prospective participants tracked before screening.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from trialops.contracts.lead import LeadCreate, LeadUpdate
from trialops.core.errors import ExtractionError
from trialops.models.leads import Lead
from trialops.services.crud import CRUDBase
from trialops.services.storage.gcs_service import GCSStorageService
from trialops.services.vision.interfaces.vision_client import IVisionClient
from trialops.services.vision.panels import LEAD_PROMPT
from trialops.services.vision.parsing import clean_text, to_number_or_none

logger = logging.getLogger(__name__)


@dataclass
class LeadDetails:
    first_name: str
    middle_name: Optional[str]
    last_name: str
    lvef: Optional[float]


class LeadService:
    def __init__(
        self,
        db: AsyncSession,
        storage: Optional[GCSStorageService] = None,
        vision_client: Optional[IVisionClient] = None,
    ) -> None:
        self.db = db
        self.storage = storage
        self.vision_client = vision_client
        self.leads = CRUDBase(Lead, db)

    async def list_leads(self) -> List[Lead]:
        return await self.leads.get_multi(order_by="created_at")

    async def create_lead(self, payload: LeadCreate) -> Lead:
        lead = await self.leads.create({
            **payload.model_dump(),
            "was_called": False,
            "patient_willing": None,
            "scheduled_on": None,
        })
        await self.db.commit()
        await self.db.refresh(lead)
        logger.info("Created lead %s", lead.id)
        return lead

    async def update_lead(self, lead_id: UUID, payload: LeadUpdate) -> Lead:
        lead = await self.leads.get_or_404(lead_id)
        changes = payload.model_dump(exclude_unset=True)
        if "name" in changes and not (changes["name"] or "").strip():
            changes.pop("name")
        await self.leads.update(lead, changes)
        await self.db.commit()
        await self.db.refresh(lead)
        return lead

    async def extract_details(self, object_key: str) -> LeadDetails:
        """Read the patient's name and LVEF off an uploaded referral or echo report."""
        document, mime_type = await run_in_threadpool(self.storage.download_file, object_key)
        raw = await self.vision_client.extract(document, mime_type, LEAD_PROMPT)

        first_name = clean_text(raw.get("firstName"))
        last_name = clean_text(raw.get("lastName"))
        if not first_name or not last_name:
            logger.warning("Name not detected in lead document %s", object_key)
            raise ExtractionError(
                "Could not confidently detect the patient name from the document.",
                code="name_not_detected",
            )

        return LeadDetails(
            first_name=first_name,
            middle_name=clean_text(raw.get("middleName")),
            last_name=last_name,
            lvef=to_number_or_none(raw.get("lvef")),
        )
