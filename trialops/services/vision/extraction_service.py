"""
Reads a lab panel off an uploaded report and patches it into the visit.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from trialops.services.vision.interfaces.vision_client import IVisionClient
from trialops.services.vision.panels import get_panel
from trialops.services.visits.lifecycle_service import VisitLifecycleService

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    visit_id: UUID
    panel: str
    saved: bool
    updated: Dict[str, Optional[float]]


class LabExtractionService:
    """
    Runs a panel prompt through the vision client and stores the values.

    The visit is only written when at least one value survived coercion, so
    an unreadable scan never wipes values entered earlier. The full patch,
    nulls included, is always returned to the caller.
    """

    def __init__(self, db: AsyncSession, vision_client: IVisionClient) -> None:
        self.db = db
        self.vision_client = vision_client
        self.lifecycle = VisitLifecycleService(db)

    async def extract_panel(
        self, visit_id: UUID, panel_name: str, document: bytes, mime_type: str
    ) -> ExtractionResult:
        panel = get_panel(panel_name)
        # 404 before the model is called
        await self.lifecycle.get_visit(visit_id)

        raw = await self.vision_client.extract(document, mime_type, panel.prompt())
        patch = panel.build_patch(raw)
        saved = any(value is not None for value in patch.values())

        if saved:
            await self.lifecycle.patch_clinical_data(visit_id, patch)
            logger.info("Saved %s panel on visit %s", panel.name.value, visit_id)
        else:
            logger.info("No readable %s values for visit %s, nothing saved", panel.name.value, visit_id)

        return ExtractionResult(visit_id=visit_id, panel=panel.name.value, saved=saved, updated=patch)
