"""
This module contains the service provider dependencies.
"""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from trialops.dependencies.db import get_db
from trialops.dependencies.storage import get_storage_service
from trialops.services.finances.finance_service import FinanceService
from trialops.services.leads.lead_service import LeadService
from trialops.services.participants.participant_service import ParticipantService
from trialops.services.scheduling.scheduling_service import VisitSchedulingService
from trialops.services.storage.gcs_service import GCSStorageService
from trialops.services.vision.extraction_service import LabExtractionService
from trialops.services.vision.interfaces.vision_client import IVisionClient
from trialops.services.vision.openai_vision_client import OpenAIVisionClient
from trialops.services.visits.lifecycle_service import VisitLifecycleService


@lru_cache()
def get_vision_client() -> IVisionClient:
    """Get the shared vision client"""
    return OpenAIVisionClient()


def get_lifecycle_service(db: AsyncSession = Depends(get_db)) -> VisitLifecycleService:
    return VisitLifecycleService(db)


def get_scheduling_service(db: AsyncSession = Depends(get_db)) -> VisitSchedulingService:
    return VisitSchedulingService(db)


def get_participant_service(db: AsyncSession = Depends(get_db)) -> ParticipantService:
    return ParticipantService(db)


def get_finance_service(db: AsyncSession = Depends(get_db)) -> FinanceService:
    return FinanceService(db)


def get_extraction_service(
    db: AsyncSession = Depends(get_db),
    vision_client: IVisionClient = Depends(get_vision_client),
) -> LabExtractionService:
    return LabExtractionService(db, vision_client)


def get_lead_service(db: AsyncSession = Depends(get_db)) -> LeadService:
    return LeadService(db)


def get_lead_extraction_service(
    db: AsyncSession = Depends(get_db),
    storage: GCSStorageService = Depends(get_storage_service),
    vision_client: IVisionClient = Depends(get_vision_client),
) -> LeadService:
    return LeadService(db, storage=storage, vision_client=vision_client)
