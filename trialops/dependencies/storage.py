"""
FastAPI dependency for the GCS storage service (one client per process).
"""

import logging
from functools import lru_cache

from trialops.config import get_settings
from trialops.services.storage.gcs_service import GCSStorageService

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage_service() -> GCSStorageService:
    settings = get_settings()
    if not settings.gcs_bucket_visit_documents:
        raise RuntimeError("GCS_BUCKET_VISIT_DOCUMENTS is not configured")
    logger.info("Using GCS bucket %s for visit documents", settings.gcs_bucket_visit_documents)
    return GCSStorageService(settings.gcs_bucket_visit_documents)
