"""
Storage routes: presigned uploads, signed downloads and deletes via GCS.
"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from fastapi.concurrency import run_in_threadpool

from trialops.contracts.storage import DownloadUrlResponse, PresignRequest, PresignResponse
from trialops.contracts.user import CurrentUser
from trialops.dependencies.auth import get_current_user
from trialops.dependencies.storage import get_storage_service
from trialops.services.storage.gcs_service import GCSStorageService, visit_document_key

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/presign", response_model=PresignResponse)
async def presign_upload(
    payload: PresignRequest,
    user: CurrentUser = Depends(get_current_user),
    storage: GCSStorageService = Depends(get_storage_service),
):
    """Return a short-lived signed PUT URL for a visit document."""
    object_key = visit_document_key(str(payload.visit_id), payload.field.value, payload.filename)
    url = await run_in_threadpool(storage.get_upload_signed_url, object_key)
    return PresignResponse(url=url, object_key=object_key)


@router.get("/download", response_model=DownloadUrlResponse)
async def download_url(
    key: str = Query(..., min_length=1),
    user: CurrentUser = Depends(get_current_user),
    storage: GCSStorageService = Depends(get_storage_service),
):
    """Return a signed download URL for an object key."""
    signed_url = await run_in_threadpool(storage.get_signed_url, key)
    return DownloadUrlResponse(signed_url=signed_url)


@router.delete("/{path:path}", status_code=204)
async def delete_file(
    path: str,
    user: CurrentUser = Depends(get_current_user),
    storage: GCSStorageService = Depends(get_storage_service),
):
    """Delete an object by its key."""
    await run_in_threadpool(storage.delete_file, path)
    logger.info("Deleted %s (requested by %s)", path, user.id)
    return Response(status_code=204)
