"""
Google Cloud Storage service for visit and lead documents.
"""

import logging
from datetime import timedelta
from typing import Optional, Tuple

from google.api_core.exceptions import NotFound
from google.cloud import storage as gcs
from google.oauth2 import service_account

from trialops.config import get_settings
from trialops.core.errors import NotFoundError

logger = logging.getLogger(__name__)

EXTENSION_MIME_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


def guess_mime_type(object_key: str) -> str:
    lower = object_key.lower()
    for extension, mime_type in EXTENSION_MIME_TYPES.items():
        if lower.endswith(extension):
            return mime_type
    return "application/octet-stream"


def visit_document_key(visit_id: str, field: str, filename: str) -> str:
    """
    >>> visit_document_key("v1", "echo", "report.pdf")
    'visits/v1/echo/report.pdf'
    """
    return f"visits/{visit_id}/{field}/{filename}"


class GCSStorageService:
    """Thin wrapper around google-cloud-storage bound to the documents bucket."""

    def __init__(self, bucket_name: Optional[str] = None) -> None:
        settings = get_settings()
        creds_path = settings.gcs_credentials_path
        self.bucket_name = bucket_name or settings.gcs_bucket_visit_documents

        if creds_path:
            credentials = service_account.Credentials.from_service_account_file(creds_path)
            self._client = gcs.Client(
                project=settings.gcs_project_id or None,
                credentials=credentials,
            )
        else:
            # Relies on Application Default Credentials (e.g. GCE metadata, GOOGLE_APPLICATION_CREDENTIALS)
            self._client = gcs.Client(project=settings.gcs_project_id or None)

    def _blob(self, object_key: str) -> gcs.Blob:
        return self._client.bucket(self.bucket_name).blob(object_key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def upload_file(
        self,
        object_key: str,
        file_data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload bytes under ``object_key`` and return the key."""
        self._blob(object_key).upload_from_string(file_data, content_type=content_type)
        logger.info("Uploaded %s (%d bytes)", object_key, len(file_data))
        return object_key

    def download_file(self, object_key: str) -> Tuple[bytes, str]:
        """Return ``(data, mime_type)`` for an object; raises ``NotFoundError`` when missing."""
        blob = self._blob(object_key)
        try:
            data = blob.download_as_bytes()
        except NotFound:
            raise NotFoundError(f"File {object_key} not found") from None
        return data, blob.content_type or guess_mime_type(object_key)

    def get_signed_url(self, object_key: str, ttl_seconds: Optional[int] = None) -> str:
        """Return a signed download URL."""
        ttl = ttl_seconds or get_settings().download_url_ttl_seconds
        return self._blob(object_key).generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=ttl),
            method="GET",
        )

    def get_upload_signed_url(
        self,
        object_key: str,
        content_type: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> str:
        """Return a signed PUT URL the browser can upload ``object_key`` to directly."""
        ttl = ttl_seconds or get_settings().upload_url_ttl_seconds
        return self._blob(object_key).generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=ttl),
            method="PUT",
            content_type=content_type or guess_mime_type(object_key),
        )

    def delete_file(self, object_key: str) -> None:
        """Delete an object. Silently ignores missing files."""
        try:
            self._blob(object_key).delete()
        except NotFound:
            logger.warning("Failed to delete %s/%s (may already be deleted)", self.bucket_name, object_key)
