"""
Contracts for storage operations.
"""

from uuid import UUID

from pydantic import Field

from trialops.models.enums import VisitDocumentField

from .base import BaseContract


class PresignRequest(BaseContract):
    visit_id: UUID
    field: VisitDocumentField
    filename: str = Field(min_length=1)


class PresignResponse(BaseContract):
    url: str
    object_key: str


class DownloadUrlResponse(BaseContract):
    signed_url: str
