"""
Contracts for visits.
"""

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from trialops.models.enums import ScreeningOutcome, VisitDocumentField, VoucherStatus

from .base import BaseContract, TimestampedContract


class VisitCreate(BaseContract):
    participant_id: UUID
    visit_number: int = Field(ge=1, le=8)


class VisitResponse(TimestampedContract):
    id: UUID
    participant_id: UUID
    visit_number: int
    scheduled_on: Optional[date] = None
    due_date: Optional[date] = None
    visit_date: Optional[date] = None
    voucher_given: Optional[bool] = None
    clinical_data: Optional[Dict[str, Any]] = None
    documents: Optional[Dict[str, str]] = None


class VisitDetailResponse(VisitResponse):
    window_start: date
    window_end: date
    opd_options: List[date] = []


class ScheduleVisitRequest(BaseContract):
    scheduled_on: date


class VoucherUpdate(BaseContract):
    voucher_status: VoucherStatus


class ConcludeVisitRequest(BaseContract):
    # Free text on purpose: anything that is not YYYY-MM-DD falls back to today
    visit_date: Optional[str] = None
    create_next: Optional[int] = None


class NextVisitResult(BaseContract):
    created: bool
    visit_number: Optional[int] = None


class ConcludeVisitResponse(BaseContract):
    visit_id: UUID
    visit_date: date
    already_completed: bool = False
    next_visit: NextVisitResult


class ScreeningConcludeRequest(BaseContract):
    voucher_status: VoucherStatus
    screening_outcome: Optional[ScreeningOutcome] = None
    visit_date: Optional[str] = None


class ScreeningConcludeResponse(BaseContract):
    visit_id: UUID
    concluded: bool
    screening_outcome: Optional[ScreeningOutcome] = None
    randomization_id: Optional[str] = None
    visit_date: Optional[date] = None
    next_visit: NextVisitResult


class DueDateUpdate(BaseContract):
    due_date: date


class VisitDocumentAttach(BaseContract):
    field: VisitDocumentField
    object_key: str = Field(min_length=1)


class ExtractionResponse(BaseContract):
    visit_id: UUID
    panel: str
    saved: bool
    updated: Dict[str, Optional[float]]


class ClinicalDataPatch(BaseContract):
    """Lab or imaging values typed in by hand; merged over the stored values."""

    values: Dict[str, Optional[float]] = Field(min_length=1)

    @field_validator("values")
    @classmethod
    def non_negative(cls, v: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
        for key, value in v.items():
            if not key.strip():
                raise ValueError("field names must not be blank")
            if value is not None and value < 0:
                raise ValueError(f"{key} must be a non-negative number")
        return v
