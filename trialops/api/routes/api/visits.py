"""
Visit routes: creation, scheduling, conclusion, vouchers, documents and
lab extraction.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Response, UploadFile

from trialops.contracts.user import CurrentUser
from trialops.contracts.visit import (
    ClinicalDataPatch,
    ConcludeVisitRequest,
    ConcludeVisitResponse,
    DueDateUpdate,
    ExtractionResponse,
    NextVisitResult,
    ScheduleVisitRequest,
    ScreeningConcludeRequest,
    ScreeningConcludeResponse,
    VisitCreate,
    VisitDetailResponse,
    VisitDocumentAttach,
    VisitResponse,
    VoucherUpdate,
)
from trialops.core.errors import InvalidRequestError
from trialops.dependencies.auth import get_current_user
from trialops.dependencies.providers import (
    get_extraction_service,
    get_lifecycle_service,
    get_scheduling_service,
)
from trialops.models.enums import ExtractionPanel
from trialops.services.scheduling.scheduling_service import VisitSchedulingService
from trialops.services.scheduling.windows import opd_options
from trialops.services.vision.extraction_service import LabExtractionService
from trialops.services.visits.lifecycle_service import VisitLifecycleService

router = APIRouter()


@router.post("/", response_model=VisitResponse, status_code=201)
async def create_visit(
    payload: VisitCreate,
    user: CurrentUser = Depends(get_current_user),
    lifecycle: VisitLifecycleService = Depends(get_lifecycle_service),
):
    """Create the next visit; visits 2-8 need the previous visit to be completed."""
    return await lifecycle.create_visit(payload.participant_id, payload.visit_number, user=user)


@router.get("/{visit_id}", response_model=VisitDetailResponse)
async def get_visit(
    visit_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    scheduling: VisitSchedulingService = Depends(get_scheduling_service),
):
    """Visit with its OPD window and the Tue/Wed/Fri dates that can still be picked."""
    visit, window = await scheduling.get_visit_window(visit_id)
    return VisitDetailResponse(
        **VisitResponse.model_validate(visit).model_dump(),
        window_start=window.start,
        window_end=window.end,
        opd_options=opd_options(window),
    )


@router.post("/{visit_id}/schedule", response_model=VisitResponse)
async def schedule_visit(
    visit_id: UUID,
    payload: ScheduleVisitRequest,
    user: CurrentUser = Depends(get_current_user),
    scheduling: VisitSchedulingService = Depends(get_scheduling_service),
):
    return await scheduling.schedule_visit(visit_id, payload.scheduled_on)


@router.post("/{visit_id}/voucher", response_model=VisitResponse)
async def update_voucher(
    visit_id: UUID,
    payload: VoucherUpdate,
    user: CurrentUser = Depends(get_current_user),
    lifecycle: VisitLifecycleService = Depends(get_lifecycle_service),
):
    return await lifecycle.update_voucher(visit_id, payload.voucher_status)


@router.post("/{visit_id}/conclude", response_model=ConcludeVisitResponse)
async def conclude_visit(
    visit_id: UUID,
    payload: ConcludeVisitRequest,
    user: CurrentUser = Depends(get_current_user),
    lifecycle: VisitLifecycleService = Depends(get_lifecycle_service),
):
    result = await lifecycle.conclude_visit(
        visit_id,
        visit_date_override=payload.visit_date,
        create_next=payload.create_next,
        user=user,
    )
    return ConcludeVisitResponse(
        visit_id=result.visit_id,
        visit_date=result.visit_date,
        already_completed=result.already_completed,
        next_visit=NextVisitResult(
            created=result.next_visit_created, visit_number=result.next_visit_number
        ),
    )


@router.post("/{visit_id}/screening/conclude", response_model=ScreeningConcludeResponse)
async def conclude_screening(
    visit_id: UUID,
    payload: ScreeningConcludeRequest,
    user: CurrentUser = Depends(get_current_user),
    lifecycle: VisitLifecycleService = Depends(get_lifecycle_service),
):
    result = await lifecycle.conclude_screening(
        visit_id,
        voucher_status=payload.voucher_status,
        outcome=payload.screening_outcome,
        visit_date_override=payload.visit_date,
        user=user,
    )
    return ScreeningConcludeResponse(
        visit_id=result.visit_id,
        concluded=result.concluded,
        screening_outcome=result.outcome,
        randomization_id=result.randomization_id,
        visit_date=result.visit_date,
        next_visit=NextVisitResult(
            created=result.next_visit_created, visit_number=result.next_visit_number
        ),
    )


@router.put("/{visit_id}/due-date", response_model=VisitResponse)
async def update_due_date(
    visit_id: UUID,
    payload: DueDateUpdate,
    user: CurrentUser = Depends(get_current_user),
    lifecycle: VisitLifecycleService = Depends(get_lifecycle_service),
):
    """Admin only."""
    return await lifecycle.update_due_date(visit_id, payload.due_date, user)


@router.delete("/{visit_id}", status_code=204)
async def delete_visit(
    visit_id: UUID,
    participant_id: Optional[UUID] = None,
    user: CurrentUser = Depends(get_current_user),
    lifecycle: VisitLifecycleService = Depends(get_lifecycle_service),
):
    """Admin only. Reopens the previous visit."""
    await lifecycle.delete_visit(visit_id, user, participant_id=participant_id)
    return Response(status_code=204)


@router.post("/{visit_id}/documents", response_model=VisitResponse)
async def attach_document(
    visit_id: UUID,
    payload: VisitDocumentAttach,
    user: CurrentUser = Depends(get_current_user),
    lifecycle: VisitLifecycleService = Depends(get_lifecycle_service),
):
    """Record the object key of a file uploaded through a presigned URL."""
    return await lifecycle.attach_document(visit_id, payload.field, payload.object_key)


@router.patch("/{visit_id}/clinical-data", response_model=VisitResponse)
async def patch_clinical_data(
    visit_id: UUID,
    payload: ClinicalDataPatch,
    user: CurrentUser = Depends(get_current_user),
    lifecycle: VisitLifecycleService = Depends(get_lifecycle_service),
):
    """Manual entry of lab values; a null clears a single field."""
    return await lifecycle.patch_clinical_data(visit_id, payload.values)


@router.post("/{visit_id}/extract/{panel}", response_model=ExtractionResponse)
async def extract_panel(
    visit_id: UUID,
    panel: ExtractionPanel,
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    extraction: LabExtractionService = Depends(get_extraction_service),
):
    data = await file.read()
    if not data:
        raise InvalidRequestError("file is required")

    result = await extraction.extract_panel(
        visit_id, panel.value, data, file.content_type or "application/pdf"
    )
    return ExtractionResponse(
        visit_id=result.visit_id, panel=result.panel, saved=result.saved, updated=result.updated
    )
