"""
Lead routes: outreach pipeline before screening.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from trialops.contracts.lead import (
    LeadCreate,
    LeadExtractRequest,
    LeadExtractResponse,
    LeadResponse,
    LeadUpdate,
)
from trialops.contracts.user import CurrentUser
from trialops.dependencies.auth import get_current_user
from trialops.dependencies.providers import get_lead_extraction_service, get_lead_service
from trialops.services.leads.lead_service import LeadService

router = APIRouter()


@router.get("/", response_model=List[LeadResponse])
async def list_leads(
    user: CurrentUser = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    return await service.list_leads()


@router.post("/", response_model=LeadResponse, status_code=201)
async def create_lead(
    payload: LeadCreate,
    user: CurrentUser = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    return await service.create_lead(payload)


@router.post("/extract", response_model=LeadExtractResponse)
async def extract_lead(
    payload: LeadExtractRequest,
    user: CurrentUser = Depends(get_current_user),
    service: LeadService = Depends(get_lead_extraction_service),
):
    """Prefill a lead from an uploaded referral or echo report."""
    details = await service.extract_details(payload.object_key)
    return LeadExtractResponse(
        first_name=details.first_name,
        middle_name=details.middle_name,
        last_name=details.last_name,
        lvef=details.lvef,
    )


@router.put("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: UUID,
    payload: LeadUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    return await service.update_lead(lead_id, payload)
