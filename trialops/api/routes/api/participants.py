"""
Participant routes: enrolment, edits, randomization codes, master chart.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from trialops.contracts.participant import (
    MasterChartRow,
    ParticipantCreate,
    ParticipantDetailResponse,
    ParticipantResponse,
    ParticipantUpdate,
    RandomizationCodeUpdate,
)
from trialops.contracts.user import CurrentUser
from trialops.contracts.visit import VisitResponse
from trialops.dependencies.auth import get_current_user
from trialops.dependencies.providers import get_participant_service
from trialops.services.participants.participant_service import ParticipantService, full_name

router = APIRouter()


@router.get("/", response_model=List[ParticipantResponse])
async def list_participants(
    user: CurrentUser = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
):
    return await service.list_participants()


@router.post("/", response_model=ParticipantResponse, status_code=201)
async def create_participant(
    payload: ParticipantCreate,
    user: CurrentUser = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
):
    """Enrol a participant; the next screening ID is assigned automatically."""
    return await service.create_participant(payload, user)


# Declared before /{participant_id} so "master-chart" is not parsed as an id
@router.get("/master-chart", response_model=List[MasterChartRow])
async def master_chart(
    user: CurrentUser = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
):
    participants = await service.master_chart()
    return [
        MasterChartRow(
            participant_id=p.id,
            screening_id=p.screening_id,
            randomization_id=p.randomization_id,
            randomization_code=p.randomization_code,
            name=full_name(p),
            visits=[VisitResponse.model_validate(v) for v in p.visits],
        )
        for p in participants
    ]


@router.get("/{participant_id}", response_model=ParticipantDetailResponse)
async def get_participant(
    participant_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
):
    return await service.get_participant(participant_id, with_visits=True)


@router.put("/{participant_id}", response_model=ParticipantResponse)
async def update_participant(
    participant_id: UUID,
    payload: ParticipantUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
):
    return await service.update_participant(participant_id, payload)


@router.put("/{participant_id}/randomization-code", response_model=ParticipantResponse)
async def set_randomization_code(
    participant_id: UUID,
    payload: RandomizationCodeUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
):
    """Admin only."""
    return await service.set_randomization_code(participant_id, payload.randomization_code, user)
