"""
Contracts for participants.
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import field_validator

from trialops.models.enums import RandomizationCode

from .base import BaseContract, TimestampedContract
from .visit import VisitResponse


class ParticipantDemographics(BaseContract):
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    age: Optional[int] = None
    sex: Optional[str] = None
    address: Optional[str] = None
    education: Optional[str] = None
    occupation: Optional[str] = None
    income: Optional[Decimal] = None

    @field_validator(
        "first_name", "middle_name", "last_name", "phone", "alternate_phone",
        "sex", "address", "education", "occupation",
    )
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("age")
    @classmethod
    def validate_age(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("age must be a non-negative number")
        return v

    @field_validator("income")
    @classmethod
    def validate_income(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("income must be a non-negative number")
        return v


class ParticipantCreate(ParticipantDemographics):
    pass


class ParticipantUpdate(ParticipantDemographics):
    ltfu: Optional[bool] = None
    consent_withdrawn: Optional[bool] = None


class RandomizationCodeUpdate(BaseContract):
    randomization_code: Optional[RandomizationCode] = None


class ParticipantResponse(ParticipantDemographics, TimestampedContract):
    id: UUID
    screening_id: str
    randomization_id: Optional[str] = None
    randomization_code: Optional[str] = None
    screening_failure: bool = False
    initials: Optional[str] = None
    ltfu: bool = False
    consent_withdrawn: bool = False


class ParticipantDetailResponse(ParticipantResponse):
    visits: List[VisitResponse] = []


class MasterChartRow(BaseContract):
    participant_id: UUID
    screening_id: str
    randomization_id: Optional[str] = None
    randomization_code: Optional[str] = None
    name: Optional[str] = None
    visits: List[VisitResponse] = []
