"""
Contracts for leads.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from .base import BaseContract, TimestampedContract


class LeadCreate(BaseContract):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    lvef: Optional[float] = None
    source_key: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class LeadUpdate(BaseContract):
    name: Optional[str] = None
    phone: Optional[str] = None
    was_called: Optional[bool] = None
    patient_willing: Optional[bool] = None
    scheduled_on: Optional[date] = None
    lvef: Optional[float] = None
    notes: Optional[str] = None


class LeadResponse(TimestampedContract):
    id: UUID
    name: str
    phone: Optional[str] = None
    was_called: bool = False
    patient_willing: Optional[bool] = None
    scheduled_on: Optional[date] = None
    lvef: Optional[float] = None
    notes: Optional[str] = None
    source_key: Optional[str] = None


class LeadExtractRequest(BaseContract):
    object_key: str = Field(min_length=1)


class LeadExtractResponse(BaseContract):
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    lvef: Optional[float] = None
