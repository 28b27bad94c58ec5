"""
Contracts for trial finances.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from trialops.models.enums import ExpenseCategory, FundCategory, PaidBy

from .base import BaseContract


class FundCreate(BaseContract):
    amount: Decimal = Field(gt=0)
    category: FundCategory
    file_src: Optional[str] = None
    date_received: date
    description: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def lower_category(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class FundResponse(BaseContract):
    id: UUID
    amount: Decimal
    category: str
    file_src: Optional[str] = None
    date_received: date
    description: str = ""


class ExpenseCreate(BaseContract):
    screening_id: Optional[str] = None
    visit_number: Optional[int] = Field(default=None, ge=1, le=8)
    category: ExpenseCategory
    amount: Decimal = Field(gt=0)
    bill_src: Optional[str] = None
    date: date
    purpose: Optional[str] = None
    settled: bool = False
    paid_by: PaidBy

    @field_validator("category", "paid_by", mode="before")
    @classmethod
    def lower_choice(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ExpenseResponse(BaseContract):
    id: UUID
    user_id: str
    username: Optional[str] = None
    screening_id: Optional[str] = None
    visit_number: Optional[int] = None
    category: str
    amount: Decimal
    bill_src: Optional[str] = None
    date: date
    purpose: str = ""
    settled: bool
    paid_by: str


class FinanceSummary(BaseContract):
    expenses: List[ExpenseResponse]
    funds: List[FundResponse]
    available_travel_funds: Decimal
    available_stationary_funds: Decimal
