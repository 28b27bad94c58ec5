"""
Finance routes: funds, expenses and available balances.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from trialops.contracts.finance import (
    ExpenseCreate,
    ExpenseResponse,
    FinanceSummary,
    FundCreate,
    FundResponse,
)
from trialops.contracts.user import CurrentUser
from trialops.dependencies.auth import get_current_user
from trialops.dependencies.providers import get_finance_service
from trialops.models.enums import FundCategory
from trialops.models.finances import Expense
from trialops.services.finances.finance_service import FinanceService

router = APIRouter()


def _expense_response(expense: Expense, username: Optional[str] = None) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        user_id=expense.user_id,
        username=username,
        screening_id=expense.screening_id,
        visit_number=expense.visit_number,
        category=expense.category,
        amount=expense.amount,
        bill_src=expense.bill_src,
        date=expense.expense_date,
        purpose=expense.purpose or "",
        settled=expense.settled,
        paid_by=expense.paid_by,
    )


@router.get("/", response_model=FinanceSummary)
async def get_finances(
    user: CurrentUser = Depends(get_current_user),
    service: FinanceService = Depends(get_finance_service),
):
    overview = await service.overview()
    return FinanceSummary(
        expenses=[_expense_response(expense, username) for expense, username in overview.expenses],
        funds=[FundResponse.model_validate(fund) for fund in overview.funds],
        available_travel_funds=overview.available[FundCategory.travel],
        available_stationary_funds=overview.available[FundCategory.stationary],
    )


@router.post("/funds", response_model=FundResponse, status_code=201)
async def add_fund(
    payload: FundCreate,
    user: CurrentUser = Depends(get_current_user),
    service: FinanceService = Depends(get_finance_service),
):
    return await service.add_fund(payload)


@router.post("/expenses", response_model=ExpenseResponse, status_code=201)
async def add_expense(
    payload: ExpenseCreate,
    user: CurrentUser = Depends(get_current_user),
    service: FinanceService = Depends(get_finance_service),
):
    expense = await service.add_expense(payload, user)
    return _expense_response(expense, user.username)
