"""
Trial finances: funds received and expenses paid.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trialops.contracts.finance import ExpenseCreate, FundCreate
from trialops.contracts.user import CurrentUser
from trialops.models.enums import FundCategory, PaidBy
from trialops.models.finances import Expense, Fund
from trialops.models.user_roles import UserRole
from trialops.services.crud import CRUDBase

logger = logging.getLogger(__name__)


@dataclass
class FinanceOverview:
    expenses: List[Tuple[Expense, Optional[str]]]  # (expense, username)
    funds: List[Fund]
    available: Dict[FundCategory, Decimal]


def available_balances(funds: Iterable[Fund], expenses: Iterable[Expense]) -> Dict[FundCategory, Decimal]:
    """
    Funds received minus expenses paid from funds, per fund category.

    Out-of-pocket expenses and ``misc`` expenses never draw on a fund.
    """
    balances = {category: Decimal("0") for category in FundCategory}
    for fund in funds:
        if fund.category in balances:
            balances[FundCategory(fund.category)] += Decimal(fund.amount)
    for expense in expenses:
        if expense.paid_by == PaidBy.funds.value and expense.category in balances:
            balances[FundCategory(expense.category)] -= Decimal(expense.amount)
    return balances


class FinanceService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.funds = CRUDBase(Fund, db)
        self.expenses = CRUDBase(Expense, db)

    async def overview(self) -> FinanceOverview:
        expenses = await self.expenses.get_multi(order_by="expense_date")
        funds = await self.funds.get_multi(order_by="date_received")

        rows = (await self.db.execute(select(UserRole.user_id, UserRole.username))).all()
        usernames = {user_id: username for user_id, username in rows}

        return FinanceOverview(
            expenses=[(expense, usernames.get(expense.user_id)) for expense in expenses],
            funds=funds,
            available=available_balances(funds, expenses),
        )

    async def add_fund(self, payload: FundCreate) -> Fund:
        fund = await self.funds.create({
            "amount": payload.amount,
            "category": payload.category.value,
            "file_src": payload.file_src or None,
            "date_received": payload.date_received,
            "description": (payload.description or "").strip(),
        })
        await self.db.commit()
        await self.db.refresh(fund)
        logger.info("Recorded %s fund of %s", fund.category, fund.amount)
        return fund

    async def add_expense(self, payload: ExpenseCreate, user: CurrentUser) -> Expense:
        paid_by = payload.paid_by.value
        expense = await self.expenses.create({
            "user_id": user.id,
            "screening_id": payload.screening_id or None,
            "visit_number": payload.visit_number,
            "category": payload.category.value,
            "amount": payload.amount,
            "bill_src": payload.bill_src or None,
            "expense_date": payload.date,
            "purpose": (payload.purpose or "").strip(),
            # Paid from trial funds means already settled
            "settled": True if paid_by == PaidBy.funds.value else payload.settled,
            "paid_by": paid_by,
        })
        await self.db.commit()
        await self.db.refresh(expense)
        logger.info("Recorded %s expense of %s paid by %s", expense.category, expense.amount, paid_by)
        return expense
