from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class MonthlyDataPoint(BaseModel):
    month: str = Field(description="Indonesian short month name, e.g. 'Mei'.")
    year: int
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")


class TopProductRow(BaseModel):
    """
    Revenue ranking row. cost uses the product's persisted hpp, so it
    reflects material prices at the time the product was last costed.
    """
    product_id: int
    name: str
    revenue: Decimal = Decimal("0")
    quantity: int = 0
    hpp: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")


class RecentTransaction(BaseModel):
    id: int
    type: Literal["income", "expense"]
    description: str
    amount: Decimal
    date: datetime


class DashboardStatistics(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    profit: Decimal
    product_count: int

    # null when neither month has data
    income_change: Optional[int] = None
    expense_change: Optional[int] = None

    monthly_data: List[MonthlyDataPoint]
    top_products: List[TopProductRow]
    recent_transactions: List[RecentTransaction]


class PeriodTotals(BaseModel):
    date_from: datetime
    date_to: datetime
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")


class PeriodSummaryResponse(BaseModel):
    current: PeriodTotals
    previous: PeriodTotals
    income_change: Optional[int] = None
    expense_change: Optional[int] = None


class CashFlowRow(BaseModel):
    category: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    net: Decimal = Decimal("0")


class CashFlowResponse(BaseModel):
    rows: List[CashFlowRow]
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    net_cash_flow: Decimal = Decimal("0")
