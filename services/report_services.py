import logging
from datetime import datetime
from decimal import Decimal, ROUND_FLOOR
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.Expense import EXPENSE_CATEGORY_LABELS, Expense, ExpenseCategoryEnum
from models.Income import Income
from models.Product import Product
from schemas.ReportSchemas import (
    CashFlowResponse,
    CashFlowRow,
    DashboardStatistics,
    MonthlyDataPoint,
    PeriodSummaryResponse,
    PeriodTotals,
    RecentTransaction,
    TopProductRow,
)
from utils import ID_MONTHS_SHORT, get_jkt_now, month_range, shift_month

logger = logging.getLogger(__name__)

SALES_CATEGORY_LABEL = "Penjualan"


def _to_decimal(value) -> Decimal:
    return Decimal(str(value or 0))


def percentage_change(current, previous) -> Optional[int]:
    """
    Month-over-month change in whole percent.

    (0, 0) -> None, (x > 0, 0) -> 100, otherwise (cur - prev) / prev * 100
    rounded with halves going up (-2.5 -> -2, 2.5 -> 3).
    """
    current = _to_decimal(current)
    previous = _to_decimal(previous)
    if previous > 0:
        change = (current - previous) / previous * 100
        return int((change + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))
    if current > 0:
        return 100
    return None


class ReportService:
    def __init__(self, db: Session, owner_id: int, now: Callable[[], datetime] = get_jkt_now):
        self.db = db
        self.owner_id = owner_id
        self.now = now

    # sums

    def income_total(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> Decimal:
        query = self.db.query(func.coalesce(func.sum(Income.total_amount), 0)).filter(
            Income.owner_id == self.owner_id
        )
        if date_from is not None:
            query = query.filter(Income.date >= date_from)
        if date_to is not None:
            query = query.filter(Income.date < date_to)
        return _to_decimal(query.scalar())

    def expense_total(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> Decimal:
        query = self.db.query(func.coalesce(func.sum(Expense.amount), 0)).filter(
            Expense.owner_id == self.owner_id
        )
        if date_from is not None:
            query = query.filter(Expense.date >= date_from)
        if date_to is not None:
            query = query.filter(Expense.date < date_to)
        return _to_decimal(query.scalar())

    def period_totals(self, date_from: datetime, date_to: datetime) -> PeriodTotals:
        income = self.income_total(date_from, date_to)
        expense = self.expense_total(date_from, date_to)
        return PeriodTotals(
            date_from=date_from,
            date_to=date_to,
            income=income,
            expense=expense,
            profit=income - expense,
        )

    # dashboard pieces

    def monthly_data(self, months: int = 6) -> List[MonthlyDataPoint]:
        """Oldest first, ending with the current month."""
        now = self.now()
        points = []
        for offset in range(months - 1, -1, -1):
            year, month = shift_month(now.year, now.month, -offset)
            start, end = month_range(year, month)
            income = self.income_total(start, end)
            expense = self.expense_total(start, end)
            points.append(MonthlyDataPoint(
                month=ID_MONTHS_SHORT[month - 1],
                year=year,
                income=income,
                expense=expense,
                profit=income - expense,
            ))
        return points

    def top_products(self, limit: int = 5) -> List[TopProductRow]:
        revenue = func.coalesce(func.sum(Income.total_amount), 0).label("revenue")
        quantity = func.coalesce(func.sum(Income.quantity), 0).label("quantity")

        # inner join: sales of deleted products fall out of the ranking
        rows = (
            self.db.query(Product.id, Product.name, Product.hpp, revenue, quantity)
            .join(Income, Income.product_id == Product.id)
            .filter(Income.owner_id == self.owner_id, Product.owner_id == self.owner_id)
            .group_by(Product.id, Product.name, Product.hpp)
            .order_by(revenue.desc(), Product.id.asc())
            .limit(limit)
            .all()
        )

        result = []
        for row in rows:
            row_revenue = _to_decimal(row.revenue)
            row_quantity = int(row.quantity or 0)
            hpp = _to_decimal(row.hpp)
            cost = hpp * row_quantity
            result.append(TopProductRow(
                product_id=row.id,
                name=row.name,
                revenue=row_revenue,
                quantity=row_quantity,
                hpp=hpp,
                cost=cost,
                profit=row_revenue - cost,
            ))
        return result

    def recent_transactions(self, limit: int = 10) -> List[RecentTransaction]:
        incomes = (
            self.db.query(Income)
            .filter(Income.owner_id == self.owner_id)
            .order_by(Income.date.desc(), Income.id.desc())
            .limit(limit)
            .all()
        )
        expenses = (
            self.db.query(Expense)
            .filter(Expense.owner_id == self.owner_id)
            .order_by(Expense.date.desc(), Expense.id.desc())
            .limit(limit)
            .all()
        )

        feed = [
            RecentTransaction(
                id=income.id,
                type="income",
                description=f"Penjualan {income.product_rel.name if income.product_rel else 'Produk'}",
                amount=_to_decimal(income.total_amount),
                date=income.date,
            )
            for income in incomes
        ]
        feed.extend(
            RecentTransaction(
                id=expense.id,
                type="expense",
                description=expense.description,
                amount=_to_decimal(expense.amount),
                date=expense.date,
            )
            for expense in expenses
        )
        feed.sort(key=lambda tx: tx.date, reverse=True)
        return feed[:limit]

    def dashboard(self) -> DashboardStatistics:
        now = self.now()
        this_start, this_end = month_range(now.year, now.month)
        last_year, last_month = shift_month(now.year, now.month, -1)
        last_start, last_end = month_range(last_year, last_month)

        total_income = self.income_total(this_start, this_end)
        total_expense = self.expense_total(this_start, this_end)
        prev_income = self.income_total(last_start, last_end)
        prev_expense = self.expense_total(last_start, last_end)

        product_count = self.db.query(Product).filter(Product.owner_id == self.owner_id).count()

        return DashboardStatistics(
            total_income=total_income,
            total_expense=total_expense,
            profit=total_income - total_expense,
            product_count=product_count,
            income_change=percentage_change(total_income, prev_income),
            expense_change=percentage_change(total_expense, prev_expense),
            monthly_data=self.monthly_data(),
            top_products=self.top_products(),
            recent_transactions=self.recent_transactions(),
        )

    # reports

    def period_summary(self, date_from: datetime, date_to: datetime) -> PeriodSummaryResponse:
        """
        [date_from, date_to) compared with the period of equal length right
        before it.
        """
        length = date_to - date_from
        current = self.period_totals(date_from, date_to)
        previous = self.period_totals(date_from - length, date_from)
        return PeriodSummaryResponse(
            current=current,
            previous=previous,
            income_change=percentage_change(current.income, previous.income),
            expense_change=percentage_change(current.expense, previous.expense),
        )

    def cash_flow(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> CashFlowResponse:
        sales = self.income_total(date_from, date_to)

        query = (
            self.db.query(Expense.category, func.coalesce(func.sum(Expense.amount), 0))
            .filter(Expense.owner_id == self.owner_id)
        )
        if date_from is not None:
            query = query.filter(Expense.date >= date_from)
        if date_to is not None:
            query = query.filter(Expense.date < date_to)
        per_category = {category: _to_decimal(total) for category, total in query.group_by(Expense.category).all()}

        rows = [CashFlowRow(category=SALES_CATEGORY_LABEL, income=sales, expense=Decimal("0"), net=sales)]
        for category in ExpenseCategoryEnum:
            spent = per_category.get(category, Decimal("0"))
            rows.append(CashFlowRow(
                category=EXPENSE_CATEGORY_LABELS[category],
                income=Decimal("0"),
                expense=spent,
                net=-spent,
            ))

        total_expense = sum((row.expense for row in rows), Decimal("0"))
        return CashFlowResponse(
            rows=rows,
            total_income=sales,
            total_expense=total_expense,
            net_cash_flow=sales - total_expense,
        )
