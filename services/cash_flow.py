"""Rent-roll based cash flow forecasting."""

from collections import defaultdict
from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from models import CashFlowForecast, OrgSnapshot

COLLECTION_FACTOR = Decimal("0.95")
# Used when there is no expense history to average
DEFAULT_EXPENSE_RATIO = Decimal("0.30")
CENTS = Decimal("0.01")


def confidence_for_month(index: int) -> int:
    """Confidence decays 5 points per month ahead, floored at 60."""
    return max(60, 95 - index * 5)


def average_monthly_expenses(snapshot: OrgSnapshot, today: date, rent_roll: Decimal) -> Decimal:
    """Mean of per-month expense totals since the same month last year."""
    since = date(today.year - 1, today.month, 1)
    by_month: dict[str, Decimal] = defaultdict(Decimal)
    for expense in snapshot.expenses:
        if expense.expense_date is None or not (since <= expense.expense_date <= today):
            continue
        by_month[expense.expense_date.strftime("%Y-%m")] += expense.amount

    if not by_month:
        return rent_roll * DEFAULT_EXPENSE_RATIO
    return sum(by_month.values(), Decimal("0")) / len(by_month)


def forecast_cash_flow(snapshot: OrgSnapshot, today: date, months: int = 6) -> list[CashFlowForecast]:
    """Project income, expenses and net cash flow for the coming months."""
    rent_roll = sum((lease.monthly_rent for lease in snapshot.active_leases(today)), Decimal("0"))
    expected_income = (rent_roll * COLLECTION_FACTOR).quantize(CENTS)
    expected_expenses = average_monthly_expenses(snapshot, today, rent_roll).quantize(CENTS)

    first_of_month = today.replace(day=1)
    forecasts = []
    for index in range(months):
        month = first_of_month + relativedelta(months=index)
        forecasts.append(
            CashFlowForecast(
                month=month.strftime("%b %Y"),
                expected_income=expected_income,
                expected_expenses=expected_expenses,
                net_cash_flow=expected_income - expected_expenses,
                confidence_level=confidence_for_month(index),
            )
        )
    return forecasts
