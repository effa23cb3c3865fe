"""Tests for the shared timeliness and rounding helpers."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from models import PaymentHistory, PaymentSchedule
from services.scoring import (
    clamp,
    classify_payment_history,
    classify_payment_timeliness,
    round_half_up,
    trailing_window,
)

TODAY = date(2026, 10, 19)


def paid(due: date, days_late: int = 0, amount: str = "1000") -> PaymentSchedule:
    return PaymentSchedule(
        due_date=due,
        due_amount=Decimal(amount),
        is_paid=True,
        paid_date=due + timedelta(days=days_late),
        paid_amount=Decimal(amount),
    )


def unpaid(due: date, amount: str = "1000", partial: str = None) -> PaymentSchedule:
    return PaymentSchedule(
        due_date=due,
        due_amount=Decimal(amount),
        paid_amount=Decimal(partial) if partial else None,
    )


def test_no_rows_is_perfect_history():
    """Test that an empty history counts as 100% on time."""
    result = classify_payment_timeliness([])
    assert result.total == 0
    assert result.on_time_percentage == 100.0
    assert result.average_days_late == 0.0
    assert result.outstanding_balance == Decimal("0")


def test_late_count_and_average_days_late():
    """Test lateness figures over paid rows."""
    rows = [
        paid(date(2026, 7, 1)),
        paid(date(2026, 8, 1), days_late=4),
        paid(date(2026, 9, 1), days_late=8),
        unpaid(date(2026, 10, 1)),
    ]
    result = classify_payment_timeliness(rows)
    assert result.total == 4
    assert result.late_count == 2
    assert result.paid_on_time == 1
    # Unpaid rows are not late, so they count towards on-time
    assert result.on_time_percentage == 50.0
    assert result.average_days_late == 4.0
    assert result.outstanding_balance == Decimal("1000")


def test_early_payment_counts_as_zero_days_late():
    """Test paying before the due date doesn't reduce the average."""
    rows = [paid(date(2026, 9, 1), days_late=-3), paid(date(2026, 10, 1), days_late=6)]
    result = classify_payment_timeliness(rows)
    assert result.average_days_late == 3.0


def test_outstanding_balance_subtracts_partial_payments():
    """Test partial payments reduce outstanding balance."""
    rows = [unpaid(date(2026, 9, 1)), unpaid(date(2026, 10, 1), partial="250")]
    result = classify_payment_timeliness(rows)
    assert result.outstanding_balance == Decimal("1750")


def test_trailing_window_filters_rows():
    """Test that only rows due in the trailing window are considered."""
    rows = [
        paid(TODAY - timedelta(days=31), days_late=5),
        paid(TODAY - timedelta(days=30)),
        paid(TODAY),
        unpaid(TODAY + timedelta(days=1)),
    ]
    result = classify_payment_timeliness(rows, trailing_window(TODAY, 30))
    assert result.total == 2
    assert result.late_count == 0


@pytest.mark.parametrize(
    "pct, expected",
    [
        (100, PaymentHistory.EXCELLENT),
        (95, PaymentHistory.EXCELLENT),
        (94.9, PaymentHistory.GOOD),
        (85, PaymentHistory.GOOD),
        (70, PaymentHistory.FAIR),
        (69.9, PaymentHistory.POOR),
        (0, PaymentHistory.POOR),
    ],
)
def test_classify_payment_history(pct, expected):
    assert classify_payment_history(pct) == expected


def test_clamp():
    assert clamp(105, 20, 95) == 95
    assert clamp(5, 20, 95) == 20
    assert clamp(50, 20, 95) == 50


def test_round_half_up_differs_from_bankers_rounding():
    """Test halves round up rather than to even."""
    assert round_half_up(2.5) == 3
    assert round_half_up(49.25, 1) == 49.3
    assert round_half_up(8.0, 1) == 8.0
