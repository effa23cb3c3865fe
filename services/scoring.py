"""Shared numeric and classification helpers for the scorers."""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional

from models import PaymentHistory, PaymentSchedule

ScheduleWindow = Callable[[PaymentSchedule], bool]


@dataclass
class PaymentTimeliness:
    """On-time and lateness figures over a set of schedule rows."""
    total: int = 0
    late_count: int = 0
    paid_on_time: int = 0
    on_time_percentage: float = 100.0
    average_days_late: float = 0.0
    outstanding_balance: Decimal = Decimal("0.00")


def classify_payment_timeliness(
    rows: Iterable[PaymentSchedule],
    window: Optional[ScheduleWindow] = None,
) -> PaymentTimeliness:
    """Summarize how promptly a set of schedule rows was paid.

    ``window`` restricts the rows considered (full history when omitted).
    With no rows the on-time percentage is 100: no history counts as a
    clean history.
    """
    selected = [row for row in rows if window is None or window(row)]
    total = len(selected)
    late_count = sum(1 for row in selected if row.is_late)
    paid_on_time = sum(1 for row in selected if row.is_paid_on_time)

    days_late = [row.days_late for row in selected if row.days_late is not None]
    average_days_late = sum(days_late) / len(days_late) if days_late else 0.0

    outstanding = sum(
        (row.balance for row in selected if not row.is_paid),
        Decimal("0.00"),
    )

    on_time_percentage = ((total - late_count) / total) * 100 if total > 0 else 100.0

    return PaymentTimeliness(
        total=total,
        late_count=late_count,
        paid_on_time=paid_on_time,
        on_time_percentage=on_time_percentage,
        average_days_late=average_days_late,
        outstanding_balance=outstanding,
    )


def trailing_window(today: date, days: int) -> ScheduleWindow:
    """Rows due within the last ``days`` days, today included."""
    start = today - timedelta(days=days)

    def in_window(row: PaymentSchedule) -> bool:
        return row.due_date is not None and start <= row.due_date <= today

    return in_window


def classify_payment_history(on_time_percentage: float) -> PaymentHistory:
    """Bucket an on-time percentage into a payment history band."""
    if on_time_percentage >= 95:
        return PaymentHistory.EXCELLENT
    if on_time_percentage >= 85:
        return PaymentHistory.GOOD
    if on_time_percentage >= 70:
        return PaymentHistory.FAIR
    return PaymentHistory.POOR


def clamp(value, low, high):
    return max(low, min(high, value))


def round_half_up(value, places: int = 0) -> float:
    """Round halves away from zero instead of to even."""
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)
