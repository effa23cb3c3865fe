"""Organization-wide portfolio health scoring."""

import logging
from datetime import date, timedelta
from decimal import Decimal

from models import HealthLevel, OrgSnapshot, PortfolioHealth, PortfolioMetrics
from services.collaborators import SnapshotProvider
from services.scoring import clamp, classify_payment_timeliness, round_half_up, trailing_window

logger = logging.getLogger(__name__)

# Unit counts are not tracked per property; every property is assumed to hold 10
UNITS_PER_PROPERTY = 10
WINDOW_DAYS = 30

OCCUPANCY_WEIGHT = 0.30
COLLECTION_WEIGHT = 0.35
MAINTENANCE_WEIGHT = 0.15
ROI_MULTIPLIER = 2
ROI_CAP = 20

HEALTH_LEVELS = [
    (90, HealthLevel.EXCELLENT),
    (75, HealthLevel.GOOD),
    (60, HealthLevel.FAIR),
    (40, HealthLevel.POOR),
]

PERFORMING_WELL = "Portfolio is performing well. Continue current management practices."


def maintenance_response_rate(avg_response_days: float) -> int:
    """Step function over average days to assign a maintenance request."""
    if avg_response_days < 2:
        return 95
    if avg_response_days < 5:
        return 75
    return 50


def health_level_for(score: int) -> HealthLevel:
    for threshold, level in HEALTH_LEVELS:
        if score >= threshold:
            return level
    return HealthLevel.CRITICAL


def build_recommendations(
    occupancy_rate: float,
    collection_rate: float,
    avg_response_days: float,
    roi_percentage: float,
    late_payments: int,
    total_due: int,
) -> list[str]:
    """One sentence per triggered condition, in a fixed order."""
    recommendations = []
    if occupancy_rate < 80:
        recommendations.append(
            "Occupancy below optimal. Consider marketing vacant units or adjusting pricing."
        )
    if collection_rate < 90:
        recommendations.append(
            "Collection rate needs improvement. Implement automated payment reminders."
        )
    if avg_response_days > 3:
        recommendations.append(
            "Maintenance response time is slow. Consider hiring additional vendors."
        )
    if roi_percentage < 10:
        recommendations.append("ROI is low. Review expenses and consider rent adjustments.")
    if late_payments > total_due * 0.2:
        recommendations.append("High rate of late payments. Review tenant screening process.")

    if not recommendations:
        recommendations.append(PERFORMING_WELL)
    return recommendations


def score_health(snapshot: OrgSnapshot, today: date) -> PortfolioHealth:
    """Compute the weighted health composite for one organization snapshot."""
    total_units = len(snapshot.properties) * UNITS_PER_PROPERTY
    active_leases = snapshot.active_leases(today)
    occupied_units = len(active_leases)
    occupancy_rate = (occupied_units / total_units) * 100 if total_units > 0 else 0.0

    # Collection is measured org-wide over the trailing window, not per lease
    timeliness = classify_payment_timeliness(
        snapshot.schedule_rows, trailing_window(today, WINDOW_DAYS)
    )
    total_due = timeliness.total
    collection_rate = (timeliness.paid_on_time / total_due) * 100 if total_due > 0 else 100.0

    monthly_income = sum((lease.monthly_rent for lease in active_leases), Decimal("0.00"))
    window_start = today - timedelta(days=WINDOW_DAYS)
    monthly_expenses = sum(
        (
            e.amount
            for e in snapshot.expenses
            if e.expense_date is not None and window_start <= e.expense_date <= today
        ),
        Decimal("0.00"),
    )
    if monthly_income > 0:
        roi_percentage = float((monthly_income - monthly_expenses) / monthly_income * 100)
    else:
        roi_percentage = 0.0

    response_times = [
        m.response_days for m in snapshot.maintenance_requests if m.response_days is not None
    ]
    avg_response_days = sum(response_times) / len(response_times) if response_times else 0.0
    response_rate = maintenance_response_rate(avg_response_days)

    composite = (
        occupancy_rate * OCCUPANCY_WEIGHT
        + collection_rate * COLLECTION_WEIGHT
        + response_rate * MAINTENANCE_WEIGHT
        + min(roi_percentage * ROI_MULTIPLIER, ROI_CAP)
    )
    health_score = int(round_half_up(clamp(composite, 0, 100)))

    return PortfolioHealth(
        health_score=health_score,
        health_level=health_level_for(health_score),
        occupancy_rate=round_half_up(occupancy_rate, 1),
        collection_rate=round_half_up(collection_rate, 1),
        maintenance_response_rate=response_rate,
        tenant_satisfaction_score=round_half_up(min(collection_rate, response_rate), 1),
        roi_percentage=round_half_up(roi_percentage, 1),
        recommendations=build_recommendations(
            occupancy_rate,
            collection_rate,
            avg_response_days,
            roi_percentage,
            timeliness.late_count,
            total_due,
        ),
        metrics=PortfolioMetrics(
            total_properties=len(snapshot.properties),
            occupied_units=occupied_units,
            total_units=total_units,
            monthly_income=monthly_income,
            monthly_expenses=monthly_expenses,
            late_payments=timeliness.late_count,
            total_due_payments=total_due,
            open_maintenance=sum(1 for m in snapshot.maintenance_requests if m.is_open),
            avg_maintenance_response_days=round_half_up(avg_response_days, 1),
        ),
    )


class PortfolioHealthScorer:
    """Fetch an organization's snapshot and score its health."""

    def __init__(self, provider: SnapshotProvider):
        self.provider = provider

    def score_organization(self, organization_id: str, today: date) -> PortfolioHealth:
        snapshot = self.provider.get_org_snapshot(organization_id)
        health = score_health(snapshot, today)
        logger.info(
            "Health for %s: %d (%s)",
            organization_id, health.health_score, health.health_level.value,
        )
        return health
