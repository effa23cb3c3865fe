"""Per-tenant payment risk scoring."""

import logging
from datetime import date
from typing import Iterable, Optional

from models import (
    Lease,
    PaymentRiskScore,
    PaymentSchedule,
    RentPayment,
    RiskLevel,
    ScoringResult,
    Tenant,
    Unit,
)
from services.collaborators import SnapshotProvider
from services.scoring import clamp, classify_payment_timeliness, round_half_up

logger = logging.getLogger(__name__)


# Level thresholds, highest first
RISK_LEVELS = [
    (70, RiskLevel.CRITICAL),
    (45, RiskLevel.HIGH),
    (20, RiskLevel.MEDIUM),
    (0, RiskLevel.LOW),
]

RECOMMENDATIONS = {
    RiskLevel.CRITICAL: "Immediate action required. Consider payment plan or legal consultation.",
    RiskLevel.HIGH: "Send urgent payment reminder. Schedule meeting to discuss payment options.",
    RiskLevel.MEDIUM: "Send payment reminder 5 days before due date. Monitor closely.",
    RiskLevel.LOW: "Tenant has good payment history. Continue standard reminders.",
}


def on_time_points(on_time_percentage: float) -> int:
    if on_time_percentage < 50:
        return 40
    if on_time_percentage < 70:
        return 30
    if on_time_percentage < 85:
        return 15
    return 0


def lateness_points(average_days_late: float) -> int:
    if average_days_late > 10:
        return 30
    if average_days_late > 5:
        return 20
    if average_days_late > 2:
        return 10
    return 0


def balance_points(outstanding_balance, monthly_rent) -> int:
    if outstanding_balance > monthly_rent * 2:
        return 30
    if outstanding_balance > monthly_rent:
        return 15
    return 0


def risk_level_for(score: int) -> RiskLevel:
    """Map a clamped risk score to its band."""
    for threshold, level in RISK_LEVELS:
        if score >= threshold:
            return level
    return RiskLevel.LOW


def score_tenant(
    lease: Lease,
    schedule: Iterable[PaymentSchedule],
    today: date,
    tenant: Optional[Tenant] = None,
    unit: Optional[Unit] = None,
    payments: Iterable[RentPayment] = (),
    maintenance_count: int = 0,
) -> PaymentRiskScore:
    """Score one lease's payment history.

    The score is the sum of three capped buckets (on-time rate, lateness
    severity, balance pressure) clamped to 0-100. The recommendation is
    fixed per risk level.
    """
    rows = list(schedule)
    timeliness = classify_payment_timeliness(rows)

    raw_score = (
        on_time_points(timeliness.on_time_percentage)
        + lateness_points(timeliness.average_days_late)
        + balance_points(timeliness.outstanding_balance, lease.monthly_rent)
    )
    risk_score = clamp(raw_score, 0, 100)
    risk_level = risk_level_for(risk_score)

    paid_dates = [p.payment_date for p in payments if p.payment_date is not None]
    upcoming = [
        row.due_date
        for row in rows
        if not row.is_paid and row.due_date is not None and row.due_date >= today
    ]

    return PaymentRiskScore(
        tenant_id=tenant.id if tenant else lease.tenant_id,
        tenant_name=tenant.full_name if tenant else "",
        unit_number=unit.unit_number if unit else "",
        risk_score=risk_score,
        risk_level=risk_level,
        total_payments=timeliness.total,
        late_payments=timeliness.late_count,
        on_time_percentage=int(round_half_up(timeliness.on_time_percentage)),
        average_days_late=round_half_up(timeliness.average_days_late, 1),
        outstanding_balance=timeliness.outstanding_balance,
        recommendation=RECOMMENDATIONS[risk_level],
        last_payment_date=max(paid_dates) if paid_dates else None,
        next_payment_due=min(upcoming) if upcoming else None,
        lease_id=lease.id,
        maintenance_requests=maintenance_count,
    )


class PaymentRiskScorer:
    """Score every active lease in an organization."""

    def __init__(self, provider: SnapshotProvider):
        self.provider = provider

    def score_organization(self, organization_id: str, today: date) -> ScoringResult[PaymentRiskScore]:
        """Return risk scores sorted highest risk first.

        Leases whose tenant or unit cannot be resolved are left out and
        listed in ``skipped``.
        """
        snapshot = self.provider.get_org_snapshot(organization_id)
        result: ScoringResult[PaymentRiskScore] = ScoringResult()

        for lease in snapshot.active_leases(today):
            tenant = snapshot.find_tenant(lease.tenant_id)
            unit = snapshot.find_unit(lease.unit_id)
            if tenant is None or unit is None:
                logger.debug("Skipping lease %s: tenant or unit not found", lease.id)
                result.skipped.append(lease.id)
                continue

            result.items.append(
                score_tenant(
                    lease,
                    snapshot.schedule_for(lease.id),
                    today,
                    tenant=tenant,
                    unit=unit,
                    payments=snapshot.payments_for(lease.id),
                    maintenance_count=snapshot.maintenance_count_for(tenant.id),
                )
            )

        # Stable sort keeps discovery order for equal scores
        result.items.sort(key=lambda s: s.risk_score, reverse=True)

        logger.info(
            "Scored %d tenants for %s (%d skipped)",
            len(result.items), organization_id, len(result.skipped),
        )
        return result
