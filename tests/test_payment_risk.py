"""Tests for payment risk scoring."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from models import (
    Lease,
    OrgSnapshot,
    PaymentSchedule,
    Property,
    RentPayment,
    RiskLevel,
    Tenant,
    Unit,
)
from services.collaborators import InMemorySnapshotProvider
from services.payment_risk import (
    RECOMMENDATIONS,
    PaymentRiskScorer,
    risk_level_for,
    score_tenant,
)

TODAY = date(2026, 10, 19)
START = date(2025, 1, 1)
END = date(2027, 1, 1)


def make_lease(lease_id: str = "lease-1", rent_cents: int = 100000, **kwargs) -> Lease:
    defaults = dict(
        id=lease_id,
        organization_id="org-1",
        tenant_id="tenant-1",
        property_id="prop-1",
        unit_id="unit-1",
        monthly_rent_cents=rent_cents,
        start_date=START,
        end_date=END,
    )
    defaults.update(kwargs)
    return Lease(**defaults)


def row(lease_id: str, due: date, days_late=None, amount="1000", partial=None) -> PaymentSchedule:
    """Paid row when days_late is given, otherwise unpaid."""
    if days_late is None:
        return PaymentSchedule(
            lease_id=lease_id,
            due_date=due,
            due_amount=Decimal(amount),
            paid_amount=Decimal(partial) if partial else None,
        )
    return PaymentSchedule(
        lease_id=lease_id,
        due_date=due,
        due_amount=Decimal(amount),
        is_paid=True,
        paid_date=due + timedelta(days=days_late),
        paid_amount=Decimal(amount),
    )


def monthly(n: int) -> list[date]:
    return [date(2025, 1, 1) + timedelta(days=30 * i) for i in range(n)]


def test_zero_history_is_low_risk():
    """Test that a tenant with no schedule rows is scored low risk."""
    score = score_tenant(make_lease(), [], TODAY)
    assert score.on_time_percentage == 100
    assert score.risk_score == 0
    assert score.risk_level == RiskLevel.LOW
    assert score.recommendation == RECOMMENDATIONS[RiskLevel.LOW]


def test_chronic_late_payer_is_critical():
    """Test 20 rows, 12 late averaging 8 days, balance 2.5x rent."""
    dues = monthly(20)
    rows = []
    # 12 late rows: 4 x 12 days + 8 x 11 days = 136 days over 17 paid rows
    for due in dues[:4]:
        rows.append(row("lease-1", due, days_late=12))
    for due in dues[4:12]:
        rows.append(row("lease-1", due, days_late=11))
    for due in dues[12:17]:
        rows.append(row("lease-1", due, days_late=0))
    rows.append(row("lease-1", dues[17]))
    rows.append(row("lease-1", dues[18]))
    rows.append(row("lease-1", dues[19], partial="500"))

    score = score_tenant(make_lease(), rows, TODAY)

    assert score.total_payments == 20
    assert score.late_payments == 12
    assert score.on_time_percentage == 40
    assert score.average_days_late == 8.0
    assert score.outstanding_balance == Decimal("2500")
    # 40 (on-time < 50%) + 20 (avg > 5 days) + 30 (balance > 2x rent)
    assert score.risk_score == 90
    assert score.risk_level == RiskLevel.CRITICAL


def test_buckets_are_independent():
    """Test a single late bucket without balance pressure."""
    dues = monthly(10)
    # 2 late of 10 -> 80% on time (+15), avg 3.0 days late (+10)
    rows = [row("lease-1", d, days_late=15) for d in dues[:2]]
    rows += [row("lease-1", d, days_late=0) for d in dues[2:]]

    score = score_tenant(make_lease(), rows, TODAY)
    assert score.on_time_percentage == 80
    assert score.average_days_late == 3.0
    assert score.risk_score == 25
    assert score.risk_level == RiskLevel.MEDIUM


def test_balance_exactly_one_month_adds_nothing():
    """Test balance pressure thresholds are strict."""
    rows = [row("lease-1", date(2026, 10, 1))]
    score = score_tenant(make_lease(rent_cents=100000), rows, TODAY)
    assert score.outstanding_balance == Decimal("1000")
    assert score.risk_score == 0


def test_last_and_next_payment_dates():
    """Test last payment comes from rent payments and next due from unpaid rows."""
    rows = [
        row("lease-1", date(2026, 9, 1), days_late=0),
        row("lease-1", date(2026, 11, 1)),
        row("lease-1", date(2026, 12, 1)),
    ]
    payments = [
        RentPayment(lease_id="lease-1", payment_date=date(2026, 8, 1), amount=Decimal("1000")),
        RentPayment(lease_id="lease-1", payment_date=date(2026, 9, 1), amount=Decimal("1000")),
    ]
    score = score_tenant(make_lease(), rows, TODAY, payments=payments)
    assert score.last_payment_date == date(2026, 9, 1)
    assert score.next_payment_due == date(2026, 11, 1)


@pytest.mark.parametrize(
    "score, expected",
    [
        (0, RiskLevel.LOW),
        (19, RiskLevel.LOW),
        (20, RiskLevel.MEDIUM),
        (44, RiskLevel.MEDIUM),
        (45, RiskLevel.HIGH),
        (69, RiskLevel.HIGH),
        (70, RiskLevel.CRITICAL),
        (100, RiskLevel.CRITICAL),
    ],
)
def test_risk_level_thresholds(score, expected):
    assert risk_level_for(score) == expected


def test_risk_level_is_monotonic():
    """Test levels never decrease as the score rises."""
    order = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]
    ranks = [order.index(risk_level_for(s)) for s in range(101)]
    assert ranks == sorted(ranks)


def build_snapshot() -> OrgSnapshot:
    tenants = [
        Tenant(id="tenant-1", organization_id="org-1", first_name="Ada", last_name="Lovelace"),
        Tenant(id="tenant-2", organization_id="org-1", first_name="Alan", last_name="Turing"),
        Tenant(id="tenant-3", organization_id="org-1", first_name="Grace", last_name="Hopper"),
    ]
    units = [
        Unit(id="unit-1", property_id="prop-1", unit_number="1A"),
        Unit(id="unit-2", property_id="prop-1", unit_number="1B"),
        Unit(id="unit-3", property_id="prop-1", unit_number="1C"),
    ]
    leases = [
        make_lease("lease-1", tenant_id="tenant-1", unit_id="unit-1"),
        make_lease("lease-2", tenant_id="tenant-2", unit_id="unit-2"),
        make_lease("lease-3", tenant_id="tenant-3", unit_id="unit-3"),
        # Missing tenant and missing unit
        make_lease("lease-4", tenant_id="ghost", unit_id="unit-1"),
        make_lease("lease-5", tenant_id="tenant-1", unit_id="missing"),
        # Not active
        make_lease("lease-6", end_date=date(2026, 1, 1)),
    ]
    schedule = [
        # lease-2 owes three months
        row("lease-2", date(2026, 8, 1)),
        row("lease-2", date(2026, 9, 1)),
        row("lease-2", date(2026, 10, 1)),
    ]
    return OrgSnapshot(
        organization_id="org-1",
        properties=[Property(id="prop-1", organization_id="org-1", name="Elm Court")],
        units=units,
        tenants=tenants,
        leases=leases,
        schedule_rows=schedule,
    )


def test_score_organization_sorts_and_skips():
    """Test results are sorted by risk and unresolved leases are counted."""
    provider = InMemorySnapshotProvider({"org-1": build_snapshot()})
    result = PaymentRiskScorer(provider).score_organization("org-1", TODAY)

    assert [s.lease_id for s in result] == ["lease-2", "lease-1", "lease-3"]
    assert result[0].risk_score == 30
    assert result[0].tenant_name == "Alan Turing"
    assert result[0].unit_number == "1B"
    assert result.skipped == ["lease-4", "lease-5"]


def test_ties_keep_discovery_order():
    """Test equal scores stay in lease order."""
    provider = InMemorySnapshotProvider({"org-1": build_snapshot()})
    result = PaymentRiskScorer(provider).score_organization("org-1", TODAY)
    tied = [s.lease_id for s in result if s.risk_score == 0]
    assert tied == ["lease-1", "lease-3"]


def test_scoring_is_repeatable():
    """Test scoring the same snapshot twice gives identical results."""
    provider = InMemorySnapshotProvider({"org-1": build_snapshot()})
    scorer = PaymentRiskScorer(provider)
    first = scorer.score_organization("org-1", TODAY)
    second = scorer.score_organization("org-1", TODAY)
    assert first == second


def test_provider_failure_propagates():
    """Test that snapshot errors are not swallowed."""
    scorer = PaymentRiskScorer(InMemorySnapshotProvider())
    with pytest.raises(LookupError):
        scorer.score_organization("unknown", TODAY)
