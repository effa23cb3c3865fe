"""Ranking of leases approaching expiry as renewal opportunities."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Iterable, Optional

from models import (
    Lease,
    LeaseRenewalOpportunity,
    PaymentHistory,
    PaymentSchedule,
    Property,
    RenewalPriority,
    RenewalStats,
    RentSuggestion,
    ScoringResult,
    Tenant,
    TenantScore,
)
from services.collaborators import RentAdvisor, SnapshotProvider
from services.scoring import clamp, classify_payment_history, classify_payment_timeliness

logger = logging.getLogger(__name__)

BASE_PROBABILITY = 70
MIN_PROBABILITY = 20
MAX_PROBABILITY = 95

HISTORY_ADJUSTMENTS = {
    PaymentHistory.EXCELLENT: 20,
    PaymentHistory.GOOD: 10,
    PaymentHistory.FAIR: 0,
    PaymentHistory.POOR: -20,
}

URGENT_SUFFIX = " URGENT: Contact tenant immediately."


def renewal_priority(days_until_expiry: int) -> RenewalPriority:
    if days_until_expiry <= 30:
        return RenewalPriority.IMMEDIATE
    if days_until_expiry <= 60:
        return RenewalPriority.HIGH
    return RenewalPriority.MEDIUM


def renewal_probability(
    payment_history: PaymentHistory,
    lease_duration: int,
    maintenance_count: int,
) -> int:
    """Start at 70, adjust for tenant factors, clamp to 20-95."""
    probability = BASE_PROBABILITY + HISTORY_ADJUSTMENTS[payment_history]
    if lease_duration >= 2:
        probability += 10
    if maintenance_count > 5:
        probability -= 10
    if maintenance_count == 0:
        probability += 5
    return clamp(probability, MIN_PROBABILITY, MAX_PROBABILITY)


def renewal_recommendation(
    payment_history: PaymentHistory,
    probability: int,
    days_until_expiry: int,
    suggestion: Optional[RentSuggestion],
) -> str:
    if payment_history == PaymentHistory.EXCELLENT and probability >= 80:
        if suggestion and suggestion.adjustment_percentage:
            increase = f"{suggestion.adjustment_percentage:g}% increase"
        else:
            increase = "market rate adjustment"
        text = f"Strong renewal candidate. Consider {increase}."
    elif payment_history == PaymentHistory.GOOD:
        text = "Good tenant. Offer renewal early with modest increase."
    elif payment_history in (PaymentHistory.FAIR, PaymentHistory.POOR):
        text = "Payment concerns. Consider renewal carefully or seek new tenant."
    else:
        text = "Standard renewal process. Monitor tenant interest."

    if days_until_expiry <= 30:
        text += URGENT_SUFFIX
    return text


def build_opportunity(
    lease: Lease,
    tenant: Tenant,
    prop: Property,
    schedule: Iterable[PaymentSchedule],
    maintenance_count: int,
    suggestion: Optional[RentSuggestion],
    today: date,
) -> LeaseRenewalOpportunity:
    """Assemble the renewal opportunity for one expiring lease."""
    days_until_expiry = (lease.end_date - today).days
    lease_duration = (lease.end_date - lease.start_date).days // 365

    timeliness = classify_payment_timeliness(schedule)
    payment_history = classify_payment_history(timeliness.on_time_percentage)
    probability = renewal_probability(payment_history, lease_duration, maintenance_count)

    current_rent = lease.monthly_rent
    if suggestion is None:
        logger.debug("No rent suggestion for property %s, keeping current rent", prop.id)
        suggested_rent = current_rent
    else:
        suggested_rent = suggestion.recommended_rent

    return LeaseRenewalOpportunity(
        lease_id=lease.id,
        tenant_id=tenant.id,
        tenant_name=tenant.full_name,
        property_id=prop.id,
        property_name=prop.name,
        current_rent=current_rent,
        suggested_rent=suggested_rent,
        end_date=lease.end_date,
        days_until_expiry=days_until_expiry,
        priority=renewal_priority(days_until_expiry),
        renewal_probability=probability,
        recommendation=renewal_recommendation(
            payment_history, probability, days_until_expiry, suggestion
        ),
        tenant_score=TenantScore(
            payment_history=payment_history,
            lease_duration=lease_duration,
            maintenance_requests=maintenance_count,
        ),
    )


def renewal_stats(opportunities: Iterable[LeaseRenewalOpportunity]) -> RenewalStats:
    """Count opportunities by priority and probability."""
    stats = RenewalStats()
    for opp in opportunities:
        stats.total += 1
        if opp.priority == RenewalPriority.IMMEDIATE:
            stats.immediate += 1
        elif opp.priority == RenewalPriority.HIGH:
            stats.high += 1
        else:
            stats.medium += 1
        if opp.renewal_probability >= 75:
            stats.high_probability += 1
        if opp.renewal_probability < 50:
            stats.low_probability += 1
    return stats


class LeaseRenewalRanker:
    """Find leases expiring within a horizon and rank them for renewal."""

    def __init__(self, provider: SnapshotProvider, advisor: RentAdvisor, max_workers: int = 4):
        self.provider = provider
        self.advisor = advisor
        self.max_workers = max(1, max_workers)

    def rank_renewals(
        self,
        organization_id: str,
        horizon_days: int,
        today: date,
    ) -> ScoringResult[LeaseRenewalOpportunity]:
        """Return opportunities ordered by end date, soonest first.

        Rent advisor calls run on a bounded thread pool; any advisor error
        propagates and fails the whole call.
        """
        snapshot = self.provider.get_org_snapshot(organization_id)
        cutoff = today + timedelta(days=horizon_days)
        result: ScoringResult[LeaseRenewalOpportunity] = ScoringResult()

        candidates = []
        for lease in snapshot.active_leases(today):
            if not (today <= lease.end_date <= cutoff):
                continue
            tenant = snapshot.find_tenant(lease.tenant_id)
            prop = snapshot.find_property(lease.property_id)
            if tenant is None or prop is None:
                logger.debug("Skipping lease %s: tenant or property not found", lease.id)
                result.skipped.append(lease.id)
                continue
            candidates.append((lease, tenant, prop))

        def evaluate(candidate) -> LeaseRenewalOpportunity:
            lease, tenant, prop = candidate
            suggestion = self.advisor.suggest_rent(prop.id, organization_id)
            return build_opportunity(
                lease,
                tenant,
                prop,
                snapshot.schedule_for(lease.id),
                snapshot.maintenance_count_for(tenant.id),
                suggestion,
                today,
            )

        if candidates:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(candidates))) as executor:
                result.items.extend(executor.map(evaluate, candidates))

        # Completion order is irrelevant; output is always by end date
        result.items.sort(key=lambda o: o.end_date)

        logger.info(
            "Found %d renewal opportunities for %s within %d days (%d skipped)",
            len(result.items), organization_id, horizon_days, len(result.skipped),
        )
        return result
