"""Data models for the portfolio analytics engine."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, Iterator, Optional, TypeVar


class LeaseStatus(str, Enum):
    """Lifecycle status of a lease."""
    ACTIVE = "active"
    PENDING = "pending"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class MaintenanceStatus(str, Enum):
    """Status of a maintenance request."""
    SUBMITTED = "submitted"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RiskLevel(str, Enum):
    """Payment risk band."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class HealthLevel(str, Enum):
    """Portfolio health band."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class PaymentHistory(str, Enum):
    """Payment history band used for renewals."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class RenewalPriority(str, Enum):
    """Urgency of a lease renewal."""
    IMMEDIATE = "immediate"
    HIGH = "high"
    MEDIUM = "medium"


# Source records


@dataclass
class Organization:
    """An organization owning a portfolio."""
    id: str = ""
    name: str = ""


@dataclass
class Property:
    """A rental property."""
    id: str = ""
    organization_id: str = ""
    name: str = ""

    def __str__(self) -> str:
        return self.name


@dataclass
class Unit:
    """A lettable unit within a property."""
    id: str = ""
    property_id: str = ""
    unit_number: str = ""


@dataclass
class Tenant:
    """A tenant of the organization."""
    id: str = ""
    organization_id: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    unit_id: Optional[str] = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Lease:
    """A lease agreement. Rent is held in minor currency units."""
    id: str = ""
    organization_id: str = ""
    tenant_id: str = ""
    property_id: str = ""
    unit_id: Optional[str] = None
    monthly_rent_cents: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: LeaseStatus = LeaseStatus.ACTIVE

    @property
    def monthly_rent(self) -> Decimal:
        """Monthly rent in major currency units."""
        return Decimal(self.monthly_rent_cents) / 100

    def is_active_on(self, today: date) -> bool:
        """Active status and today falls inside the lease term."""
        if self.status != LeaseStatus.ACTIVE:
            return False
        if self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= today <= self.end_date


@dataclass
class PaymentSchedule:
    """One expected rent payment for a lease."""
    id: str = ""
    lease_id: str = ""
    due_date: Optional[date] = None
    due_amount: Decimal = Decimal("0.00")
    is_paid: bool = False
    paid_date: Optional[date] = None
    paid_amount: Optional[Decimal] = None

    @property
    def is_late(self) -> bool:
        """Paid strictly after the due date. Same-day is on time."""
        if not self.is_paid or self.paid_date is None or self.due_date is None:
            return False
        return self.paid_date > self.due_date

    @property
    def is_paid_on_time(self) -> bool:
        if not self.is_paid or self.paid_date is None or self.due_date is None:
            return False
        return self.paid_date <= self.due_date

    @property
    def days_late(self) -> Optional[int]:
        """Days paid after due date (0 if early), None if not settled."""
        if not self.is_paid or self.paid_date is None or self.due_date is None:
            return None
        return max(0, (self.paid_date - self.due_date).days)

    @property
    def balance(self) -> Decimal:
        """Amount still owed on this row."""
        return self.due_amount - (self.paid_amount or Decimal("0"))


@dataclass
class RentPayment:
    """A recorded rent payment."""
    id: str = ""
    lease_id: str = ""
    payment_date: Optional[date] = None
    amount: Decimal = Decimal("0.00")
    status: str = "completed"


@dataclass
class MaintenanceRequest:
    """A maintenance ticket raised against a property."""
    id: str = ""
    organization_id: str = ""
    property_id: str = ""
    tenant_id: Optional[str] = None
    status: MaintenanceStatus = MaintenanceStatus.SUBMITTED
    requested_date: Optional[datetime] = None
    assigned_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status not in (MaintenanceStatus.COMPLETED, MaintenanceStatus.CANCELLED)

    @property
    def response_days(self) -> Optional[float]:
        """Fractional days between request and assignment."""
        if self.assigned_at is None or self.requested_date is None:
            return None
        return (self.assigned_at - self.requested_date).total_seconds() / 86400


@dataclass
class Expense:
    """An operating expense."""
    id: str = ""
    organization_id: str = ""
    property_id: Optional[str] = None
    amount: Decimal = Decimal("0.00")
    expense_date: Optional[date] = None


@dataclass
class OrgSnapshot:
    """All records for one organization at one point in time."""
    organization_id: str
    properties: list[Property] = field(default_factory=list)
    units: list[Unit] = field(default_factory=list)
    tenants: list[Tenant] = field(default_factory=list)
    leases: list[Lease] = field(default_factory=list)
    schedule_rows: list[PaymentSchedule] = field(default_factory=list)
    rent_payments: list[RentPayment] = field(default_factory=list)
    maintenance_requests: list[MaintenanceRequest] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)

    def find_tenant(self, tenant_id: Optional[str]) -> Optional[Tenant]:
        return next((t for t in self.tenants if t.id == tenant_id), None)

    def find_unit(self, unit_id: Optional[str]) -> Optional[Unit]:
        return next((u for u in self.units if u.id == unit_id), None)

    def find_property(self, property_id: Optional[str]) -> Optional[Property]:
        return next((p for p in self.properties if p.id == property_id), None)

    def schedule_for(self, lease_id: str) -> list[PaymentSchedule]:
        return [s for s in self.schedule_rows if s.lease_id == lease_id]

    def payments_for(self, lease_id: str) -> list[RentPayment]:
        return [p for p in self.rent_payments if p.lease_id == lease_id]

    def maintenance_count_for(self, tenant_id: str) -> int:
        return sum(1 for m in self.maintenance_requests if m.tenant_id == tenant_id)

    def active_leases(self, today: date) -> list[Lease]:
        return [lease for lease in self.leases if lease.is_active_on(today)]


# Results


@dataclass
class RentSuggestion:
    """Market rent recommendation from the rent advisor."""
    recommended_rent: Decimal
    adjustment_percentage: float = 0.0


@dataclass
class PaymentRiskScore:
    """Payment risk assessment for one tenant."""
    tenant_id: str
    tenant_name: str
    unit_number: str
    risk_score: int
    risk_level: RiskLevel
    total_payments: int
    late_payments: int
    on_time_percentage: int
    average_days_late: float
    outstanding_balance: Decimal
    recommendation: str
    last_payment_date: Optional[date] = None
    next_payment_due: Optional[date] = None
    lease_id: str = ""
    maintenance_requests: int = 0


@dataclass
class PortfolioMetrics:
    """Raw counts feeding the health score."""
    total_properties: int = 0
    occupied_units: int = 0
    total_units: int = 0
    monthly_income: Decimal = Decimal("0.00")
    monthly_expenses: Decimal = Decimal("0.00")
    late_payments: int = 0
    total_due_payments: int = 0
    open_maintenance: int = 0
    avg_maintenance_response_days: float = 0.0


@dataclass
class PortfolioHealth:
    """Aggregate health of an organization's portfolio."""
    health_score: int
    health_level: HealthLevel
    occupancy_rate: float
    collection_rate: float
    maintenance_response_rate: int
    tenant_satisfaction_score: float
    roi_percentage: float
    recommendations: list[str] = field(default_factory=list)
    metrics: PortfolioMetrics = field(default_factory=PortfolioMetrics)


@dataclass
class TenantScore:
    """Tenant factors behind a renewal probability."""
    payment_history: PaymentHistory
    lease_duration: int
    maintenance_requests: int


@dataclass
class LeaseRenewalOpportunity:
    """A lease approaching expiry, ranked for renewal."""
    lease_id: str
    tenant_id: str
    tenant_name: str
    property_id: str
    property_name: str
    current_rent: Decimal
    suggested_rent: Decimal
    end_date: date
    days_until_expiry: int
    priority: RenewalPriority
    renewal_probability: int
    recommendation: str
    tenant_score: TenantScore


@dataclass
class RenewalStats:
    """Counts over a set of renewal opportunities."""
    total: int = 0
    immediate: int = 0
    high: int = 0
    medium: int = 0
    high_probability: int = 0
    low_probability: int = 0


@dataclass
class CashFlowForecast:
    """Projected cash flow for one month."""
    month: str
    expected_income: Decimal
    expected_expenses: Decimal
    net_cash_flow: Decimal
    confidence_level: int


@dataclass
class PaymentReminder:
    """An unpaid schedule row coming due soon."""
    schedule_id: str
    lease_id: str
    tenant_id: str
    tenant_name: str
    due_date: date
    amount_due: Decimal
    days_until_due: int


T = TypeVar("T")


@dataclass
class ScoringResult(Generic[T]):
    """Scored items plus the lease ids that were skipped for missing joins."""
    items: list[T] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> T:
        return self.items[index]
