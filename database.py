"""SQLite record store for organizations, leases and their operational history."""

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Generator, Optional

from models import (
    Expense,
    Lease,
    LeaseStatus,
    MaintenanceRequest,
    MaintenanceStatus,
    Organization,
    OrgSnapshot,
    PaymentSchedule,
    Property,
    RentPayment,
    RentSuggestion,
    Tenant,
    Unit,
)
from services.collaborators import RentAdvisor, SnapshotProvider


# Database schema version for migrations
SCHEMA_VERSION = 1

# Money columns are TEXT so Decimal values round-trip exactly
SQLITE_SCHEMA = """
-- Organizations table (must be first for foreign keys)
CREATE TABLE IF NOT EXISTS organizations (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

-- Properties table
CREATE TABLE IF NOT EXISTS properties (
    id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    name TEXT NOT NULL,
    FOREIGN KEY (organization_id) REFERENCES organizations(id)
);

-- Units table
CREATE TABLE IF NOT EXISTS units (
    id TEXT PRIMARY KEY,
    property_id TEXT NOT NULL,
    unit_number TEXT NOT NULL,
    FOREIGN KEY (property_id) REFERENCES properties(id)
);

-- Tenants table
CREATE TABLE IF NOT EXISTS tenants (
    id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    email TEXT,
    unit_id TEXT,
    is_active BOOLEAN DEFAULT 1,
    FOREIGN KEY (organization_id) REFERENCES organizations(id)
);

-- Leases table
CREATE TABLE IF NOT EXISTS leases (
    id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    tenant_id TEXT NOT NULL,
    property_id TEXT NOT NULL,
    unit_id TEXT,
    monthly_rent_cents INTEGER NOT NULL DEFAULT 0,
    start_date DATE,
    end_date DATE,
    status TEXT NOT NULL DEFAULT 'active',
    FOREIGN KEY (organization_id) REFERENCES organizations(id)
);

-- Payment schedule rows
CREATE TABLE IF NOT EXISTS payment_schedules (
    id TEXT PRIMARY KEY,
    lease_id TEXT NOT NULL,
    due_date DATE,
    due_amount TEXT NOT NULL DEFAULT '0',
    is_paid BOOLEAN DEFAULT 0,
    paid_date DATE,
    paid_amount TEXT,
    FOREIGN KEY (lease_id) REFERENCES leases(id)
);

-- Rent payments received
CREATE TABLE IF NOT EXISTS rent_payments (
    id TEXT PRIMARY KEY,
    lease_id TEXT NOT NULL,
    payment_date DATE,
    amount TEXT NOT NULL DEFAULT '0',
    status TEXT NOT NULL DEFAULT 'completed',
    FOREIGN KEY (lease_id) REFERENCES leases(id)
);

-- Maintenance requests
CREATE TABLE IF NOT EXISTS maintenance_requests (
    id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    property_id TEXT NOT NULL,
    tenant_id TEXT,
    status TEXT NOT NULL DEFAULT 'submitted',
    requested_date TIMESTAMP,
    assigned_at TIMESTAMP,
    FOREIGN KEY (organization_id) REFERENCES organizations(id)
);

-- Expenses
CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    property_id TEXT,
    amount TEXT NOT NULL DEFAULT '0',
    expense_date DATE,
    FOREIGN KEY (organization_id) REFERENCES organizations(id)
);

-- Market rent recommendations per property
CREATE TABLE IF NOT EXISTS market_rents (
    property_id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    recommended_rent TEXT NOT NULL,
    adjustment_percentage REAL NOT NULL DEFAULT 0,
    FOREIGN KEY (property_id) REFERENCES properties(id)
);

-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);
"""


def _new_id() -> str:
    return uuid.uuid4().hex


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _money(value) -> Optional[str]:
    return str(value) if value is not None else None


class Database(SnapshotProvider, RentAdvisor):
    """SQLite-backed record store.

    Serves organization snapshots to the scorers and market rent
    recommendations to the renewal ranker.
    """

    def __init__(self, db_path: Path = None):
        self.db_path = db_path
        if self.db_path:
            self._ensure_directory()

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def connection(self) -> Generator[Any, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield _SqliteConnection(conn)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Initialize the database schema."""
        with self.connection() as conn:
            conn.executescript(SQLITE_SCHEMA)
            cursor = conn.execute("SELECT version FROM schema_version LIMIT 1")
            if cursor.fetchone() is None:
                conn.execute(
                    "INSERT INTO schema_version (version) VALUES (?)",
                    (SCHEMA_VERSION,),
                )

    def get_schema_version(self) -> int:
        """Get current schema version."""
        with self.connection() as conn:
            conn.execute("SELECT version FROM schema_version LIMIT 1")
            row = conn.fetchone()
            return row["version"] if row else 0

    def _insert(self, table: str, values: dict) -> None:
        columns = ", ".join(values)
        placeholders = ", ".join(["?"] * len(values))
        with self.connection() as conn:
            conn.execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                tuple(values.values()),
            )

    def _select(self, query: str, params: tuple) -> list:
        with self.connection() as conn:
            conn.execute(query, params)
            return conn.fetchall()

    def _parse_datetime(self, value) -> Optional[datetime]:
        """Parse datetime from database (handles both string and datetime)."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        return datetime.fromisoformat(value)

    def _parse_date(self, value) -> Optional[date]:
        """Parse date from database (handles both string and date)."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return date.fromisoformat(value)

    def _parse_money(self, value) -> Optional[Decimal]:
        if value is None:
            return None
        return Decimal(str(value))

    # Organization and property operations

    def create_organization(self, org: Organization) -> str:
        """Create an organization and return its ID."""
        org.id = org.id or _new_id()
        self._insert("organizations", {"id": org.id, "name": org.name})
        return org.id

    def get_organization(self, organization_id: str) -> Optional[Organization]:
        """Get an organization by ID."""
        rows = self._select("SELECT * FROM organizations WHERE id = ?", (organization_id,))
        if rows:
            return Organization(id=rows[0]["id"], name=rows[0]["name"])
        return None

    def list_organizations(self) -> list[Organization]:
        rows = self._select("SELECT * FROM organizations ORDER BY name", ())
        return [Organization(id=row["id"], name=row["name"]) for row in rows]

    def create_property(self, prop: Property) -> str:
        """Create a property and return its ID."""
        prop.id = prop.id or _new_id()
        self._insert(
            "properties",
            {"id": prop.id, "organization_id": prop.organization_id, "name": prop.name},
        )
        return prop.id

    def create_unit(self, unit: Unit) -> str:
        """Create a unit and return its ID."""
        unit.id = unit.id or _new_id()
        self._insert(
            "units",
            {"id": unit.id, "property_id": unit.property_id, "unit_number": unit.unit_number},
        )
        return unit.id

    def create_tenant(self, tenant: Tenant) -> str:
        """Create a tenant and return its ID."""
        tenant.id = tenant.id or _new_id()
        self._insert(
            "tenants",
            {
                "id": tenant.id,
                "organization_id": tenant.organization_id,
                "first_name": tenant.first_name,
                "last_name": tenant.last_name,
                "email": tenant.email,
                "unit_id": tenant.unit_id,
                "is_active": tenant.is_active,
            },
        )
        return tenant.id

    # Lease and payment operations

    def create_lease(self, lease: Lease) -> str:
        """Create a lease and return its ID."""
        lease.id = lease.id or _new_id()
        self._insert(
            "leases",
            {
                "id": lease.id,
                "organization_id": lease.organization_id,
                "tenant_id": lease.tenant_id,
                "property_id": lease.property_id,
                "unit_id": lease.unit_id,
                "monthly_rent_cents": lease.monthly_rent_cents,
                "start_date": _iso(lease.start_date),
                "end_date": _iso(lease.end_date),
                "status": lease.status.value,
            },
        )
        return lease.id

    def create_schedule_row(self, row: PaymentSchedule) -> str:
        """Create a payment schedule row and return its ID."""
        row.id = row.id or _new_id()
        self._insert(
            "payment_schedules",
            {
                "id": row.id,
                "lease_id": row.lease_id,
                "due_date": _iso(row.due_date),
                "due_amount": _money(row.due_amount),
                "is_paid": row.is_paid,
                "paid_date": _iso(row.paid_date),
                "paid_amount": _money(row.paid_amount),
            },
        )
        return row.id

    def create_rent_payment(self, payment: RentPayment) -> str:
        """Record a rent payment and return its ID."""
        payment.id = payment.id or _new_id()
        self._insert(
            "rent_payments",
            {
                "id": payment.id,
                "lease_id": payment.lease_id,
                "payment_date": _iso(payment.payment_date),
                "amount": _money(payment.amount),
                "status": payment.status,
            },
        )
        return payment.id

    def create_maintenance_request(self, request: MaintenanceRequest) -> str:
        """Create a maintenance request and return its ID."""
        request.id = request.id or _new_id()
        self._insert(
            "maintenance_requests",
            {
                "id": request.id,
                "organization_id": request.organization_id,
                "property_id": request.property_id,
                "tenant_id": request.tenant_id,
                "status": request.status.value,
                "requested_date": _iso(request.requested_date),
                "assigned_at": _iso(request.assigned_at),
            },
        )
        return request.id

    def create_expense(self, expense: Expense) -> str:
        """Record an expense and return its ID."""
        expense.id = expense.id or _new_id()
        self._insert(
            "expenses",
            {
                "id": expense.id,
                "organization_id": expense.organization_id,
                "property_id": expense.property_id,
                "amount": _money(expense.amount),
                "expense_date": _iso(expense.expense_date),
            },
        )
        return expense.id

    def set_market_rent(self, property_id: str, organization_id: str, suggestion: RentSuggestion) -> None:
        """Store (or replace) the market rent recommendation for a property."""
        with self.connection() as conn:
            conn.execute(
                """INSERT INTO market_rents (property_id, organization_id, recommended_rent, adjustment_percentage)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(property_id) DO UPDATE SET
                       organization_id = excluded.organization_id,
                       recommended_rent = excluded.recommended_rent,
                       adjustment_percentage = excluded.adjustment_percentage""",
                (
                    property_id,
                    organization_id,
                    _money(suggestion.recommended_rent),
                    suggestion.adjustment_percentage,
                ),
            )

    # Collaborator contracts

    def get_org_snapshot(self, organization_id: str) -> OrgSnapshot:
        """Load every record scoped to one organization.

        All queries run in a single read transaction so the snapshot is
        consistent even while other connections are writing.
        """
        org = (organization_id,)
        with self.connection() as conn:
            conn.execute("BEGIN")

            def fetch(query: str) -> list:
                conn.execute(query, org)
                return conn.fetchall()

            properties = fetch("SELECT * FROM properties WHERE organization_id = ? ORDER BY name")
            units = fetch(
                """SELECT u.* FROM units u
                   JOIN properties p ON p.id = u.property_id
                   WHERE p.organization_id = ? ORDER BY u.unit_number"""
            )
            tenants = fetch("SELECT * FROM tenants WHERE organization_id = ?")
            leases = fetch("SELECT * FROM leases WHERE organization_id = ? ORDER BY end_date")
            schedules = fetch(
                """SELECT s.* FROM payment_schedules s
                   JOIN leases l ON l.id = s.lease_id
                   WHERE l.organization_id = ? ORDER BY s.due_date"""
            )
            payments = fetch(
                """SELECT r.* FROM rent_payments r
                   JOIN leases l ON l.id = r.lease_id
                   WHERE l.organization_id = ? ORDER BY r.payment_date"""
            )
            maintenance = fetch("SELECT * FROM maintenance_requests WHERE organization_id = ?")
            expenses = fetch("SELECT * FROM expenses WHERE organization_id = ?")

        return OrgSnapshot(
            organization_id=organization_id,
            properties=[self._row_to_property(row) for row in properties],
            units=[self._row_to_unit(row) for row in units],
            tenants=[self._row_to_tenant(row) for row in tenants],
            leases=[self._row_to_lease(row) for row in leases],
            schedule_rows=[self._row_to_schedule(row) for row in schedules],
            rent_payments=[self._row_to_payment(row) for row in payments],
            maintenance_requests=[self._row_to_maintenance(row) for row in maintenance],
            expenses=[self._row_to_expense(row) for row in expenses],
        )

    def suggest_rent(self, property_id: str, organization_id: str) -> Optional[RentSuggestion]:
        """Return the stored market rent for a property, if any."""
        rows = self._select(
            "SELECT * FROM market_rents WHERE property_id = ? AND organization_id = ?",
            (property_id, organization_id),
        )
        if not rows:
            return None
        return RentSuggestion(
            recommended_rent=self._parse_money(rows[0]["recommended_rent"]),
            adjustment_percentage=rows[0]["adjustment_percentage"],
        )

    # Row conversion

    def _row_to_property(self, row) -> Property:
        return Property(id=row["id"], organization_id=row["organization_id"], name=row["name"])

    def _row_to_unit(self, row) -> Unit:
        return Unit(id=row["id"], property_id=row["property_id"], unit_number=row["unit_number"])

    def _row_to_tenant(self, row) -> Tenant:
        return Tenant(
            id=row["id"],
            organization_id=row["organization_id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"] or "",
            unit_id=row["unit_id"],
            is_active=bool(row["is_active"]),
        )

    def _row_to_lease(self, row) -> Lease:
        return Lease(
            id=row["id"],
            organization_id=row["organization_id"],
            tenant_id=row["tenant_id"],
            property_id=row["property_id"],
            unit_id=row["unit_id"],
            monthly_rent_cents=row["monthly_rent_cents"] or 0,
            start_date=self._parse_date(row["start_date"]),
            end_date=self._parse_date(row["end_date"]),
            status=LeaseStatus(row["status"]),
        )

    def _row_to_schedule(self, row) -> PaymentSchedule:
        return PaymentSchedule(
            id=row["id"],
            lease_id=row["lease_id"],
            due_date=self._parse_date(row["due_date"]),
            due_amount=self._parse_money(row["due_amount"]) or Decimal("0"),
            is_paid=bool(row["is_paid"]),
            paid_date=self._parse_date(row["paid_date"]),
            paid_amount=self._parse_money(row["paid_amount"]),
        )

    def _row_to_payment(self, row) -> RentPayment:
        return RentPayment(
            id=row["id"],
            lease_id=row["lease_id"],
            payment_date=self._parse_date(row["payment_date"]),
            amount=self._parse_money(row["amount"]) or Decimal("0"),
            status=row["status"],
        )

    def _row_to_maintenance(self, row) -> MaintenanceRequest:
        return MaintenanceRequest(
            id=row["id"],
            organization_id=row["organization_id"],
            property_id=row["property_id"],
            tenant_id=row["tenant_id"],
            status=MaintenanceStatus(row["status"]),
            requested_date=self._parse_datetime(row["requested_date"]),
            assigned_at=self._parse_datetime(row["assigned_at"]),
        )

    def _row_to_expense(self, row) -> Expense:
        return Expense(
            id=row["id"],
            organization_id=row["organization_id"],
            property_id=row["property_id"],
            amount=self._parse_money(row["amount"]) or Decimal("0"),
            expense_date=self._parse_date(row["expense_date"]),
        )


class _SqliteConnection:
    """Thin wrapper keeping the last cursor for fetch calls."""

    def __init__(self, conn):
        self._conn = conn
        self._cursor = None

    def execute(self, query: str, params: tuple = None):
        """Execute a query."""
        if params:
            self._cursor = self._conn.execute(query, params)
        else:
            self._cursor = self._conn.execute(query)
        return self._cursor

    def executescript(self, script: str):
        """Execute a SQL script."""
        return self._conn.executescript(script)

    def fetchone(self):
        """Fetch one row."""
        return self._cursor.fetchone() if self._cursor else None

    def fetchall(self):
        """Fetch all rows."""
        return self._cursor.fetchall() if self._cursor else []
