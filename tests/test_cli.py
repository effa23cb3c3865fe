"""Tests for the command line interface."""

from datetime import date
from decimal import Decimal

import pytest
from typer.testing import CliRunner

from config import Config
from database import Database
from main import app
from models import Lease, Organization, PaymentSchedule, Property, Tenant, Unit

runner = CliRunner()

TODAY = "2026-10-19"


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Point the CLI at a seeded temporary database."""
    db_path = tmp_path / "portfolio.db"
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    Config.reset()

    database = Database(db_path)
    database.initialize()
    database.create_organization(Organization(id="org-1", name="Acme Lettings"))
    database.create_property(Property(id="prop-1", organization_id="org-1", name="Mill Street"))
    database.create_unit(Unit(id="unit-1", property_id="prop-1", unit_number="1A"))
    database.create_tenant(Tenant(id="tenant-1", organization_id="org-1", first_name="Jo", last_name="Bloggs"))
    database.create_lease(
        Lease(
            id="lease-1",
            organization_id="org-1",
            tenant_id="tenant-1",
            property_id="prop-1",
            unit_id="unit-1",
            monthly_rent_cents=120000,
            start_date=date(2025, 12, 1),
            end_date=date(2026, 11, 30),
        )
    )
    database.create_schedule_row(
        PaymentSchedule(
            lease_id="lease-1",
            due_date=date(2026, 10, 1),
            due_amount=Decimal("1200"),
            is_paid=True,
            paid_date=date(2026, 10, 1),
            paid_amount=Decimal("1200"),
        )
    )
    database.create_schedule_row(
        PaymentSchedule(lease_id="lease-1", due_date=date(2026, 10, 22), due_amount=Decimal("1200"))
    )
    yield database
    Config.reset()


def test_init_creates_database(tmp_path, monkeypatch):
    db_path = tmp_path / "nested" / "portfolio.db"
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    Config.reset()

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0
    assert "Database initialized" in result.output
    assert db_path.exists()
    Config.reset()


def test_risk(db):
    result = runner.invoke(app, ["risk", "org-1", "--today", TODAY])
    assert result.exit_code == 0
    assert "Payment Risk" in result.output
    assert "Jo Bloggs" in result.output


def test_health(db):
    result = runner.invoke(app, ["health", "org-1", "--today", TODAY])
    assert result.exit_code == 0
    assert "Portfolio Health" in result.output
    assert "Recommendations" in result.output


def test_renewals(db):
    result = runner.invoke(app, ["renewals", "org-1", "--today", TODAY, "--days", "60"])
    assert result.exit_code == 0
    assert "Renewal Opportunities" in result.output
    assert "1 total" in result.output


def test_renewals_none_in_horizon(db):
    result = runner.invoke(app, ["renewals", "org-1", "--today", TODAY, "--days", "10"])
    assert result.exit_code == 0
    assert "No leases expiring" in result.output


def test_forecast(db):
    result = runner.invoke(app, ["forecast", "org-1", "--today", TODAY, "--months", "3"])
    assert result.exit_code == 0
    assert "Cash Flow Forecast" in result.output
    assert "Oct 2026" in result.output
    assert "Dec 2026" in result.output


def test_reminders(db):
    result = runner.invoke(app, ["reminders", "org-1", "--today", TODAY])
    assert result.exit_code == 0
    assert "Payments Due" in result.output
    assert "2026-10-22" in result.output


def test_unknown_organization(db):
    result = runner.invoke(app, ["risk", "org-missing", "--today", TODAY])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_invalid_today(db):
    result = runner.invoke(app, ["health", "org-1", "--today", "not-a-date"])
    assert result.exit_code == 2


def test_risk_level_filter_rejects_unknown_level(db):
    result = runner.invoke(app, ["risk", "org-1", "--today", TODAY, "--level", "severe"])
    assert result.exit_code == 2


def test_risk_level_filter(db):
    result = runner.invoke(app, ["risk", "org-1", "--today", TODAY, "--level", "critical"])
    assert result.exit_code == 0
    assert "Jo Bloggs" not in result.output


def test_unknown_organization_lists_known(db):
    result = runner.invoke(app, ["health", "org-missing", "--today", TODAY])
    assert result.exit_code == 1
    assert "Known organizations" in result.output
    assert "org-1" in result.output
    assert "Acme Lettings" in result.output


def test_forecast_zero_months(db):
    """Test an explicit zero isn't replaced by the configured default."""
    result = runner.invoke(app, ["forecast", "org-1", "--today", TODAY, "--months", "0"])
    assert result.exit_code == 0
    assert "Oct 2026" not in result.output
