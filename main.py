"""Portfolio analytics - CLI for payment risk, portfolio health and lease renewals."""

from datetime import date
from typing import Optional

import click
import typer
from dateutil import parser as date_parser
from rich.console import Console
from rich.table import Table

from config import get_config
from database import Database
from logging_config import configure_logging
from models import HealthLevel, RenewalPriority, RiskLevel
from services.cash_flow import forecast_cash_flow
from services.lease_renewal import LeaseRenewalRanker, renewal_stats
from services.payment_risk import PaymentRiskScorer
from services.portfolio_health import PortfolioHealthScorer
from services.reminders import upcoming_reminders

app = typer.Typer(
    name="portfolio",
    help="Risk, health and renewal analytics for a rental portfolio.",
    no_args_is_help=True,
)

console = Console()

RISK_STYLES = {
    RiskLevel.CRITICAL: "bold red",
    RiskLevel.HIGH: "red",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.LOW: "green",
}

HEALTH_STYLES = {
    HealthLevel.EXCELLENT: "bold green",
    HealthLevel.GOOD: "green",
    HealthLevel.FAIR: "yellow",
    HealthLevel.POOR: "red",
    HealthLevel.CRITICAL: "bold red",
}

PRIORITY_STYLES = {
    RenewalPriority.IMMEDIATE: "bold red",
    RenewalPriority.HIGH: "yellow",
    RenewalPriority.MEDIUM: "white",
}

TODAY_HELP = "Score as of this date (YYYY-MM-DD). Defaults to today."


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    """Configure logging before any command runs."""
    config = get_config()
    configure_logging("DEBUG" if verbose else config.log_level)


def get_db() -> Database:
    """Get database instance."""
    config = get_config()
    return Database(config.database_path)


def parse_today(value: Optional[str]) -> date:
    """Parse the --today option."""
    if not value:
        return date.today()
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        raise typer.BadParameter(f"Invalid date: {value}", param_hint="--today")


def require_organization(db: Database, organization_id: str) -> None:
    if db.get_organization(organization_id) is None:
        console.print(f"[red]Organization {organization_id} not found[/red]")
        known = db.list_organizations()
        if known:
            console.print("Known organizations:")
            for org in known:
                console.print(f"  {org.id}  {org.name}")
        raise typer.Exit(1)


@app.command()
def init():
    """Initialize the record store."""
    config = get_config()
    config.ensure_directories()
    db = get_db()
    db.initialize()
    console.print(f"[green]Database initialized at {config.database_path}[/green]")


@app.command()
def risk(
    organization_id: str = typer.Argument(..., help="Organization ID"),
    level: Optional[str] = typer.Option(
        None, "--level", "-l",
        click_type=click.Choice([r.value for r in RiskLevel]),
        help="Only show tenants at this risk level",
    ),
    today: Optional[str] = typer.Option(None, "--today", help=TODAY_HELP),
):
    """Show payment risk scores for every active tenant."""
    as_of = parse_today(today)
    db = get_db()
    require_organization(db, organization_id)

    result = PaymentRiskScorer(db).score_organization(organization_id, as_of)
    scores = [s for s in result if level is None or s.risk_level.value == level]

    if not scores:
        console.print("[yellow]No tenants to show[/yellow]")
        return

    table = Table(title=f"Payment Risk ({as_of})")
    table.add_column("Tenant", style="white")
    table.add_column("Unit", style="white")
    table.add_column("Score", justify="right")
    table.add_column("Level")
    table.add_column("On time", justify="right")
    table.add_column("Avg late", justify="right")
    table.add_column("Outstanding", justify="right")
    table.add_column("Next due", style="white")

    for score in scores:
        style = RISK_STYLES[score.risk_level]
        table.add_row(
            score.tenant_name,
            score.unit_number,
            str(score.risk_score),
            f"[{style}]{score.risk_level.value}[/{style}]",
            f"{score.on_time_percentage}%",
            f"{score.average_days_late:.1f}d",
            f"{score.outstanding_balance:,.2f}",
            str(score.next_payment_due or "-"),
        )

    console.print(table)
    if result.skipped:
        console.print(f"[dim]{len(result.skipped)} lease(s) skipped: tenant or unit missing[/dim]")


@app.command()
def health(
    organization_id: str = typer.Argument(..., help="Organization ID"),
    today: Optional[str] = typer.Option(None, "--today", help=TODAY_HELP),
):
    """Show the portfolio health score and recommendations."""
    as_of = parse_today(today)
    db = get_db()
    require_organization(db, organization_id)

    result = PortfolioHealthScorer(db).score_organization(organization_id, as_of)
    style = HEALTH_STYLES[result.health_level]
    metrics = result.metrics

    console.print(f"\n[bold]Portfolio Health: [{style}]{result.health_score} ({result.health_level.value})[/{style}][/bold]")
    console.print(f"  Occupancy: {result.occupancy_rate}% ({metrics.occupied_units}/{metrics.total_units} units)")
    console.print(f"  Collection: {result.collection_rate}% ({metrics.late_payments} late of {metrics.total_due_payments} due)")
    console.print(f"  Maintenance response: {result.maintenance_response_rate} (avg {metrics.avg_maintenance_response_days} days, {metrics.open_maintenance} open)")
    console.print(f"  ROI: {result.roi_percentage}% (income {metrics.monthly_income:,.2f}, expenses {metrics.monthly_expenses:,.2f})")
    console.print(f"  Tenant satisfaction: {result.tenant_satisfaction_score}")

    console.print(f"\n[bold]Recommendations[/bold]")
    for recommendation in result.recommendations:
        console.print(f"  - {recommendation}")


@app.command()
def renewals(
    organization_id: str = typer.Argument(..., help="Organization ID"),
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Horizon in days"),
    today: Optional[str] = typer.Option(None, "--today", help=TODAY_HELP),
):
    """List leases expiring soon, ranked as renewal opportunities."""
    config = get_config()
    as_of = parse_today(today)
    horizon = days if days is not None else config.renewal_horizon_days
    db = get_db()
    require_organization(db, organization_id)

    ranker = LeaseRenewalRanker(db, db, max_workers=config.rent_advisor_workers)
    result = ranker.rank_renewals(organization_id, horizon, as_of)

    if not result.items:
        console.print(f"[yellow]No leases expiring in the next {horizon} days[/yellow]")
        return

    table = Table(title=f"Renewal Opportunities (next {horizon} days)")
    table.add_column("Tenant", style="white")
    table.add_column("Property", style="white")
    table.add_column("Ends", style="white")
    table.add_column("Days", justify="right")
    table.add_column("Priority")
    table.add_column("Probability", justify="right")
    table.add_column("Rent", justify="right")
    table.add_column("Suggested", justify="right")
    table.add_column("Recommendation", style="white")

    for opp in result:
        style = PRIORITY_STYLES[opp.priority]
        table.add_row(
            opp.tenant_name,
            opp.property_name[:30],
            opp.end_date.isoformat(),
            str(opp.days_until_expiry),
            f"[{style}]{opp.priority.value}[/{style}]",
            f"{opp.renewal_probability}%",
            f"{opp.current_rent:,.2f}",
            f"{opp.suggested_rent:,.2f}",
            opp.recommendation,
        )

    console.print(table)

    stats = renewal_stats(result)
    console.print(
        f"  {stats.total} total: {stats.immediate} immediate, {stats.high} high, {stats.medium} medium"
        f" | {stats.high_probability} likely, {stats.low_probability} unlikely"
    )


@app.command()
def forecast(
    organization_id: str = typer.Argument(..., help="Organization ID"),
    months: Optional[int] = typer.Option(None, "--months", "-m", help="Months to project"),
    today: Optional[str] = typer.Option(None, "--today", help=TODAY_HELP),
):
    """Project monthly cash flow from the current rent roll."""
    config = get_config()
    as_of = parse_today(today)
    db = get_db()
    require_organization(db, organization_id)

    snapshot = db.get_org_snapshot(organization_id)
    months_ahead = months if months is not None else config.forecast_months
    forecasts = forecast_cash_flow(snapshot, as_of, months_ahead)

    table = Table(title="Cash Flow Forecast")
    table.add_column("Month", style="cyan")
    table.add_column("Income", justify="right")
    table.add_column("Expenses", justify="right")
    table.add_column("Net", justify="right")
    table.add_column("Confidence", justify="right")

    for month in forecasts:
        net_style = "green" if month.net_cash_flow >= 0 else "red"
        table.add_row(
            month.month,
            f"{month.expected_income:,.2f}",
            f"{month.expected_expenses:,.2f}",
            f"[{net_style}]{month.net_cash_flow:,.2f}[/{net_style}]",
            f"{month.confidence_level}%",
        )

    console.print(table)


@app.command()
def reminders(
    organization_id: str = typer.Argument(..., help="Organization ID"),
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Days ahead to look"),
    today: Optional[str] = typer.Option(None, "--today", help=TODAY_HELP),
):
    """List unpaid rent coming due soon."""
    config = get_config()
    as_of = parse_today(today)
    days_ahead = days if days is not None else config.reminder_days_ahead
    db = get_db()
    require_organization(db, organization_id)

    due = upcoming_reminders(db.get_org_snapshot(organization_id), as_of, days_ahead)

    if not due:
        console.print(f"[green]Nothing due in the next {days_ahead} days[/green]")
        return

    table = Table(title=f"Payments Due (next {days_ahead} days)")
    table.add_column("Tenant", style="white")
    table.add_column("Due", style="white")
    table.add_column("In", justify="right")
    table.add_column("Amount", justify="right")

    for reminder in due:
        table.add_row(
            reminder.tenant_name,
            reminder.due_date.isoformat(),
            f"{reminder.days_until_due}d",
            f"{reminder.amount_due:,.2f}",
        )

    console.print(table)


if __name__ == "__main__":
    app()
