"""Upcoming rent payment reminders."""

from datetime import date, timedelta

from models import OrgSnapshot, PaymentReminder


def upcoming_reminders(snapshot: OrgSnapshot, today: date, days_ahead: int = 7) -> list[PaymentReminder]:
    """Unpaid schedule rows due between today and ``days_ahead`` days out."""
    cutoff = today + timedelta(days=days_ahead)
    leases = {lease.id: lease for lease in snapshot.leases}

    reminders = []
    for row in snapshot.schedule_rows:
        if row.is_paid or row.due_date is None:
            continue
        if not (today <= row.due_date <= cutoff):
            continue
        lease = leases.get(row.lease_id)
        if lease is None:
            continue
        tenant = snapshot.find_tenant(lease.tenant_id)
        if tenant is None:
            continue

        reminders.append(
            PaymentReminder(
                schedule_id=row.id,
                lease_id=lease.id,
                tenant_id=tenant.id,
                tenant_name=tenant.full_name,
                due_date=row.due_date,
                amount_due=row.balance,
                days_until_due=(row.due_date - today).days,
            )
        )

    reminders.sort(key=lambda r: r.due_date)
    return reminders
