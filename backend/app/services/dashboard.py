"""Owner dashboard statistics."""

from datetime import date

from sqlalchemy.orm import Session

from backend.app.core.time import utc_today
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice
from backend.app.services.calculations import ZERO, quantize_money, to_decimal
from backend.app.services.company_settings import DEFAULT_CURRENCY, load_company_settings
from backend.app.services.reports import UNKNOWN_CLIENT_LABEL

RECENT_INVOICES_LIMIT = 5


def build_dashboard_stats(invoices, clients, today: date, currency: str = DEFAULT_CURRENCY) -> dict:
    """Headline figures for the dashboard cards; invoices are expected newest first."""
    names = {client.id: client.name for client in clients}
    total_revenue = ZERO
    pending_amount = ZERO
    overdue_amount = ZERO
    paid_count = 0
    draft_count = 0

    for inv in invoices:
        status = inv.display_status_on(today)
        amount = to_decimal(inv.total_amount)
        if status == "paid":
            total_revenue += amount
            paid_count += 1
        elif status == "sent":
            pending_amount += amount
        elif status == "overdue":
            overdue_amount += amount
        elif status == "draft":
            draft_count += 1

    recent = [
        {
            "id": inv.id,
            "invoice_number": inv.invoice_number,
            "client_name": names.get(inv.client_id, UNKNOWN_CLIENT_LABEL),
            "total_amount": quantize_money(to_decimal(inv.total_amount)),
            "currency": inv.currency,
            "display_status": inv.display_status_on(today),
            "issue_date": inv.issue_date,
        }
        for inv in invoices[:RECENT_INVOICES_LIMIT]
    ]

    return {
        "total_invoices": len(invoices),
        "total_revenue": quantize_money(total_revenue),
        "pending_amount": quantize_money(pending_amount),
        "overdue_amount": quantize_money(overdue_amount),
        "paid_invoices": paid_count,
        "draft_invoices": draft_count,
        "currency": currency,
        "recent_invoices": recent,
    }


def get_dashboard_stats(db: Session, *, owner_id: int, today: date | None = None) -> dict:
    invoices = (
        db.query(Invoice)
        .filter(Invoice.owner_id == owner_id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .all()
    )
    clients = db.query(Client).filter(Client.owner_id == owner_id).all()
    settings = load_company_settings(db, owner_id)
    currency = settings.default_currency if settings else DEFAULT_CURRENCY
    return build_dashboard_stats(invoices, clients, today or utc_today(), currency=currency)
