"""Period reporting over an owner's invoices.

``build_period_report`` works on plain in-memory collections so it can be fed
from any data source; ``get_period_report`` loads the owner's rows and calls it.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence, Tuple

from sqlalchemy.orm import Session

from backend.app.core.time import utc_today
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice
from backend.app.services.calculations import ZERO, quantize_money, to_decimal
from backend.app.services.company_settings import DEFAULT_CURRENCY, load_company_settings

UNKNOWN_CLIENT_LABEL = "Unknown client"
TOP_CLIENTS_LIMIT = 5
RANGE_MONTHS = {"last_3_months": 3, "last_6_months": 6, "last_12_months": 12}
REPORT_RANGES = ("last_30_days", "last_3_months", "last_6_months", "last_12_months", "this_year")


def _months_before(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def range_bounds(range_key: str, today: date) -> Tuple[date, date]:
    """Inclusive (start, end) dates for a named report range ending today."""
    if range_key == "last_30_days":
        return today - timedelta(days=29), today
    if range_key in RANGE_MONTHS:
        return _months_before(today, RANGE_MONTHS[range_key]), today
    if range_key == "this_year":
        return date(today.year, 1, 1), today
    raise ValueError(f"Unknown report range: {range_key}")


def _last_n_months(today: date, n: int = 12) -> List[Tuple[int, int]]:
    # returns list from oldest to newest
    year = today.year
    month = today.month
    months = []
    for _ in range(n):
        months.append((year, month))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(months))


def _status_bucket(invoice, today: date) -> str | None:
    status = invoice.display_status_on(today)
    if status == "sent":
        return "pending"
    if status in ("paid", "draft", "overdue", "cancelled"):
        return status
    return None


def monthly_revenue_series(invoices: Iterable, today: date, months: int = 12) -> List[dict]:
    """Paid revenue per calendar month for the trailing ``months`` months, oldest first.

    Invoices are bucketed by their creation timestamp. ``invoices`` counts every
    invoice issued that month (drafts excluded), ``paid_invoices`` the paid ones.
    """
    month_keys = _last_n_months(today, months)
    month_map = {key: {"revenue": ZERO, "invoices": 0, "paid_invoices": 0} for key in month_keys}
    for inv in invoices:
        if inv.status == "draft" or inv.created_at is None:
            continue
        key = (inv.created_at.year, inv.created_at.month)
        if key not in month_map:
            continue
        month_map[key]["invoices"] += 1
        if inv.status == "paid":
            month_map[key]["revenue"] += to_decimal(inv.total_amount)
            month_map[key]["paid_invoices"] += 1
    return [
        {
            "year": year,
            "month": month,
            "revenue": quantize_money(month_map[(year, month)]["revenue"]),
            "invoices": month_map[(year, month)]["invoices"],
            "paid_invoices": month_map[(year, month)]["paid_invoices"],
        }
        for year, month in month_keys
    ]


def growth_percent(current: Decimal, previous: Decimal) -> Decimal:
    """Change from ``previous`` to ``current`` in percent; 0 when there is no base."""
    if previous <= 0:
        return ZERO
    return quantize_money((current - previous) / previous * Decimal("100"))


def collection_rate(monthly: Sequence[dict]) -> Decimal:
    """Share of issued invoices that were paid across the series, in percent."""
    issued = sum(point["invoices"] for point in monthly)
    if not issued:
        return ZERO
    paid = sum(point["paid_invoices"] for point in monthly)
    return quantize_money(Decimal(paid) / Decimal(issued) * Decimal("100"))


def top_clients_by_revenue(paid_invoices: Iterable, clients: Sequence, limit: int = TOP_CLIENTS_LIMIT) -> List[dict]:
    """Rank clients by paid revenue; ties keep the order clients were first seen."""
    names = {client.id: client.name for client in clients}
    per_client: Dict[int | None, dict] = {}
    for inv in paid_invoices:
        entry = per_client.setdefault(inv.client_id, {"revenue": ZERO, "invoice_count": 0})
        entry["revenue"] += to_decimal(inv.total_amount)
        entry["invoice_count"] += 1

    ranked = sorted(per_client.items(), key=lambda pair: pair[1]["revenue"], reverse=True)
    return [
        {
            "client_id": client_id,
            "client_name": names.get(client_id, UNKNOWN_CLIENT_LABEL),
            "revenue": quantize_money(data["revenue"]),
            "invoice_count": data["invoice_count"],
        }
        for client_id, data in ranked[:limit]
    ]


def build_period_report(
    invoices: Sequence,
    clients: Sequence,
    range_key: str,
    today: date | None = None,
    currency: str = DEFAULT_CURRENCY,
) -> dict:
    as_of_date = today or utc_today()
    start_date, end_date = range_bounds(range_key, as_of_date)

    in_range = [inv for inv in invoices if inv.issue_date is not None and start_date <= inv.issue_date <= end_date]
    paid_in_range = [inv for inv in in_range if inv.status == "paid"]

    total_revenue = sum((to_decimal(inv.total_amount) for inv in paid_in_range), ZERO)
    average_invoice_value = (
        quantize_money(total_revenue / len(paid_in_range)) if paid_in_range else ZERO
    )

    status_counts = {"paid": 0, "pending": 0, "draft": 0, "overdue": 0, "cancelled": 0}
    for inv in in_range:
        bucket = _status_bucket(inv, as_of_date)
        if bucket:
            status_counts[bucket] += 1

    monthly = monthly_revenue_series(invoices, as_of_date)
    current, previous = monthly[-1], monthly[-2]

    return {
        "range": range_key,
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "currency": currency,
        "total_revenue": quantize_money(total_revenue),
        "average_invoice_value": average_invoice_value,
        "revenue_growth_percent": growth_percent(current["revenue"], previous["revenue"]),
        "invoice_growth_percent": growth_percent(Decimal(current["invoices"]), Decimal(previous["invoices"])),
        "collection_rate_percent": collection_rate(monthly),
        "status_counts": status_counts,
        "monthly_revenue": monthly,
        "top_clients": top_clients_by_revenue(paid_in_range, clients),
    }


def get_period_report(db: Session, *, owner_id: int, range_key: str, today: date | None = None) -> dict:
    invoices = db.query(Invoice).filter(Invoice.owner_id == owner_id).order_by(Invoice.created_at.asc(), Invoice.id.asc()).all()
    clients = db.query(Client).filter(Client.owner_id == owner_id).all()
    settings = load_company_settings(db, owner_id)
    currency = settings.default_currency if settings else DEFAULT_CURRENCY
    return build_period_report(invoices, clients, range_key, today=today, currency=currency)
