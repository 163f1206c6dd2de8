from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from backend.app.db.base import Base  # noqa: F401  registers every mapper
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice
from backend.app.services.reports import (
    UNKNOWN_CLIENT_LABEL,
    build_period_report,
    monthly_revenue_series,
    range_bounds,
)

TODAY = date(2030, 6, 15)


def make_invoice(
    invoice_id,
    client_id,
    total,
    status="paid",
    issue=date(2030, 6, 1),
    due=None,
    created=None,
):
    created = created or datetime(issue.year, issue.month, issue.day, 12, 0, tzinfo=timezone.utc)
    return Invoice(
        id=invoice_id,
        owner_id=1,
        client_id=client_id,
        invoice_number=f"FAC-{invoice_id}",
        status=status,
        issue_date=issue,
        due_date=due or issue,
        subtotal=Decimal(total),
        tax_amount=Decimal("0.00"),
        total_amount=Decimal(total),
        currency="EUR",
        created_at=created,
    )


CLIENTS = [
    Client(id=1, owner_id=1, name="Empresa ABC S.A.", email="abc@example.com"),
    Client(id=2, owner_id=1, name="Servicios DEF", email="def@example.com"),
    Client(id=3, owner_id=1, name="Tecnologia JKL", email="jkl@example.com"),
]


def test_range_bounds():
    assert range_bounds("last_30_days", TODAY) == (date(2030, 5, 17), TODAY)
    assert range_bounds("last_3_months", TODAY) == (date(2030, 3, 15), TODAY)
    assert range_bounds("last_12_months", TODAY) == (date(2029, 6, 15), TODAY)
    assert range_bounds("this_year", TODAY) == (date(2030, 1, 1), TODAY)
    assert range_bounds("last_6_months", date(2030, 8, 31)) == (date(2030, 2, 28), date(2030, 8, 31))
    with pytest.raises(ValueError):
        range_bounds("forever", TODAY)


def test_total_revenue_counts_only_paid_invoices_in_range():
    invoices = [
        make_invoice(1, 1, "100.00"),
        make_invoice(2, 1, "50.00", status="sent", due=date(2030, 7, 1)),
        make_invoice(3, 2, "70.00", issue=date(2029, 1, 1)),
    ]
    report = build_period_report(invoices, CLIENTS, "last_6_months", today=TODAY)
    assert report["total_revenue"] == Decimal("100.00")
    assert report["average_invoice_value"] == Decimal("100.00")


def test_average_is_zero_without_paid_invoices():
    invoices = [make_invoice(1, 1, "100.00", status="draft")]
    report = build_period_report(invoices, CLIENTS, "last_30_days", today=TODAY)
    assert report["total_revenue"] == Decimal("0.00")
    assert report["average_invoice_value"] == Decimal("0.00")

    empty = build_period_report([], [], "this_year", today=TODAY)
    assert empty["average_invoice_value"] == Decimal("0.00")
    assert empty["top_clients"] == []


def test_status_counts_derive_overdue_from_sent_past_due():
    overdue = make_invoice(1, 1, "10.00", status="sent", issue=date(2030, 5, 1), due=date(2030, 6, 1))
    pending = make_invoice(2, 1, "10.00", status="sent", issue=date(2030, 6, 1), due=date(2030, 7, 1))
    invoices = [
        overdue,
        pending,
        make_invoice(3, 1, "10.00", status="draft"),
        make_invoice(4, 1, "10.00", status="paid"),
        make_invoice(5, 1, "10.00", status="cancelled"),
    ]
    report = build_period_report(invoices, CLIENTS, "last_3_months", today=TODAY)
    assert report["status_counts"] == {"paid": 1, "pending": 1, "draft": 1, "overdue": 1, "cancelled": 1}
    assert overdue.status == "sent"


def test_monthly_series_has_twelve_points_oldest_first():
    invoices = [
        make_invoice(1, 1, "100.00", issue=date(2030, 6, 2)),
        make_invoice(2, 1, "40.00", issue=date(2030, 6, 3)),
        make_invoice(3, 2, "80.00", issue=date(2029, 7, 20)),
        make_invoice(4, 2, "999.00", issue=date(2029, 6, 30)),
        make_invoice(5, 2, "55.00", status="sent", issue=date(2030, 5, 5), due=date(2030, 7, 5)),
    ]
    series = monthly_revenue_series(invoices, TODAY)
    assert len(series) == 12
    assert (series[0]["year"], series[0]["month"]) == (2029, 7)
    assert (series[-1]["year"], series[-1]["month"]) == (2030, 6)
    assert series[0]["revenue"] == Decimal("80.00")
    assert series[-1]["revenue"] == Decimal("140.00")
    assert series[-1]["paid_invoices"] == 2
    assert sum(point["revenue"] for point in series) == Decimal("220.00")


def test_monthly_series_buckets_by_creation_timestamp():
    invoice = make_invoice(1, 1, "25.00", issue=date(2030, 1, 31), created=datetime(2030, 2, 1, 0, 30))
    series = monthly_revenue_series([invoice], TODAY)
    by_month = {(p["year"], p["month"]): p["revenue"] for p in series}
    assert by_month[(2030, 1)] == Decimal("0.00")
    assert by_month[(2030, 2)] == Decimal("25.00")


def test_monthly_sum_never_exceeds_twelve_month_revenue():
    invoices = [
        make_invoice(1, 1, "100.00", issue=date(2030, 6, 2)),
        make_invoice(2, 2, "80.00", issue=date(2029, 7, 1)),
        make_invoice(3, 3, "60.00", issue=date(2029, 6, 20)),
    ]
    report = build_period_report(invoices, CLIENTS, "last_12_months", today=TODAY)
    monthly_total = sum(point["revenue"] for point in report["monthly_revenue"])
    assert monthly_total <= report["total_revenue"]
    assert monthly_total == Decimal("180.00")
    assert report["total_revenue"] == Decimal("240.00")

    inside_only = build_period_report(invoices[:2], CLIENTS, "last_12_months", today=TODAY)
    assert sum(p["revenue"] for p in inside_only["monthly_revenue"]) == inside_only["total_revenue"]


def test_top_clients_sorted_by_revenue_and_limited_to_five():
    invoices = [make_invoice(i, i, f"{i * 10}.00") for i in range(1, 8)]
    clients = [Client(id=i, owner_id=1, name=f"Client {i}", email=f"c{i}@example.com") for i in range(1, 8)]
    report = build_period_report(invoices, clients, "last_30_days", today=TODAY)
    assert [row["client_id"] for row in report["top_clients"]] == [7, 6, 5, 4, 3]
    assert report["top_clients"][0]["revenue"] == Decimal("70.00")


def test_top_client_ties_keep_first_seen_order():
    invoices = [make_invoice(1, 2, "50.00"), make_invoice(2, 1, "50.00"), make_invoice(3, 3, "20.00")]
    report = build_period_report(invoices, CLIENTS, "last_30_days", today=TODAY)
    assert [row["client_id"] for row in report["top_clients"]] == [2, 1, 3]


def test_missing_client_reported_as_unknown():
    invoices = [make_invoice(1, 42, "300.00"), make_invoice(2, None, "10.00"), make_invoice(3, 1, "20.00")]
    report = build_period_report(invoices, CLIENTS, "last_30_days", today=TODAY)
    names = [row["client_name"] for row in report["top_clients"]]
    assert names[0] == UNKNOWN_CLIENT_LABEL
    assert names.count(UNKNOWN_CLIENT_LABEL) == 2
    assert "Empresa ABC S.A." in names


def test_revenue_growth_compares_last_two_months():
    invoices = [
        make_invoice(1, 1, "100.00", issue=date(2030, 5, 10)),
        make_invoice(2, 1, "150.00", issue=date(2030, 6, 10)),
    ]
    report = build_period_report(invoices, CLIENTS, "last_3_months", today=TODAY)
    assert report["revenue_growth_percent"] == Decimal("50.00")

    no_previous = build_period_report(invoices[1:], CLIENTS, "last_3_months", today=TODAY)
    assert no_previous["revenue_growth_percent"] == Decimal("0.00")


def test_invoice_growth_and_collection_rate():
    invoices = [
        make_invoice(1, 1, "100.00", issue=date(2030, 5, 10)),
        make_invoice(2, 1, "50.00", status="sent", issue=date(2030, 5, 12), due=date(2030, 7, 1)),
        make_invoice(3, 2, "70.00", issue=date(2030, 6, 2)),
        make_invoice(4, 2, "30.00", status="sent", issue=date(2030, 6, 3), due=date(2030, 7, 3)),
        make_invoice(5, 3, "20.00", status="cancelled", issue=date(2030, 6, 4)),
        make_invoice(6, 3, "90.00", status="draft", issue=date(2030, 6, 5)),
    ]
    report = build_period_report(invoices, CLIENTS, "last_3_months", today=TODAY)

    june = report["monthly_revenue"][-1]
    assert (june["invoices"], june["paid_invoices"]) == (3, 1)
    assert report["invoice_growth_percent"] == Decimal("50.00")
    assert report["collection_rate_percent"] == Decimal("40.00")


def test_collection_rate_is_zero_without_issued_invoices():
    report = build_period_report([make_invoice(1, 1, "90.00", status="draft")], CLIENTS, "last_3_months", today=TODAY)
    assert report["collection_rate_percent"] == Decimal("0.00")
    assert report["invoice_growth_percent"] == Decimal("0.00")
