from decimal import Decimal
from typing import List, Literal

from pydantic import BaseModel, ConfigDict

ReportRange = Literal["last_30_days", "last_3_months", "last_6_months", "last_12_months", "this_year"]


class MonthlyRevenuePoint(BaseModel):
    """Paid revenue for one calendar month."""

    year: int
    month: int
    revenue: Decimal
    invoices: int
    paid_invoices: int

    model_config = ConfigDict(from_attributes=True)


class StatusCounts(BaseModel):
    paid: int = 0
    pending: int = 0
    draft: int = 0
    overdue: int = 0
    cancelled: int = 0


class TopClientRow(BaseModel):
    client_id: int | None
    client_name: str
    revenue: Decimal
    invoice_count: int


class PeriodReport(BaseModel):
    range: ReportRange
    start_date: str
    end_date: str
    currency: str
    total_revenue: Decimal
    average_invoice_value: Decimal
    revenue_growth_percent: Decimal
    invoice_growth_percent: Decimal
    collection_rate_percent: Decimal
    status_counts: StatusCounts
    monthly_revenue: List[MonthlyRevenuePoint]
    top_clients: List[TopClientRow]
