"""Dashboard schemas for owner-level overviews."""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class RecentInvoice(BaseModel):
    id: int
    invoice_number: str
    client_name: str
    total_amount: Decimal
    currency: str
    display_status: str
    issue_date: date

    model_config = ConfigDict(from_attributes=True)


class DashboardStats(BaseModel):
    total_invoices: int
    total_revenue: Decimal
    pending_amount: Decimal
    overdue_amount: Decimal
    paid_invoices: int
    draft_invoices: int
    currency: Optional[str] = None
    recent_invoices: List[RecentInvoice]
