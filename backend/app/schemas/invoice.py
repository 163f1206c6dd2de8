"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.app.schemas.invoice_item import InvoiceItemIn, InvoiceItemRead

InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "cancelled"]
SaveStatus = Literal["draft", "sent"]


class InvoiceSave(BaseModel):
    """Full invoice form payload; used for both create and replace."""

    client_id: int
    invoice_number: Optional[str] = Field(default=None, max_length=50)
    status: Optional[SaveStatus] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    notes: Optional[str] = None
    items: List[InvoiceItemIn] = []


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    client_id: Optional[int]
    invoice_number: str

    status: str
    display_status: str
    issue_date: date
    due_date: date
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    notes: Optional[str] = None

    created_at: datetime
    updated_at: datetime


class InvoiceDetail(InvoiceRead):
    items: List[InvoiceItemRead] = []


class NextInvoiceNumber(BaseModel):
    invoice_number: str
