"""Invoice item schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class InvoiceItemIn(BaseModel):
    """A line as submitted by the invoice form.

    Range checks live in the invoice service so that a bad line is reported as
    an invoice validation error rather than a schema error.
    """

    product_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal = Decimal("1")
    unit_price: Optional[Decimal] = None
    tax_rate: Optional[Decimal] = None


class InvoiceItemRead(BaseModel):
    id: int
    invoice_id: int
    product_id: Optional[int] = None
    position: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    line_total: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
