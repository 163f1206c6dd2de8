"""Company settings schemas.

Settings are versioned: ``schema_version`` is stored with the row and checked
whenever the record is loaded, so an incompatible row is reported instead of
being silently coerced.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

Currency = Literal["EUR", "USD", "GBP"]
PaymentTerms = Literal[15, 30, 45, 60]


class CompanySettingsBase(BaseModel):
    company_name: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    invoice_prefix: str = Field(default="FAC", min_length=1, max_length=20, pattern=r"^[A-Za-z0-9]+$")
    next_invoice_number: int = Field(default=1, ge=1)
    default_currency: Currency = "EUR"
    default_tax_rate: Decimal = Field(default=Decimal("21"), ge=0, le=100)
    payment_terms_days: PaymentTerms = 30


class CompanySettingsUpdate(BaseModel):
    company_name: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    invoice_prefix: Optional[str] = Field(default=None, min_length=1, max_length=20, pattern=r"^[A-Za-z0-9]+$")
    next_invoice_number: Optional[int] = Field(default=None, ge=1)
    default_currency: Optional[Currency] = None
    default_tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    payment_terms_days: Optional[PaymentTerms] = None


class CompanySettingsRead(CompanySettingsBase):
    id: int
    owner_id: int
    schema_version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
