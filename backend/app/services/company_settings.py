"""Company settings loading, defaults and invoice numbering."""

import logging
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy.orm import Session

from backend.app.core.errors import SettingsSchemaError
from backend.app.models.company_settings import COMPANY_SETTINGS_SCHEMA_VERSION, CompanySettings
from backend.app.models.invoice import Invoice
from backend.app.schemas.company_settings import CompanySettingsBase

logger = logging.getLogger(__name__)

DEFAULT_INVOICE_PREFIX = "FAC"
DEFAULT_CURRENCY = "EUR"
DEFAULT_TAX_RATE = Decimal("21.00")
DEFAULT_PAYMENT_TERMS_DAYS = 30


def new_company_settings(owner_id: int) -> CompanySettings:
    """Build an unsaved settings row with every default filled in."""
    return CompanySettings(
        owner_id=owner_id,
        schema_version=COMPANY_SETTINGS_SCHEMA_VERSION,
        invoice_prefix=DEFAULT_INVOICE_PREFIX,
        next_invoice_number=1,
        default_currency=DEFAULT_CURRENCY,
        default_tax_rate=DEFAULT_TAX_RATE,
        payment_terms_days=DEFAULT_PAYMENT_TERMS_DAYS,
    )


def load_company_settings(db: Session, owner_id: int) -> CompanySettings | None:
    """Return the stored settings for an owner after checking version and schema."""
    settings = db.query(CompanySettings).filter(CompanySettings.owner_id == owner_id).first()
    if settings is None:
        return None
    if settings.schema_version != COMPANY_SETTINGS_SCHEMA_VERSION:
        raise SettingsSchemaError(
            f"Company settings version {settings.schema_version} is not supported "
            f"(expected {COMPANY_SETTINGS_SCHEMA_VERSION})"
        )
    try:
        CompanySettingsBase.model_validate(settings, from_attributes=True)
    except ValidationError as exc:
        logger.error("Invalid company settings for owner %s: %s", owner_id, exc)
        raise SettingsSchemaError("Stored company settings are invalid") from exc
    return settings


def company_settings_or_default(db: Session, owner_id: int) -> CompanySettings:
    """Stored settings, or an unsaved default row the caller may add to the session."""
    return load_company_settings(db, owner_id) or new_company_settings(owner_id)


def get_or_create_company_settings(db: Session, owner_id: int) -> CompanySettings:
    settings = load_company_settings(db, owner_id)
    if settings:
        return settings
    settings = new_company_settings(owner_id)
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings


def format_invoice_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:03d}"


def invoice_number_taken(db: Session, owner_id: int, invoice_number: str, exclude_id: int | None = None) -> bool:
    query = db.query(Invoice.id).filter(Invoice.owner_id == owner_id, Invoice.invoice_number == invoice_number)
    if exclude_id is not None:
        query = query.filter(Invoice.id != exclude_id)
    return query.first() is not None


def peek_next_invoice_number(db: Session, settings: CompanySettings, year: int) -> str:
    """The number the next auto-numbered invoice would receive, without reserving it."""
    sequence = settings.next_invoice_number
    number = format_invoice_number(settings.invoice_prefix, year, sequence)
    while invoice_number_taken(db, settings.owner_id, number):
        sequence += 1
        number = format_invoice_number(settings.invoice_prefix, year, sequence)
    return number


def reserve_invoice_number(db: Session, settings: CompanySettings, year: int) -> str:
    """Take the next free number and advance the counter.

    The counter change is committed together with the invoice that uses it.
    """
    number = peek_next_invoice_number(db, settings, year)
    sequence = int(number.rsplit("-", 1)[1])
    settings.next_invoice_number = sequence + 1
    return number
