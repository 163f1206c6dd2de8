"""Invoice save, validation and status helpers."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.errors import InvalidStatusTransition, InvoiceValidationError
from backend.app.core.time import utc_today
from backend.app.models.client import Client
from backend.app.models.company_settings import CompanySettings
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_item import InvoiceItem
from backend.app.models.product import Product
from backend.app.schemas.invoice import InvoiceSave
from backend.app.schemas.invoice_item import InvoiceItemIn
from backend.app.services.calculations import (
    calculate_invoice_totals,
    calculate_line,
    quantize_money,
    quantize_quantity,
    to_decimal,
)
from backend.app.services.company_settings import (
    company_settings_or_default,
    invoice_number_taken,
    reserve_invoice_number,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "draft": {"sent", "cancelled"},
    "sent": {"draft", "paid", "cancelled"},
    "overdue": {"paid", "cancelled"},
    "paid": set(),
    "cancelled": set(),
}
LOCKED_STATUSES = {"paid", "cancelled"}


@dataclass
class LineDraft:
    description: Optional[str]
    quantity: Optional[Decimal]
    unit_price: Optional[Decimal]
    tax_rate: Optional[Decimal]
    product_id: Optional[int] = None


def validate_status_transition(current_status: str, new_status: str) -> bool:
    if current_status == new_status:
        return True
    return new_status in ALLOWED_TRANSITIONS.get(current_status, set())


def validate_invoice_items(items: Sequence) -> None:
    """Reject an empty item list or any line that cannot be billed."""
    if not items:
        raise InvoiceValidationError("An invoice needs at least one line item")
    for index, item in enumerate(items, start=1):
        if not item.description or not str(item.description).strip():
            raise InvoiceValidationError(f"Line {index}: description is required")
        if item.quantity is None or to_decimal(item.quantity) <= 0:
            raise InvoiceValidationError(f"Line {index}: quantity must be greater than zero")
        if item.unit_price is None or to_decimal(item.unit_price) < 0:
            raise InvoiceValidationError(f"Line {index}: unit price cannot be negative")
        if item.tax_rate is None or not Decimal("0") <= to_decimal(item.tax_rate) <= Decimal("100"):
            raise InvoiceValidationError(f"Line {index}: tax rate must be between 0 and 100")


def _to_column_scale(value, quantize) -> Optional[Decimal]:
    return quantize(to_decimal(value)) if value is not None else None


def _resolve_lines(
    db: Session, owner_id: int, items_in: Iterable[InvoiceItemIn], default_tax_rate: Decimal
) -> List[LineDraft]:
    """Fill omitted line fields from the referenced product, copying its values.

    Quantity, price and tax rate are rounded to the scale of their columns so the
    stored line recomputes to the same amounts.
    """
    items_in = list(items_in)
    product_ids = {item.product_id for item in items_in if item.product_id is not None}
    products = {}
    if product_ids:
        products = {
            product.id: product
            for product in db.query(Product).filter(Product.owner_id == owner_id, Product.id.in_(product_ids)).all()
        }

    lines: List[LineDraft] = []
    for index, item in enumerate(items_in, start=1):
        description, unit_price, tax_rate = item.description, item.unit_price, item.tax_rate
        if item.product_id is not None:
            product = products.get(item.product_id)
            if product is None:
                raise InvoiceValidationError(f"Line {index}: product not found")
            if not description:
                description = product.name
            if unit_price is None:
                unit_price = product.price
            if tax_rate is None:
                tax_rate = product.tax_rate
        if tax_rate is None:
            tax_rate = default_tax_rate
        lines.append(
            LineDraft(
                description=description.strip() if description else description,
                quantity=_to_column_scale(item.quantity, quantize_quantity),
                unit_price=_to_column_scale(unit_price, quantize_money),
                tax_rate=_to_column_scale(tax_rate, quantize_money),
                product_id=item.product_id,
            )
        )
    return lines


def _require_owned_client(db: Session, owner_id: int, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id, Client.owner_id == owner_id).first()
    if client is None:
        raise InvoiceValidationError("Client not found")
    return client


def _apply_lines(invoice: Invoice, lines: Sequence[LineDraft]) -> None:
    # Replaces the whole collection; delete-orphan removes the old rows in the same flush
    invoice.items = [
        InvoiceItem(
            product_id=line.product_id,
            position=position,
            description=line.description,
            quantity=to_decimal(line.quantity),
            unit_price=to_decimal(line.unit_price),
            tax_rate=to_decimal(line.tax_rate),
            line_total=calculate_line(line.quantity, line.unit_price, line.tax_rate).total,
        )
        for position, line in enumerate(lines)
    ]
    totals = calculate_invoice_totals(lines)
    invoice.subtotal = totals.subtotal
    invoice.tax_amount = totals.tax_amount
    invoice.total_amount = totals.total


def _commit_invoice(db: Session, invoice: Invoice) -> Invoice:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise InvoiceValidationError("Invoice number already exists") from exc
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save invoice %s", invoice.invoice_number)
        raise
    db.refresh(invoice)
    return invoice


def create_invoice(db: Session, owner_id: int, payload: InvoiceSave, today: date | None = None) -> Invoice:
    """Validate and persist a new invoice with its items in one transaction."""
    today = today or utc_today()
    settings: CompanySettings = company_settings_or_default(db, owner_id)
    lines = _resolve_lines(db, owner_id, payload.items, settings.default_tax_rate)
    validate_invoice_items(lines)
    _require_owned_client(db, owner_id, payload.client_id)

    issue_date = payload.issue_date or today
    due_date = payload.due_date or issue_date + timedelta(days=settings.payment_terms_days)
    if due_date < issue_date:
        raise InvoiceValidationError("Due date cannot be before the issue date")

    if payload.invoice_number and payload.invoice_number.strip():
        invoice_number = payload.invoice_number.strip()
        if invoice_number_taken(db, owner_id, invoice_number):
            raise InvoiceValidationError("Invoice number already exists")
    else:
        invoice_number = reserve_invoice_number(db, settings, issue_date.year)

    if settings.id is None:
        db.add(settings)

    invoice = Invoice(
        owner_id=owner_id,
        client_id=payload.client_id,
        invoice_number=invoice_number,
        status=payload.status or "draft",
        issue_date=issue_date,
        due_date=due_date,
        currency=(payload.currency or settings.default_currency).upper(),
        notes=payload.notes,
    )
    _apply_lines(invoice, lines)
    db.add(invoice)
    _commit_invoice(db, invoice)
    logger.info("Created invoice %s for owner %s (total %s)", invoice.invoice_number, owner_id, invoice.total_amount)
    return invoice


def update_invoice(db: Session, invoice: Invoice, payload: InvoiceSave) -> Invoice:
    """Replace an invoice's header and all of its items atomically."""
    if invoice.status in LOCKED_STATUSES:
        raise InvoiceValidationError(f"A {invoice.status} invoice cannot be edited")
    if payload.status is not None and not validate_status_transition(invoice.status, payload.status):
        raise InvalidStatusTransition(f"Cannot change status from {invoice.status} to {payload.status}")

    settings = company_settings_or_default(db, invoice.owner_id)
    lines = _resolve_lines(db, invoice.owner_id, payload.items, settings.default_tax_rate)
    validate_invoice_items(lines)
    _require_owned_client(db, invoice.owner_id, payload.client_id)

    issue_date = payload.issue_date or invoice.issue_date
    due_date = payload.due_date or invoice.due_date
    if due_date < issue_date:
        raise InvoiceValidationError("Due date cannot be before the issue date")

    if payload.invoice_number and payload.invoice_number.strip():
        invoice_number = payload.invoice_number.strip()
        if invoice_number_taken(db, invoice.owner_id, invoice_number, exclude_id=invoice.id):
            raise InvoiceValidationError("Invoice number already exists")
        invoice.invoice_number = invoice_number

    invoice.client_id = payload.client_id
    if payload.status is not None:
        invoice.status = payload.status
    invoice.issue_date = issue_date
    invoice.due_date = due_date
    if payload.currency:
        invoice.currency = payload.currency.upper()
    invoice.notes = payload.notes
    _apply_lines(invoice, lines)
    _commit_invoice(db, invoice)
    logger.info("Updated invoice %s (total %s)", invoice.invoice_number, invoice.total_amount)
    return invoice


def change_invoice_status(db: Session, invoice: Invoice, new_status: str) -> Invoice:
    if not validate_status_transition(invoice.status, new_status):
        raise InvalidStatusTransition(f"Cannot change status from {invoice.status} to {new_status}")
    old_status = invoice.status
    invoice.status = new_status
    db.commit()
    db.refresh(invoice)
    logger.info("Invoice %s status changed from %s to %s", invoice.invoice_number, old_status, new_status)
    return invoice


def delete_invoice(db: Session, invoice: Invoice) -> None:
    """Delete an invoice and its items in a single transaction."""
    number = invoice.invoice_number
    db.delete(invoice)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete invoice %s", number)
        raise
    logger.info("Deleted invoice %s", number)
