"""CSV and JSON exports built from already loaded rows."""

import csv
import io
import logging
from datetime import date

from sqlalchemy.orm import Session

from backend.app.core.time import utc_now, utc_today
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice
from backend.app.models.product import Product
from backend.app.models.user_preferences import UserPreferences
from backend.app.schemas.client import ClientRead
from backend.app.schemas.company_settings import CompanySettingsRead
from backend.app.schemas.invoice import InvoiceDetail
from backend.app.schemas.product import ProductRead
from backend.app.schemas.user_preferences import UserPreferencesRead
from backend.app.services.company_settings import load_company_settings
from backend.app.services.reports import UNKNOWN_CLIENT_LABEL

logger = logging.getLogger(__name__)

INVOICE_CSV_HEADERS = [
    "invoice_number",
    "client",
    "status",
    "issue_date",
    "due_date",
    "subtotal",
    "tax_amount",
    "total_amount",
    "currency",
]


def build_invoices_csv(invoices, clients, today: date) -> str:
    names = {client.id: client.name for client in clients}
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(INVOICE_CSV_HEADERS)
    for inv in invoices:
        writer.writerow(
            [
                inv.invoice_number,
                names.get(inv.client_id, UNKNOWN_CLIENT_LABEL),
                inv.display_status_on(today),
                inv.issue_date.isoformat(),
                inv.due_date.isoformat(),
                f"{inv.subtotal:.2f}",
                f"{inv.tax_amount:.2f}",
                f"{inv.total_amount:.2f}",
                inv.currency,
            ]
        )
    return buffer.getvalue()


def export_invoices_csv(db: Session, *, owner_id: int, today: date | None = None) -> str:
    invoices = (
        db.query(Invoice)
        .filter(Invoice.owner_id == owner_id)
        .order_by(Invoice.issue_date.asc(), Invoice.id.asc())
        .all()
    )
    clients = db.query(Client).filter(Client.owner_id == owner_id).all()
    logger.info("Exporting %d invoices as CSV for owner %s", len(invoices), owner_id)
    return build_invoices_csv(invoices, clients, today or utc_today())


def export_all_data(db: Session, *, owner_id: int) -> dict:
    """Everything the owner has stored, as JSON-ready primitives."""
    clients = db.query(Client).filter(Client.owner_id == owner_id).order_by(Client.id.asc()).all()
    products = db.query(Product).filter(Product.owner_id == owner_id).order_by(Product.id.asc()).all()
    invoices = db.query(Invoice).filter(Invoice.owner_id == owner_id).order_by(Invoice.id.asc()).all()
    settings = load_company_settings(db, owner_id)
    preferences = db.query(UserPreferences).filter(UserPreferences.user_id == owner_id).first()

    logger.info(
        "Exporting full data for owner %s: %d clients, %d products, %d invoices",
        owner_id,
        len(clients),
        len(products),
        len(invoices),
    )
    return {
        "exported_at": utc_now().isoformat(),
        "clients": [ClientRead.model_validate(c).model_dump(mode="json") for c in clients],
        "products": [ProductRead.model_validate(p).model_dump(mode="json") for p in products],
        "invoices": [InvoiceDetail.model_validate(i).model_dump(mode="json") for i in invoices],
        "company_settings": CompanySettingsRead.model_validate(settings).model_dump(mode="json") if settings else None,
        "preferences": UserPreferencesRead.model_validate(preferences).model_dump(mode="json") if preferences else None,
    }
