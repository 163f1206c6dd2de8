"""Invoice routes for owners."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from backend.app.core.errors import InvalidStatusTransition, InvoiceValidationError
from backend.app.core.security import get_current_user
from backend.app.core.time import utc_today
from backend.app.db.session import get_db
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice
from backend.app.models.user import User
from backend.app.schemas.invoice import InvoiceDetail, InvoiceRead, InvoiceSave, InvoiceStatusUpdate, NextInvoiceNumber
from backend.app.services.company_settings import company_settings_or_default, peek_next_invoice_number
from backend.app.services.invoices import change_invoice_status, create_invoice, delete_invoice, update_invoice

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _get_owned_invoice(db: Session, invoice_id: int, owner_id: int) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id).first()
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


def _display_status_clause(display_status: str):
    today = utc_today()
    if display_status == "overdue":
        return or_(Invoice.status == "overdue", and_(Invoice.status == "sent", Invoice.due_date < today))
    if display_status == "sent":
        return and_(Invoice.status == "sent", Invoice.due_date >= today)
    return Invoice.status == display_status


@router.get("/next-number", response_model=NextInvoiceNumber)
async def get_next_invoice_number(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    settings = company_settings_or_default(db, current_user.id)
    return {"invoice_number": peek_next_invoice_number(db, settings, utc_today().year)}


@router.get("/", response_model=List[InvoiceRead])
async def list_invoices(
    status: str | None = None,
    client_id: int | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Invoice).filter(Invoice.owner_id == current_user.id)
    if status:
        query = query.filter(_display_status_clause(status))
    if client_id:
        query = query.filter(Invoice.client_id == client_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.outerjoin(Client, Invoice.client_id == Client.id).filter(
            or_(Invoice.invoice_number.ilike(pattern), Client.name.ilike(pattern))
        )

    supported_sort_fields = {
        "created_at": Invoice.created_at,
        "issue_date": Invoice.issue_date,
        "due_date": Invoice.due_date,
        "invoice_number": Invoice.invoice_number,
        "status": Invoice.status,
        "total_amount": Invoice.total_amount,
    }
    if sort_by not in supported_sort_fields:
        raise HTTPException(status_code=400, detail="Invalid sort_by value")
    sort_order_normalized = (sort_order or "desc").lower()
    if sort_order_normalized not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Invalid sort_order value")
    sort_column = supported_sort_fields[sort_by]
    if sort_order_normalized == "asc":
        order_by_clause = [sort_column.asc(), Invoice.id.asc()]
    else:
        order_by_clause = [sort_column.desc(), Invoice.id.desc()]

    query = query.order_by(*order_by_clause).offset(skip).limit(limit)
    return query.all()


@router.post("/", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
async def save_new_invoice(
    payload: InvoiceSave,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return create_invoice(db, current_user.id, payload)
    except InvoiceValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/{invoice_id}", response_model=InvoiceDetail)
async def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_owned_invoice(db, invoice_id, current_user.id)


@router.put("/{invoice_id}", response_model=InvoiceDetail)
async def save_existing_invoice(
    invoice_id: int,
    payload: InvoiceSave,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    try:
        return update_invoice(db, invoice, payload)
    except (InvoiceValidationError, InvalidStatusTransition) as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/{invoice_id}/status", response_model=InvoiceRead)
async def update_invoice_status(
    invoice_id: int,
    payload: InvoiceStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    try:
        return change_invoice_status(db, invoice, payload.status)
    except InvalidStatusTransition as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/{invoice_id}")
async def remove_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    delete_invoice(db, invoice)
    return {"status": "deleted", "id": invoice_id}
