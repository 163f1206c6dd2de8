"""Data export endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_user
from backend.app.core.time import utc_today
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.services.exports import export_all_data, export_invoices_csv

router = APIRouter(prefix="/exports", tags=["exports"])


@router.get("/invoices.csv")
async def download_invoices_csv(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    content = export_invoices_csv(db, owner_id=current_user.id)
    filename = f"invoices-{utc_today().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/data.json")
async def download_all_data(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    filename = f"invoicedesk-export-{utc_today().isoformat()}.json"
    return JSONResponse(
        content=export_all_data(db, owner_id=current_user.id),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
