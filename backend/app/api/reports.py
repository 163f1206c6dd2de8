"""Reporting endpoints for owner revenue."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_user
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.reports import PeriodReport, ReportRange
from backend.app.services.reports import get_period_report

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/period", response_model=PeriodReport)
async def get_report_for_period(
    range: ReportRange = Query(default="last_6_months"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_period_report(db, owner_id=current_user.id, range_key=range)
