"""Company settings endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_user
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.company_settings import CompanySettingsRead, CompanySettingsUpdate
from backend.app.services.company_settings import get_or_create_company_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/company", response_model=CompanySettingsRead)
async def get_company_settings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return get_or_create_company_settings(db, current_user.id)


@router.put("/company", response_model=CompanySettingsRead)
async def update_company_settings(
    payload: CompanySettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    settings = get_or_create_company_settings(db, current_user.id)
    changed = []
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and not settings.__table__.columns[field].nullable:
            continue
        setattr(settings, field, value)
        changed.append(field)
    db.commit()
    db.refresh(settings)
    if changed:
        logger.info("Company settings updated for owner %s: %s", current_user.id, ", ".join(changed))
    return settings
