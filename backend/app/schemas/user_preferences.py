"""User preferences schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr


class UserPreferencesBase(BaseModel):
    timezone: str = "UTC"
    locale: str = "es-ES"
    notify_due_reminders: bool = True
    notify_paid_invoices: bool = True
    notify_new_clients: bool = False
    notify_weekly_reports: bool = True
    notification_email: Optional[EmailStr] = None


class UserPreferencesUpdate(BaseModel):
    timezone: Optional[str] = None
    locale: Optional[str] = None
    notify_due_reminders: Optional[bool] = None
    notify_paid_invoices: Optional[bool] = None
    notify_new_clients: Optional[bool] = None
    notify_weekly_reports: Optional[bool] = None
    notification_email: Optional[EmailStr] = None


class UserPreferencesRead(UserPreferencesBase):
    id: int
    user_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
