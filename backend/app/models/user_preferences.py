"""User preferences model for InvoiceDesk."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    timezone = Column(String, nullable=False, default="UTC")
    locale = Column(String, nullable=False, default="es-ES")
    notify_due_reminders = Column(Boolean, nullable=False, default=True)
    notify_paid_invoices = Column(Boolean, nullable=False, default=True)
    notify_new_clients = Column(Boolean, nullable=False, default=False)
    notify_weekly_reports = Column(Boolean, nullable=False, default=True)
    notification_email = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="preferences")
