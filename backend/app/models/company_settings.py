"""Per-owner company profile and invoicing defaults."""

from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base

COMPANY_SETTINGS_SCHEMA_VERSION = 1


class CompanySettings(Base):
    __tablename__ = "company_settings"
    __table_args__ = (UniqueConstraint("owner_id", name="uq_company_settings_owner"),)

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    schema_version = Column(Integer, nullable=False, default=COMPANY_SETTINGS_SCHEMA_VERSION)
    company_name = Column(String(255), nullable=True)
    tax_id = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    invoice_prefix = Column(String(20), nullable=False, default="FAC")
    next_invoice_number = Column(Integer, nullable=False, default=1)
    default_currency = Column(String(3), nullable=False, default="EUR")
    default_tax_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("21.00"))
    payment_terms_days = Column(Integer, nullable=False, default=30)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    owner = relationship("User", back_populates="company_settings")
