# shulgenius/db/models/organization.py
from sqlalchemy import Column, String, ForeignKey, Uuid
import uuid
from shulgenius.db.base import BaseModel


class Organization(BaseModel):
    """Tenant root: one shul"""
    __tablename__ = "organizations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)  # public URL segment

    # Contact
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    logo_url = Column(String(500), nullable=True)


class OrganizationSettings(BaseModel):
    """
    Legacy single-processor settings.

    Predates the payment_processors table; the flat Cardknox key here still
    takes precedence over the organization default processor.
    """
    __tablename__ = "organization_settings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), unique=True, nullable=False)

    active_processor = Column(String(50), nullable=True)
    cardknox_transaction_key = Column(String(255), nullable=True)
    cardknox_ifields_key = Column(String(255), nullable=True)
    stripe_publishable_key = Column(String(255), nullable=True)
    stripe_account_id = Column(String(255), nullable=True)
