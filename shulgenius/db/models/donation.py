# shulgenius/db/models/donation.py
from sqlalchemy import Column, String, Boolean, Numeric, ForeignKey, Uuid
import uuid
from shulgenius.db.base import BaseModel


class Donation(BaseModel):
    """Completed campaign contribution; written only after gateway approval"""
    __tablename__ = "donations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(Uuid(as_uuid=True), ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True, index=True)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("members.id", ondelete="SET NULL"), nullable=True)

    donor_name = Column(String(255), nullable=True)
    donor_email = Column(String(255), nullable=True)
    is_anonymous = Column(Boolean, default=False, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(50), nullable=True)
    processor = Column(String(50), nullable=True)
    processor_transaction_id = Column(String(255), nullable=True)
    notes = Column(String(1000), nullable=True)
