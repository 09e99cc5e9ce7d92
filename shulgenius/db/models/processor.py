# shulgenius/db/models/processor.py
from sqlalchemy import Column, String, Boolean, JSON, ForeignKey, Index, UniqueConstraint, Uuid, text
import uuid
from shulgenius.db.base import BaseModel


class PaymentProcessor(BaseModel):
    """
    A configured gateway account belonging to one organization.

    ``credentials`` is an opaque map whose shape depends on ``processor_type``;
    see ``shulgenius.services.credentials``.
    """
    __tablename__ = "payment_processors"
    __table_args__ = (
        # At most one active default per organization
        Index(
            "uq_payment_processors_org_default",
            "organization_id",
            unique=True,
            postgresql_where=text("is_default AND is_active"),
            sqlite_where=text("is_default AND is_active"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    processor_type = Column(String(50), nullable=False)  # stripe, cardknox, sola
    name = Column(String(255), nullable=False)
    credentials = Column(JSON, nullable=False, default=dict)
    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class CampaignProcessor(BaseModel):
    """Binding between a campaign and a processor"""
    __tablename__ = "campaign_processors"
    __table_args__ = (
        UniqueConstraint("campaign_id", "processor_id", name="uq_campaign_processors_pair"),
        Index(
            "uq_campaign_processors_primary",
            "campaign_id",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    campaign_id = Column(Uuid(as_uuid=True), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    processor_id = Column(Uuid(as_uuid=True), ForeignKey("payment_processors.id", ondelete="CASCADE"), nullable=False, index=True)
    is_primary = Column(Boolean, default=False, nullable=False)
