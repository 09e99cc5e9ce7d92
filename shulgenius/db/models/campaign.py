# shulgenius/db/models/campaign.py
from sqlalchemy import Column, String, Boolean, Date, Numeric, ForeignKey, Uuid, CheckConstraint
import uuid
from shulgenius.db.base import BaseModel


class Campaign(BaseModel):
    """
    Fundraising drive or standing fund.

    ``raised_amount`` is only ever incremented by the ledger reconciler.
    """
    __tablename__ = "campaigns"
    __table_args__ = (
        CheckConstraint("type IN ('drive', 'fund')", name="campaigns_type_check"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    type = Column(String(20), nullable=False, default="drive")
    goal_amount = Column(Numeric(12, 2), nullable=True)
    raised_amount = Column(Numeric(12, 2), nullable=False, default=0)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
