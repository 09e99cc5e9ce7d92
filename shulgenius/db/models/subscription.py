# shulgenius/db/models/subscription.py
from sqlalchemy import Column, String, Boolean, Date, Integer, Numeric, ForeignKey, Uuid, CheckConstraint
import uuid
from shulgenius.db.base import BaseModel


class Subscription(BaseModel):
    """
    Recurring pledge or installment plan.

    Lifecycle is active -> inactive only; an exhausted installment plan or an
    administrator deactivation is terminal.
    """
    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint("payment_type IN ('recurring', 'installments')", name="subscriptions_payment_type_check"),
        CheckConstraint("billing_method IN ('invoiced', 'auto_cc')", name="subscriptions_billing_method_check"),
        CheckConstraint(
            "frequency IN ('daily', 'weekly', 'monthly', 'monthly_hebrew', 'quarterly', 'annual')",
            name="subscriptions_frequency_check",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(Uuid(as_uuid=True), ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)
    payment_method_id = Column(Uuid(as_uuid=True), ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True)

    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_type = Column(String(20), nullable=False, default="recurring")
    billing_method = Column(String(20), nullable=False, default="invoiced")
    frequency = Column(String(20), nullable=False, default="monthly")
    installments_total = Column(Integer, nullable=True)
    installments_paid = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    next_billing_date = Column(Date, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    notes = Column(String(1000), nullable=True)
