# shulgenius/db/models/member.py
from sqlalchemy import Column, String, Boolean, Integer, Numeric, ForeignKey, Index, Uuid, text
import uuid
from shulgenius.db.base import BaseModel


class Member(BaseModel):
    """Congregant belonging to one organization"""
    __tablename__ = "members"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=True, index=True)  # set once the member has a login

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    membership_type = Column(String(50), nullable=True)

    # Denormalised: invoiced minus paid
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    # Household grouping, flat pointer
    family_head_id = Column(Uuid(as_uuid=True), ForeignKey("members.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PaymentMethod(BaseModel):
    """Saved card token, tagged with the processor that issued it"""
    __tablename__ = "payment_methods"
    __table_args__ = (
        Index(
            "uq_payment_methods_member_default",
            "member_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)

    processor = Column(String(50), nullable=False)
    # Legacy rows predate payment_processors and have no processor_id
    processor_id = Column(Uuid(as_uuid=True), ForeignKey("payment_processors.id", ondelete="SET NULL"), nullable=True, index=True)
    processor_payment_method_id = Column(String(255), nullable=False)
    processor_customer_id = Column(String(255), nullable=True)

    card_brand = Column(String(50), nullable=True)
    card_last_four = Column(String(4), nullable=True)
    exp_month = Column(Integer, nullable=True)
    exp_year = Column(Integer, nullable=True)
    nickname = Column(String(100), nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
