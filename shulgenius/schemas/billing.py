# shulgenius/schemas/billing.py
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from shulgenius.core.constants import BillingFrequency, BillingMethod, PaymentType


class InvoiceItemCreate(BaseModel):
    description: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Field(gt=0, decimal_places=2)


class InvoiceCreate(BaseModel):
    member_id: UUID
    campaign_id: Optional[UUID] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    send: bool = False
    items: List[InvoiceItemCreate] = Field(min_length=1)


class InvoiceItemOut(BaseModel):
    id: UUID
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal

    class Config:
        from_attributes = True


class InvoiceOut(BaseModel):
    id: UUID
    organization_id: UUID
    member_id: UUID
    invoice_number: str
    status: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    due_date: Optional[date]
    paid_at: Optional[datetime]
    items: List[InvoiceItemOut] = []

    class Config:
        from_attributes = True


class InvoicePaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0, decimal_places=2)
    payment_method: str = "cash"
    processor: Optional[str] = None
    processor_transaction_id: Optional[str] = None
    notes: Optional[str] = None


class InvoicePaymentOut(BaseModel):
    payment_id: UUID
    invoice_id: UUID
    status: str
    total_paid: Decimal


class SubscriptionCreate(BaseModel):
    member_id: UUID
    campaign_id: Optional[UUID] = None
    total_amount: Decimal = Field(gt=0, decimal_places=2)
    payment_type: PaymentType = PaymentType.RECURRING
    billing_method: BillingMethod = BillingMethod.INVOICED
    frequency: BillingFrequency = BillingFrequency.MONTHLY
    installments_total: Optional[int] = None
    start_date: Optional[date] = None
    payment_method_id: Optional[UUID] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_installments(self):
        if self.payment_type == PaymentType.INSTALLMENTS:
            if self.installments_total is None or self.installments_total < 2:
                raise ValueError("Installments must be at least 2")
        else:
            self.installments_total = None
        return self


class SubscriptionOut(BaseModel):
    id: UUID
    organization_id: UUID
    member_id: UUID
    campaign_id: Optional[UUID]
    payment_method_id: Optional[UUID]
    total_amount: Decimal
    payment_type: str
    billing_method: str
    frequency: str
    installments_total: Optional[int]
    installments_paid: Optional[int]
    start_date: date
    next_billing_date: date
    is_active: bool

    class Config:
        from_attributes = True


class PaymentOut(BaseModel):
    id: UUID
    invoice_id: Optional[UUID]
    amount: Decimal
    payment_method: Optional[str]
    processor: Optional[str]
    processor_transaction_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class DonationOut(BaseModel):
    id: UUID
    campaign_id: Optional[UUID]
    member_id: Optional[UUID]
    donor_name: Optional[str]
    is_anonymous: bool
    amount: Decimal
    processor: Optional[str]
    processor_transaction_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
