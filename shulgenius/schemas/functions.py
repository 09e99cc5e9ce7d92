# shulgenius/schemas/functions.py
"""Request/response bodies of the payment functions (camelCase on the wire)."""
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DonationRequest(CamelModel):
    organization_id: UUID
    campaign_id: UUID
    amount: Decimal = Field(gt=0, decimal_places=2)
    member_id: Optional[UUID] = None
    donor_name: Optional[str] = None
    donor_email: Optional[str] = None
    is_anonymous: bool = False
    notes: Optional[str] = None

    # Saved card, or raw card / iFields token for the new-card path
    payment_method_id: Optional[UUID] = None
    card_token: Optional[str] = None
    card_number: Optional[str] = None
    card_exp: Optional[str] = Field(default=None, pattern=r"^\d{4}$")
    card_cvc: Optional[str] = None
    zip_code: Optional[str] = None


class DonationResponse(CamelModel):
    success: bool
    transaction_id: Optional[str] = None
    donation_id: Optional[UUID] = None
    message: Optional[str] = None
    error: Optional[str] = None


class ProcessPaymentRequest(CamelModel):
    subscription_id: UUID
    member_id: UUID
    organization_id: UUID
    amount: Decimal = Field(gt=0, decimal_places=2)
    description: Optional[str] = None


class ProcessPaymentResponse(CamelModel):
    success: bool
    transaction_id: Optional[str] = None
    invoice_id: Optional[UUID] = None
    invoice_number: Optional[str] = None
    message: Optional[str] = None


class CardknoxCustomerRequest(CamelModel):
    action: Literal["create_customer", "save_card"]
    organization_id: UUID
    member_id: UUID
    member_email: Optional[str] = None
    member_name: Optional[str] = None
    processor_id: Optional[UUID] = None

    card_token: Optional[str] = None
    card_number: Optional[str] = None
    card_exp: Optional[str] = Field(default=None, pattern=r"^\d{4}$")  # MMYY
    card_cvc: Optional[str] = None
    zip_code: Optional[str] = None
    is_default: bool = False
    nickname: Optional[str] = None


class CardknoxCustomerResponse(CamelModel):
    success: bool
    message: Optional[str] = None
    customer_id: Optional[str] = None
    payment_method_id: Optional[UUID] = None
    card_brand: Optional[str] = None
    last_four: Optional[str] = None
