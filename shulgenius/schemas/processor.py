# shulgenius/schemas/processor.py
from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime
from uuid import UUID

from shulgenius.core.constants import ProcessorType


class ProcessorCreate(BaseModel):
    processor_type: ProcessorType
    name: str
    credentials: Dict[str, Any] = {}
    is_default: bool = False


class ProcessorOut(BaseModel):
    """Credentials are never echoed back"""
    id: UUID
    organization_id: UUID
    processor_type: str
    name: str
    is_default: bool
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CampaignProcessorCreate(BaseModel):
    processor_id: UUID
    is_primary: bool = False


class CampaignProcessorOut(BaseModel):
    id: UUID
    campaign_id: UUID
    processor_id: UUID
    is_primary: bool

    class Config:
        from_attributes = True


class PaymentMethodOut(BaseModel):
    id: UUID
    member_id: UUID
    processor: str
    processor_id: Optional[UUID]
    card_brand: Optional[str]
    card_last_four: Optional[str]
    exp_month: Optional[int]
    exp_year: Optional[int]
    nickname: Optional[str]
    is_default: bool

    class Config:
        from_attributes = True
