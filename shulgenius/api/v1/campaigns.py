# shulgenius/api/v1/campaigns.py
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from shulgenius.api.dependencies import CurrentUser, get_current_user, require_admin
from shulgenius.api.errors import http_error
from shulgenius.core.exceptions import ShulGeniusError
from shulgenius.db.database import get_db
from shulgenius.schemas.billing import DonationOut
from shulgenius.schemas.processor import CampaignProcessorCreate, CampaignProcessorOut, PaymentMethodOut
from shulgenius.services.donation_service import DonationService
from shulgenius.services.registry_service import RegistryService

router = APIRouter()


@router.get("/{campaign_id}/processors", response_model=List[CampaignProcessorOut])
async def list_campaign_processors(
    campaign_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await RegistryService(db).list_bindings(current_user.organization_id, campaign_id)
    except ShulGeniusError as e:
        raise http_error(e)


@router.get("/{campaign_id}/processor-ids", response_model=List[uuid.UUID])
async def campaign_processor_ids(
    campaign_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await RegistryService(db).campaign_processor_ids(current_user.organization_id, campaign_id)
    except ShulGeniusError as e:
        raise http_error(e)


@router.post("/{campaign_id}/processors", response_model=CampaignProcessorOut, status_code=201)
async def bind_processor(
    campaign_id: uuid.UUID,
    body: CampaignProcessorCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await RegistryService(db).bind(
            current_user.organization_id, campaign_id, body.processor_id, is_primary=body.is_primary
        )
    except ShulGeniusError as e:
        raise http_error(e)


@router.post("/{campaign_id}/processors/{processor_id}/primary", response_model=CampaignProcessorOut)
async def set_primary_processor(
    campaign_id: uuid.UUID,
    processor_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await RegistryService(db).set_primary(current_user.organization_id, campaign_id, processor_id)
    except ShulGeniusError as e:
        raise http_error(e)


@router.delete("/{campaign_id}/processors/{processor_id}", status_code=204)
async def unbind_processor(
    campaign_id: uuid.UUID,
    processor_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        await RegistryService(db).unbind(current_user.organization_id, campaign_id, processor_id)
    except ShulGeniusError as e:
        raise http_error(e)
    return Response(status_code=204)


@router.get("/{campaign_id}/members/{member_id}/payment-methods", response_model=List[PaymentMethodOut])
async def selectable_payment_methods(
    campaign_id: uuid.UUID,
    member_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Saved cards that can pay into this campaign"""
    try:
        return await RegistryService(db).selectable_payment_methods(
            current_user.organization_id, member_id, campaign_id
        )
    except ShulGeniusError as e:
        raise http_error(e)


@router.get("/{campaign_id}/donations", response_model=List[DonationOut])
async def list_campaign_donations(
    campaign_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await DonationService(db).list_for_campaign(current_user.organization_id, campaign_id)
    except ShulGeniusError as e:
        raise http_error(e)
