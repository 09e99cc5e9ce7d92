# shulgenius/api/v1/payment_methods.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from shulgenius.api.dependencies import CurrentUser, get_current_user
from shulgenius.api.errors import http_error
from shulgenius.core.exceptions import ShulGeniusError
from shulgenius.db.database import get_db
from shulgenius.schemas.processor import PaymentMethodOut
from shulgenius.services.registry_service import RegistryService

router = APIRouter()


@router.get("/{member_id}/payment-methods", response_model=List[PaymentMethodOut])
async def list_payment_methods(
    member_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await RegistryService(db).list_payment_methods(current_user.organization_id, member_id)
    except ShulGeniusError as e:
        raise http_error(e)


@router.post("/{member_id}/payment-methods/{payment_method_id}/default", response_model=PaymentMethodOut)
async def set_default_payment_method(
    member_id: uuid.UUID,
    payment_method_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await RegistryService(db).set_default_payment_method(
            current_user.organization_id, member_id, payment_method_id
        )
    except ShulGeniusError as e:
        raise http_error(e)
