# shulgenius/api/v1/subscriptions.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from shulgenius.api.dependencies import CurrentUser, require_admin
from shulgenius.api.errors import http_error
from shulgenius.core.exceptions import ShulGeniusError
from shulgenius.db.database import get_db
from shulgenius.schemas.billing import SubscriptionCreate, SubscriptionOut
from shulgenius.services.subscription_service import SubscriptionService

router = APIRouter()


@router.post("", response_model=SubscriptionOut, status_code=201)
async def create_subscription(
    body: SubscriptionCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await SubscriptionService(db).create(current_user.organization_id, body)
    except ShulGeniusError as e:
        raise http_error(e)


@router.delete("/{subscription_id}", response_model=SubscriptionOut)
async def deactivate_subscription(
    subscription_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Deactivation is final; a subscription is never reactivated"""
    try:
        return await SubscriptionService(db).deactivate(current_user.organization_id, subscription_id)
    except ShulGeniusError as e:
        raise http_error(e)
