# shulgenius/api/v1/functions.py
"""
Payment functions called by the web client.

These keep the client's JSON contract: camelCase bodies, declines as
``success: false`` payloads rather than HTTP errors for donations, and
``{"error": ...}`` bodies on failure for the authenticated functions.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.api.dependencies import CurrentUser, check_organization, get_current_user, get_gateway
from shulgenius.api.errors import status_for
from shulgenius.core.exceptions import GatewayUnavailable, ShulGeniusError
from shulgenius.core.logging import logger
from shulgenius.db.database import get_db
from shulgenius.schemas.functions import (
    CardknoxCustomerRequest,
    CardknoxCustomerResponse,
    DonationRequest,
    DonationResponse,
    ProcessPaymentRequest,
    ProcessPaymentResponse,
)
from shulgenius.services.card_vault_service import CardVaultService
from shulgenius.services.cardknox_gateway import CardknoxGateway
from shulgenius.services.donation_service import DonationService
from shulgenius.services.subscription_service import SubscriptionService

router = APIRouter()

GENERIC_ERROR = "An unexpected error occurred"


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@router.post("/process-donation", response_model=DonationResponse, response_model_exclude_none=True)
async def process_donation(
    body: DonationRequest,
    db: AsyncSession = Depends(get_db),
    gateway: CardknoxGateway = Depends(get_gateway),
):
    """Public donation checkout; every refusal except a gateway outage is HTTP 200 with ``success: false``"""
    try:
        outcome = await DonationService(db, gateway).process(body)
    except GatewayUnavailable as e:
        return _error(status.HTTP_502_BAD_GATEWAY, e.message, success=False)
    except ShulGeniusError as e:
        return DonationResponse(success=False, error=e.message)
    except Exception:
        logger.exception("Donation processing failed", extra={"campaign_id": body.campaign_id})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR, success=False)

    return DonationResponse(
        success=outcome.success,
        transaction_id=outcome.transaction_id,
        donation_id=outcome.donation_id,
        message=outcome.message,
        error=outcome.error,
    )


@router.post("/process-payment", response_model=ProcessPaymentResponse, response_model_exclude_none=True)
async def process_payment(
    body: ProcessPaymentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: CardknoxGateway = Depends(get_gateway),
):
    """Charge a subscription's saved card once and record the paid invoice"""
    check_organization(current_user, body.organization_id)

    try:
        outcome = await SubscriptionService(db, gateway).bill(
            subscription_id=body.subscription_id,
            member_id=body.member_id,
            organization_id=body.organization_id,
            amount=body.amount,
            description=body.description,
        )
    except ShulGeniusError as e:
        return _error(status_for(e), e.message)
    except Exception:
        logger.exception("Subscription billing failed", extra={"subscription_id": body.subscription_id})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR)

    if not outcome.success:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            outcome.error,
            declineReason=outcome.decline_reason,
            result=outcome.result_code,
        )

    return ProcessPaymentResponse(
        success=True,
        transaction_id=outcome.transaction_id,
        invoice_id=outcome.invoice_id,
        invoice_number=outcome.invoice_number,
        message=outcome.message,
    )


@router.post("/cardknox-customer", response_model=CardknoxCustomerResponse, response_model_exclude_none=True)
async def cardknox_customer(
    body: CardknoxCustomerRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: CardknoxGateway = Depends(get_gateway),
):
    """Create a gateway customer or vault a card for a member"""
    check_organization(current_user, body.organization_id)

    vault = CardVaultService(db, gateway)
    try:
        if body.action == "create_customer":
            outcome = await vault.create_customer(body)
        else:
            outcome = await vault.save_card(body)
    except ShulGeniusError as e:
        return _error(status_for(e), e.message)
    except Exception:
        logger.exception("Card vault request failed", extra={"member_id": body.member_id})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR)

    if not outcome.success:
        return _error(status.HTTP_400_BAD_REQUEST, outcome.message or "Card vault request failed")

    return CardknoxCustomerResponse(
        success=True,
        message=outcome.message,
        customer_id=outcome.customer_id,
        payment_method_id=outcome.payment_method_id,
        card_brand=outcome.card_brand,
        last_four=outcome.last_four,
    )
