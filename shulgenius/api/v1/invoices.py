# shulgenius/api/v1/invoices.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from shulgenius.api.dependencies import CurrentUser, get_current_user, require_admin
from shulgenius.api.errors import http_error
from shulgenius.core.exceptions import ShulGeniusError
from shulgenius.db.database import get_db
from shulgenius.schemas.billing import InvoiceCreate, InvoiceOut, InvoicePaymentCreate, InvoicePaymentOut, PaymentOut
from shulgenius.services.invoice_service import InvoiceService

router = APIRouter()


@router.post("", response_model=InvoiceOut, status_code=201)
async def create_invoice(
    body: InvoiceCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await InvoiceService(db).create(current_user.organization_id, body)
    except ShulGeniusError as e:
        raise http_error(e)


@router.get("/{invoice_id}", response_model=InvoiceOut)
async def get_invoice(
    invoice_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await InvoiceService(db).get(current_user.organization_id, invoice_id)
    except ShulGeniusError as e:
        raise http_error(e)


@router.post("/{invoice_id}/payments", response_model=InvoicePaymentOut, status_code=201)
async def record_invoice_payment(
    invoice_id: uuid.UUID,
    body: InvoicePaymentCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Record a payment taken outside the gateway (cash, check, external card)"""
    try:
        record = await InvoiceService(db).record_payment(current_user.organization_id, invoice_id, body)
    except ShulGeniusError as e:
        raise http_error(e)

    return InvoicePaymentOut(
        payment_id=record.payment.id,
        invoice_id=invoice_id,
        status=record.status,
        total_paid=record.total_paid,
    )


@router.get("/{invoice_id}/payments", response_model=List[PaymentOut])
async def list_invoice_payments(
    invoice_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await InvoiceService(db).list_payments(current_user.organization_id, invoice_id)
    except ShulGeniusError as e:
        raise http_error(e)
