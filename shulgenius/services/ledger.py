# shulgenius/services/ledger.py
"""
Ledger reconciliation: turns an approved charge into durable rows.

Each ``record_*`` call is one database transaction. If any write fails the
whole sequence rolls back and ``ReconciliationError`` is raised; when the
charge already went through at the gateway that leaves money moved without
a local record, which callers report as a partial success.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.constants import InvoiceStatus
from shulgenius.core.exceptions import InvalidRequest, ReconciliationError
from shulgenius.core.logging import logger
from shulgenius.db.base import utcnow
from shulgenius.db.models.donation import Donation
from shulgenius.db.models.invoice import Invoice, Payment
from shulgenius.db.models.subscription import Subscription
from shulgenius.db.repositories.campaign_repository import CampaignRepository
from shulgenius.db.repositories.donation_repository import DonationRepository
from shulgenius.db.repositories.invoice_repository import InvoiceRepository
from shulgenius.db.repositories.member_repository import MemberRepository
from shulgenius.db.repositories.subscription_repository import SubscriptionRepository
from shulgenius.services.billing_schedule import next_cycle
from shulgenius.services.cardknox_gateway import ChargeResult


@dataclass(frozen=True)
class SubscriptionChargeRecord:
    invoice: Invoice
    payment: Payment
    cycle_applied: bool


@dataclass(frozen=True)
class InvoicePaymentRecord:
    payment: Payment
    status: str
    total_paid: Decimal


def settle_status(total_paid: Decimal, invoice_total: Decimal, current: str) -> str:
    """Invoice status implied by the sum of its payments"""
    if total_paid >= invoice_total:
        return InvoiceStatus.PAID.value
    if total_paid > 0:
        return InvoiceStatus.PARTIALLY_PAID.value
    return current


class LedgerReconciler:

    def __init__(self, session: AsyncSession):
        self.session = session
        self.campaigns = CampaignRepository(session)
        self.donations = DonationRepository(session)
        self.invoices = InvoiceRepository(session)
        self.members = MemberRepository(session)
        self.subscriptions = SubscriptionRepository(session)

    async def record_donation(
        self,
        *,
        organization_id: UUID,
        campaign_id: UUID,
        amount: Decimal,
        charge: ChargeResult,
        processor_type: str,
        member_id: Optional[UUID] = None,
        donor_name: Optional[str] = None,
        donor_email: Optional[str] = None,
        is_anonymous: bool = False,
        notes: Optional[str] = None,
    ) -> Donation:
        try:
            donation = await self.donations.create({
                "organization_id": organization_id,
                "campaign_id": campaign_id,
                "member_id": member_id,
                "donor_name": donor_name or ("Anonymous" if is_anonymous else None),
                "donor_email": donor_email,
                "amount": amount,
                "is_anonymous": is_anonymous,
                "payment_method": "card",
                "processor": processor_type,
                "processor_transaction_id": charge.reference_id,
                "notes": notes,
            })
            await self.campaigns.add_to_raised(campaign_id, amount)
            await self.session.commit()
        except Exception as e:
            await self._fail(charge.reference_id, e, campaign_id=campaign_id)

        return donation

    async def record_subscription_charge(
        self,
        *,
        subscription: Subscription,
        amount: Decimal,
        charge: ChargeResult,
        processor_type: str,
        invoice_number: str,
        campaign_name: str,
    ) -> SubscriptionChargeRecord:
        billed_date = subscription.next_billing_date
        try:
            invoice = await self.invoices.create({
                "organization_id": subscription.organization_id,
                "member_id": subscription.member_id,
                "campaign_id": subscription.campaign_id,
                "invoice_number": invoice_number,
                "status": InvoiceStatus.PAID.value,
                "paid_at": utcnow(),
                "subtotal": amount,
                "tax": Decimal("0"),
                "total": amount,
                "is_recurring": True,
                "notes": f"Subscription billing - {campaign_name}",
            })
            await self.invoices.add_item(
                invoice.id,
                description=f"{campaign_name} - {subscription.frequency} payment",
                quantity=1,
                unit_price=amount,
            )
            payment = await self.invoices.add_payment({
                "organization_id": subscription.organization_id,
                "member_id": subscription.member_id,
                "invoice_id": invoice.id,
                "amount": amount,
                "payment_method": "card",
                "processor": processor_type,
                "processor_transaction_id": charge.reference_id,
                "notes": f"Auto-charge for {campaign_name}",
            })
            applied = await self.apply_billing_cycle(subscription, billed_date)
            await self.members.refresh_balance(subscription.member_id)
            await self.session.commit()
        except Exception as e:
            await self._fail(charge.reference_id, e, subscription_id=subscription.id)

        await self.session.refresh(invoice)
        await self.session.refresh(subscription)
        return SubscriptionChargeRecord(invoice=invoice, payment=payment, cycle_applied=applied)

    async def apply_billing_cycle(self, subscription: Subscription, billed_date: date) -> bool:
        """
        Advance the subscription past ``billed_date``.

        Guarded on the stored anchor: once the cycle for ``billed_date`` has
        been applied, repeating the call changes nothing and returns False.
        Does not commit.
        """
        outcome = next_cycle(
            payment_type=subscription.payment_type,
            frequency=subscription.frequency,
            next_billing_date=billed_date,
            installments_paid=subscription.installments_paid,
            installments_total=subscription.installments_total,
        )
        applied = await self.subscriptions.apply_cycle(subscription.id, billed_date, outcome.as_values())
        if not applied:
            logger.warning(
                "Billing cycle already applied; subscription left unchanged",
                extra={"subscription_id": subscription.id},
            )
        return applied

    async def record_invoice_payment(
        self,
        *,
        invoice: Invoice,
        amount: Decimal,
        payment_method: str,
        processor: Optional[str] = None,
        processor_transaction_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> InvoicePaymentRecord:
        if invoice.status == InvoiceStatus.VOID.value:
            raise InvalidRequest("Cannot record a payment against a void invoice")

        try:
            payment = await self.invoices.add_payment({
                "organization_id": invoice.organization_id,
                "member_id": invoice.member_id,
                "invoice_id": invoice.id,
                "amount": amount,
                "payment_method": payment_method,
                "processor": processor,
                "processor_transaction_id": processor_transaction_id,
                "notes": notes,
            })
            total_paid = await self.invoices.total_paid(invoice.id)
            status = settle_status(total_paid, Decimal(str(invoice.total)), invoice.status)
            invoice.status = status
            if status == InvoiceStatus.PAID.value and invoice.paid_at is None:
                invoice.paid_at = utcnow()
            await self.session.flush()
            await self.members.refresh_balance(invoice.member_id)
            await self.session.commit()
        except Exception as e:
            await self._fail(processor_transaction_id, e)

        return InvoicePaymentRecord(payment=payment, status=status, total_paid=total_paid)

    async def _fail(self, reference_id: Optional[str], cause: Exception, **context) -> None:
        await self.session.rollback()
        logger.error(
            f"Ledger write failed for charge {reference_id}; manual reconciliation required",
            exc_info=cause,
            extra=context,
        )
        raise ReconciliationError(reference_id, cause=cause) from cause
