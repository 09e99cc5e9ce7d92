# shulgenius/services/subscription_service.py
"""
Subscription setup and auto-charge billing.

``bill`` charges the linked saved card once and hands an approval to the
ledger, which writes the paid invoice and advances the billing cycle in one
transaction.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.constants import (
    PARTIAL_FAILURE_MESSAGE,
    BillingMethod,
    PaymentType,
    ReferencePrefix,
)
from shulgenius.core.exceptions import (
    EntityNotFound,
    InvalidRequest,
    ReconciliationError,
    SubscriptionInactive,
)
from shulgenius.core.logging import logger
from shulgenius.db.models.subscription import Subscription
from shulgenius.db.repositories.campaign_repository import CampaignRepository
from shulgenius.db.repositories.member_repository import MemberRepository, PaymentMethodRepository
from shulgenius.db.repositories.subscription_repository import SubscriptionRepository
from shulgenius.schemas.billing import SubscriptionCreate
from shulgenius.services.cardknox_gateway import CardknoxGateway
from shulgenius.services.ledger import LedgerReconciler
from shulgenius.services.processor_resolver import ProcessorResolver
from shulgenius.services.references import generate_reference


@dataclass(frozen=True)
class BillingOutcome:
    success: bool
    transaction_id: Optional[str] = None
    invoice_id: Optional[UUID] = None
    invoice_number: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    decline_reason: Optional[str] = None
    result_code: Optional[str] = None


class SubscriptionService:

    def __init__(self, session: AsyncSession, gateway: Optional[CardknoxGateway] = None):
        self.session = session
        self.gateway = gateway or CardknoxGateway()
        self.subscriptions = SubscriptionRepository(session)
        self.members = MemberRepository(session)
        self.payment_methods = PaymentMethodRepository(session)
        self.campaigns = CampaignRepository(session)
        self.resolver = ProcessorResolver(session)
        self.ledger = LedgerReconciler(session)

    async def create(self, organization_id: UUID, data: SubscriptionCreate) -> Subscription:
        member = await self.members.get_with_org_check(data.member_id, organization_id)
        if member is None:
            raise EntityNotFound("Member")

        if data.campaign_id is not None:
            campaign = await self.campaigns.get_with_org_check(data.campaign_id, organization_id)
            if campaign is None:
                raise EntityNotFound("Campaign")

        payment_method_id = None
        if data.billing_method == BillingMethod.AUTO_CC:
            if data.payment_method_id is not None:
                method = await self.payment_methods.get_for_member(data.payment_method_id, member.id)
                if method is None:
                    raise EntityNotFound("Payment method")
            else:
                method = await self.payment_methods.get_default(member.id)
                if method is None:
                    raise InvalidRequest("Automatic card billing requires a saved payment method")
            payment_method_id = method.id

        start = data.start_date or date.today()
        installments = data.payment_type == PaymentType.INSTALLMENTS

        subscription = await self.subscriptions.create({
            "organization_id": organization_id,
            "member_id": member.id,
            "campaign_id": data.campaign_id,
            "payment_method_id": payment_method_id,
            "total_amount": data.total_amount,
            "payment_type": data.payment_type.value,
            "billing_method": data.billing_method.value,
            "frequency": data.frequency.value,
            "installments_total": data.installments_total if installments else None,
            "installments_paid": 0 if installments else None,
            "start_date": start,
            "next_billing_date": start,
            "is_active": True,
            "notes": data.notes,
        })
        await self.session.commit()
        logger.info("Subscription created", extra={"subscription_id": subscription.id, "member_id": member.id})
        return subscription

    async def deactivate(self, organization_id: UUID, subscription_id: UUID) -> Subscription:
        subscription = await self.subscriptions.get(subscription_id)
        if subscription is None or subscription.organization_id != organization_id:
            raise EntityNotFound("Subscription")
        await self.subscriptions.deactivate(subscription_id)
        await self.session.commit()
        await self.session.refresh(subscription)
        return subscription

    async def bill(
        self,
        *,
        subscription_id: UUID,
        member_id: UUID,
        organization_id: UUID,
        amount: Decimal,
        description: Optional[str] = None,
    ) -> BillingOutcome:
        subscription = await self.subscriptions.get(subscription_id)
        if (
            subscription is None
            or subscription.organization_id != organization_id
            or subscription.member_id != member_id
        ):
            raise EntityNotFound("Subscription")
        if not subscription.is_active:
            raise SubscriptionInactive()
        if subscription.payment_method_id is None:
            raise InvalidRequest("No payment method linked to this subscription")

        method = await self.payment_methods.get(subscription.payment_method_id)
        if method is None:
            raise InvalidRequest("No payment method linked to this subscription")

        resolved = await self.resolver.resolve_for_payment_method(
            method, organization_id, subscription.campaign_id
        )
        processor_type = resolved.processor_type if method.processor_id else (method.processor or resolved.processor_type)

        member = await self.members.get(member_id)
        campaign_name = "Subscription"
        if subscription.campaign_id is not None:
            campaign = await self.campaigns.get(subscription.campaign_id)
            if campaign is not None:
                campaign_name = campaign.name

        invoice_number = generate_reference(ReferencePrefix.SUBSCRIPTION)
        logger.info(
            f"Billing subscription {subscription.id} as {invoice_number}",
            extra={"subscription_id": subscription.id, "member_id": member_id, "request_id": invoice_number},
        )

        charge = await self.gateway.sale(
            resolved.credentials,
            amount,
            invoice=invoice_number,
            description=description or f"{campaign_name} - Subscription payment",
            token=method.processor_payment_method_id,
            email=member.email if member else None,
        )
        if not charge.approved:
            return BillingOutcome(
                success=False,
                error="Payment declined",
                decline_reason=charge.decline_reason,
                result_code=charge.result_code,
            )

        try:
            record = await self.ledger.record_subscription_charge(
                subscription=subscription,
                amount=amount,
                charge=charge,
                processor_type=processor_type,
                invoice_number=invoice_number,
                campaign_name=campaign_name,
            )
        except ReconciliationError:
            return BillingOutcome(
                success=True,
                transaction_id=charge.reference_id,
                invoice_number=invoice_number,
                message=PARTIAL_FAILURE_MESSAGE,
            )

        return BillingOutcome(
            success=True,
            transaction_id=charge.reference_id,
            invoice_id=record.invoice.id,
            invoice_number=record.invoice.invoice_number,
            message="Payment processed successfully",
        )
