# shulgenius/services/donation_service.py
"""Public donation checkout: resolve, charge once, record."""
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.constants import PARTIAL_FAILURE_MESSAGE, ReferencePrefix
from shulgenius.core.exceptions import EntityNotFound, ReconciliationError
from shulgenius.core.logging import logger
from shulgenius.db.models.donation import Donation
from shulgenius.db.models.member import PaymentMethod
from shulgenius.db.repositories.campaign_repository import CampaignRepository
from shulgenius.db.repositories.donation_repository import DonationRepository
from shulgenius.db.repositories.member_repository import MemberRepository, PaymentMethodRepository
from shulgenius.schemas.functions import DonationRequest
from shulgenius.services.cardknox_gateway import CardDetails, CardknoxGateway
from shulgenius.services.ledger import LedgerReconciler
from shulgenius.services.processor_resolver import ProcessorResolver
from shulgenius.services.references import generate_reference


@dataclass(frozen=True)
class DonationOutcome:
    success: bool
    transaction_id: Optional[str] = None
    donation_id: Optional[UUID] = None
    message: Optional[str] = None
    error: Optional[str] = None


class DonationService:

    def __init__(self, session: AsyncSession, gateway: Optional[CardknoxGateway] = None):
        self.gateway = gateway or CardknoxGateway()
        self.campaigns = CampaignRepository(session)
        self.donations = DonationRepository(session)
        self.members = MemberRepository(session)
        self.payment_methods = PaymentMethodRepository(session)
        self.resolver = ProcessorResolver(session)
        self.ledger = LedgerReconciler(session)

    async def process(self, request: DonationRequest) -> DonationOutcome:
        campaign = await self.campaigns.get_with_org_check(request.campaign_id, request.organization_id)
        if campaign is None:
            raise EntityNotFound("Campaign")

        if request.member_id is not None:
            if await self.members.get_with_org_check(request.member_id, request.organization_id) is None:
                raise EntityNotFound("Member")

        token = request.card_token
        card = None
        if request.payment_method_id is not None:
            method = await self._payment_method(request)
            resolved = await self.resolver.resolve_for_payment_method(
                method, request.organization_id, request.campaign_id
            )
            token = method.processor_payment_method_id
            processor_type = method.processor or resolved.processor_type
        else:
            resolved = await self.resolver.resolve(request.organization_id, request.campaign_id)
            processor_type = resolved.processor_type
            if request.card_number:
                card = CardDetails(
                    number=request.card_number,
                    exp=request.card_exp,
                    cvc=request.card_cvc,
                    zip_code=request.zip_code,
                )

        reference = generate_reference(ReferencePrefix.DONATION)
        logger.info(
            f"Processing donation {reference}",
            extra={
                "organization_id": request.organization_id,
                "campaign_id": request.campaign_id,
                "request_id": reference,
            },
        )

        charge = await self.gateway.sale(
            resolved.credentials,
            request.amount,
            invoice=reference,
            description=f"Donation to {campaign.name}",
            token=token,
            card=card,
            email=request.donor_email,
        )
        if not charge.approved:
            return DonationOutcome(success=False, error=charge.decline_reason)

        try:
            donation = await self.ledger.record_donation(
                organization_id=request.organization_id,
                campaign_id=request.campaign_id,
                amount=request.amount,
                charge=charge,
                processor_type=processor_type,
                member_id=request.member_id,
                donor_name=request.donor_name,
                donor_email=request.donor_email,
                is_anonymous=request.is_anonymous,
                notes=request.notes,
            )
        except ReconciliationError:
            return DonationOutcome(
                success=True,
                transaction_id=charge.reference_id,
                message=PARTIAL_FAILURE_MESSAGE,
            )

        return DonationOutcome(
            success=True,
            transaction_id=charge.reference_id,
            donation_id=donation.id,
            message="Donation processed successfully",
        )

    async def _payment_method(self, request: DonationRequest) -> PaymentMethod:
        """Saved card owned by a member of the requesting organization"""
        method = await self.payment_methods.get(request.payment_method_id)
        if method is None:
            raise EntityNotFound("Payment method")
        if request.member_id is not None and method.member_id != request.member_id:
            raise EntityNotFound("Payment method")
        if await self.members.get_with_org_check(method.member_id, request.organization_id) is None:
            raise EntityNotFound("Payment method")
        return method

    async def list_for_campaign(self, organization_id: UUID, campaign_id: UUID) -> List[Donation]:
        """Newest first"""
        if await self.campaigns.get_with_org_check(campaign_id, organization_id) is None:
            raise EntityNotFound("Campaign")
        return await self.donations.list_for_campaign(campaign_id)
