# shulgenius/services/card_vault_service.py
"""
Saved-card vault backed by the Cardknox recurring API.

A card is tokenised (``cc:save``) unless the browser already produced an
iFields token, attached to the member's gateway customer (created on first
use) and stored locally tagged with the processor that issued it.
"""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.constants import PARTIAL_FAILURE_MESSAGE
from shulgenius.core.exceptions import EntityNotFound, PaymentDetailsMissing
from shulgenius.core.logging import logger
from shulgenius.db.models.member import Member
from shulgenius.db.repositories.member_repository import MemberRepository, PaymentMethodRepository
from shulgenius.schemas.functions import CardknoxCustomerRequest
from shulgenius.services.cardknox_gateway import CardDetails, CardknoxGateway
from shulgenius.services.processor_resolver import ProcessorResolver, ResolvedProcessor


@dataclass(frozen=True)
class VaultOutcome:
    success: bool
    message: Optional[str] = None
    customer_id: Optional[str] = None
    payment_method_id: Optional[UUID] = None
    card_brand: Optional[str] = None
    last_four: Optional[str] = None


def _parse_exp(exp: Optional[str]):
    """MMYY -> (month, four-digit year)"""
    if not exp or len(exp) != 4 or not exp.isdigit():
        return None, None
    return int(exp[:2]), 2000 + int(exp[2:])


class CardVaultService:

    def __init__(self, session: AsyncSession, gateway: CardknoxGateway):
        self.session = session
        self.gateway = gateway
        self.members = MemberRepository(session)
        self.payment_methods = PaymentMethodRepository(session)
        self.resolver = ProcessorResolver(session)

    async def _resolve(self, request: CardknoxCustomerRequest) -> ResolvedProcessor:
        if request.processor_id is not None:
            return await self.resolver.resolve_by_id(request.organization_id, request.processor_id)
        return await self.resolver.resolve(request.organization_id)

    async def _member(self, request: CardknoxCustomerRequest) -> Member:
        member = await self.members.get_with_org_check(request.member_id, request.organization_id)
        if member is None:
            raise EntityNotFound("Member")
        return member

    async def create_customer(self, request: CardknoxCustomerRequest) -> VaultOutcome:
        member = await self._member(request)
        resolved = await self._resolve(request)

        result = await self.gateway.create_customer(
            resolved.credentials,
            customer_number=str(member.id),
            email=request.member_email or member.email,
            name=request.member_name or member.full_name,
        )
        if not result.ok:
            return VaultOutcome(success=False, message=result.error)
        return VaultOutcome(success=True, customer_id=result.data.get("CustomerId"))

    async def save_card(self, request: CardknoxCustomerRequest) -> VaultOutcome:
        member = await self._member(request)
        resolved = await self._resolve(request)

        token = request.card_token
        masked = None
        brand = None
        if not token:
            if not request.card_number:
                raise PaymentDetailsMissing("Card token or card number is required")
            saved = await self.gateway.save_card(
                resolved.credentials,
                CardDetails(
                    number=request.card_number,
                    exp=request.card_exp,
                    cvc=request.card_cvc,
                    zip_code=request.zip_code,
                ),
            )
            if not saved.approved:
                return VaultOutcome(success=False, message=saved.decline_reason or "Failed to tokenize card")
            token = saved.reference_id
            masked = saved.raw.get("xMaskedCardNumber")
            brand = saved.raw.get("xCardType")

        customer_id = await self.payment_methods.find_customer_id(member.id, resolved.processor_id)
        if customer_id is None:
            customer = await self.gateway.create_customer(
                resolved.credentials,
                customer_number=str(member.id),
                email=request.member_email or member.email,
                name=request.member_name or member.full_name,
            )
            if not customer.ok:
                return VaultOutcome(success=False, message=customer.error)
            customer_id = customer.data.get("CustomerId")

        attached = await self.gateway.create_payment_method(
            resolved.credentials,
            customer_id=customer_id,
            token=token,
            exp=request.card_exp,
            zip_code=request.zip_code,
            set_as_default=request.is_default,
        )
        if not attached.ok:
            return VaultOutcome(success=False, message=attached.error)

        brand = attached.data.get("CardType") or brand or "Unknown"
        masked = attached.data.get("MaskedCardNumber") or masked or request.card_number or ""
        last_four = masked[-4:] if len(masked) >= 4 else "****"
        exp_month, exp_year = _parse_exp(request.card_exp)

        try:
            if request.is_default:
                await self.payment_methods.clear_default(member.id)
            method = await self.payment_methods.create({
                "member_id": member.id,
                "processor": resolved.processor_type,
                "processor_id": resolved.processor_id,
                "processor_payment_method_id": attached.data.get("PaymentMethodId") or token,
                "processor_customer_id": customer_id,
                "card_brand": brand,
                "card_last_four": last_four,
                "exp_month": exp_month,
                "exp_year": exp_year,
                "nickname": request.nickname,
                "is_default": request.is_default,
            })
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.exception(
                "Card vaulted at gateway but local save failed",
                extra={"member_id": member.id},
            )
            return VaultOutcome(
                success=True,
                message=PARTIAL_FAILURE_MESSAGE,
                customer_id=customer_id,
                card_brand=brand,
                last_four=last_four,
            )

        logger.info("Saved card", extra={"member_id": member.id})
        return VaultOutcome(
            success=True,
            customer_id=customer_id,
            payment_method_id=method.id,
            card_brand=brand,
            last_four=last_four,
        )
