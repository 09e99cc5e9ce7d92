# shulgenius/services/processor_resolver.py
"""
Decides which gateway credentials a charge uses.

Precedence for ``resolve``:

1. the campaign's primary bound processor, if its credentials carry a
   transaction key;
2. the organization's legacy settings record (flat Cardknox key);
3. the organization's active default processor;

otherwise ``ProcessorNotConfigured``.
"""
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.constants import CredentialSource, ProcessorType
from shulgenius.core.exceptions import ProcessorNotConfigured, ProcessorNotFound
from shulgenius.core.logging import logger
from shulgenius.db.models.member import PaymentMethod
from shulgenius.db.models.processor import PaymentProcessor
from shulgenius.db.repositories.member_repository import PaymentMethodRepository
from shulgenius.db.repositories.processor_repository import ProcessorRepository
from shulgenius.services.credentials import CardknoxCredentials, ProcessorCredentials, parse_credentials


@dataclass(frozen=True)
class ResolvedProcessor:
    processor_id: Optional[UUID]  # None when credentials came from legacy settings
    processor_type: str
    credentials: ProcessorCredentials
    source: CredentialSource

    @property
    def transaction_key(self) -> str:
        return self.credentials.transaction_key


def _from_processor(processor: PaymentProcessor, source: CredentialSource) -> Optional[ResolvedProcessor]:
    credentials = parse_credentials(processor.processor_type, processor.credentials)
    if not credentials.is_chargeable:
        return None
    return ResolvedProcessor(
        processor_id=processor.id,
        processor_type=processor.processor_type,
        credentials=credentials,
        source=source,
    )


class ProcessorResolver:
    """Read-only credential resolution"""

    def __init__(self, session: AsyncSession):
        self.processors = ProcessorRepository(session)
        self.payment_methods = PaymentMethodRepository(session)

    async def resolve(self, organization_id: UUID, campaign_id: Optional[UUID] = None) -> ResolvedProcessor:
        if campaign_id is not None:
            primary = await self.processors.get_primary_for_campaign(campaign_id)
            if primary is not None:
                resolved = _from_processor(primary, CredentialSource.CAMPAIGN)
                if resolved is not None:
                    logger.info("Using campaign-specific processor", extra={"campaign_id": campaign_id})
                    return resolved

        legacy = await self.processors.get_legacy_settings(organization_id)
        if legacy is not None:
            credentials = CardknoxCredentials(
                transaction_key=legacy.cardknox_transaction_key,
                ifields_key=legacy.cardknox_ifields_key,
            )
            if credentials.is_chargeable:
                logger.info("Using legacy organization settings", extra={"organization_id": organization_id})
                return ResolvedProcessor(
                    processor_id=None,
                    processor_type=ProcessorType.CARDKNOX.value,
                    credentials=credentials,
                    source=CredentialSource.LEGACY_SETTINGS,
                )

        default = await self.processors.get_default(organization_id)
        if default is not None:
            resolved = _from_processor(default, CredentialSource.DEFAULT_PROCESSOR)
            if resolved is not None:
                logger.info("Using organization default processor", extra={"organization_id": organization_id})
                return resolved

        raise ProcessorNotConfigured()

    async def resolve_by_id(self, organization_id: UUID, processor_id: UUID) -> ResolvedProcessor:
        """Explicitly chosen processor; must belong to the organization and be active"""
        processor = await self.processors.get_for_organization(processor_id, organization_id)
        if processor is None or not processor.is_active:
            raise ProcessorNotFound()
        resolved = _from_processor(processor, CredentialSource.EXPLICIT)
        if resolved is None:
            raise ProcessorNotConfigured("Payment processor credentials not configured")
        return resolved

    async def resolve_for_payment_method(
        self,
        method: PaymentMethod,
        organization_id: UUID,
        campaign_id: Optional[UUID] = None,
    ) -> ResolvedProcessor:
        """
        A stored token is only valid on the account that issued it, so a
        method tagged with a processor is charged there. Legacy methods
        without a processor_id use the normal precedence.
        """
        if method.processor_id is None:
            return await self.resolve(organization_id, campaign_id)

        resolved = await self.resolve_by_id(organization_id, method.processor_id)
        return ResolvedProcessor(
            processor_id=resolved.processor_id,
            processor_type=resolved.processor_type,
            credentials=resolved.credentials,
            source=CredentialSource.PAYMENT_METHOD,
        )

    async def campaign_processor_ids(self, campaign_id: UUID) -> List[UUID]:
        return await self.processors.processor_ids_for_campaign(campaign_id)

    async def selectable_payment_methods(
        self,
        member_id: UUID,
        organization_id: UUID,
        campaign_id: Optional[UUID] = None,
    ) -> List[PaymentMethod]:
        """
        Saved cards usable for a charge to ``campaign_id``.

        Cards on a processor bound to the campaign qualify; with no bindings,
        cards on the organization default processor; with no default either,
        every card. Legacy cards (no processor_id) are always listed.
        """
        methods = await self.payment_methods.list_for_member(member_id)

        allowed: List[UUID] = []
        if campaign_id is not None:
            allowed = await self.processors.processor_ids_for_campaign(campaign_id)
        if not allowed:
            default = await self.processors.get_default(organization_id)
            if default is None:
                return methods
            allowed = [default.id]

        return [m for m in methods if m.processor_id is None or m.processor_id in allowed]
