# shulgenius/services/registry_service.py
"""
Administration of processors, campaign bindings and saved cards.

Every default/primary change runs demote-then-promote inside one
transaction so the partial unique indexes never see two flagged rows.
"""
from typing import List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.exceptions import EntityNotFound, InvalidRequest, ProcessorNotFound
from shulgenius.core.logging import logger
from shulgenius.db.models.campaign import Campaign
from shulgenius.db.models.member import PaymentMethod
from shulgenius.db.models.processor import CampaignProcessor, PaymentProcessor
from shulgenius.db.repositories.campaign_repository import CampaignRepository
from shulgenius.db.repositories.member_repository import MemberRepository, PaymentMethodRepository
from shulgenius.db.repositories.processor_repository import ProcessorRepository
from shulgenius.schemas.processor import ProcessorCreate
from shulgenius.services.credentials import parse_credentials
from shulgenius.services.processor_resolver import ProcessorResolver


class RegistryService:

    def __init__(self, session: AsyncSession):
        self.session = session
        self.processors = ProcessorRepository(session)
        self.campaigns = CampaignRepository(session)
        self.members = MemberRepository(session)
        self.payment_methods = PaymentMethodRepository(session)
        self.resolver = ProcessorResolver(session)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # Processors

    async def list_processors(self, organization_id: UUID) -> List[PaymentProcessor]:
        return await self.processors.list_active(organization_id)

    async def create_processor(self, organization_id: UUID, data: ProcessorCreate) -> PaymentProcessor:
        credentials = parse_credentials(data.processor_type.value, data.credentials)
        processor = await self.processors.create({
            "organization_id": organization_id,
            "processor_type": data.processor_type.value,
            "name": data.name,
            "credentials": credentials.model_dump(exclude_none=True, exclude={"kind"}),
            "is_default": False,
            "is_active": True,
        })
        if data.is_default:
            await self.processors.set_default(organization_id, processor.id)
        await self._commit()
        await self.session.refresh(processor)
        logger.info(f"Processor {processor.name} registered", extra={"organization_id": organization_id})
        return processor

    async def _active_processor(self, organization_id: UUID, processor_id: UUID) -> PaymentProcessor:
        processor = await self.processors.get_for_organization(processor_id, organization_id)
        if processor is None or not processor.is_active:
            raise ProcessorNotFound()
        return processor

    async def set_default_processor(self, organization_id: UUID, processor_id: UUID) -> PaymentProcessor:
        processor = await self._active_processor(organization_id, processor_id)
        await self.processors.set_default(organization_id, processor.id)
        await self._commit()
        await self.session.refresh(processor)
        return processor

    async def deactivate_processor(self, organization_id: UUID, processor_id: UUID) -> PaymentProcessor:
        processor = await self._active_processor(organization_id, processor_id)
        await self.processors.deactivate(processor.id)
        await self._commit()
        await self.session.refresh(processor)
        return processor

    # Campaign bindings

    async def _campaign(self, organization_id: UUID, campaign_id: UUID) -> Campaign:
        campaign = await self.campaigns.get_with_org_check(campaign_id, organization_id)
        if campaign is None:
            raise EntityNotFound("Campaign")
        return campaign

    async def list_bindings(self, organization_id: UUID, campaign_id: UUID) -> List[CampaignProcessor]:
        await self._campaign(organization_id, campaign_id)
        return await self.processors.list_bindings(campaign_id)

    async def campaign_processor_ids(self, organization_id: UUID, campaign_id: UUID) -> List[UUID]:
        await self._campaign(organization_id, campaign_id)
        return await self.resolver.campaign_processor_ids(campaign_id)

    async def bind(
        self,
        organization_id: UUID,
        campaign_id: UUID,
        processor_id: UUID,
        is_primary: bool = False,
    ) -> CampaignProcessor:
        await self._campaign(organization_id, campaign_id)
        await self._active_processor(organization_id, processor_id)
        if await self.processors.get_binding(campaign_id, processor_id) is not None:
            raise InvalidRequest("Processor is already bound to this campaign")

        binding = await self.processors.bind(campaign_id, processor_id, is_primary=is_primary)
        await self._commit()
        await self.session.refresh(binding)
        return binding

    async def unbind(self, organization_id: UUID, campaign_id: UUID, processor_id: UUID) -> None:
        await self._campaign(organization_id, campaign_id)
        binding = await self.processors.get_binding(campaign_id, processor_id)
        if binding is None:
            raise EntityNotFound("Campaign processor")
        await self.processors.unbind(binding)
        await self._commit()

    async def set_primary(self, organization_id: UUID, campaign_id: UUID, processor_id: UUID) -> CampaignProcessor:
        await self._campaign(organization_id, campaign_id)
        binding = await self.processors.get_binding(campaign_id, processor_id)
        if binding is None:
            raise EntityNotFound("Campaign processor")
        await self.processors.set_primary(campaign_id, processor_id)
        await self._commit()
        await self.session.refresh(binding)
        return binding

    # Saved cards

    async def _member_id(self, organization_id: UUID, member_id: UUID) -> UUID:
        member = await self.members.get_with_org_check(member_id, organization_id)
        if member is None:
            raise EntityNotFound("Member")
        return member.id

    async def list_payment_methods(self, organization_id: UUID, member_id: UUID) -> List[PaymentMethod]:
        await self._member_id(organization_id, member_id)
        return await self.payment_methods.list_for_member(member_id)

    async def selectable_payment_methods(
        self,
        organization_id: UUID,
        member_id: UUID,
        campaign_id: UUID,
    ) -> List[PaymentMethod]:
        await self._member_id(organization_id, member_id)
        await self._campaign(organization_id, campaign_id)
        return await self.resolver.selectable_payment_methods(member_id, organization_id, campaign_id)

    async def set_default_payment_method(
        self,
        organization_id: UUID,
        member_id: UUID,
        payment_method_id: UUID,
    ) -> PaymentMethod:
        await self._member_id(organization_id, member_id)
        method = await self.payment_methods.get_for_member(payment_method_id, member_id)
        if method is None:
            raise EntityNotFound("Payment method")
        await self.payment_methods.set_default(member_id, method.id)
        await self._commit()
        await self.session.refresh(method)
        return method
