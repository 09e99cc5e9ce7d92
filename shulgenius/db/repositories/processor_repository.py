# shulgenius/db/repositories/processor_repository.py
from typing import Optional, List
from uuid import UUID
from sqlalchemy import select, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.db.models.organization import OrganizationSettings
from shulgenius.db.models.processor import PaymentProcessor, CampaignProcessor
from shulgenius.db.repositories.base import BaseRepository


class ProcessorRepository(BaseRepository[PaymentProcessor]):
    """Processor registry and campaign bindings"""

    def __init__(self, session: AsyncSession):
        super().__init__(PaymentProcessor, session)

    async def get_for_organization(self, processor_id: UUID, organization_id: UUID) -> Optional[PaymentProcessor]:
        result = await self.session.execute(
            select(PaymentProcessor).where(
                and_(
                    PaymentProcessor.id == processor_id,
                    PaymentProcessor.organization_id == organization_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def list_active(self, organization_id: UUID) -> List[PaymentProcessor]:
        result = await self.session.execute(
            select(PaymentProcessor)
            .where(PaymentProcessor.organization_id == organization_id)
            .where(PaymentProcessor.is_active.is_(True))
            .order_by(PaymentProcessor.created_at)
        )
        return list(result.scalars().all())

    async def get_default(self, organization_id: UUID) -> Optional[PaymentProcessor]:
        result = await self.session.execute(
            select(PaymentProcessor)
            .where(PaymentProcessor.organization_id == organization_id)
            .where(PaymentProcessor.is_default.is_(True))
            .where(PaymentProcessor.is_active.is_(True))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_legacy_settings(self, organization_id: UUID) -> Optional[OrganizationSettings]:
        result = await self.session.execute(
            select(OrganizationSettings).where(OrganizationSettings.organization_id == organization_id)
        )
        return result.scalar_one_or_none()

    async def set_default(self, organization_id: UUID, processor_id: UUID) -> None:
        """Demote every sibling, then promote the target"""
        await self.session.execute(
            update(PaymentProcessor)
            .where(PaymentProcessor.organization_id == organization_id)
            .where(PaymentProcessor.id != processor_id)
            .values(is_default=False)
        )
        await self.session.execute(
            update(PaymentProcessor)
            .where(PaymentProcessor.id == processor_id)
            .values(is_default=True)
        )
        await self.session.flush()

    async def deactivate(self, processor_id: UUID) -> None:
        await self.session.execute(
            update(PaymentProcessor)
            .where(PaymentProcessor.id == processor_id)
            .values(is_active=False, is_default=False)
        )
        await self.session.flush()

    # Campaign bindings

    async def get_primary_for_campaign(self, campaign_id: UUID) -> Optional[PaymentProcessor]:
        result = await self.session.execute(
            select(PaymentProcessor)
            .join(CampaignProcessor, CampaignProcessor.processor_id == PaymentProcessor.id)
            .where(CampaignProcessor.campaign_id == campaign_id)
            .where(CampaignProcessor.is_primary.is_(True))
            .where(PaymentProcessor.is_active.is_(True))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_bindings(self, campaign_id: UUID) -> List[CampaignProcessor]:
        result = await self.session.execute(
            select(CampaignProcessor)
            .where(CampaignProcessor.campaign_id == campaign_id)
            .order_by(CampaignProcessor.created_at)
        )
        return list(result.scalars().all())

    async def get_binding(self, campaign_id: UUID, processor_id: UUID) -> Optional[CampaignProcessor]:
        result = await self.session.execute(
            select(CampaignProcessor).where(
                and_(
                    CampaignProcessor.campaign_id == campaign_id,
                    CampaignProcessor.processor_id == processor_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def processor_ids_for_campaign(self, campaign_id: UUID) -> List[UUID]:
        result = await self.session.execute(
            select(CampaignProcessor.processor_id).where(CampaignProcessor.campaign_id == campaign_id)
        )
        return list(result.scalars().all())

    async def bind(self, campaign_id: UUID, processor_id: UUID, is_primary: bool = False) -> CampaignProcessor:
        if is_primary:
            await self._demote_primaries(campaign_id)
        binding = CampaignProcessor(campaign_id=campaign_id, processor_id=processor_id, is_primary=is_primary)
        self.session.add(binding)
        await self.session.flush()
        return binding

    async def unbind(self, binding: CampaignProcessor) -> None:
        await self.session.delete(binding)
        await self.session.flush()

    async def set_primary(self, campaign_id: UUID, processor_id: UUID) -> None:
        await self._demote_primaries(campaign_id, keep=processor_id)
        await self.session.execute(
            update(CampaignProcessor)
            .where(CampaignProcessor.campaign_id == campaign_id)
            .where(CampaignProcessor.processor_id == processor_id)
            .values(is_primary=True)
        )
        await self.session.flush()

    async def _demote_primaries(self, campaign_id: UUID, keep: Optional[UUID] = None) -> None:
        stmt = (
            update(CampaignProcessor)
            .where(CampaignProcessor.campaign_id == campaign_id)
            .values(is_primary=False)
        )
        if keep is not None:
            stmt = stmt.where(CampaignProcessor.processor_id != keep)
        await self.session.execute(stmt)
