# shulgenius/db/repositories/campaign_repository.py
from decimal import Decimal
from typing import Optional
from uuid import UUID
from sqlalchemy import select, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.db.models.campaign import Campaign
from shulgenius.db.repositories.base import BaseRepository


class CampaignRepository(BaseRepository[Campaign]):
    """Repository for Campaign operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Campaign, session)

    async def get_with_org_check(self, campaign_id: UUID, organization_id: UUID) -> Optional[Campaign]:
        result = await self.session.execute(
            select(Campaign).where(
                and_(
                    Campaign.id == campaign_id,
                    Campaign.organization_id == organization_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def add_to_raised(self, campaign_id: UUID, amount: Decimal) -> int:
        """Atomically increment the running total; returns rows touched"""
        result = await self.session.execute(
            update(Campaign)
            .where(Campaign.id == campaign_id)
            .values(raised_amount=Campaign.raised_amount + amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
