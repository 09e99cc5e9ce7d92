# shulgenius/db/repositories/donation_repository.py
from typing import List
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.db.models.donation import Donation
from shulgenius.db.repositories.base import BaseRepository


class DonationRepository(BaseRepository[Donation]):
    """Append-only donation records"""

    def __init__(self, session: AsyncSession):
        super().__init__(Donation, session)

    async def list_for_campaign(self, campaign_id: UUID) -> List[Donation]:
        result = await self.session.execute(
            select(Donation)
            .where(Donation.campaign_id == campaign_id)
            .order_by(Donation.created_at.desc())
        )
        return list(result.scalars().all())
