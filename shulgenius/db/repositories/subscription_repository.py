# shulgenius/db/repositories/subscription_repository.py
from datetime import date
from typing import Optional
from uuid import UUID
from sqlalchemy import update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.db.models.subscription import Subscription
from shulgenius.db.repositories.base import BaseRepository


class SubscriptionRepository(BaseRepository[Subscription]):
    """Repository for Subscription operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Subscription, session)

    async def apply_cycle(self, subscription_id: UUID, billed_date: date, values: dict) -> bool:
        """
        Compare-and-swap the cycle update on the billed anchor date.

        Returns False when the cycle was already applied (the stored
        next_billing_date no longer equals ``billed_date``).
        """
        result = await self.session.execute(
            update(Subscription)
            .where(
                and_(
                    Subscription.id == subscription_id,
                    Subscription.next_billing_date == billed_date,
                    Subscription.is_active.is_(True),
                )
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def deactivate(self, subscription_id: UUID) -> Optional[Subscription]:
        return await self.update(subscription_id, {"is_active": False})
