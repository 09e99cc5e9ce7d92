# shulgenius/db/repositories/member_repository.py
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from sqlalchemy import select, update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.constants import CARDKNOX_FAMILY, InvoiceStatus
from shulgenius.db.models.member import Member, PaymentMethod
from shulgenius.db.models.invoice import Invoice, Payment
from shulgenius.db.repositories.base import BaseRepository


class MemberRepository(BaseRepository[Member]):
    """Repository for Member operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Member, session)

    async def get_with_org_check(self, member_id: UUID, organization_id: UUID) -> Optional[Member]:
        result = await self.session.execute(
            select(Member).where(
                and_(
                    Member.id == member_id,
                    Member.organization_id == organization_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def refresh_balance(self, member_id: UUID) -> Decimal:
        """Recompute the denormalised balance as invoiced minus paid, floored at zero"""
        invoiced = await self.session.scalar(
            select(func.coalesce(func.sum(Invoice.total), 0))
            .where(Invoice.member_id == member_id)
            .where(Invoice.status != InvoiceStatus.VOID.value)
        )
        paid = await self.session.scalar(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.member_id == member_id)
        )
        balance = max(Decimal("0"), Decimal(str(invoiced)) - Decimal(str(paid)))
        await self.session.execute(
            update(Member)
            .where(Member.id == member_id)
            .values(balance=balance)
            .execution_options(synchronize_session=False)
        )
        return balance


class PaymentMethodRepository(BaseRepository[PaymentMethod]):
    """Saved cards per member"""

    def __init__(self, session: AsyncSession):
        super().__init__(PaymentMethod, session)

    async def list_for_member(self, member_id: UUID) -> List[PaymentMethod]:
        result = await self.session.execute(
            select(PaymentMethod)
            .where(PaymentMethod.member_id == member_id)
            .order_by(PaymentMethod.created_at)
        )
        return list(result.scalars().all())

    async def get_for_member(self, payment_method_id: UUID, member_id: UUID) -> Optional[PaymentMethod]:
        result = await self.session.execute(
            select(PaymentMethod).where(
                and_(
                    PaymentMethod.id == payment_method_id,
                    PaymentMethod.member_id == member_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_default(self, member_id: UUID) -> Optional[PaymentMethod]:
        result = await self.session.execute(
            select(PaymentMethod)
            .where(PaymentMethod.member_id == member_id)
            .where(PaymentMethod.is_default.is_(True))
        )
        return result.scalar_one_or_none()

    async def find_customer_id(self, member_id: UUID, processor_id: Optional[UUID]) -> Optional[str]:
        """
        Gateway customer id from the member's Cardknox-family cards on one
        processor account. Cards vaulted through legacy settings carry no
        processor id and share a customer.
        """
        if processor_id is None:
            account = PaymentMethod.processor_id.is_(None)
        else:
            account = PaymentMethod.processor_id == processor_id
        result = await self.session.execute(
            select(PaymentMethod.processor_customer_id)
            .where(PaymentMethod.member_id == member_id)
            .where(account)
            .where(PaymentMethod.processor.in_(CARDKNOX_FAMILY))
            .where(PaymentMethod.processor_customer_id.is_not(None))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def clear_default(self, member_id: UUID, keep: Optional[UUID] = None) -> None:
        stmt = (
            update(PaymentMethod)
            .where(PaymentMethod.member_id == member_id)
            .values(is_default=False)
        )
        if keep is not None:
            stmt = stmt.where(PaymentMethod.id != keep)
        await self.session.execute(stmt)

    async def set_default(self, member_id: UUID, payment_method_id: UUID) -> None:
        """Demote siblings then promote, inside the caller's transaction"""
        await self.clear_default(member_id, keep=payment_method_id)
        await self.session.execute(
            update(PaymentMethod)
            .where(PaymentMethod.id == payment_method_id)
            .values(is_default=True)
        )
        await self.session.flush()
