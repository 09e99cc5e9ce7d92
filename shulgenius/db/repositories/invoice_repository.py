# shulgenius/db/repositories/invoice_repository.py
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.db.models.invoice import Invoice, InvoiceItem, Payment
from shulgenius.db.repositories.base import BaseRepository


class InvoiceRepository(BaseRepository[Invoice]):
    """Invoices, their line items and the payments against them"""

    def __init__(self, session: AsyncSession):
        super().__init__(Invoice, session)

    async def get_with_org_check(self, invoice_id: UUID, organization_id: UUID) -> Optional[Invoice]:
        result = await self.session.execute(
            select(Invoice).where(
                and_(
                    Invoice.id == invoice_id,
                    Invoice.organization_id == organization_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def add_item(self, invoice_id: UUID, description: str, quantity: int, unit_price: Decimal) -> InvoiceItem:
        item = InvoiceItem(
            invoice_id=invoice_id,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
            total=unit_price * quantity,
        )
        self.session.add(item)
        await self.session.flush()
        return item

    async def add_payment(self, obj_in: dict) -> Payment:
        payment = Payment(**obj_in)
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def total_paid(self, invoice_id: UUID) -> Decimal:
        paid = await self.session.scalar(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.invoice_id == invoice_id)
        )
        return Decimal(str(paid))

    async def list_payments(self, invoice_id: UUID) -> List[Payment]:
        result = await self.session.execute(
            select(Payment).where(Payment.invoice_id == invoice_id).order_by(Payment.created_at)
        )
        return list(result.scalars().all())
