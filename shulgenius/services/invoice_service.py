# shulgenius/services/invoice_service.py
from decimal import Decimal
from typing import List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.constants import InvoiceStatus, ReferencePrefix
from shulgenius.core.exceptions import EntityNotFound
from shulgenius.core.logging import logger
from shulgenius.db.models.invoice import Invoice, Payment
from shulgenius.db.repositories.campaign_repository import CampaignRepository
from shulgenius.db.repositories.invoice_repository import InvoiceRepository
from shulgenius.db.repositories.member_repository import MemberRepository
from shulgenius.schemas.billing import InvoiceCreate, InvoicePaymentCreate
from shulgenius.services.ledger import InvoicePaymentRecord, LedgerReconciler
from shulgenius.services.references import generate_reference


class InvoiceService:
    """Manually issued invoices and payments recorded against them"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.invoices = InvoiceRepository(session)
        self.members = MemberRepository(session)
        self.campaigns = CampaignRepository(session)
        self.ledger = LedgerReconciler(session)

    async def get(self, organization_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = await self.invoices.get_with_org_check(invoice_id, organization_id)
        if invoice is None:
            raise EntityNotFound("Invoice")
        return invoice

    async def list_payments(self, organization_id: UUID, invoice_id: UUID) -> List[Payment]:
        invoice = await self.get(organization_id, invoice_id)
        return await self.invoices.list_payments(invoice.id)

    async def create(self, organization_id: UUID, data: InvoiceCreate) -> Invoice:
        member = await self.members.get_with_org_check(data.member_id, organization_id)
        if member is None:
            raise EntityNotFound("Member")
        if data.campaign_id is not None:
            if await self.campaigns.get_with_org_check(data.campaign_id, organization_id) is None:
                raise EntityNotFound("Campaign")

        total = sum((item.unit_price * item.quantity for item in data.items), Decimal("0"))
        try:
            invoice = await self.invoices.create({
                "organization_id": organization_id,
                "member_id": member.id,
                "campaign_id": data.campaign_id,
                "invoice_number": generate_reference(ReferencePrefix.INVOICE),
                "status": (InvoiceStatus.SENT if data.send else InvoiceStatus.DRAFT).value,
                "subtotal": total,
                "tax": Decimal("0"),
                "total": total,
                "due_date": data.due_date,
                "notes": data.notes,
            })
            for item in data.items:
                await self.invoices.add_item(invoice.id, item.description, item.quantity, item.unit_price)
            await self.members.refresh_balance(member.id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.session.refresh(invoice)
        logger.info(f"Invoice {invoice.invoice_number} created", extra={"member_id": member.id})
        return invoice

    async def record_payment(
        self,
        organization_id: UUID,
        invoice_id: UUID,
        data: InvoicePaymentCreate,
    ) -> InvoicePaymentRecord:
        invoice = await self.get(organization_id, invoice_id)
        return await self.ledger.record_invoice_payment(
            invoice=invoice,
            amount=data.amount,
            payment_method=data.payment_method,
            processor=data.processor,
            processor_transaction_id=data.processor_transaction_id,
            notes=data.notes,
        )
