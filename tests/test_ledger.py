"""
Ledger reconciliation: every approved charge lands as one transaction.
"""
import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.exceptions import InvalidRequest, ReconciliationError
from shulgenius.db.models import Donation, Invoice, InvoiceItem, Payment
from shulgenius.db.repositories.campaign_repository import CampaignRepository
from shulgenius.schemas.billing import InvoiceCreate, InvoiceItemCreate, InvoicePaymentCreate
from shulgenius.services.cardknox_gateway import ChargeResult
from shulgenius.services.invoice_service import InvoiceService
from shulgenius.services.ledger import LedgerReconciler, settle_status
from tests.conftest import add_subscription

APPROVED = ChargeResult(approved=True, reference_id="REF-1", result_code="A")


async def count(session: AsyncSession, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


class TestSettleStatus:

    def test_paid_when_sum_reaches_total(self):
        assert settle_status(Decimal("100"), Decimal("100"), "sent") == "paid"
        assert settle_status(Decimal("120"), Decimal("100"), "sent") == "paid"

    def test_partial(self):
        assert settle_status(Decimal("99.99"), Decimal("100"), "sent") == "partially_paid"

    def test_nothing_paid_keeps_status(self):
        assert settle_status(Decimal("0"), Decimal("100"), "draft") == "draft"


@pytest.mark.asyncio
class TestRecordDonation:

    async def test_donation_increments_raised_amount(self, db_session: AsyncSession, organization, campaign):
        donation = await LedgerReconciler(db_session).record_donation(
            organization_id=organization.id,
            campaign_id=campaign.id,
            amount=Decimal("100.00"),
            charge=APPROVED,
            processor_type="cardknox",
            donor_name="Ruth",
        )

        await db_session.refresh(campaign)
        assert campaign.raised_amount == Decimal("500.00")
        assert donation.amount == Decimal("100.00")
        assert donation.campaign_id == campaign.id
        assert donation.processor_transaction_id == "REF-1"
        assert donation.payment_method == "card"

    async def test_anonymous_donor_name(self, db_session: AsyncSession, organization, campaign):
        donation = await LedgerReconciler(db_session).record_donation(
            organization_id=organization.id,
            campaign_id=campaign.id,
            amount=Decimal("18"),
            charge=APPROVED,
            processor_type="cardknox",
            is_anonymous=True,
        )
        assert donation.donor_name == "Anonymous"
        assert donation.is_anonymous is True

    async def test_failed_write_rolls_back_everything(
        self, db_session: AsyncSession, organization, campaign, monkeypatch
    ):
        async def broken(self, campaign_id, amount):
            raise RuntimeError("database went away")

        monkeypatch.setattr(CampaignRepository, "add_to_raised", broken)

        with pytest.raises(ReconciliationError) as exc:
            await LedgerReconciler(db_session).record_donation(
                organization_id=organization.id,
                campaign_id=campaign.id,
                amount=Decimal("100"),
                charge=APPROVED,
                processor_type="cardknox",
            )

        assert exc.value.reference_id == "REF-1"
        assert await count(db_session, Donation) == 0
        await db_session.refresh(campaign)
        assert campaign.raised_amount == Decimal("400.00")


@pytest.mark.asyncio
class TestRecordSubscriptionCharge:

    async def test_paid_invoice_and_cycle_advance(self, db_session: AsyncSession, member, saved_card, campaign):
        subscription = await add_subscription(db_session, member, saved_card, campaign)

        record = await LedgerReconciler(db_session).record_subscription_charge(
            subscription=subscription,
            amount=Decimal("50.00"),
            charge=APPROVED,
            processor_type="cardknox",
            invoice_number="SUB-TEST1",
            campaign_name=campaign.name,
        )

        assert record.cycle_applied is True
        assert record.invoice.status == "paid"
        assert record.invoice.paid_at is not None
        assert record.invoice.total == Decimal("50.00")
        assert record.invoice.invoice_number == "SUB-TEST1"
        assert [item.description for item in record.invoice.items] == ["Building Fund - monthly payment"]
        assert record.payment.processor_transaction_id == "REF-1"
        assert subscription.next_billing_date == date(2024, 2, 15)
        assert subscription.is_active is True

        await db_session.refresh(member)
        assert member.balance == Decimal("0.00")

    async def test_final_installment_deactivates(self, db_session: AsyncSession, member, saved_card):
        subscription = await add_subscription(
            db_session, member, saved_card,
            payment_type="installments", installments_total=3, installments_paid=2,
        )

        await LedgerReconciler(db_session).record_subscription_charge(
            subscription=subscription,
            amount=Decimal("50.00"),
            charge=APPROVED,
            processor_type="cardknox",
            invoice_number="SUB-TEST2",
            campaign_name="Subscription",
        )

        assert subscription.installments_paid == 3
        assert subscription.is_active is False

    async def test_second_to_last_installment_stays_active(self, db_session: AsyncSession, member, saved_card):
        subscription = await add_subscription(
            db_session, member, saved_card,
            payment_type="installments", installments_total=3, installments_paid=1,
        )

        await LedgerReconciler(db_session).record_subscription_charge(
            subscription=subscription,
            amount=Decimal("50.00"),
            charge=APPROVED,
            processor_type="cardknox",
            invoice_number="SUB-TEST3",
            campaign_name="Subscription",
        )

        assert subscription.installments_paid == 2
        assert subscription.is_active is True


@pytest.mark.asyncio
class TestApplyBillingCycle:

    async def test_repeat_for_same_cycle_is_noop(self, db_session: AsyncSession, member, saved_card):
        subscription = await add_subscription(db_session, member, saved_card)
        ledger = LedgerReconciler(db_session)

        assert await ledger.apply_billing_cycle(subscription, date(2024, 1, 15)) is True
        await db_session.commit()
        assert await ledger.apply_billing_cycle(subscription, date(2024, 1, 15)) is False
        await db_session.commit()

        await db_session.refresh(subscription)
        assert subscription.next_billing_date == date(2024, 2, 15)

    async def test_inactive_subscription_not_advanced(self, db_session: AsyncSession, member, saved_card):
        subscription = await add_subscription(db_session, member, saved_card, is_active=False)

        applied = await LedgerReconciler(db_session).apply_billing_cycle(subscription, date(2024, 1, 15))
        await db_session.commit()

        assert applied is False
        await db_session.refresh(subscription)
        assert subscription.next_billing_date == date(2024, 1, 15)


@pytest.mark.asyncio
class TestRecordInvoicePayment:

    async def _invoice(self, session: AsyncSession, organization, member) -> Invoice:
        return await InvoiceService(session).create(
            organization.id,
            InvoiceCreate(
                member_id=member.id,
                send=True,
                items=[
                    InvoiceItemCreate(description="Seats", quantity=2, unit_price=Decimal("40.00")),
                    InvoiceItemCreate(description="Membership dues", unit_price=Decimal("20.00")),
                ],
            ),
        )

    async def test_invoice_total_and_balance(self, db_session: AsyncSession, organization, member):
        invoice = await self._invoice(db_session, organization, member)

        assert invoice.total == Decimal("100.00")
        assert invoice.status == "sent"
        assert invoice.invoice_number.startswith("INV-")
        assert await count(db_session, InvoiceItem) == 2
        await db_session.refresh(member)
        assert member.balance == Decimal("100.00")

    async def test_partial_then_full_payment(self, db_session: AsyncSession, organization, member):
        invoice = await self._invoice(db_session, organization, member)
        service = InvoiceService(db_session)

        first = await service.record_payment(
            organization.id, invoice.id, InvoicePaymentCreate(amount=Decimal("60.00"), payment_method="check")
        )
        assert first.status == "partially_paid"
        assert first.total_paid == Decimal("60.00")
        assert invoice.paid_at is None

        second = await service.record_payment(
            organization.id, invoice.id, InvoicePaymentCreate(amount=Decimal("40.00"), payment_method="cash")
        )
        assert second.status == "paid"
        assert second.total_paid == Decimal("100.00")
        assert invoice.paid_at is not None
        assert await count(db_session, Payment) == 2

        await db_session.refresh(member)
        assert member.balance == Decimal("0.00")

    async def test_void_invoice_rejected(self, db_session: AsyncSession, organization, member):
        invoice = await self._invoice(db_session, organization, member)
        invoice.status = "void"
        await db_session.commit()

        with pytest.raises(InvalidRequest):
            await InvoiceService(db_session).record_payment(
                organization.id, invoice.id, InvoicePaymentCreate(amount=Decimal("10.00"))
            )
        assert await count(db_session, Payment) == 0
