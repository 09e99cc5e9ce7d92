"""
Credential resolution precedence and the saved-card filter.
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from shulgenius.core.constants import CredentialSource
from shulgenius.core.exceptions import ProcessorNotConfigured, ProcessorNotFound
from shulgenius.db.models import PaymentProcessor
from shulgenius.services.processor_resolver import ProcessorResolver
from shulgenius.services.registry_service import RegistryService
from tests.conftest import add_card, bind_processor


@pytest.mark.asyncio
class TestResolve:

    async def test_campaign_primary_wins_over_everything(
        self, db_session: AsyncSession, organization, campaign, default_processor, building_processor, legacy_settings
    ):
        await bind_processor(db_session, campaign, building_processor, is_primary=True)

        resolved = await ProcessorResolver(db_session).resolve(organization.id, campaign.id)

        assert resolved.source == CredentialSource.CAMPAIGN
        assert resolved.processor_id == building_processor.id
        assert resolved.transaction_key == "key-building"

    async def test_legacy_settings_before_default(
        self, db_session: AsyncSession, organization, campaign, default_processor, legacy_settings
    ):
        resolved = await ProcessorResolver(db_session).resolve(organization.id, campaign.id)

        assert resolved.source == CredentialSource.LEGACY_SETTINGS
        assert resolved.processor_id is None
        assert resolved.transaction_key == "key-legacy"

    async def test_default_processor_last(self, db_session: AsyncSession, organization, campaign, default_processor):
        resolved = await ProcessorResolver(db_session).resolve(organization.id, campaign.id)

        assert resolved.source == CredentialSource.DEFAULT_PROCESSOR
        assert resolved.processor_id == default_processor.id
        assert resolved.transaction_key == "key-default"

    async def test_non_primary_binding_is_ignored(
        self, db_session: AsyncSession, organization, campaign, default_processor, building_processor
    ):
        await bind_processor(db_session, campaign, building_processor, is_primary=False)

        resolved = await ProcessorResolver(db_session).resolve(organization.id, campaign.id)

        assert resolved.processor_id == default_processor.id

    async def test_primary_without_key_falls_through(
        self, db_session: AsyncSession, organization, campaign, default_processor
    ):
        keyless = PaymentProcessor(
            organization_id=organization.id,
            processor_type="cardknox",
            name="Unconfigured",
            credentials={"transaction_key": "  "},
            is_active=True,
        )
        db_session.add(keyless)
        await db_session.commit()
        await bind_processor(db_session, campaign, keyless, is_primary=True)

        resolved = await ProcessorResolver(db_session).resolve(organization.id, campaign.id)

        assert resolved.source == CredentialSource.DEFAULT_PROCESSOR

    async def test_blank_legacy_key_skipped(self, db_session: AsyncSession, organization, default_processor, legacy_settings):
        legacy_settings.cardknox_transaction_key = ""
        await db_session.commit()

        resolved = await ProcessorResolver(db_session).resolve(organization.id)

        assert resolved.source == CredentialSource.DEFAULT_PROCESSOR

    async def test_stripe_default_is_not_chargeable(self, db_session: AsyncSession, organization):
        db_session.add(PaymentProcessor(
            organization_id=organization.id,
            processor_type="stripe",
            name="Stripe",
            credentials={"secret_key": "sk_test"},
            is_default=True,
            is_active=True,
        ))
        await db_session.commit()

        with pytest.raises(ProcessorNotConfigured):
            await ProcessorResolver(db_session).resolve(organization.id)

    async def test_deactivated_primary_is_skipped(
        self, db_session: AsyncSession, organization, campaign, default_processor, building_processor
    ):
        await bind_processor(db_session, campaign, building_processor, is_primary=True)
        await RegistryService(db_session).deactivate_processor(organization.id, building_processor.id)

        resolved = await ProcessorResolver(db_session).resolve(organization.id, campaign.id)

        assert resolved.source == CredentialSource.DEFAULT_PROCESSOR
        assert resolved.processor_id == default_processor.id

    async def test_nothing_configured(self, db_session: AsyncSession, organization, campaign):
        with pytest.raises(ProcessorNotConfigured) as exc:
            await ProcessorResolver(db_session).resolve(organization.id, campaign.id)
        assert "not configured" in exc.value.message

    async def test_inactive_default_ignored(self, db_session: AsyncSession, organization, default_processor):
        default_processor.is_active = False
        await db_session.commit()

        with pytest.raises(ProcessorNotConfigured):
            await ProcessorResolver(db_session).resolve(organization.id)


@pytest.mark.asyncio
class TestResolveForPaymentMethod:

    async def test_tagged_card_charges_on_its_processor(
        self, db_session: AsyncSession, organization, campaign, member, default_processor, building_processor
    ):
        await bind_processor(db_session, campaign, default_processor, is_primary=True)
        card = await add_card(db_session, member, building_processor)

        resolved = await ProcessorResolver(db_session).resolve_for_payment_method(card, organization.id, campaign.id)

        assert resolved.source == CredentialSource.PAYMENT_METHOD
        assert resolved.processor_id == building_processor.id

    async def test_legacy_card_uses_precedence(
        self, db_session: AsyncSession, organization, campaign, member, default_processor
    ):
        card = await add_card(db_session, member, None)

        resolved = await ProcessorResolver(db_session).resolve_for_payment_method(card, organization.id, campaign.id)

        assert resolved.source == CredentialSource.DEFAULT_PROCESSOR

    async def test_card_on_deactivated_processor(
        self, db_session: AsyncSession, organization, member, building_processor
    ):
        card = await add_card(db_session, member, building_processor)
        building_processor.is_active = False
        await db_session.commit()

        with pytest.raises(ProcessorNotFound):
            await ProcessorResolver(db_session).resolve_for_payment_method(card, organization.id)


@pytest.mark.asyncio
class TestSelectablePaymentMethods:

    async def test_bound_processors_filter_cards(
        self, db_session: AsyncSession, organization, campaign, member, default_processor, building_processor
    ):
        await bind_processor(db_session, campaign, building_processor, is_primary=True)
        general = await add_card(db_session, member, default_processor, token="tok-a", last_four="1111")
        building = await add_card(db_session, member, building_processor, token="tok-b", last_four="2222")
        legacy = await add_card(db_session, member, None, token="tok-c", last_four="3333")

        methods = await ProcessorResolver(db_session).selectable_payment_methods(member.id, organization.id, campaign.id)

        ids = {m.id for m in methods}
        assert building.id in ids
        assert legacy.id in ids
        assert general.id not in ids

    async def test_unbound_campaign_uses_default_processor(
        self, db_session: AsyncSession, organization, campaign, member, default_processor, building_processor
    ):
        general = await add_card(db_session, member, default_processor, token="tok-a")
        building = await add_card(db_session, member, building_processor, token="tok-b")

        methods = await ProcessorResolver(db_session).selectable_payment_methods(member.id, organization.id, campaign.id)

        ids = {m.id for m in methods}
        assert ids == {general.id}
        assert building.id not in ids

    async def test_no_default_shows_everything(
        self, db_session: AsyncSession, organization, campaign, member, building_processor
    ):
        first = await add_card(db_session, member, building_processor, token="tok-a")
        second = await add_card(db_session, member, None, token="tok-b")

        methods = await ProcessorResolver(db_session).selectable_payment_methods(member.id, organization.id, campaign.id)

        assert {m.id for m in methods} == {first.id, second.id}
