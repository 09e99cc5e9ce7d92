"""
Gateway client tests against httpx.MockTransport.

Declines are values; only transport trouble and unreadable bodies raise.
"""
import pytest
import httpx
from decimal import Decimal

from shulgenius.core.exceptions import GatewayUnavailable, PaymentDetailsMissing, ProcessorNotConfigured
from shulgenius.services.cardknox_gateway import CardDetails, format_amount
from shulgenius.services.credentials import CardknoxCredentials, StripeCredentials, parse_credentials

CREDS = CardknoxCredentials(transaction_key="key-test")
CARD = CardDetails(number="4444333322221111", exp="1230", cvc="123", zip_code="11223")


class TestFormatAmount:

    @pytest.mark.parametrize("amount, expected", [
        (Decimal("100"), "100.00"),
        (Decimal("18.005"), "18.01"),
        (Decimal("0.004"), "0.00"),
        (36, "36.00"),
        (12.5, "12.50"),
    ])
    def test_two_places_half_up(self, amount, expected):
        assert format_amount(amount) == expected


class TestCredentials:

    def test_blank_key_is_not_chargeable(self):
        assert not parse_credentials("cardknox", {"transaction_key": "   "}).is_chargeable

    def test_sola_uses_cardknox_shape(self):
        creds = parse_credentials("sola", {"transaction_key": " key-sola "})
        assert isinstance(creds, CardknoxCredentials)
        assert creds.transaction_key == "key-sola"
        assert creds.is_chargeable

    def test_stripe_never_chargeable(self):
        creds = parse_credentials("stripe", {"secret_key": "sk_test", "transaction_key": "ignored"})
        assert isinstance(creds, StripeCredentials)
        assert not creds.is_chargeable

    def test_missing_map(self):
        assert not parse_credentials("cardknox", None).is_chargeable


@pytest.mark.asyncio
class TestSale:

    async def test_approved_sale_with_token(self, gateway, fake_gateway):
        fake_gateway.approve(ref="REF123")

        result = await gateway.sale(
            CREDS, Decimal("100"), invoice="DON-ABC", description="Donation to Building Fund",
            token="tok-1", email="donor@example.com",
        )

        assert result.approved is True
        assert result.reference_id == "REF123"
        form = fake_gateway.form()
        assert form["xKey"] == "key-test"
        assert form["xCommand"] == "cc:sale"
        assert form["xVersion"] == "5.0.0"
        assert form["xAmount"] == "100.00"
        assert form["xInvoice"] == "DON-ABC"
        assert form["xToken"] == "tok-1"
        assert form["xEmail"] == "donor@example.com"
        assert "xCardNum" not in form

    async def test_token_wins_over_card(self, gateway, fake_gateway):
        fake_gateway.approve()
        await gateway.sale(CREDS, Decimal("5"), invoice="DON-1", description="d", token="tok-9", card=CARD)

        form = fake_gateway.form()
        assert form["xToken"] == "tok-9"
        assert "xCardNum" not in form

    async def test_raw_card_fields(self, gateway, fake_gateway):
        fake_gateway.approve()
        await gateway.sale(CREDS, Decimal("5"), invoice="DON-1", description="d", card=CARD)

        form = fake_gateway.form()
        assert form["xCardNum"] == "4444333322221111"
        assert form["xExp"] == "1230"
        assert form["xCVV"] == "123"
        assert form["xZip"] == "11223"

    async def test_missing_payment_details_never_calls_gateway(self, gateway, fake_gateway):
        with pytest.raises(PaymentDetailsMissing):
            await gateway.sale(CREDS, Decimal("5"), invoice="DON-1", description="d")
        assert fake_gateway.requests == []

    async def test_unchargeable_credentials_rejected(self, gateway, fake_gateway):
        with pytest.raises(ProcessorNotConfigured):
            await gateway.sale(StripeCredentials(secret_key="sk"), Decimal("5"), invoice="x", description="d", token="t")
        assert fake_gateway.requests == []

    async def test_decline_is_a_result(self, gateway, fake_gateway):
        fake_gateway.decline("Card expired")

        result = await gateway.sale(CREDS, Decimal("5"), invoice="DON-1", description="d", token="t")

        assert result.approved is False
        assert result.decline_reason == "Card expired"
        assert result.result_code == "D"

    async def test_error_result_code_is_a_decline(self, gateway, fake_gateway):
        fake_gateway.respond({"xResult": "E", "xError": "Invalid token"})

        result = await gateway.sale(CREDS, Decimal("5"), invoice="DON-1", description="d", token="t")

        assert result.approved is False
        assert result.decline_reason == "Invalid token"

    async def test_non_2xx_is_a_decline(self, gateway, fake_gateway):
        fake_gateway.respond(content=b"Service Unavailable", status_code=503)

        result = await gateway.sale(CREDS, Decimal("5"), invoice="DON-1", description="d", token="t")

        assert result.approved is False
        assert result.decline_reason == "Gateway returned HTTP 503"

    async def test_malformed_2xx_body_raises(self, gateway, fake_gateway):
        fake_gateway.respond(content=b"<html>oops</html>")

        with pytest.raises(GatewayUnavailable):
            await gateway.sale(CREDS, Decimal("5"), invoice="DON-1", description="d", token="t")

    async def test_2xx_body_without_result_code_raises(self, gateway, fake_gateway):
        fake_gateway.respond({"xStatus": "Approved", "xRefNum": "R9"})

        with pytest.raises(GatewayUnavailable):
            await gateway.sale(CREDS, Decimal("5"), invoice="DON-1", description="d", token="t")

    async def test_timeout_raises(self, gateway, fake_gateway):
        fake_gateway.fail(httpx.ReadTimeout("timed out"))

        with pytest.raises(GatewayUnavailable):
            await gateway.sale(CREDS, Decimal("5"), invoice="DON-1", description="d", token="t")


@pytest.mark.asyncio
class TestVaultCalls:

    async def test_save_card_returns_token(self, gateway, fake_gateway):
        fake_gateway.approve(xToken="tok-new", xMaskedCardNumber="4xxxxxxxxxxx1111")

        result = await gateway.save_card(CREDS, CARD)

        assert result.approved is True
        assert result.reference_id == "tok-new"
        assert fake_gateway.form()["xCommand"] == "cc:save"

    async def test_create_customer_uses_recurring_api(self, gateway, fake_gateway):
        fake_gateway.recurring_ok(CustomerId="c_1")

        result = await gateway.create_customer(CREDS, "member-1", "sam@example.com", "Sam Cohen")

        assert result.ok is True
        assert result.data["CustomerId"] == "c_1"
        request = fake_gateway.requests[0]
        assert request.url.path.endswith("/CreateCustomer")
        assert request.headers["Authorization"] == "key-test"
        assert request.headers["X-Recurring-Api-Version"] == "2.1"
        body = fake_gateway.json_body()
        assert body["BillFirstName"] == "Sam"
        assert body["BillLastName"] == "Cohen"

    async def test_recurring_failure_is_a_result(self, gateway, fake_gateway):
        fake_gateway.respond({"Result": "E", "Error": "Duplicate customer"})

        result = await gateway.create_payment_method(CREDS, "c_1", "tok-1")

        assert result.ok is False
        assert result.error == "Duplicate customer"
