# shulgenius/services/cardknox_gateway.py
import httpx
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, Optional, Tuple

from shulgenius.core.config import settings
from shulgenius.core.constants import (
    CARDKNOX_APPROVED,
    CARDKNOX_RECURRING_SUCCESS,
    CARDKNOX_SALE_COMMAND,
    CARDKNOX_SAVE_COMMAND,
)
from shulgenius.core.exceptions import GatewayUnavailable, PaymentDetailsMissing, ProcessorNotConfigured
from shulgenius.core.logging import logger
from shulgenius.services.credentials import ProcessorCredentials

CENTS = Decimal("0.01")


def format_amount(amount) -> str:
    """Two decimal places, half-up"""
    return str(Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CardDetails:
    """Raw card fields for the new-card path"""
    number: str
    exp: Optional[str] = None  # MMYY
    cvc: Optional[str] = None
    zip_code: Optional[str] = None


@dataclass(frozen=True)
class ChargeResult:
    approved: bool
    reference_id: Optional[str] = None
    decline_reason: Optional[str] = None
    result_code: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class RecurringResult:
    ok: bool
    data: Dict[str, Any] = field(default_factory=dict, repr=False)
    error: Optional[str] = None


class CardknoxGateway:
    """
    Cardknox / Sola gateway client.

    Declines come back as ``ChargeResult(approved=False)``; only transport
    failures and unreadable responses raise ``GatewayUnavailable``. No
    idempotency key is sent, so callers must not blindly retry.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.gateway_url = settings.CARDKNOX_GATEWAY_URL
        self.recurring_url = settings.CARDKNOX_RECURRING_API_URL.rstrip("/")
        self.timeout = settings.GATEWAY_TIMEOUT_SECONDS
        self._client = client

    async def sale(
        self,
        credentials: ProcessorCredentials,
        amount,
        *,
        invoice: str,
        description: str,
        token: Optional[str] = None,
        card: Optional[CardDetails] = None,
        email: Optional[str] = None,
    ) -> ChargeResult:
        """
        Run a single ``cc:sale``. A stored token wins over raw card fields.
        """
        payload = self._base_payload(credentials, CARDKNOX_SALE_COMMAND)
        payload.update({
            "xAmount": format_amount(amount),
            "xInvoice": invoice,
            "xDescription": description,
        })

        if token:
            payload["xToken"] = token
        elif card is not None and card.number:
            payload.update(self._card_fields(card))
        else:
            raise PaymentDetailsMissing()

        if email:
            payload["xEmail"] = email

        ok, body = await self._send_form(payload)
        result = self._interpret(ok, body)
        logger.info(
            "Gateway sale %s",
            "approved" if result.approved else "declined",
            extra={"request_id": invoice},
        )
        return result

    async def save_card(self, credentials: ProcessorCredentials, card: CardDetails) -> ChargeResult:
        """Tokenise raw card data with ``cc:save``; ``reference_id`` is the token"""
        payload = self._base_payload(credentials, CARDKNOX_SAVE_COMMAND)
        payload.update(self._card_fields(card))

        ok, body = await self._send_form(payload)
        result = self._interpret(ok, body)
        if result.approved:
            return ChargeResult(
                approved=True,
                reference_id=body.get("xToken"),
                result_code=result.result_code,
                raw=body,
            )
        return result

    async def create_customer(
        self,
        credentials: ProcessorCredentials,
        customer_number: str,
        email: Optional[str],
        name: Optional[str],
    ) -> RecurringResult:
        first, _, last = (name or "").strip().partition(" ")
        return await self._recurring(credentials, "CreateCustomer", {
            "CustomerNumber": customer_number,
            "Email": email or "",
            "BillFirstName": first,
            "BillLastName": last.strip(),
        })

    async def create_payment_method(
        self,
        credentials: ProcessorCredentials,
        customer_id: str,
        token: str,
        exp: Optional[str] = None,
        zip_code: Optional[str] = None,
        set_as_default: bool = False,
    ) -> RecurringResult:
        data: Dict[str, Any] = {
            "CustomerId": customer_id,
            "Token": token,
            "TokenType": "cc",
            "SetAsDefault": set_as_default,
        }
        if exp:
            data["Exp"] = exp
        if zip_code:
            data["Zip"] = zip_code
        return await self._recurring(credentials, "CreatePaymentMethod", data)

    # Internals

    def _base_payload(self, credentials: ProcessorCredentials, command: str) -> Dict[str, str]:
        if not credentials.is_chargeable:
            raise ProcessorNotConfigured("Payment processor credentials not configured")
        return {
            "xKey": credentials.transaction_key,
            "xVersion": settings.GATEWAY_API_VERSION,
            "xSoftwareName": settings.GATEWAY_SOFTWARE_NAME,
            "xSoftwareVersion": settings.GATEWAY_SOFTWARE_VERSION,
            "xCommand": command,
        }

    @staticmethod
    def _card_fields(card: CardDetails) -> Dict[str, str]:
        fields = {"xCardNum": card.number}
        if card.exp:
            fields["xExp"] = card.exp
        if card.cvc:
            fields["xCVV"] = card.cvc
        if card.zip_code:
            fields["xZip"] = card.zip_code
        return fields

    @staticmethod
    def _interpret(ok: bool, body: Dict[str, Any]) -> ChargeResult:
        code = body.get("xResult")
        if ok and code == CARDKNOX_APPROVED:
            return ChargeResult(
                approved=True,
                reference_id=body.get("xRefNum"),
                result_code=code,
                raw=body,
            )
        return ChargeResult(
            approved=False,
            reference_id=body.get("xRefNum"),
            decline_reason=body.get("xError") or "Payment declined",
            result_code=code,
            raw=body,
        )

    async def _send_form(self, payload: Dict[str, str]) -> Tuple[bool, Dict[str, Any]]:
        response = await self._post(self.gateway_url, data=payload)

        if not response.is_success:
            # Non-2xx is a decline, not an outage
            logger.warning(f"Gateway returned HTTP {response.status_code}")
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            body.setdefault("xError", f"Gateway returned HTTP {response.status_code}")
            return False, body

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayUnavailable("Malformed gateway response", cause=e)
        if not isinstance(body, dict) or "xResult" not in body:
            raise GatewayUnavailable("Malformed gateway response")
        return True, body

    async def _recurring(self, credentials: ProcessorCredentials, endpoint: str, data: Dict[str, Any]) -> RecurringResult:
        if not credentials.is_chargeable:
            raise ProcessorNotConfigured("Payment processor credentials not configured")

        response = await self._post(
            f"{self.recurring_url}/{endpoint}",
            json={
                "SoftwareName": settings.GATEWAY_SOFTWARE_NAME,
                "SoftwareVersion": settings.GATEWAY_SOFTWARE_VERSION,
                **data,
            },
            headers={
                "Authorization": credentials.transaction_key,
                "X-Recurring-Api-Version": settings.CARDKNOX_RECURRING_API_VERSION,
            },
        )
        try:
            body = response.json()
        except ValueError as e:
            raise GatewayUnavailable("Malformed gateway response", cause=e)
        if not isinstance(body, dict):
            raise GatewayUnavailable("Malformed gateway response")

        if body.get("Result") != CARDKNOX_RECURRING_SUCCESS:
            logger.info(f"Recurring API {endpoint} failed: {body.get('Error')}")
            return RecurringResult(ok=False, data=body, error=body.get("Error") or f"{endpoint} failed")
        return RecurringResult(ok=True, data=body)

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        try:
            if self._client is not None:
                return await self._client.post(url, timeout=self.timeout, **kwargs)
            async with httpx.AsyncClient() as client:
                return await client.post(url, timeout=self.timeout, **kwargs)
        except httpx.TransportError as e:
            # Covers timeouts; the request may or may not have reached the gateway
            logger.warning(f"Gateway transport failure: {type(e).__name__}")
            raise GatewayUnavailable(cause=e)
