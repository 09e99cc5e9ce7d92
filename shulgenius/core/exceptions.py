# shulgenius/core/exceptions.py
"""Exception hierarchy for payment routing and reconciliation.

Declines are not exceptions: the charge executor returns them as a
``ChargeResult`` with ``approved=False``.
"""
from typing import Optional


class ShulGeniusError(Exception):
    """Base class for all service-level errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProcessorNotConfigured(ShulGeniusError):
    """No processor with chargeable credentials could be resolved"""

    def __init__(self, message: str = "Payment processor not configured for this campaign or organization"):
        super().__init__(message)


class ProcessorNotFound(ShulGeniusError):
    def __init__(self, message: str = "Payment processor not found"):
        super().__init__(message)


class PaymentDetailsMissing(ShulGeniusError):
    def __init__(self, message: str = "Missing payment information"):
        super().__init__(message)


class GatewayUnavailable(ShulGeniusError):
    """Transport-level failure talking to the card gateway"""

    def __init__(self, message: str = "Payment gateway unavailable", cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class ReconciliationError(ShulGeniusError):
    """The gateway approved the charge but the ledger write failed"""

    def __init__(self, reference_id: Optional[str], cause: Optional[Exception] = None):
        super().__init__(f"Charge {reference_id} approved but could not be recorded")
        self.reference_id = reference_id
        self.cause = cause


class SubscriptionInactive(ShulGeniusError):
    def __init__(self, message: str = "Subscription is not active"):
        super().__init__(message)


class EntityNotFound(ShulGeniusError):
    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.entity = entity


class InvalidRequest(ShulGeniusError):
    pass
