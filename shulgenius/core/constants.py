# shulgenius/core/constants.py
"""Domain enumerations and fixed gateway values."""
from enum import Enum


class ProcessorType(str, Enum):
    STRIPE = "stripe"
    CARDKNOX = "cardknox"
    SOLA = "sola"


# Sola is the rebranded Cardknox gateway; both speak the same x-field protocol.
CARDKNOX_FAMILY = (ProcessorType.CARDKNOX.value, ProcessorType.SOLA.value)


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    VOID = "void"
    OVERDUE = "overdue"
    PARTIALLY_PAID = "partially_paid"


class PaymentType(str, Enum):
    RECURRING = "recurring"
    INSTALLMENTS = "installments"


class BillingMethod(str, Enum):
    INVOICED = "invoiced"
    AUTO_CC = "auto_cc"


class BillingFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    MONTHLY_HEBREW = "monthly_hebrew"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class CredentialSource(str, Enum):
    """Where a resolved set of processor credentials came from"""
    CAMPAIGN = "campaign"
    LEGACY_SETTINGS = "legacy_settings"
    DEFAULT_PROCESSOR = "default_processor"
    PAYMENT_METHOD = "payment_method"
    EXPLICIT = "explicit"


class ReferencePrefix(str, Enum):
    INVOICE = "INV"
    DONATION = "DON"
    SUBSCRIPTION = "SUB"


# Gateway protocol
CARDKNOX_APPROVED = "A"
CARDKNOX_RECURRING_SUCCESS = "S"
CARDKNOX_SALE_COMMAND = "cc:sale"
CARDKNOX_SAVE_COMMAND = "cc:save"

PARTIAL_FAILURE_MESSAGE = "Payment processed but recording failed"
