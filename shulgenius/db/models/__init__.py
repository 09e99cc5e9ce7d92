# shulgenius/db/models/__init__.py
from shulgenius.db.models.organization import Organization, OrganizationSettings
from shulgenius.db.models.processor import PaymentProcessor, CampaignProcessor
from shulgenius.db.models.campaign import Campaign
from shulgenius.db.models.member import Member, PaymentMethod
from shulgenius.db.models.invoice import Invoice, InvoiceItem, Payment
from shulgenius.db.models.subscription import Subscription
from shulgenius.db.models.donation import Donation

__all__ = [
    "Organization", "OrganizationSettings", "PaymentProcessor", "CampaignProcessor",
    "Campaign", "Member", "PaymentMethod", "Invoice", "InvoiceItem", "Payment",
    "Subscription", "Donation",
]
