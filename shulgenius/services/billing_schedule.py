# shulgenius/services/billing_schedule.py
"""
Subscription billing-date advancement and lifecycle.

Dates advance from the previous anchor, never from "today", so a late run
does not shift the schedule. ``monthly_hebrew`` advances like ``monthly``.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional
from dateutil.relativedelta import relativedelta

from shulgenius.core.constants import BillingFrequency, PaymentType

PERIODS = {
    BillingFrequency.DAILY: relativedelta(days=1),
    BillingFrequency.WEEKLY: relativedelta(weeks=1),
    BillingFrequency.MONTHLY: relativedelta(months=1),
    BillingFrequency.MONTHLY_HEBREW: relativedelta(months=1),
    BillingFrequency.QUARTERLY: relativedelta(months=3),
    BillingFrequency.ANNUAL: relativedelta(years=1),
}


def advance_billing_date(anchor: date, frequency: str) -> date:
    """Add one billing period to ``anchor``; month ends clamp (Jan 31 -> Feb 28/29)"""
    return anchor + PERIODS[BillingFrequency(frequency)]


@dataclass(frozen=True)
class CycleOutcome:
    next_billing_date: date
    installments_paid: Optional[int]
    is_active: bool

    def as_values(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {
            "next_billing_date": self.next_billing_date,
            "is_active": self.is_active,
        }
        if self.installments_paid is not None:
            values["installments_paid"] = self.installments_paid
        return values


def next_cycle(
    *,
    payment_type: str,
    frequency: str,
    next_billing_date: Optional[date],
    installments_paid: Optional[int],
    installments_total: Optional[int],
    today: Optional[date] = None,
) -> CycleOutcome:
    """State after one successful bill. Installment plans go inactive on the final payment."""
    anchor = next_billing_date or today or date.today()
    paid = None
    is_active = True

    if payment_type == PaymentType.INSTALLMENTS.value and installments_total:
        paid = (installments_paid or 0) + 1
        if paid >= installments_total:
            is_active = False

    return CycleOutcome(
        next_billing_date=advance_billing_date(anchor, frequency),
        installments_paid=paid,
        is_active=is_active,
    )
