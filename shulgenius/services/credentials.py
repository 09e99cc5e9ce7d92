# shulgenius/services/credentials.py
"""
Processor credentials as a tagged union.

The ``credentials`` JSON column is opaque; its shape depends on the
processor type. It is parsed exactly once, here, so call sites never probe
raw dictionaries.
"""
from typing import Any, Dict, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, field_validator

from shulgenius.core.constants import ProcessorType


class CardknoxCredentials(BaseModel):
    """Cardknox and Sola gateway keys"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: Literal["cardknox"] = "cardknox"
    transaction_key: Optional[str] = None
    ifields_key: Optional[str] = None

    @field_validator("transaction_key", "ifields_key")
    @classmethod
    def strip_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def is_chargeable(self) -> bool:
        return bool(self.transaction_key)


class StripeCredentials(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: Literal["stripe"] = "stripe"
    secret_key: Optional[str] = None
    publishable_key: Optional[str] = None

    @property
    def is_chargeable(self) -> bool:
        # No transaction key: never routed through the x-field gateway
        return False


ProcessorCredentials = Union[CardknoxCredentials, StripeCredentials]


def parse_credentials(processor_type: str, raw: Optional[Dict[str, Any]]) -> ProcessorCredentials:
    """Resolve the raw credentials map for ``processor_type`` into its typed form"""
    data = dict(raw or {})
    data.pop("kind", None)
    if processor_type == ProcessorType.STRIPE.value:
        return StripeCredentials(**data)
    return CardknoxCredentials(**data)
