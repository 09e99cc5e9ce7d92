# shulgenius/services/references.py
import time
from typing import Optional

from shulgenius.core.constants import ReferencePrefix

_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


def generate_reference(prefix: ReferencePrefix, now_ms: Optional[int] = None) -> str:
    """
    Human-readable reference such as ``INV-LQ2J8Z1K``.

    Millisecond resolution only; two references minted in the same
    millisecond collide.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{prefix.value}-{to_base36(now_ms)}"
