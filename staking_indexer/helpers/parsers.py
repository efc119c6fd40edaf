"""Parsing utilities for common data transformations."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal, localcontext

from typing import Any


def parse_ms_timestamp(timestamp_ms: int) -> datetime:
    """Parse a Unix timestamp in milliseconds to a UTC datetime.

    Args:
        timestamp_ms: Milliseconds since the epoch (timestamp.set inherent)

    Returns:
        datetime: Timezone-aware UTC datetime

    Example:
        >>> parse_ms_timestamp(1700000000123)
        datetime.datetime(2023, 11, 14, 22, 13, 20, 123000, tzinfo=datetime.timezone.utc)
    """
    seconds, millis = divmod(int(timestamp_ms), 1000)
    return datetime.fromtimestamp(seconds, tz=UTC) + timedelta(milliseconds=millis)


def parse_planck_amount(raw: Any) -> int:
    """Parse a raw on-chain balance into an integer amount of planck.

    Accepts integers, decimal strings (optionally with thousands separators),
    hex strings and ``{"value": ...}`` / ``.value`` wrappers produced by
    substrate clients.

    Args:
        raw: Raw balance value

    Returns:
        int: Amount in planck

    Raises:
        ValueError: If the value cannot be read as a non-negative integer

    Example:
        >>> parse_planck_amount("5,000,000")
        5000000
        >>> parse_planck_amount("0xff")
        255
    """
    if isinstance(raw, bool):
        msg = f"Invalid amount: {raw!r}"
        raise ValueError(msg)

    if isinstance(raw, dict) and "value" in raw:
        return parse_planck_amount(raw["value"])

    if isinstance(raw, int):
        amount = raw
    elif isinstance(raw, str):
        text = raw.strip().replace(",", "")
        try:
            amount = int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError:
            msg = f"Invalid amount: {raw!r}"
            raise ValueError(msg) from None
    elif hasattr(raw, "value"):
        return parse_planck_amount(raw.value)
    else:
        msg = f"Unsupported amount type: {type(raw).__name__}"
        raise ValueError(msg)

    if amount < 0:
        msg = f"Amount cannot be negative: {amount}"
        raise ValueError(msg)

    return amount


def planck_to_token(raw: Any, decimals: int) -> Decimal:
    """Convert a raw planck amount to token units (divide by 10**decimals).

    Args:
        raw: Raw balance value, see parse_planck_amount
        decimals: Token decimals of the chain

    Returns:
        Decimal: Amount in token units, exact for any u128 balance

    Example:
        >>> planck_to_token("1000000000000", 12)
        Decimal('1')
        >>> planck_to_token(2**128 - 1, 18)
        Decimal('340282366920938463463.374607431768211455')
    """
    amount = parse_planck_amount(raw)
    scale = Decimal(10) ** decimals
    # The default context keeps 28 digits, a u128 balance has up to 39
    with localcontext(prec=len(str(amount))):
        return Decimal(amount) / scale


__all__ = [
    "parse_ms_timestamp",
    "parse_planck_amount",
    "planck_to_token",
]
