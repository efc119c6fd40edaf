"""Accessors for positional event data and call arguments."""

from collections.abc import Callable, Sequence
from decimal import Decimal

from typing import Any

from staking_indexer.attribution.errors import AttributionError
from staking_indexer.helpers.parsers import planck_to_token


def require_field(values: Sequence[Any], position: int, what: str) -> Any:
    """Return values[position] or raise AttributionError naming the field."""
    if position >= len(values) or values[position] is None:
        msg = f"Missing {what} (position {position}, got {len(values)} values)"
        raise AttributionError(msg)
    return values[position]


def to_int(value: Any, what: str) -> int:
    """Read an era (or other unsigned integer) from int, numeric string or {"value": ...}."""
    if isinstance(value, dict) and "value" in value:
        value = value["value"]
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        msg = f"Invalid {what}: {value!r}"
        raise AttributionError(msg)
    try:
        number = int(str(value).replace(",", "")) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as err:
        msg = f"Invalid {what}: {value!r}"
        raise AttributionError(msg) from err
    if number < 0:
        msg = f"Invalid {what}: {value!r} is negative"
        raise AttributionError(msg)
    return number


def to_amount(value: Any, decimals: int) -> Decimal:
    try:
        return planck_to_token(value, decimals)
    except ValueError as err:
        raise AttributionError(str(err)) from err


def to_address(value: Any, format_address: Callable[[Any], str]) -> str:
    try:
        return format_address(value)
    except (TypeError, ValueError) as err:
        msg = f"Cannot format address {value!r}: {err}"
        raise AttributionError(msg) from err


__all__ = ["require_field", "to_address", "to_amount", "to_int"]
