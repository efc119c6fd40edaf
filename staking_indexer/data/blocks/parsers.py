"""Normalize raw substrate client output into BlockContext models.

Substrate clients disagree on shapes: py-substrate-interface yields
``{"extrinsic_idx", "event": {"module_id", "event_id", "attributes"}}`` and
``{"call": {"call_module", "call_function", "call_args"}}``, polkadot.js style
JSON yields ``{"phase": {"applyExtrinsic": 1}, "event": {"section", "method",
"data"}}``. Everything is reduced to positional values here so the attributors
only ever see one shape.
"""

from typing import Any

from staking_indexer.data.blocks.models import (
    BlockContext,
    Event,
    EventRecord,
    Extrinsic,
    Phase,
    PhaseKind,
)

_WRAPPER_KEYS = frozenset({"name", "type", "type_name", "value"})


def _name(obj: Any) -> str:
    """Return a string name for a pallet / call / event regardless of its shape."""
    if obj is None:
        return ""
    if isinstance(obj, bytes):
        return obj.decode()
    if isinstance(obj, str):
        return obj
    if isinstance(obj, dict):
        return str(obj.get("name", ""))
    if hasattr(obj, "name"):
        return str(obj.name)
    return str(obj)


def _unwrap(value: Any) -> Any:
    # {"name": "validator_stash", "type": "AccountId", "value": "5G..."} -> "5G..."
    if isinstance(value, dict) and "value" in value and value.keys() <= _WRAPPER_KEYS:
        return value["value"]
    return value


def _values(params: Any) -> tuple[Any, ...]:
    """Reduce event attributes / call args to their ordered values."""
    if params is None:
        return ()
    if isinstance(params, dict):
        return tuple(_unwrap(value) for value in params.values())
    if isinstance(params, (list, tuple)):
        return tuple(_unwrap(item) for item in params)
    msg = f"Unsupported parameter container: {type(params).__name__}"
    raise ValueError(msg)


def _first(mapping: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if mapping.get(key) is not None:
            return mapping[key]
    return None


def _as_dict(raw: Any) -> dict[str, Any]:
    # scalecodec objects expose their decoded dict as .value
    if not isinstance(raw, dict) and hasattr(raw, "value"):
        raw = raw.value
    if not isinstance(raw, dict):
        msg = f"Expected a mapping, got {type(raw).__name__}"
        raise ValueError(msg)
    return raw


def parse_phase(raw_event: dict[str, Any]) -> Phase:
    """Parse the phase of a raw event.

    Args:
        raw_event: Raw event record

    Returns:
        Phase: ApplyExtrinsic(i) when the event references an extrinsic, other otherwise
    """
    extrinsic_idx = raw_event.get("extrinsic_idx")
    if extrinsic_idx is not None:
        return Phase.apply_extrinsic(int(extrinsic_idx))

    phase = raw_event.get("phase")
    if isinstance(phase, dict):
        for key, value in phase.items():
            if key.lower() == "applyextrinsic":
                return Phase.apply_extrinsic(int(value))
        phase = next(iter(phase), None)

    if isinstance(phase, str) and phase.lower() == "initialization":
        return Phase.other(PhaseKind.INITIALIZATION)
    return Phase.other()


def parse_event(index: int, raw_event: Any) -> EventRecord:
    """Parse one raw event record.

    Args:
        index: Position of the event in the block's event list
        raw_event: Raw event record

    Returns:
        EventRecord: Normalized event record

    Raises:
        ValueError: If the record does not look like an event
    """
    raw_event = _as_dict(raw_event)
    event = _as_dict(raw_event.get("event", raw_event))

    section = _name(_first(event, "module_id", "section"))
    method = _name(_first(event, "event_id", "method"))
    if not section or not method:
        msg = f"Event #{index} has no section/method"
        raise ValueError(msg)

    return EventRecord(
        index=index,
        phase=parse_phase(raw_event),
        event=Event(
            section=section,
            method=method,
            data=_values(_first(event, "attributes", "params", "data")),
        ),
    )


def parse_extrinsic(index: int, raw_extrinsic: Any) -> Extrinsic:
    """Parse one raw extrinsic.

    Args:
        index: Position of the extrinsic in the block
        raw_extrinsic: Raw extrinsic

    Returns:
        Extrinsic: Normalized extrinsic

    Raises:
        ValueError: If the extrinsic has no readable call
    """
    raw_extrinsic = _as_dict(raw_extrinsic)
    if isinstance(raw_extrinsic.get("call"), dict):
        call = raw_extrinsic["call"]
    elif isinstance(raw_extrinsic.get("method"), dict):
        call = raw_extrinsic["method"]
    else:
        call = raw_extrinsic

    section = _name(_first(call, "call_module", "section"))
    method = _name(_first(call, "call_function", "method"))
    if not section or not method:
        msg = f"Extrinsic #{index} has no call module/function"
        raise ValueError(msg)

    return Extrinsic(
        index=index,
        section=section,
        method=method,
        args=_values(_first(call, "call_args", "args")),
    )


def parse_block(
    block_number: int,
    timestamp: int,
    active_era: int,
    raw_events: list[Any],
    raw_extrinsics: list[Any],
) -> BlockContext:
    """Build a BlockContext from raw client output.

    Args:
        block_number: Block number
        timestamp: Block timestamp in milliseconds
        active_era: Active era at this block
        raw_events: Raw events in emission order
        raw_extrinsics: Raw extrinsics in block order

    Returns:
        BlockContext: Normalized, immutable block context

    Raises:
        ValueError: If any event or extrinsic cannot be normalized
    """
    return BlockContext(
        block_number=block_number,
        timestamp=timestamp,
        active_era=active_era,
        extrinsics=tuple(
            parse_extrinsic(index, raw) for index, raw in enumerate(raw_extrinsics)
        ),
        events=tuple(parse_event(index, raw) for index, raw in enumerate(raw_events)),
    )


__all__ = [
    "parse_block",
    "parse_event",
    "parse_extrinsic",
    "parse_phase",
]
