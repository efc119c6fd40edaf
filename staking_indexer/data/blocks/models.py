"""Pydantic models for Substrate block contents."""

from bisect import bisect_left
from datetime import UTC, datetime
from enum import StrEnum
from operator import attrgetter

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from staking_indexer.helpers.parsers import parse_ms_timestamp


class PhaseKind(StrEnum):
    """Block execution phase an event was emitted in."""

    APPLY_EXTRINSIC = "apply_extrinsic"
    INITIALIZATION = "initialization"
    FINALIZATION = "finalization"


class Phase(BaseModel):
    """Link from an event to the extrinsic that produced it, if any."""

    model_config = ConfigDict(frozen=True)

    kind: PhaseKind
    extrinsic_index: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_extrinsic_index(self) -> Self:
        if self.kind is PhaseKind.APPLY_EXTRINSIC and self.extrinsic_index is None:
            msg = "ApplyExtrinsic phase requires an extrinsic index"
            raise ValueError(msg)
        if self.kind is not PhaseKind.APPLY_EXTRINSIC and self.extrinsic_index is not None:
            msg = f"{self.kind} phase cannot carry an extrinsic index"
            raise ValueError(msg)
        return self

    @classmethod
    def apply_extrinsic(cls, extrinsic_index: int) -> "Phase":
        """Phase of an event emitted while applying extrinsic #extrinsic_index."""
        return cls(kind=PhaseKind.APPLY_EXTRINSIC, extrinsic_index=extrinsic_index)

    @classmethod
    def other(cls, kind: PhaseKind = PhaseKind.FINALIZATION) -> "Phase":
        """Phase of an event emitted outside extrinsic application."""
        return cls(kind=kind)

    @property
    def is_apply_extrinsic(self) -> bool:
        return self.kind is PhaseKind.APPLY_EXTRINSIC


class Extrinsic(BaseModel):
    """A single call submitted in a block, identified by its position."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Position in the block's extrinsic list")
    section: str = Field(..., description="Pallet name, e.g. staking")
    method: str = Field(..., description="Call name, e.g. payoutStakers")
    args: tuple[Any, ...] = Field(default=(), description="Ordered call arguments")


class Event(BaseModel):
    """Chain event payload."""

    model_config = ConfigDict(frozen=True)

    section: str
    method: str
    data: tuple[Any, ...] = ()


class EventRecord(BaseModel):
    """An event together with its phase and emission position."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Position in the block's event list")
    phase: Phase
    event: Event


class BlockContext(BaseModel):
    """Everything the attribution engine needs to know about one finalized block.

    Extrinsic and event indices must be unique and ascending: event emission
    order drives the backward scans of the attributors.
    """

    model_config = ConfigDict(frozen=True)

    block_number: int = Field(..., ge=0)
    timestamp: datetime
    active_era: int = Field(..., ge=0)
    extrinsics: tuple[Extrinsic, ...] = ()
    events: tuple[EventRecord, ...] = ()

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        # Wire format is milliseconds since the epoch
        if isinstance(value, int) and not isinstance(value, bool):
            return parse_ms_timestamp(value)
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @model_validator(mode="after")
    def _check_ordering(self) -> Self:
        for name, items in (("extrinsic", self.extrinsics), ("event", self.events)):
            indices = [item.index for item in items]
            if any(a >= b for a, b in zip(indices, indices[1:])):
                msg = f"{name} indices must be unique and ascending"
                raise ValueError(msg)
        return self

    def event_at(self, event_index: int) -> EventRecord:
        """Return the event record emitted at event_index.

        Raises:
            KeyError: If the block has no event with that index
        """
        position = bisect_left(self.events, event_index, key=attrgetter("index"))
        if position < len(self.events) and self.events[position].index == event_index:
            return self.events[position]
        raise KeyError(event_index)


__all__ = [
    "BlockContext",
    "Event",
    "EventRecord",
    "Extrinsic",
    "Phase",
    "PhaseKind",
]
