"""Locate the extrinsics and events an event is causally linked to.

All lookups are pure functions over the block's immutable collections. Not
found is returned as None / an empty set, never raised.
"""

from bisect import bisect_left
from collections.abc import Callable, Sequence
from operator import attrgetter

from pydantic import BaseModel, ConfigDict

from staking_indexer.data.blocks.models import EventRecord, Extrinsic, Phase
from staking_indexer.helpers.constants import (
    BALANCES_SECTION,
    BATCH_CALLS,
    PAYOUT_STAKERS_CALLS,
    PAYOUT_STARTED_EVENTS,
    PROXY_CALLS,
    PROXY_SECTION,
    REWARD_EVENTS,
    SLASH_EVENTS,
    STAKING_SECTION,
    UTILITY_SECTION,
)


def _normalize(name: str) -> str:
    # payout_stakers == payoutStakers, Staking == staking
    return name.replace("_", "").lower()


class NameMatcher(BaseModel):
    """Section / method predicate for calls and events."""

    model_config = ConfigDict(frozen=True)

    section: str
    methods: tuple[str, ...]

    def matches(self, section: str, method: str) -> bool:
        if _normalize(section) != _normalize(self.section):
            return False
        method = _normalize(method)
        return any(method == _normalize(candidate) for candidate in self.methods)

    def matches_extrinsic(self, extrinsic: Extrinsic) -> bool:
        return self.matches(extrinsic.section, extrinsic.method)

    def matches_event(self, record: EventRecord) -> bool:
        return self.matches(record.event.section, record.event.method)


PAYOUT_STAKERS_CALL = NameMatcher(section=STAKING_SECTION, methods=PAYOUT_STAKERS_CALLS)
BATCH_CALL = NameMatcher(section=UTILITY_SECTION, methods=BATCH_CALLS)
PROXY_CALL = NameMatcher(section=PROXY_SECTION, methods=PROXY_CALLS)

REWARD_EVENT = NameMatcher(section=STAKING_SECTION, methods=REWARD_EVENTS)
PAYOUT_STARTED_EVENT = NameMatcher(section=STAKING_SECTION, methods=PAYOUT_STARTED_EVENTS)
STAKING_SLASH_EVENT = NameMatcher(section=STAKING_SECTION, methods=SLASH_EVENTS)
BALANCES_SLASH_EVENT = NameMatcher(section=BALANCES_SECTION, methods=SLASH_EVENTS)


def find_extrinsic_by_phase(
    extrinsics: Sequence[Extrinsic],
    phase: Phase,
    matcher: NameMatcher,
) -> Extrinsic | None:
    """Find the extrinsic that produced an event, if its call matches.

    Args:
        extrinsics: The block's extrinsics
        phase: Phase of the event
        matcher: Section / method the extrinsic must have

    Returns:
        The matching extrinsic, or None. Events emitted outside extrinsic
        application never match.
    """
    if not phase.is_apply_extrinsic:
        return None
    for extrinsic in extrinsics:
        if extrinsic.index == phase.extrinsic_index and matcher.matches_extrinsic(
            extrinsic
        ):
            return extrinsic
    return None


def find_extrinsic_indices(
    extrinsics: Sequence[Extrinsic],
    phase: Phase,
    matcher: NameMatcher,
) -> frozenset[int]:
    """Indices of the extrinsics in the event's phase whose call matches."""
    if not phase.is_apply_extrinsic:
        return frozenset()
    return frozenset(
        extrinsic.index
        for extrinsic in extrinsics
        if extrinsic.index == phase.extrinsic_index
        and matcher.matches_extrinsic(extrinsic)
    )


def find_last_before(
    events: Sequence[EventRecord],
    start_index: int,
    predicate: Callable[[EventRecord], bool],
) -> EventRecord | None:
    """Scan right-to-left for the nearest event emitted before start_index.

    Args:
        events: Event records in ascending index order
        start_index: Event index to scan back from (exclusive)
        predicate: Condition the event must satisfy

    Returns:
        The highest-indexed matching record with index < start_index, or None
    """
    position = bisect_left(events, start_index, key=attrgetter("index"))
    for offset in range(position - 1, -1, -1):
        if predicate(events[offset]):
            return events[offset]
    return None


__all__ = [
    "BALANCES_SLASH_EVENT",
    "BATCH_CALL",
    "PAYOUT_STAKERS_CALL",
    "PAYOUT_STARTED_EVENT",
    "PROXY_CALL",
    "REWARD_EVENT",
    "STAKING_SLASH_EVENT",
    "NameMatcher",
    "find_extrinsic_by_phase",
    "find_extrinsic_indices",
    "find_last_before",
]
