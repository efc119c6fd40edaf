"""Attribute staking rewards to the validator and era that were paid out.

A ``staking.Rewarded`` event only names the account being paid. The validator
and era come from the call that triggered the payout:

1. ``staking.payoutStakers(validator_stash, era)`` submitted directly.
2. The same call wrapped in ``utility.batch`` / ``utility.batchAll``, where the
   arguments are hidden inside the batch. The chain emits
   ``staking.PayoutStarted(era, validator)`` at the start of every payout, so
   the nearest marker emitted before the reward in the wrapper's phase
   identifies it.
3. The same call wrapped in ``proxy.proxy``, resolved like a batch.
4. Otherwise the reward is recorded unattributed (empty validator, era 0).
"""

from collections.abc import Callable, Mapping
from enum import StrEnum

from typing import Any, NamedTuple

from staking_indexer.attribution.fields import (
    require_field,
    to_address,
    to_amount,
    to_int,
)
from staking_indexer.attribution.locator import (
    BATCH_CALL,
    PAYOUT_STAKERS_CALL,
    PAYOUT_STARTED_EVENT,
    PROXY_CALL,
    REWARD_EVENT,
    NameMatcher,
    find_extrinsic_by_phase,
    find_extrinsic_indices,
    find_last_before,
)
from staking_indexer.data.blocks.models import BlockContext, EventRecord
from staking_indexer.data.rewards.models import RewardRecord
from staking_indexer.helpers.logging import get_logger

logger = get_logger(__name__)


class AttributionSource(StrEnum):
    """Which piece of evidence a reward was attributed from."""

    DIRECT = "direct"
    BATCH = "batch"
    PROXY = "proxy"
    UNRESOLVED = "unresolved"


class Attribution(NamedTuple):
    validator: str
    era: int
    source: AttributionSource


UNRESOLVED = Attribution(validator="", era=0, source=AttributionSource.UNRESOLVED)


class WrapperKind(StrEnum):
    """Composite calls a payout can be hidden in."""

    BATCH = "batch"
    PROXY = "proxy"


# Resolver signature: (block, reward record, wrapper extrinsic indices) -> (era, validator) raw values
MarkerResolver = Callable[[BlockContext, EventRecord, frozenset[int]], tuple[Any, Any] | None]


class WrapperRule(NamedTuple):
    matcher: NameMatcher
    source: AttributionSource
    resolve: MarkerResolver


def payout_started_before(
    block: BlockContext, reward: EventRecord, wrapper_indices: frozenset[int]
) -> tuple[Any, Any] | None:
    """Return (era, validator) of the nearest PayoutStarted before the reward.

    Only markers emitted in the phase of one of wrapper_indices are considered.
    """

    def is_marker(record: EventRecord) -> bool:
        return (
            record.phase.is_apply_extrinsic
            and record.phase.extrinsic_index in wrapper_indices
            and PAYOUT_STARTED_EVENT.matches_event(record)
        )

    marker = find_last_before(block.events, reward.index, is_marker)
    if marker is None:
        return None
    data = marker.event.data
    return (
        require_field(data, 0, "PayoutStarted era"),
        require_field(data, 1, "PayoutStarted validator"),
    )


# Resolution order after the direct payout_stakers lookup
WRAPPER_CALLS: Mapping[WrapperKind, WrapperRule] = {
    WrapperKind.BATCH: WrapperRule(
        matcher=BATCH_CALL,
        source=AttributionSource.BATCH,
        resolve=payout_started_before,
    ),
    WrapperKind.PROXY: WrapperRule(
        matcher=PROXY_CALL,
        source=AttributionSource.PROXY,
        resolve=payout_started_before,
    ),
}


class RewardAttributor:
    """Turn staking reward events into RewardRecords."""

    def __init__(
        self,
        token_decimals: int,
        format_address: Callable[[Any], str] = str,
    ) -> None:
        """Initialize the attributor.

        Args:
            token_decimals: Chain token decimals used to scale amounts
            format_address: Converts raw account ids into their display form
        """
        self.token_decimals = token_decimals
        self.format_address = format_address

    def handles(self, record: EventRecord) -> bool:
        return REWARD_EVENT.matches_event(record)

    def _attribution(
        self, validator: Any, era: Any, source: AttributionSource
    ) -> Attribution | None:
        era_number = to_int(era, "era")
        validator_address = to_address(validator, self.format_address)
        # Both pieces are needed, a half-resolved payout counts as unresolved
        if not validator_address or not era_number:
            return None
        return Attribution(validator_address, era_number, source)

    def resolve(self, block: BlockContext, reward: EventRecord) -> Attribution:
        """Resolve the validator and era a reward event was paid out for.

        Args:
            block: Block the reward was emitted in
            reward: The reward event record

        Returns:
            Attribution, UNRESOLVED when no evidence links the reward to a payout

        Raises:
            AttributionError: If the payout call or marker is malformed
        """
        payout = find_extrinsic_by_phase(
            block.extrinsics, reward.phase, PAYOUT_STAKERS_CALL
        )
        if payout is not None:
            attribution = self._attribution(
                require_field(payout.args, 0, "payoutStakers validator_stash"),
                require_field(payout.args, 1, "payoutStakers era"),
                AttributionSource.DIRECT,
            )
            if attribution is not None:
                return attribution

        for kind, rule in WRAPPER_CALLS.items():
            indices = find_extrinsic_indices(block.extrinsics, reward.phase, rule.matcher)
            if not indices:
                continue
            found = rule.resolve(block, reward, indices)
            if found is None:
                logger.debug(
                    "No PayoutStarted marker for %s reward #%s-%s",
                    kind,
                    block.block_number,
                    reward.index,
                )
                continue
            era, validator = found
            attribution = self._attribution(validator, era, rule.source)
            if attribution is not None:
                return attribution

        return UNRESOLVED

    def attribute(self, block: BlockContext, event_index: int) -> RewardRecord | None:
        """Build the RewardRecord for the event at event_index.

        Args:
            block: Block context
            event_index: Index of the event in the block

        Returns:
            RewardRecord, or None if the event is missing or is not a reward

        Raises:
            AttributionError: If the event or its payout evidence is malformed
        """
        try:
            reward = block.event_at(event_index)
        except KeyError:
            return None
        if not self.handles(reward):
            return None

        data = reward.event.data
        account_id = to_address(require_field(data, 0, "reward stash"), self.format_address)
        amount = to_amount(require_field(data, 1, "reward amount"), self.token_decimals)
        attribution = self.resolve(block, reward)

        record = RewardRecord(
            block_number=block.block_number,
            event_index=event_index,
            account_id=account_id,
            validator_stash_address=attribution.validator,
            era=attribution.era,
            amount=amount,
            timestamp=block.timestamp,
        )
        if not record.is_attributed:
            logger.debug(
                "Unattributed reward #%s-%s for %s",
                block.block_number,
                event_index,
                account_id,
            )
        return record


__all__ = [
    "UNRESOLVED",
    "WRAPPER_CALLS",
    "Attribution",
    "AttributionSource",
    "RewardAttributor",
    "WrapperKind",
    "WrapperRule",
    "payout_started_before",
]
