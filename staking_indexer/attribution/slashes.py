"""Attribute staking slashes to the validator responsible."""

from collections.abc import Callable

from typing import Any

from staking_indexer.attribution.fields import require_field, to_address, to_amount
from staking_indexer.attribution.locator import (
    BALANCES_SLASH_EVENT,
    STAKING_SLASH_EVENT,
    find_last_before,
)
from staking_indexer.data.blocks.models import BlockContext, EventRecord
from staking_indexer.data.slashes.models import SlashRecord


def slash_era(active_era: int) -> int:
    """Era a slash observed during active_era applies to (the previous one)."""
    return max(active_era - 1, 0)


class SlashAttributor:
    """Turn staking and balances slash events into SlashRecords.

    A ``staking.Slashed`` event names the slashed validator itself. A
    ``balances.Slashed`` event names a nominator only; its validator is the
    one of the nearest staking slash emitted before it in the block.
    """

    def __init__(
        self,
        token_decimals: int,
        format_address: Callable[[Any], str] = str,
    ) -> None:
        self.token_decimals = token_decimals
        self.format_address = format_address

    def handles(self, record: EventRecord) -> bool:
        return STAKING_SLASH_EVENT.matches_event(record) or BALANCES_SLASH_EVENT.matches_event(
            record
        )

    def slashed_validator(self, block: BlockContext, event_index: int) -> str:
        """Validator of the nearest staking slash emitted before event_index, or ""."""
        validator_slash = find_last_before(
            block.events, event_index, STAKING_SLASH_EVENT.matches_event
        )
        if validator_slash is None:
            return ""
        return to_address(
            require_field(validator_slash.event.data, 0, "slashed validator"),
            self.format_address,
        )

    def attribute(self, block: BlockContext, event_index: int) -> SlashRecord | None:
        """Build the SlashRecord for the event at event_index.

        Args:
            block: Block context
            event_index: Index of the event in the block

        Returns:
            SlashRecord, or None if the event is missing or is not a slash

        Raises:
            AttributionError: If the slash event is malformed
        """
        try:
            slash = block.event_at(event_index)
        except KeyError:
            return None
        if not self.handles(slash):
            return None

        data = slash.event.data
        account_id = to_address(require_field(data, 0, "slashed account"), self.format_address)
        amount = to_amount(require_field(data, 1, "slash amount"), self.token_decimals)

        if STAKING_SLASH_EVENT.matches_event(slash):
            validator = account_id
        else:
            validator = self.slashed_validator(block, event_index)

        return SlashRecord(
            block_number=block.block_number,
            event_index=event_index,
            account_id=account_id,
            validator_stash_address=validator,
            era=slash_era(block.active_era),
            amount=amount,
            timestamp=block.timestamp,
        )


__all__ = ["SlashAttributor", "slash_era"]
