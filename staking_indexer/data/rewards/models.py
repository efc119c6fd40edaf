"""Pydantic models for staking rewards."""

# Pydantic needs these at runtime to validate the fields
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class RewardRecord(BaseModel):
    """Staking reward attributed to a validator and era.

    An empty validator_stash_address together with era 0 means the reward
    could not be attributed.
    """

    block_number: int = Field(..., description="Block the Reward event was emitted in")
    event_index: int = Field(..., description="Position of the event in the block")
    account_id: str = Field(..., description="Stash receiving the reward")
    validator_stash_address: str = Field(
        default="", description="Validator stash paid out, empty if unresolved"
    )
    era: int = Field(default=0, description="Era paid out, 0 if unresolved")
    amount: Decimal = Field(..., description="Reward in token units")
    timestamp: datetime

    @property
    def is_attributed(self) -> bool:
        return bool(self.validator_stash_address) and self.era != 0


__all__ = ["RewardRecord"]
