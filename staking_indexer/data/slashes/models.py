"""Pydantic models for staking slashes."""

# Pydantic needs these at runtime to validate the fields
from datetime import datetime
from decimal import Decimal

from typing import NamedTuple

from pydantic import BaseModel, Field


class SlashKey(NamedTuple):
    """Upsert key of a slash record."""

    block_number: int
    event_index: int


class SlashRecord(BaseModel):
    """Slash of a validator or of one of its nominators."""

    block_number: int = Field(..., description="Block the Slash event was emitted in")
    event_index: int = Field(..., description="Position of the event in the block")
    account_id: str = Field(..., description="Slashed account (validator or nominator)")
    validator_stash_address: str = Field(
        default="", description="Validator responsible, empty if unresolved"
    )
    era: int = Field(..., description="Era the slash applies to")
    amount: Decimal = Field(..., description="Slashed amount in token units")
    timestamp: datetime

    @property
    def key(self) -> SlashKey:
        return SlashKey(self.block_number, self.event_index)


__all__ = ["SlashKey", "SlashRecord"]
