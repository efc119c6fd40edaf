"""Database models for staking rewards."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from staking_indexer.helpers.db import Base


class StakingRewardDB(Base):
    """Staking reward database model (insert-only)."""

    __tablename__ = "staking_rewards"
    __table_args__ = (
        Index("ix_staking_rewards_block_event", "block_number", "event_index"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    event_index: Mapped[int] = mapped_column(Integer, nullable=False)
    account_id: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    validator_stash_address: Mapped[str] = mapped_column(
        String(66), nullable=False, index=True
    )  # Empty string when unresolved
    era: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)


__all__ = ["StakingRewardDB"]
