"""Database models for staking slashes."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from staking_indexer.helpers.db import Base


class StakingSlashDB(Base):
    """Staking slash database model, upserted on (block_number, event_index)."""

    __tablename__ = "staking_slashes"

    block_number: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    event_index: Mapped[int] = mapped_column(Integer, primary_key=True)
    account_id: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    validator_stash_address: Mapped[str] = mapped_column(
        String(66), nullable=False, index=True
    )
    era: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)


__all__ = ["StakingSlashDB"]
