"""Persistence sinks for attributed records."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from staking_indexer.data.rewards.db import StakingRewardDB
from staking_indexer.data.rewards.models import RewardRecord
from staking_indexer.data.slashes.db import StakingSlashDB
from staking_indexer.data.slashes.models import SlashKey, SlashRecord
from staking_indexer.helpers.db import insert_models, upsert_model


class PersistenceSink(Protocol):
    """Durable storage for attributed records. Both methods raise on failure."""

    async def insert_reward(self, record: RewardRecord) -> None: ...

    async def upsert_slash(self, key: SlashKey, record: SlashRecord) -> None: ...


class DatabaseSink:
    """PostgreSQL sink: rewards are inserted, slashes upserted on their key."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def insert_reward(self, record: RewardRecord) -> None:
        await insert_models(
            db_model_class=StakingRewardDB,
            pydantic_models=[record],
            session_factory=self.session_factory,
        )

    async def upsert_slash(self, key: SlashKey, record: SlashRecord) -> None:
        if key != record.key:
            msg = f"Slash key {key} does not match record {record.key}"
            raise ValueError(msg)
        await upsert_model(
            db_model_class=StakingSlashDB,
            pydantic_model=record,
            session_factory=self.session_factory,
        )


__all__ = ["DatabaseSink", "PersistenceSink"]
