"""Pytest configuration and shared fixtures for attribution tests."""

import os
from collections.abc import AsyncGenerator, Callable, Sequence
from datetime import UTC, datetime

from typing import Any

import pytest
import pytest_asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from staking_indexer.data.blocks.models import (
    BlockContext,
    Event,
    EventRecord,
    Extrinsic,
    Phase,
)
from staking_indexer.data.rewards.models import RewardRecord
from staking_indexer.data.slashes.models import SlashKey, SlashRecord
from staking_indexer.helpers.db import Base, create_session_factory
from staking_indexer.helpers.reporting import FailureContext


BLOCK_TIMESTAMP = datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)

# (index, section, method, args)
ExtrinsicSpec = tuple[int, str, str, Sequence[Any]]
# (index, extrinsic index or None for a non-extrinsic phase, section, method, data)
EventSpec = tuple[int, int | None, str, str, Sequence[Any]]


class InMemorySink:
    """Persistence sink keeping records in memory.

    Rewards are appended, slashes are stored by key so upserts overwrite.
    """

    def __init__(self) -> None:
        self.rewards: list[RewardRecord] = []
        self.slashes: dict[SlashKey, SlashRecord] = {}
        self.fail_on: set[int] = set()
        self.calls = 0

    async def insert_reward(self, record: RewardRecord) -> None:
        self.calls += 1
        if record.event_index in self.fail_on:
            msg = f"insert failed for event {record.event_index}"
            raise RuntimeError(msg)
        self.rewards.append(record)

    async def upsert_slash(self, key: SlashKey, record: SlashRecord) -> None:
        self.calls += 1
        if record.event_index in self.fail_on:
            msg = f"upsert failed for event {record.event_index}"
            raise RuntimeError(msg)
        self.slashes[key] = record


class RecordingReporter:
    """Error reporter collecting every reported failure."""

    def __init__(self) -> None:
        self.failures: list[tuple[FailureContext, BaseException]] = []

    def report_failure(self, context: FailureContext, err: BaseException) -> None:
        self.failures.append((context, err))


def build_block(
    extrinsics: Sequence[ExtrinsicSpec] = (),
    events: Sequence[EventSpec] = (),
    *,
    block_number: int = 1000,
    active_era: int = 101,
) -> BlockContext:
    return BlockContext(
        block_number=block_number,
        timestamp=BLOCK_TIMESTAMP,
        active_era=active_era,
        extrinsics=tuple(
            Extrinsic(index=index, section=section, method=method, args=tuple(args))
            for index, section, method, args in extrinsics
        ),
        events=tuple(
            EventRecord(
                index=index,
                phase=Phase.apply_extrinsic(phase) if phase is not None else Phase.other(),
                event=Event(section=section, method=method, data=tuple(data)),
            )
            for index, phase, section, method, data in events
        ),
    )


@pytest.fixture
def make_block() -> Callable[..., BlockContext]:
    """Build a BlockContext from compact extrinsic / event tuples."""
    return build_block


@pytest.fixture
def sink() -> InMemorySink:
    return InMemorySink()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest_asyncio.fixture
async def db_session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory on a clean test database for integration tests.

    Skips unless TEST_DATABASE_URL points at a reachable PostgreSQL.

    Yields:
        async_sessionmaker bound to the test database, with all tables created
    """
    database_url = os.getenv("TEST_DATABASE_URL")
    if not database_url:
        pytest.skip("TEST_DATABASE_URL is not set")

    # Register the staking tables on Base.metadata
    import staking_indexer.data.rewards.db  # noqa: F401
    import staking_indexer.data.slashes.db  # noqa: F401

    session_factory = create_session_factory(database_url)
    engine = session_factory.kw["bind"]

    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        await engine.dispose()
        pytest.skip(f"Database not available: {e}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield session_factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
