"""Block event attribution engine.

Entry points for one block's staking events: attribute, persist, report.
Attribution itself is pure; the only asynchronous step is the sink call, and
a failing sink call only ever affects its own record.
"""

import asyncio
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from staking_indexer.attribution.rewards import RewardAttributor
from staking_indexer.attribution.sinks import PersistenceSink
from staking_indexer.attribution.slashes import SlashAttributor
from staking_indexer.data.blocks.models import BlockContext, EventRecord
from staking_indexer.data.rewards.models import RewardRecord
from staking_indexer.data.slashes.models import SlashRecord
from staking_indexer.helpers.config import get_token_decimals
from staking_indexer.helpers.constants import DEFAULT_MAX_CONCURRENT_WRITES
from staking_indexer.helpers.logging import get_logger
from staking_indexer.helpers.reporting import (
    ErrorReporter,
    FailureContext,
    LoggingErrorReporter,
    Operation,
)

logger = get_logger(__name__)


class OutcomeStatus(StrEnum):
    """Result of attributing one event."""

    PENDING = "pending"  # attributed, not persisted yet
    STORED = "stored"
    SKIPPED = "skipped"
    FAILED = "failed"


class AttributionOutcome(BaseModel):
    """What happened to one event."""

    block_number: int
    event_index: int
    operation: Operation
    status: OutcomeStatus
    record: RewardRecord | SlashRecord | None = None
    error: str | None = None

    @property
    def context(self) -> FailureContext:
        return FailureContext(
            block_number=self.block_number,
            event_index=self.event_index,
            operation=self.operation,
        )


class AttributionEngine:
    """Attribute a block's rewards and slashes and hand them to a sink."""

    def __init__(
        self,
        sink: PersistenceSink,
        reporter: ErrorReporter | None = None,
        *,
        token_decimals: int | None = None,
        format_address: Callable[[Any], str] = str,
        max_concurrent_writes: int = DEFAULT_MAX_CONCURRENT_WRITES,
    ) -> None:
        """Initialize the engine.

        Args:
            sink: Where attributed records are persisted
            reporter: Where failures are reported, defaults to the log
            token_decimals: Chain token decimals, defaults to TOKEN_DECIMALS
            format_address: Converts raw account ids into their display form
            max_concurrent_writes: Sink calls allowed in flight at once

        Raises:
            ValueError: If TOKEN_DECIMALS is invalid
        """
        decimals = get_token_decimals(token_decimals)
        self.sink = sink
        self.reporter = reporter or LoggingErrorReporter()
        self.rewards = RewardAttributor(decimals, format_address)
        self.slashes = SlashAttributor(decimals, format_address)
        self._writes = asyncio.Semaphore(max_concurrent_writes)

    async def attribute_reward(
        self, block: BlockContext, event_index: int
    ) -> AttributionOutcome:
        """Attribute and insert the reward emitted at event_index.

        Events that are not staking rewards are skipped.
        """
        return await self._store(self._compute("reward", block, event_index))

    async def attribute_slash(
        self, block: BlockContext, event_index: int
    ) -> AttributionOutcome:
        """Attribute and upsert the slash emitted at event_index.

        Events that are neither staking nor balances slashes are skipped.
        """
        return await self._store(self._compute("slash", block, event_index))

    async def process_block(self, block: BlockContext) -> list[AttributionOutcome]:
        """Attribute every staking event of a block.

        Events are attributed in ascending index order, then all sink calls run
        concurrently, at most max_concurrent_writes at a time, so a slow write
        never holds back its siblings.

        Args:
            block: Block context

        Returns:
            Outcomes of the reward and slash events, in event order
        """
        computed = [
            self._compute(operation, block, record.index)
            for record in block.events
            if (operation := self._operation_for(record)) is not None
        ]
        outcomes = list(await asyncio.gather(*(self._store(o) for o in computed)))

        stored = sum(o.status is OutcomeStatus.STORED for o in outcomes)
        failed = sum(o.status is OutcomeStatus.FAILED for o in outcomes)
        if outcomes:
            logger.info(
                "Block #%s: %s staking events, %s stored, %s failed",
                block.block_number,
                len(outcomes),
                stored,
                failed,
            )
        return outcomes

    def _operation_for(self, record: EventRecord) -> Operation | None:
        if self.rewards.handles(record):
            return "reward"
        if self.slashes.handles(record):
            return "slash"
        return None

    def _compute(
        self, operation: Operation, block: BlockContext, event_index: int
    ) -> AttributionOutcome:
        outcome = AttributionOutcome(
            block_number=block.block_number,
            event_index=event_index,
            operation=operation,
            status=OutcomeStatus.SKIPPED,
        )
        attributor = self.rewards if operation == "reward" else self.slashes
        try:
            record = attributor.attribute(block, event_index)
        except Exception as err:
            return self._fail(outcome, err)

        if record is None:
            return outcome
        return outcome.model_copy(update={"status": OutcomeStatus.PENDING, "record": record})

    async def _store(self, outcome: AttributionOutcome) -> AttributionOutcome:
        if outcome.status is not OutcomeStatus.PENDING:
            return outcome

        record = outcome.record
        try:
            async with self._writes:
                if isinstance(record, SlashRecord):
                    await self.sink.upsert_slash(record.key, record)
                elif isinstance(record, RewardRecord):
                    await self.sink.insert_reward(record)
        except Exception as err:
            return self._fail(outcome, err)

        logger.debug(
            "Added staking %s #%s-%s",
            outcome.operation,
            outcome.block_number,
            outcome.event_index,
        )
        return outcome.model_copy(update={"status": OutcomeStatus.STORED})

    def _fail(self, outcome: AttributionOutcome, err: Exception) -> AttributionOutcome:
        logger.error("Error adding staking %s: %s", outcome.context.tag, err, exc_info=err)
        try:
            self.reporter.report_failure(outcome.context, err)
        except Exception:
            logger.exception("Error reporter failed for %s", outcome.context.tag)
        return outcome.model_copy(
            update={"status": OutcomeStatus.FAILED, "error": f"{type(err).__name__}: {err}"}
        )


__all__ = [
    "AttributionEngine",
    "AttributionOutcome",
    "OutcomeStatus",
]
