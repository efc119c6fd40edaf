"""Replay dumped blocks through the attribution engine.

Each line of the dump is one JSON block as returned by the substrate client:

    {"block_number": 123, "timestamp": 1700000000000, "active_era": 42,
     "events": [...], "extrinsics": [...]}

Blocks are independent, so they are processed concurrently. Events within a
block keep their emission order.

Usage:
    staking-backfill blocks.jsonl --concurrency 10
"""

import argparse
import asyncio
import json
from pathlib import Path

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from staking_indexer.attribution.engine import (
    AttributionEngine,
    AttributionOutcome,
    OutcomeStatus,
)
from staking_indexer.attribution.sinks import DatabaseSink
from staking_indexer.data.blocks.models import BlockContext
from staking_indexer.data.blocks.parsers import parse_block
from staking_indexer.helpers.backfill import BackfillBase
from staking_indexer.helpers.constants import DEFAULT_PARALLEL_BATCHES
from staking_indexer.helpers.db import create_session_factory
from staking_indexer.helpers.logging import get_logger
from staking_indexer.helpers.progress import create_block_progress

logger = get_logger(__name__)


class BackfillSummary(BaseModel):
    """Counters of a replay."""

    blocks: int = 0
    bad_blocks: int = 0
    stored: int = 0
    skipped: int = 0
    failed: int = 0

    def add(self, outcomes: list[AttributionOutcome]) -> None:
        self.blocks += 1
        for outcome in outcomes:
            if outcome.status is OutcomeStatus.STORED:
                self.stored += 1
            elif outcome.status is OutcomeStatus.FAILED:
                self.failed += 1
            else:
                self.skipped += 1


def load_block(line: str) -> BlockContext:
    """Parse one line of a block dump.

    Raises:
        ValueError: If the line is not a valid block
    """
    try:
        raw = json.loads(line)
        return parse_block(
            block_number=raw["block_number"],
            timestamp=raw["timestamp"],
            active_era=raw["active_era"],
            raw_events=raw.get("events", []),
            raw_extrinsics=raw.get("extrinsics", []),
        )
    except (KeyError, TypeError) as err:
        msg = f"Invalid block: {err!r}"
        raise ValueError(msg) from err


class StakingBackfill(BackfillBase):
    """Replay a JSON-lines block dump into the staking tables."""

    def __init__(
        self,
        engine: AttributionEngine,
        *,
        concurrency: int = DEFAULT_PARALLEL_BATCHES,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        """Initialize backfill.

        Args:
            engine: Attribution engine records are processed with
            concurrency: Number of blocks processed in parallel
            session_factory: When given, tables are created before the replay
        """
        super().__init__(concurrency=concurrency)
        self.engine = engine
        self.session_factory = session_factory

    async def run(self, path: Path) -> BackfillSummary:
        """Run the replay.

        Args:
            path: JSON-lines block dump

        Returns:
            BackfillSummary of the replay
        """
        if self.session_factory is not None:
            await self.create_tables(self.session_factory.kw["bind"])

        text = await asyncio.to_thread(path.read_text)
        lines = [line for line in text.splitlines() if line.strip()]
        summary = BackfillSummary()
        semaphore = asyncio.Semaphore(self.concurrency)

        self.console.print(
            f"[bold blue]Replaying {len(lines):,} blocks from {path}...[/bold blue]"
        )

        progress = create_block_progress(console=self.console)
        with progress:
            task = progress.add_task(
                "Replaying blocks", total=len(lines), stored=0, failed=0
            )

            async def process_line(line_number: int, line: str) -> None:
                async with semaphore:
                    try:
                        block = load_block(line)
                    except ValueError:
                        logger.exception("Skipping line %s of %s", line_number, path)
                        summary.bad_blocks += 1
                    else:
                        summary.add(await self.engine.process_block(block))
                progress.update(
                    task, advance=1, stored=summary.stored, failed=summary.failed
                )

            await asyncio.gather(
                *(
                    process_line(line_number, line)
                    for line_number, line in enumerate(lines, start=1)
                )
            )

        self.console.print(
            f"[green]Stored {summary.stored:,} records from {summary.blocks:,} blocks[/green]"
        )
        if summary.failed or summary.bad_blocks:
            self.console.print(
                f"[red]{summary.failed:,} failed records, "
                f"{summary.bad_blocks:,} unreadable blocks[/red]"
            )
        return summary


async def main(args: argparse.Namespace) -> BackfillSummary:
    """Replay a dump into the configured database."""
    session_factory = create_session_factory()
    engine = AttributionEngine(
        DatabaseSink(session_factory), token_decimals=args.token_decimals
    )
    backfill = StakingBackfill(
        engine, concurrency=args.concurrency, session_factory=session_factory
    )
    try:
        return await backfill.run(args.path)
    finally:
        await session_factory.kw["bind"].dispose()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a block dump into the staking tables")
    parser.add_argument("path", type=Path, help="JSON-lines block dump")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_PARALLEL_BATCHES,
        help="Blocks processed in parallel",
    )
    parser.add_argument(
        "--token-decimals",
        type=int,
        default=None,
        help="Token decimals (defaults to TOKEN_DECIMALS)",
    )
    return parser.parse_args(argv)


def cli() -> None:
    asyncio.run(main(parse_args()))


if __name__ == "__main__":
    cli()
