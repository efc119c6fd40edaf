"""Tests for backfill base class and progress utilities."""

from unittest.mock import AsyncMock

import pytest
from rich.console import Console
from rich.progress import Progress

from staking_indexer.helpers.backfill import BackfillBase
from staking_indexer.helpers.progress import create_block_progress


class ConcreteBackfill(BackfillBase):
    """Concrete implementation of BackfillBase for testing."""

    async def run(self, *args: object, **kwargs: object) -> None:
        """Simple run implementation for testing."""
        return None


class TestBackfillBase:
    """Tests for BackfillBase abstract class."""

    def test_initialization(self) -> None:
        """Test that BackfillBase initializes correctly."""
        backfill = ConcreteBackfill(concurrency=4)

        assert backfill.concurrency == 4
        assert isinstance(backfill.console, Console)

    @pytest.mark.parametrize("concurrency", [0, -1])
    def test_concurrency_must_be_positive(self, concurrency: int) -> None:
        """Test that a non-positive concurrency is rejected."""
        with pytest.raises(ValueError, match="Concurrency must be positive"):
            ConcreteBackfill(concurrency=concurrency)

    @pytest.mark.asyncio
    async def test_create_tables_delegates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that create_tables uses the db helper."""
        create_tables = AsyncMock()
        monkeypatch.setattr("staking_indexer.helpers.backfill.create_tables", create_tables)
        engine = object()

        await ConcreteBackfill(concurrency=1).create_tables(engine)  # type: ignore[arg-type]

        create_tables.assert_awaited_once_with(engine)

    def test_cannot_instantiate_abstract_class(self) -> None:
        """Test that BackfillBase cannot be instantiated directly."""
        with pytest.raises(TypeError):
            BackfillBase(concurrency=1)  # type: ignore[abstract]


class TestCreateBlockProgress:
    """Tests for create_block_progress function."""

    def test_creates_progress_instance(self) -> None:
        """Test that function creates Progress instance."""
        assert isinstance(create_block_progress(), Progress)

    def test_uses_provided_console(self) -> None:
        """Test that function uses provided console."""
        console = Console()
        progress = create_block_progress(console=console)
        assert progress.console == console

    def test_task_fields(self) -> None:
        """Test that stored / failed counters are tracked on the task."""
        progress = create_block_progress(console=Console(quiet=True))
        task_id = progress.add_task("Replaying blocks", total=2, stored=0, failed=0)

        progress.update(task_id, advance=1, stored=3, failed=1)

        task = progress.tasks[0]
        assert task.completed == 1
        assert task.fields == {"stored": 3, "failed": 1}
