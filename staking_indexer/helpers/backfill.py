"""Base classes and utilities for backfill operations."""

from abc import ABC, abstractmethod

from typing import Any

from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncEngine

from staking_indexer.helpers.db import create_tables


class BackfillBase(ABC):
    """Abstract base class for backfill operations.

    Provides common functionality for all backfill classes including:
    - Console initialization for progress display
    - Table creation
    - Concurrency configuration

    Subclasses must implement:
    - run(): Main backfill orchestration logic
    """

    def __init__(self, concurrency: int) -> None:
        """Initialize backfill with common configuration.

        Args:
            concurrency: Number of blocks processed in parallel

        Raises:
            ValueError: If concurrency is not positive
        """
        if concurrency < 1:
            msg = f"Concurrency must be positive, got {concurrency}"
            raise ValueError(msg)
        self.concurrency = concurrency
        self.console = Console()

    async def create_tables(self, engine: AsyncEngine) -> None:
        """Create database tables if they don't exist.

        Args:
            engine: Engine of the target database
        """
        await create_tables(engine)

    @abstractmethod
    async def run(self, *args: Any, **kwargs: Any) -> Any:
        """Run the backfill process."""
        ...


__all__ = ["BackfillBase"]
