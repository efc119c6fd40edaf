"""Shared progress bar utilities for Rich console displays."""

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


def create_block_progress(console: Console | None = None) -> Progress:
    """Create a progress bar for block replays.

    Tasks must be added with ``stored`` and ``failed`` fields, which are
    displayed next to the block counter.

    Args:
        console: Rich console instance (optional)

    Returns:
        Configured Progress instance

    Example:
        ```python
        progress = create_block_progress(console)

        with progress:
            task_id = progress.add_task("Replaying blocks", total=100, stored=0, failed=0)
            progress.update(task_id, advance=1, stored=12, failed=0)
        ```
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TextColumn("[green]{task.fields[stored]} stored"),
        TextColumn("[red]{task.fields[failed]} failed"),
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn("•"),
        TimeRemainingColumn(),
        console=console,
    )


__all__ = ["create_block_progress"]
