"""CLI progress display for plan execution.

This module provides a Rich-based progress display driven by the events
that SyncExecutor reports.
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .sync.comparator import SyncAction
from .sync.engine import ExecutorEvent


class DeployProgressDisplay:
    """Rich-based progress display for plan execution.

    Shows one bar over all plan actions, the action currently running and
    a running count of failures.

    Examples:
        >>> with DeployProgressDisplay(total=len(plan)) as display:
        ...     executor = SyncExecutor(on_event=display.handle_event)
        ...     executor.execute(plan, local_dir, transport)
    """

    def __init__(self, total: int, console: Optional[Console] = None) -> None:
        """Initialize the progress display.

        Args:
            total: Number of actions in the plan
            console: Console to render on
        """
        self.total = total
        self.console = console
        self.failed = 0
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def _describe(self, action: SyncAction) -> str:
        return f"{action.kind.value}: {action.path}"

    def handle_event(
        self, event: ExecutorEvent, action: SyncAction, attempt: int, message: str
    ) -> None:
        """Update the display for one executor event."""
        if self._progress is None or self._task is None:
            return

        if event is ExecutorEvent.STARTED:
            self._progress.update(self._task, description=self._describe(action))

        elif event is ExecutorEvent.RETRYING:
            self._progress.update(
                self._task,
                description=f"{self._describe(action)} (retry {attempt})",
            )

        elif event is ExecutorEvent.SUCCEEDED:
            self._progress.advance(self._task)

        elif event is ExecutorEvent.FAILED:
            self.failed += 1
            self._progress.update(self._task, failed=f"{self.failed} failed")
            self._progress.advance(self._task)

    def __enter__(self) -> "DeployProgressDisplay":
        """Enter context manager - start progress display."""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[red]{task.fields[failed]}"),
            TimeElapsedColumn(),
            console=self.console,
            refresh_per_second=4,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task(
            "Preparing...", total=self.total, failed=""
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        if self._progress is not None:
            if self._task is not None:
                self._progress.update(self._task, description="Execution complete")
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None
