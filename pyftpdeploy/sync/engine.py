"""Sync executor that applies a plan through a transport."""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..exceptions import (
    ConnectivityError,
    LocalFileMissingError,
    UnknownActionKindError,
)
from ..transport.base import TransportClient, ensure_remote_directory
from ..utils import (
    ACTION_BACKOFF_CAP,
    DEFAULT_MAX_RETRIES,
    backoff_delay,
    remote_parent,
)
from .comparator import SyncAction, SyncActionKind, SyncPlan

logger = logging.getLogger(__name__)


class ActionStatus(str, Enum):
    """Final outcome of one action."""

    SUCCEEDED = "success"
    FAILED = "failed"


class AttemptState(str, Enum):
    """States an action passes through while being executed."""

    ATTEMPTING = "attempting"
    RECONNECTING = "reconnecting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ExecutorEvent(str, Enum):
    """Events reported to the optional progress callback."""

    STARTED = "started"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ActionResult:
    """Outcome of executing a single action."""

    action: SyncAction
    status: ActionStatus
    message: str = ""
    """Last error message for failures, empty on success"""

    attempts: int = 0
    """Number of attempts made"""

    @property
    def succeeded(self) -> bool:
        return self.status is ActionStatus.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        data = self.action.to_dict()
        data["status"] = self.status.value
        data["attempts"] = self.attempts
        if self.message:
            data["error"] = self.message
        return data


@dataclass
class ExecutionResult:
    """Aggregated outcome of a plan execution."""

    total_count: int
    """Number of actions in the plan"""

    results: list[ActionResult] = field(default_factory=list)
    completed_count: int = 0
    failed_count: int = 0
    cancelled: bool = False
    """True when the run stopped early because cancellation was requested"""

    def record(self, result: ActionResult) -> None:
        self.results.append(result)
        if result.succeeded:
            self.completed_count += 1
        else:
            self.failed_count += 1

    def failed_results(self) -> list[ActionResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def success_rate(self) -> float:
        """Percentage of plan actions that succeeded (100 for an empty plan)."""
        if self.total_count == 0:
            return 100.0
        return self.completed_count / self.total_count * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total_count,
            "completed": self.completed_count,
            "failed": self.failed_count,
            "cancelled": self.cancelled,
            "results": [r.to_dict() for r in self.results],
        }


EventCallback = Callable[[ExecutorEvent, SyncAction, int, str], None]


class SyncExecutor:
    """Executes plan actions strictly in order with retries.

    Each action goes through ``ATTEMPTING -> (RECONNECTING) -> SUCCEEDED |
    FAILED``. A failed action is recorded and the run continues with the
    next one. This is the only retry layer: transports report errors
    immediately and never retry on their own.
    """

    def __init__(
        self,
        backoff_cap: float = ACTION_BACKOFF_CAP,
        sleep: Callable[[float], None] = time.sleep,
        on_event: Optional[EventCallback] = None,
    ):
        """Initialize sync executor.

        Args:
            backoff_cap: Maximum sleep between attempts (seconds)
            sleep: Function used to wait between attempts
            on_event: Optional callback ``(event, action, attempt, message)``
                invoked as actions start, retry, succeed or fail
        """
        self.backoff_cap = backoff_cap
        self.sleep = sleep
        self.on_event = on_event

    def execute(
        self,
        plan: SyncPlan,
        local_base_path: Union[str, Path],
        transport: TransportClient,
        max_retries: int = DEFAULT_MAX_RETRIES,
        cancel_event: Optional[threading.Event] = None,
    ) -> ExecutionResult:
        """Execute every action of ``plan``.

        Args:
            plan: Ordered plan to execute
            local_base_path: Local directory that plan paths are relative to
            transport: Connected transport client
            max_retries: Attempts per action (at least 1)
            cancel_event: Checked before each action; when set the run stops

        Returns:
            ExecutionResult with one ActionResult per executed action

        Raises:
            UnknownActionKindError: If the plan contains an unsupported kind
        """
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")

        base = Path(local_base_path)
        result = ExecutionResult(total_count=len(plan.actions))
        run_start = time.time()

        for action in plan.actions:
            if cancel_event is not None and cancel_event.is_set():
                logger.debug(
                    "Cancellation requested, stopping after %d action(s)",
                    len(result.results),
                )
                result.cancelled = True
                break
            result.record(self._run_action(action, base, transport, max_retries))

        logger.debug(
            "Executed %d/%d action(s) in %.2fs (%d failed)",
            len(result.results),
            result.total_count,
            time.time() - run_start,
            result.failed_count,
        )
        return result

    def _run_action(
        self,
        action: SyncAction,
        base: Path,
        transport: TransportClient,
        max_retries: int,
    ) -> ActionResult:
        self._emit(ExecutorEvent.STARTED, action, 0, "")

        state = AttemptState.ATTEMPTING
        attempt = 0
        last_error = ""

        while True:
            if state is AttemptState.ATTEMPTING:
                attempt += 1
                try:
                    self._dispatch(action, base, transport)
                except UnknownActionKindError:
                    raise
                except LocalFileMissingError as e:
                    # Retrying cannot make the file appear
                    last_error = str(e)
                    state = AttemptState.FAILED
                    continue
                except Exception as e:
                    last_error = str(e)
                    logger.debug(
                        "Attempt %d/%d for %s %s failed: %s",
                        attempt,
                        max_retries,
                        action.kind.value,
                        action.path,
                        e,
                    )
                    if attempt >= max_retries:
                        state = AttemptState.FAILED
                    elif self._needs_reconnect(e, transport):
                        state = AttemptState.RECONNECTING
                    else:
                        self._backoff(action, attempt, last_error)
                    continue
                state = AttemptState.SUCCEEDED

            elif state is AttemptState.RECONNECTING:
                try:
                    transport.reconnect()
                    logger.debug("Reconnected before retrying %s", action.path)
                except Exception as e:
                    # Next attempt runs on the stale connection and fails fast
                    logger.warning(f"Reconnect failed: {e}")
                self._backoff(action, attempt, last_error)
                state = AttemptState.ATTEMPTING

            elif state is AttemptState.SUCCEEDED:
                self._emit(ExecutorEvent.SUCCEEDED, action, attempt, "")
                return ActionResult(action, ActionStatus.SUCCEEDED, "", attempt)

            else:
                self._emit(ExecutorEvent.FAILED, action, attempt, last_error)
                return ActionResult(action, ActionStatus.FAILED, last_error, attempt)

    def _dispatch(
        self, action: SyncAction, base: Path, transport: TransportClient
    ) -> None:
        kind = action.kind
        if kind is SyncActionKind.CREATE_DIRECTORY:
            transport.mkdir(action.path)
        elif kind is SyncActionKind.REMOVE_DIRECTORY:
            transport.rmdir(action.path)
        elif kind is SyncActionKind.REMOVE_FILE:
            transport.delete(action.path)
        elif kind in (SyncActionKind.UPLOAD_FILE, SyncActionKind.UPDATE_FILE):
            local_path = base / action.path
            if not local_path.is_file():
                raise LocalFileMissingError(str(local_path))
            parent = remote_parent(action.path)
            if parent is not None:
                ensure_remote_directory(transport, parent)
            transport.put(local_path, action.path)
        else:
            raise UnknownActionKindError(f"Unknown action kind: {kind!r}")

    def _needs_reconnect(self, error: Exception, transport: TransportClient) -> bool:
        if isinstance(error, ConnectivityError):
            return True
        try:
            return not transport.is_alive()
        except Exception:
            return True

    def _backoff(self, action: SyncAction, attempt: int, message: str) -> None:
        delay = backoff_delay(attempt, cap=self.backoff_cap)
        self._emit(ExecutorEvent.RETRYING, action, attempt, message)
        logger.debug("Retrying %s in %.1fs", action.path, delay)
        self.sleep(delay)

    def _emit(
        self, event: ExecutorEvent, action: SyncAction, attempt: int, message: str
    ) -> None:
        if self.on_event is not None:
            self.on_event(event, action, attempt, message)
