"""Deploy orchestration: scan, fetch, diff, execute and verify."""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from .cli_progress import DeployProgressDisplay
from .exceptions import DeployConfigError, FtpDeployError
from .output import OutputFormatter
from .remote import RemoteTreeClient
from .remote_tree import REMOTE_SCRIPT_NAME
from .sync.artifacts import (
    DIFF_FILE,
    LOCAL_TREE_FILE,
    RESULTS_FILE,
    VERIFICATION_FILE,
    save_json,
)
from .sync.comparator import (
    SyncAction,
    SyncActionKind,
    SyncPlan,
    TreeComparator,
    summarize_plan,
)
from .sync.engine import ExecutionResult, ExecutorEvent, SyncExecutor
from .sync.scanner import TreeBuilder
from .sync.snapshot import Snapshot
from .transport.base import BaseTransport
from .utils import DEFAULT_MAX_RETRIES

logger = logging.getLogger(__name__)

ACTION_LABELS = {
    SyncActionKind.CREATE_DIRECTORY: "Create directory",
    SyncActionKind.UPLOAD_FILE: "Upload file",
    SyncActionKind.UPDATE_FILE: "Update file",
    SyncActionKind.REMOVE_FILE: "Delete file",
    SyncActionKind.REMOVE_DIRECTORY: "Delete directory",
}


@dataclass
class DeployOptions:
    """Settings for one deploy run."""

    local_dir: Path
    remote_tree_url: str
    exclusions: list[str] = field(default_factory=list)
    max_retries: int = DEFAULT_MAX_RETRIES
    artifacts_dir: Optional[Path] = None
    """Directory for JSON artifacts; nothing is written when None"""

    dry_run: bool = False
    progress: bool = False
    """Show a progress bar instead of one line per action"""

    def validate(self) -> None:
        """Check options before anything touches the network.

        Raises:
            DeployConfigError: If an option is invalid
        """
        if not Path(self.local_dir).is_dir():
            raise DeployConfigError(f"Local directory does not exist: {self.local_dir}")
        parsed = urlparse(self.remote_tree_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise DeployConfigError(f"Invalid remote tree URL: {self.remote_tree_url}")
        if self.max_retries < 1:
            raise DeployConfigError("--max-retries must be at least 1")


@dataclass
class DeployReport:
    """Everything a deploy run produced."""

    local: Snapshot
    remote: Optional[Snapshot] = None
    plan: Optional[SyncPlan] = None
    execution: Optional[ExecutionResult] = None
    """None for dry runs and when there was nothing to do"""

    verification: Optional[SyncPlan] = None
    """Remaining differences after execution, None when not verified"""

    verification_error: Optional[str] = None

    @property
    def in_sync(self) -> bool:
        if self.plan is not None and self.plan.is_empty:
            return True
        return self.verification is not None and self.verification.is_empty

    def to_dict(self) -> dict[str, Any]:
        return {
            "local_entries": len(self.local),
            "remote_entries": len(self.remote) if self.remote is not None else None,
            "plan": self.plan.to_dict() if self.plan is not None else None,
            "execution": (
                self.execution.to_dict() if self.execution is not None else None
            ),
            "verification": (
                self.verification.to_dict() if self.verification is not None else None
            ),
            "verification_error": self.verification_error,
            "in_sync": self.in_sync,
        }


class Deployer:
    """Runs the deploy steps against a transport and a remote tree endpoint.

    Examples:
        >>> transport = FtpTransport("ftp.example.com", "deploy", "secret")
        >>> with RemoteTreeClient() as remote:
        ...     report = Deployer(options, transport, remote).run()
    """

    def __init__(
        self,
        options: DeployOptions,
        transport: BaseTransport,
        remote_client: RemoteTreeClient,
        output: Optional[OutputFormatter] = None,
        executor: Optional[SyncExecutor] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize deployer.

        Args:
            options: Deploy settings
            transport: Transport to apply the plan with (not yet connected)
            remote_client: Client for the remote tree endpoint
            output: Output formatter for user-facing messages
            executor: Executor to use (a default one is created if omitted)
            cancel_event: Set to stop execution before the next action
        """
        self.options = options
        self.transport = transport
        self.remote_client = remote_client
        self.output = output or OutputFormatter()
        self.executor = executor or SyncExecutor()
        self.cancel_event = cancel_event
        self.comparator = TreeComparator()

    def run(self) -> DeployReport:
        """Run the deploy.

        Returns:
            DeployReport describing the run

        Raises:
            DeployConfigError: If options are invalid
            DirectoryNotFoundError: If the local directory disappears
            RemoteFetchError: If the remote tree cannot be fetched
            ConnectivityError: If the transport cannot connect
        """
        opts = self.options
        out = self.output
        opts.validate()

        out.step(1, "Generating local file tree...")
        # The endpoint never lists its own script, so it is never deployed
        local = TreeBuilder(forced_exclusions=[REMOTE_SCRIPT_NAME]).build(
            opts.local_dir, opts.exclusions
        )
        out.success(f"Found {len(local)} files/directories in local tree")
        self._save_artifact(local.to_dict(), LOCAL_TREE_FILE, "Local tree")
        report = DeployReport(local=local)

        with self.transport:
            out.step(2, "Connected to FTP server")

            out.step(3, "Fetching remote file tree...")
            out.progress_message(f"Calling: {opts.remote_tree_url}")
            report.remote = self.remote_client.fetch(
                opts.remote_tree_url, opts.exclusions
            )
            out.success(
                f"Found {len(report.remote)} files/directories in remote tree"
            )

            out.step(4, "Comparing local and remote trees...")
            report.plan = self.comparator.compare(local, report.remote)
            if report.plan.is_empty:
                out.success(
                    "No changes needed - local and remote are already in sync!"
                )
                return report

            self._show_plan(report.plan, local)
            self._save_artifact(report.plan.to_dict(), DIFF_FILE, "Diff")

            if opts.dry_run:
                out.warning(
                    f"DRY RUN: would apply {len(report.plan)} change(s). "
                    "Run without --dry-run to execute them."
                )
                return report

            out.step(5, "Applying changes...")
            report.execution = self._execute(report.plan)
            self._show_results(report.execution)
            self._save_artifact(report.execution.to_dict(), RESULTS_FILE, "Results")

            if report.execution.failed_count == 0 and not report.execution.cancelled:
                out.step(6, "Verifying synchronization...")
                self._verify(report)
            else:
                out.warning("Some operations did not complete. Skipping verification.")

        return report

    def _execute(self, plan: SyncPlan) -> ExecutionResult:
        opts = self.options
        if opts.progress and not self.output.quiet:
            with DeployProgressDisplay(
                total=len(plan), console=self.output.console
            ) as display:
                self.executor.on_event = display.handle_event
                return self._run_executor(plan)

        self.executor.on_event = self._print_event
        return self._run_executor(plan)

    def _run_executor(self, plan: SyncPlan) -> ExecutionResult:
        return self.executor.execute(
            plan,
            self.options.local_dir,
            self.transport,
            max_retries=self.options.max_retries,
            cancel_event=self.cancel_event,
        )

    def _print_event(
        self, event: ExecutorEvent, action: SyncAction, attempt: int, message: str
    ) -> None:
        out = self.output
        if event is ExecutorEvent.STARTED:
            out.info(f"{ACTION_LABELS[action.kind]}: {action.path}")
        elif event is ExecutorEvent.RETRYING:
            out.progress_message(
                f"  Retrying ({attempt}/{self.options.max_retries}): {message}"
            )
        elif event is ExecutorEvent.FAILED:
            out.error(f"{action.kind.value} {action.path}: {message}")

    def _verify(self, report: DeployReport) -> None:
        out = self.output
        try:
            remote = self.remote_client.fetch(
                self.options.remote_tree_url, self.options.exclusions
            )
        except FtpDeployError as e:
            report.verification_error = str(e)
            out.warning(f"Verification failed: {e}")
            return

        report.verification = self.comparator.compare(report.local, remote)
        if report.verification.is_empty:
            out.success("Verification successful - local and remote are now in sync!")
            return

        out.warning(
            f"Verification found {len(report.verification)} remaining differences"
        )
        for action in report.verification:
            out.info(f"  - {action.kind.value}: {action.path}")
        self._save_artifact(
            report.verification.to_dict(), VERIFICATION_FILE, "Verification diff"
        )

    def _show_plan(self, plan: SyncPlan, local: Snapshot) -> None:
        out = self.output
        if out.json_output:
            return
        summary = summarize_plan(plan, local)
        out.output_table(
            [
                {
                    "action": "Upload",
                    "files": summary.upload_files,
                    "folders": summary.upload_dirs,
                },
                {
                    "action": "Delete",
                    "files": summary.delete_files,
                    "folders": summary.delete_dirs,
                },
                {"action": "Update", "files": summary.update_files, "folders": 0},
                {
                    "action": "No change",
                    "files": summary.unchanged_files,
                    "folders": summary.unchanged_dirs,
                },
            ],
            ["action", "files", "folders"],
            {"action": "Action", "files": "Files", "folders": "Folders"},
            title="Work plan",
        )
        for action in plan:
            out.info(f"  {action.path} -> {ACTION_LABELS[action.kind]}")

    def _show_results(self, result: ExecutionResult) -> None:
        out = self.output
        out.print("")
        out.info(
            f"Completed: {result.completed_count}/{result.total_count} "
            f"({result.success_rate:.1f}%)"
        )
        if result.cancelled:
            out.warning("Execution was cancelled before all actions ran")
        if result.failed_count:
            out.error(f"Failed: {result.failed_count}")
            for failed in result.failed_results():
                out.info(f"  {failed.action.kind.value}: {failed.action.path}")
                out.info(f"    Error: {failed.message}")
        elif not result.cancelled:
            out.success("All operations completed successfully!")

    def _save_artifact(self, data, filename: str, label: str) -> None:
        if self.options.artifacts_dir is None:
            return
        path = save_json(data, Path(self.options.artifacts_dir) / filename)
        self.output.progress_message(f"{label} saved to: {path}")
