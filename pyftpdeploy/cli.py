"""CLI interface for pyftpdeploy."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .config import (
    LOCAL_DIR_KEY,
    PASSWORD_KEY,
    REMOTE_TREE_URL_KEY,
    SERVER_KEY,
    USERNAME_KEY,
    config,
)
from .deployer import Deployer, DeployOptions
from .exceptions import FtpDeployError
from .output import OutputFormatter
from .remote import RemoteTreeClient
from .remote_tree import build_remote_payload
from .sync.artifacts import load_snapshot
from .sync.comparator import TreeComparator, summarize_plan
from .sync.exclusions import split_patterns
from .transport.ftp import FtpTransport
from .utils import DEFAULT_FTP_PORT, DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pyftpdeploy")
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, verbose: bool) -> None:
    """pyftpdeploy - Mirror a local directory to an FTP server."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pyftpdeploy").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option("--server", "-s", help="FTP server hostname or IP")
@click.option("--username", "-u", help="FTP username")
@click.option("--password", "-p", help="FTP password")
@click.option(
    "--local-dir",
    "-l",
    type=click.Path(file_okay=False, path_type=Path),
    help="Local directory to deploy",
)
@click.option("--remote-tree-url", "-r", help="URL of the remote tree script")
@click.option(
    "--exclude",
    "-e",
    "excludes",
    multiple=True,
    help="Path pattern to exclude (repeatable, comma-separated allowed)",
)
@click.option(
    "--timeout",
    type=int,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="FTP and HTTP timeout in seconds",
)
@click.option(
    "--max-retries",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_RETRIES,
    show_default=True,
    help="Attempts per action before it is marked failed",
)
@click.option(
    "--port", type=int, default=DEFAULT_FTP_PORT, show_default=True, help="FTP port"
)
@click.option("--tls", is_flag=True, help="Use explicit FTPS (AUTH TLS)")
@click.option("--remote-root", help="Remote directory to deploy into")
@click.option(
    "--artifacts-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Write local-tree/diff/results JSON files to this directory",
)
@click.option("--progress", is_flag=True, help="Show a progress bar while applying")
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without doing it"
)
@click.pass_context
def deploy(
    ctx: Any,
    server: Optional[str],
    username: Optional[str],
    password: Optional[str],
    local_dir: Optional[Path],
    remote_tree_url: Optional[str],
    excludes: tuple[str, ...],
    timeout: int,
    max_retries: int,
    port: int,
    tls: bool,
    remote_root: Optional[str],
    artifacts_dir: Optional[Path],
    progress: bool,
    dry_run: bool,
) -> None:
    """Deploy a local directory to a remote FTP server.

    Missing options fall back to FTPDEPLOY_* environment variables and the
    config file written by `pyftpdeploy init`.
    """
    out: OutputFormatter = ctx.obj["out"]

    server = server or config.server
    username = username or config.username
    password = password or config.password
    remote_tree_url = remote_tree_url or config.remote_tree_url
    if local_dir is None and config.local_dir:
        local_dir = Path(config.local_dir)

    required = {
        "server": server,
        "username": username,
        "password": password,
        "local-dir": local_dir,
        "remote-tree-url": remote_tree_url,
    }
    for name, value in required.items():
        if not value:
            out.error(f"Required option --{name} is missing")
            ctx.exit(1)

    options = DeployOptions(
        local_dir=Path(str(local_dir)),
        remote_tree_url=str(remote_tree_url),
        exclusions=split_patterns(excludes),
        max_retries=max_retries,
        artifacts_dir=artifacts_dir,
        dry_run=dry_run,
        progress=progress,
    )
    transport = FtpTransport(
        host=str(server),
        username=str(username),
        password=str(password),
        port=port,
        timeout=timeout,
        use_tls=tls,
        remote_root=remote_root,
    )

    if dry_run:
        out.info("Dry run: no changes will be made")

    report = None
    try:
        with RemoteTreeClient(timeout=timeout) as remote_client:
            report = Deployer(options, transport, remote_client, out).run()
    except KeyboardInterrupt:
        out.warning("Deployment cancelled by user")
        ctx.exit(130)
    except FtpDeployError as e:
        out.error(f"Deployment failed: {e}")

    if report is None:
        ctx.exit(1)

    if out.json_output:
        out.output_json(report.to_dict())
    elif report.execution is not None and report.execution.failed_count:
        out.warning(
            f"Deployment finished with {report.execution.failed_count} failed "
            "operation(s)"
        )
    else:
        out.success("Dry run completed" if dry_run else "Deployment completed")


@main.command()
@click.argument(
    "directory", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option(
    "--exclude",
    "-e",
    "excludes",
    multiple=True,
    help="Path pattern to exclude (repeatable, comma-separated allowed)",
)
@click.pass_context
def tree(ctx: Any, directory: Path, excludes: tuple[str, ...]) -> None:
    """Print the remote tree JSON for DIRECTORY.

    This is the response the remote tree endpoint serves, useful for
    checking exclusions or producing a snapshot to compare with `diff`.
    """
    out: OutputFormatter = ctx.obj["out"]
    payload = build_remote_payload(directory, ",".join(split_patterns(excludes)))
    out.output_json(payload)
    if "error" in payload:
        ctx.exit(1)


@main.command()
@click.argument("local_tree", type=click.Path(exists=True, dir_okay=False))
@click.argument("remote_tree", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def diff(ctx: Any, local_tree: str, remote_tree: str) -> None:
    """Show the plan that would turn REMOTE_TREE into LOCAL_TREE.

    Both arguments are snapshot JSON files, for example the output of
    `pyftpdeploy tree` or a saved local-tree.json artifact.
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        local = load_snapshot(local_tree)
        remote = load_snapshot(remote_tree)
    except (OSError, ValueError) as e:
        out.error(f"Could not read snapshot: {e}")
        ctx.exit(1)

    plan = TreeComparator().compare(local, remote)

    if out.json_output:
        out.output_json(plan.to_dict())
        return

    if plan.is_empty:
        out.success("No changes needed - trees are in sync")
        return

    out.output_table(
        [
            {"action": a.kind.value, "path": a.path, "reason": a.reason}
            for a in plan
        ],
        ["action", "path", "reason"],
        {"action": "Action", "path": "Path", "reason": "Reason"},
    )
    summary = summarize_plan(plan, local)
    out.print_summary(
        "Summary",
        [
            ("Upload", f"{summary.upload_files} files, {summary.upload_dirs} folders"),
            ("Update", f"{summary.update_files} files"),
            ("Delete", f"{summary.delete_files} files, {summary.delete_dirs} folders"),
            (
                "No change",
                f"{summary.unchanged_files} files, {summary.unchanged_dirs} folders",
            ),
        ],
    )


@main.command()
@click.option("--server", prompt="FTP server", help="FTP server hostname or IP")
@click.option("--username", prompt="FTP username", help="FTP username")
@click.option(
    "--password",
    prompt="FTP password",
    hide_input=True,
    help="FTP password",
)
@click.option(
    "--remote-tree-url",
    prompt="Remote tree URL",
    help="URL of the remote tree script",
)
@click.option("--local-dir", default="", help="Default local directory to deploy")
@click.pass_context
def init(
    ctx: Any,
    server: str,
    username: str,
    password: str,
    remote_tree_url: str,
    local_dir: str,
) -> None:
    """Store deploy defaults.

    Writes ~/.config/pyftpdeploy/config (mode 0600) so that `deploy` can be
    run without repeating connection options.
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        config_path = config.save(
            **{
                SERVER_KEY: server,
                USERNAME_KEY: username,
                PASSWORD_KEY: password,
                REMOTE_TREE_URL_KEY: remote_tree_url,
                LOCAL_DIR_KEY: local_dir,
            }
        )
    except OSError as e:
        out.error(f"Initialization failed: {e}")
        ctx.exit(1)

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "Configuration saved successfully"),
            ("Config file", str(config_path)),
        ],
    )


if __name__ == "__main__":
    main()
