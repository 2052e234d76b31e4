"""Tests for deploy orchestration."""

import json
from unittest.mock import MagicMock, Mock

import pytest

from pyftpdeploy.deployer import Deployer, DeployOptions
from pyftpdeploy.exceptions import (
    DeployConfigError,
    RemoteFetchError,
    TransportOperationError,
)
from pyftpdeploy.output import OutputFormatter
from pyftpdeploy.remote import RemoteTreeClient
from pyftpdeploy.remote_tree import REMOTE_SCRIPT_NAME, build_remote_payload
from pyftpdeploy.sync.engine import SyncExecutor
from pyftpdeploy.sync.scanner import TreeBuilder
from pyftpdeploy.sync.snapshot import Snapshot
from pyftpdeploy.transport.base import BaseTransport

URL = "https://example.com/ftp-remote-tree.php"


def empty_snapshot():
    return Snapshot(generated_at="t", base_path="/remote")


class TestDeployOptions:
    """Validation of deploy options."""

    def test_valid(self, tmp_path):
        DeployOptions(local_dir=tmp_path, remote_tree_url=URL).validate()

    def test_missing_local_dir(self, tmp_path):
        options = DeployOptions(local_dir=tmp_path / "nope", remote_tree_url=URL)
        with pytest.raises(DeployConfigError, match="does not exist"):
            options.validate()

    @pytest.mark.parametrize("url", ["not a url", "ftp://example.com/x", "http://"])
    def test_invalid_url(self, tmp_path, url):
        options = DeployOptions(local_dir=tmp_path, remote_tree_url=url)
        with pytest.raises(DeployConfigError, match="Invalid remote tree URL"):
            options.validate()

    def test_invalid_retries(self, tmp_path):
        options = DeployOptions(local_dir=tmp_path, remote_tree_url=URL, max_retries=0)
        with pytest.raises(DeployConfigError):
            options.validate()


class TestDeployer:
    """Test the deploy steps end to end with mocked I/O."""

    @pytest.fixture
    def local_dir(self, tmp_path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "index.html").write_text("<h1>hi</h1>")
        (site / "css").mkdir()
        (site / "css" / "app.css").write_text("body{}")
        return site

    @pytest.fixture
    def transport(self):
        transport = MagicMock(spec=BaseTransport)
        transport.__enter__.return_value = transport
        transport.is_alive.return_value = True
        transport.pwd.return_value = "/"
        return transport

    @pytest.fixture
    def remote_client(self):
        return Mock(spec=RemoteTreeClient)

    @pytest.fixture
    def output(self):
        output = Mock(spec=OutputFormatter)
        output.quiet = True
        output.json_output = False
        return output

    def make_deployer(self, options, transport, remote_client, output):
        return Deployer(
            options,
            transport,
            remote_client,
            output,
            executor=SyncExecutor(sleep=lambda _: None),
        )

    def test_full_deploy_then_verify(
        self, local_dir, transport, remote_client, output, tmp_path
    ):
        local = TreeBuilder().build(local_dir)
        remote_client.fetch.side_effect = [empty_snapshot(), local]
        artifacts = tmp_path / "artifacts"
        options = DeployOptions(
            local_dir=local_dir, remote_tree_url=URL, artifacts_dir=artifacts
        )

        report = self.make_deployer(options, transport, remote_client, output).run()

        assert report.execution is not None
        assert report.execution.completed_count == 3
        assert report.verification is not None and report.verification.is_empty
        assert report.in_sync
        transport.mkdir.assert_called_once_with("css")
        assert transport.put.call_count == 2
        transport.__exit__.assert_called_once()

        for name in ("local-tree.json", "diff.json", "results.json"):
            assert (artifacts / name).exists()
        assert not (artifacts / "verification.json").exists()
        results = json.loads((artifacts / "results.json").read_text())
        assert results["completed"] == 3

    def test_exclusions_passed_to_fetch(
        self, local_dir, transport, remote_client, output
    ):
        remote_client.fetch.return_value = TreeBuilder().build(local_dir, ["css/**"])
        options = DeployOptions(
            local_dir=local_dir, remote_tree_url=URL, exclusions=["css/**"]
        )
        report = self.make_deployer(options, transport, remote_client, output).run()

        remote_client.fetch.assert_called_once_with(URL, ["css/**"])
        assert report.plan is not None and report.plan.is_empty

    def test_nothing_to_do_still_disconnects(
        self, local_dir, transport, remote_client, output
    ):
        remote_client.fetch.return_value = TreeBuilder().build(local_dir)
        options = DeployOptions(local_dir=local_dir, remote_tree_url=URL)

        report = self.make_deployer(options, transport, remote_client, output).run()

        assert report.plan.is_empty
        assert report.execution is None
        assert report.in_sync
        transport.__enter__.assert_called_once()
        transport.__exit__.assert_called_once()
        transport.put.assert_not_called()

    def test_endpoint_script_never_deployed(
        self, local_dir, transport, remote_client, output
    ):
        (local_dir / REMOTE_SCRIPT_NAME).write_text("<?php")
        remote = Snapshot.from_dict(build_remote_payload(local_dir))
        remote_client.fetch.return_value = remote
        options = DeployOptions(local_dir=local_dir, remote_tree_url=URL)

        report = self.make_deployer(options, transport, remote_client, output).run()

        assert report.plan is not None and report.plan.is_empty
        assert REMOTE_SCRIPT_NAME not in report.local.by_path()
        assert report.local.exclusions[0] == REMOTE_SCRIPT_NAME
        transport.put.assert_not_called()

    def test_dry_run_makes_no_changes(
        self, local_dir, transport, remote_client, output
    ):
        remote_client.fetch.return_value = empty_snapshot()
        options = DeployOptions(local_dir=local_dir, remote_tree_url=URL, dry_run=True)

        report = self.make_deployer(options, transport, remote_client, output).run()

        assert len(report.plan) == 3
        assert report.execution is None
        transport.mkdir.assert_not_called()
        transport.put.assert_not_called()
        remote_client.fetch.assert_called_once()

    def test_failures_skip_verification(
        self, local_dir, transport, remote_client, output
    ):
        remote_client.fetch.return_value = empty_snapshot()
        transport.mkdir.side_effect = TransportOperationError("mkdir", "css", "550")
        options = DeployOptions(local_dir=local_dir, remote_tree_url=URL, max_retries=2)

        report = self.make_deployer(options, transport, remote_client, output).run()

        assert report.execution.failed_count == 1
        assert report.verification is None
        assert not report.in_sync
        remote_client.fetch.assert_called_once()

    def test_verification_error_is_advisory(
        self, local_dir, transport, remote_client, output
    ):
        remote_client.fetch.side_effect = [
            empty_snapshot(),
            RemoteFetchError("Failed to download remote tree: timeout"),
        ]
        options = DeployOptions(local_dir=local_dir, remote_tree_url=URL)

        report = self.make_deployer(options, transport, remote_client, output).run()

        assert report.execution.failed_count == 0
        assert report.verification is None
        assert "timeout" in report.verification_error

    def test_remaining_differences_saved(
        self, local_dir, transport, remote_client, output, tmp_path
    ):
        remote_client.fetch.side_effect = [empty_snapshot(), empty_snapshot()]
        options = DeployOptions(
            local_dir=local_dir, remote_tree_url=URL, artifacts_dir=tmp_path / "out"
        )

        report = self.make_deployer(options, transport, remote_client, output).run()

        assert len(report.verification) == 3
        assert (tmp_path / "out" / "verification.json").exists()

    def test_fetch_error_is_fatal_and_disconnects(
        self, local_dir, transport, remote_client, output
    ):
        remote_client.fetch.side_effect = RemoteFetchError("HTTP code: 500")
        options = DeployOptions(local_dir=local_dir, remote_tree_url=URL)

        with pytest.raises(RemoteFetchError):
            self.make_deployer(options, transport, remote_client, output).run()

        transport.__exit__.assert_called_once()
        transport.mkdir.assert_not_called()

    def test_invalid_options_fail_before_connecting(
        self, tmp_path, transport, remote_client, output
    ):
        options = DeployOptions(local_dir=tmp_path / "missing", remote_tree_url=URL)
        with pytest.raises(DeployConfigError):
            self.make_deployer(options, transport, remote_client, output).run()
        transport.__enter__.assert_not_called()

    def test_report_to_dict(self, local_dir, transport, remote_client, output):
        remote_client.fetch.return_value = empty_snapshot()
        options = DeployOptions(local_dir=local_dir, remote_tree_url=URL, dry_run=True)
        report = self.make_deployer(options, transport, remote_client, output).run()

        data = report.to_dict()
        assert data["local_entries"] == 3
        assert data["remote_entries"] == 0
        assert len(data["plan"]["actions"]) == 3
        assert data["execution"] is None
        assert data["in_sync"] is False

    def test_progress_display(self, local_dir, transport, remote_client):
        remote_client.fetch.side_effect = [
            empty_snapshot(),
            TreeBuilder().build(local_dir),
        ]
        output = OutputFormatter(quiet=False)
        options = DeployOptions(local_dir=local_dir, remote_tree_url=URL, progress=True)

        report = self.make_deployer(options, transport, remote_client, output).run()

        assert report.execution.completed_count == 3
