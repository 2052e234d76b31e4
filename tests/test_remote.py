"""Tests for the remote tree client and the endpoint payload builder."""

import json

import httpx
import pytest

from pyftpdeploy.exceptions import RemoteFetchError
from pyftpdeploy.remote import RemoteTreeClient
from pyftpdeploy.remote_tree import (
    REMOTE_SCRIPT_NAME,
    build_remote_payload,
    parse_exclude_param,
)

URL = "https://example.com/ftp-remote-tree.php"

PAYLOAD = {
    "generated_at": "2024-01-01T00:00:00+00:00",
    "base_path": "/var/www",
    "exclusions": ["ftp-remote-tree.php"],
    "files": [
        {"path": "b.txt", "type": "file", "size": 1, "modified": 1, "hash": "x"},
        {"path": "a", "type": "directory", "size": 0, "modified": 1},
    ],
}


def make_client(handler):
    return RemoteTreeClient(client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestRemoteTreeClient:
    """Tests for RemoteTreeClient.fetch."""

    def test_fetch_parses_snapshot(self):
        client = make_client(lambda request: httpx.Response(200, json=PAYLOAD))
        snapshot = client.fetch(URL)
        assert [e.path for e in snapshot.entries] == ["a", "b.txt"]
        assert snapshot.base_path == "/var/www"

    def test_exclusions_sent_comma_joined(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json=PAYLOAD)

        make_client(handler).fetch(URL, ["vendor/**", ".env"])
        assert seen[0].params["exclude"] == "vendor/**,.env"

    def test_no_exclude_param_when_empty(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json=PAYLOAD)

        make_client(handler).fetch(URL, [])
        assert "exclude" not in seen[0].params

    def test_http_error_status(self):
        client = make_client(lambda request: httpx.Response(500, text="oops"))
        with pytest.raises(RemoteFetchError, match="HTTP code: 500"):
            client.fetch(URL)

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(RemoteFetchError, match="Failed to download"):
            make_client(handler).fetch(URL)

    def test_invalid_json(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(RemoteFetchError, match="parse"):
            client.fetch(URL)

    def test_json_not_an_object(self):
        client = make_client(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(RemoteFetchError, match="expected an object"):
            client.fetch(URL)

    def test_error_field(self):
        client = make_client(
            lambda request: httpx.Response(200, json={"error": "Failed to scan"})
        )
        with pytest.raises(RemoteFetchError, match="Remote tree error: Failed to scan"):
            client.fetch(URL)

    def test_malformed_payload(self):
        client = make_client(
            lambda request: httpx.Response(200, json={"files": [{"type": "file"}]})
        )
        with pytest.raises(RemoteFetchError, match="Invalid remote tree payload"):
            client.fetch(URL)

    def test_entry_with_non_numeric_size(self):
        payload = dict(
            PAYLOAD,
            files=[{"path": "a", "type": "file", "size": {"x": 1}, "hash": "h"}],
        )
        client = make_client(lambda request: httpx.Response(200, json=payload))
        with pytest.raises(RemoteFetchError, match="invalid size"):
            client.fetch(URL)

    def test_injected_client_not_closed(self):
        http = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with RemoteTreeClient(client=http):
            pass
        assert not http.is_closed
        http.close()

    def test_owned_client_closed(self):
        client = RemoteTreeClient()
        http = client._get_client()
        client.close()
        assert http.is_closed


class TestBuildRemotePayload:
    """Tests for the endpoint payload builder."""

    def test_parse_exclude_param(self):
        assert parse_exclude_param("a/**, b ,") == ["a/**", "b"]
        assert parse_exclude_param("") == []
        assert parse_exclude_param(None) == []

    def test_payload_hides_script(self, tmp_path):
        (tmp_path / REMOTE_SCRIPT_NAME).write_text("<?php")
        (tmp_path / "index.html").write_text("hi")
        payload = build_remote_payload(tmp_path)

        paths = [f["path"] for f in payload["files"]]
        assert paths == ["index.html"]
        assert payload["exclusions"] == [REMOTE_SCRIPT_NAME]

    def test_payload_applies_exclude_param(self, tmp_path):
        (tmp_path / "vendor").mkdir()
        (tmp_path / "vendor" / "x").write_text("x")
        (tmp_path / "a.txt").write_text("a")
        payload = build_remote_payload(tmp_path, "vendor/**")

        assert [f["path"] for f in payload["files"]] == ["a.txt"]
        assert payload["exclusions"] == [REMOTE_SCRIPT_NAME, "vendor/**"]

    def test_payload_is_json_serializable(self, tmp_path):
        (tmp_path / "ünïcode.txt").write_text("u")
        payload = build_remote_payload(tmp_path)
        assert "ünïcode.txt" in json.dumps(payload, ensure_ascii=False)

    def test_scan_failure_returns_error(self, tmp_path):
        payload = build_remote_payload(tmp_path / "missing")
        assert set(payload) == {"error"}
        assert payload["error"].startswith("Failed to scan directory")

    def test_payload_round_trips_through_client(self, tmp_path):
        (tmp_path / "a.txt").write_text("a")
        payload = build_remote_payload(tmp_path)
        client = make_client(lambda request: httpx.Response(200, json=payload))
        snapshot = client.fetch(URL)
        assert snapshot.by_path()["a.txt"].content_hash == payload["files"][0]["hash"]
