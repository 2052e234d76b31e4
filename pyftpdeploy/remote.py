"""HTTP client for the remote tree endpoint."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from .exceptions import RemoteFetchError
from .sync.snapshot import Snapshot
from .utils import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


class RemoteTreeClient:
    """Fetches remote tree snapshots over HTTP.

    The endpoint is a script deployed next to the remote files that returns
    the same JSON shape as ``Snapshot.to_dict()``, or ``{"error": ...}``.
    This client performs a single request per fetch and does not retry.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ):
        """Initialize remote tree client.

        Args:
            timeout: Request timeout in seconds (default: 60)
            client: Optional pre-configured httpx client (not closed by us)
        """
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    def close(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client and self._client is not None:
            if not self._client.is_closed:
                self._client.close()
            self._client = None

    def __enter__(self) -> RemoteTreeClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def fetch(self, url: str, exclusions: Iterable[str] = ()) -> Snapshot:
        """Fetch and parse the remote snapshot.

        Args:
            url: Address of the remote tree endpoint
            exclusions: Patterns forwarded as a comma-joined ``exclude``
                query parameter (omitted when empty)

        Returns:
            Snapshot of the remote tree

        Raises:
            RemoteFetchError: If the endpoint is unreachable, answers with a
                non-success status, returns something other than a JSON
                object, reports an error, or sends a malformed snapshot
        """
        patterns = [p for p in exclusions if p.strip()]
        params = {"exclude": ",".join(patterns)} if patterns else None

        logger.debug(f"GET {url} params={params}")
        try:
            response = self._get_client().get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteFetchError(
                f"Failed to download remote tree. HTTP code: "
                f"{e.response.status_code}",
                details={"url": url, "status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            raise RemoteFetchError(
                f"Failed to download remote tree: {e}", details={"url": url}
            ) from e

        payload = self._parse_json(response, url)

        if "error" in payload:
            raise RemoteFetchError(
                f"Remote tree error: {payload['error']}", details={"url": url}
            )

        try:
            snapshot = Snapshot.from_dict(payload)
        except ValueError as e:
            raise RemoteFetchError(
                f"Invalid remote tree payload: {e}", details={"url": url}
            ) from e

        logger.debug(f"Fetched remote tree with {len(snapshot)} entries")
        return snapshot

    def _parse_json(self, response: httpx.Response, url: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteFetchError(
                f"Failed to parse remote tree JSON: {e}", details={"url": url}
            ) from e
        if not isinstance(payload, dict):
            raise RemoteFetchError(
                "Failed to parse remote tree JSON: expected an object",
                details={"url": url},
            )
        return payload
