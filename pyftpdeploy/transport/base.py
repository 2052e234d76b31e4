"""Transport capability used by the sync executor."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Protocol, Union, runtime_checkable

from ..exceptions import ConnectivityError, TransportOperationError

logger = logging.getLogger(__name__)


@runtime_checkable
class TransportClient(Protocol):
    """Operations the executor needs from a remote file store.

    Every mutating call raises ``TransportOperationError`` (or its subclass
    ``ConnectivityError`` when the connection itself is unusable) carrying the
    attempted operation and path.
    """

    def connect(self) -> None: ...

    def disconnect(self) -> None: ...

    def is_alive(self) -> bool: ...

    def reconnect(self) -> None: ...

    def mkdir(self, path: str) -> None: ...

    def rmdir(self, path: str) -> None: ...

    def put(self, local_path: Union[str, Path], remote_path: str) -> None: ...

    def delete(self, path: str) -> None: ...

    def change_dir(self, path: str) -> None: ...

    def pwd(self) -> str: ...


class BaseTransport(ABC):
    """Base class for transports with scoped connection handling.

    Used as a context manager the transport connects on enter and always
    disconnects on exit.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open the connection and authenticate."""

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection. Must be safe to call when not connected."""

    @abstractmethod
    def is_alive(self) -> bool:
        """Check whether the connection is still usable."""

    def reconnect(self) -> None:
        """Drop the current connection and open a new one."""
        self.disconnect()
        self.connect()

    @abstractmethod
    def mkdir(self, path: str) -> None:
        """Create a single remote directory."""

    @abstractmethod
    def rmdir(self, path: str) -> None:
        """Remove an empty remote directory."""

    @abstractmethod
    def put(self, local_path: Union[str, Path], remote_path: str) -> None:
        """Upload a local file, replacing the remote one if present."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete a remote file."""

    @abstractmethod
    def change_dir(self, path: str) -> None:
        """Change the remote working directory."""

    @abstractmethod
    def pwd(self) -> str:
        """Return the remote working directory."""

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False


def ensure_remote_directory(transport: TransportClient, path: str) -> None:
    """Make sure every segment of ``path`` exists on the remote side.

    Each segment is probed by changing into it and created when that fails.
    The working directory is restored afterwards, even on error.

    Args:
        transport: Connected transport
        path: Directory path relative to the transport's working directory

    Raises:
        TransportOperationError: If a missing segment cannot be created
        ConnectivityError: If the connection drops while probing
    """
    segments = [s for s in path.strip("/").split("/") if s]
    if not segments:
        return

    original = transport.pwd()
    try:
        for segment in segments:
            try:
                transport.change_dir(segment)
            except ConnectivityError:
                raise
            except TransportOperationError:
                logger.debug(f"Creating missing remote directory: {segment}")
                transport.mkdir(segment)
                transport.change_dir(segment)
    except TransportOperationError:
        # Keep the original error if returning fails too
        try:
            transport.change_dir(original)
        except TransportOperationError as e:
            logger.warning(f"Could not return to remote directory {original}: {e}")
        raise
    transport.change_dir(original)
