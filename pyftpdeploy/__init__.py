"""pyftpdeploy - mirror a local directory tree to an FTP server."""

from .exceptions import (
    ConnectivityError,
    DeployConfigError,
    DirectoryNotFoundError,
    FtpDeployError,
    LocalFileMissingError,
    RemoteFetchError,
    TransportOperationError,
    UnknownActionKindError,
)
from .remote import RemoteTreeClient
from .sync import SyncExecutor, TreeBuilder, TreeComparator, diff_trees, is_excluded
from .transport import FtpTransport
from .utils import calculate_file_hash

__all__ = [
    "FtpDeployError",
    "DeployConfigError",
    "DirectoryNotFoundError",
    "RemoteFetchError",
    "LocalFileMissingError",
    "TransportOperationError",
    "ConnectivityError",
    "UnknownActionKindError",
    "RemoteTreeClient",
    "SyncExecutor",
    "TreeBuilder",
    "TreeComparator",
    "diff_trees",
    "is_excluded",
    "FtpTransport",
    "calculate_file_hash",
]
