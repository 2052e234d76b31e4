"""Exception hierarchy for pyftpdeploy."""

from typing import Any, Optional


class FtpDeployError(Exception):
    """Base exception for all pyftpdeploy errors.

    Attributes:
        details: Optional structured information about the failure
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DeployConfigError(FtpDeployError):
    """Raised when required options are missing or invalid."""


class DirectoryNotFoundError(FtpDeployError):
    """Raised when a directory to scan does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Directory not found: {path}", details={"path": path})
        self.path = path


class RemoteFetchError(FtpDeployError):
    """Raised when the remote tree snapshot cannot be retrieved."""


class LocalFileMissingError(FtpDeployError):
    """Raised when a file scheduled for upload no longer exists locally."""

    def __init__(self, path: str):
        super().__init__(f"Local file not found: {path}", details={"path": path})
        self.path = path


class TransportOperationError(FtpDeployError):
    """Raised when a transport call fails.

    Attributes:
        operation: Name of the attempted operation (e.g. "mkdir")
        path: Remote path the operation was applied to
    """

    def __init__(self, operation: str, path: str, message: str):
        super().__init__(
            f"Failed to {operation} {path}: {message}",
            details={"operation": operation, "path": path},
        )
        self.operation = operation
        self.path = path


class ConnectivityError(TransportOperationError):
    """Raised when the transport connection is lost or cannot be opened."""


class UnknownActionKindError(FtpDeployError):
    """Raised when a plan contains an action kind the executor cannot run."""
