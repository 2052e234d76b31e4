"""Utility functions for pyftpdeploy."""

import hashlib
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

# =============================================================================
# Constants for deploy operations
# =============================================================================

# Timeout for FTP and HTTP calls (seconds)
DEFAULT_TIMEOUT: int = 60

# Attempts per plan action before it is recorded as failed
DEFAULT_MAX_RETRIES: int = 4

# Upper bound of the per-action backoff (seconds)
ACTION_BACKOFF_CAP: float = 5.0

# Upper bound for connection-level retries (seconds).
# SyncExecutor retries per action; transports do not retry on their own.
TRANSPORT_BACKOFF_CAP: float = 10.0

# Read size when hashing local files (64 KB)
HASH_CHUNK_SIZE: int = 64 * 1024

# Default FTP control port
DEFAULT_FTP_PORT: int = 21


# =============================================================================
# Hash calculation utilities
# =============================================================================


def calculate_file_hash(path: Union[str, Path]) -> str:
    """Calculate the content hash of a file.

    The digest is MD5 as lowercase hex, which is what the remote tree
    generator emits, so local and remote hashes compare directly. It is
    used for change detection only.

    Args:
        path: Path to the file

    Returns:
        32-character hex digest

    Examples:
        >>> import tempfile, os
        >>> with tempfile.NamedTemporaryFile(delete=False) as f:
        ...     _ = f.write(b"hello")
        >>> calculate_file_hash(f.name)
        '5d41402abc4b2a76b9719d911017c592'
        >>> os.unlink(f.name)
    """
    h = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


# =============================================================================
# Retry utilities
# =============================================================================


def backoff_delay(attempt: int, cap: float = ACTION_BACKOFF_CAP) -> float:
    """Calculate the sleep before the next attempt.

    Args:
        attempt: Number of the attempt that just failed (1-based)
        cap: Maximum delay in seconds

    Returns:
        min(2 ** (attempt - 1), cap) seconds

    Examples:
        >>> [backoff_delay(n) for n in range(1, 6)]
        [1.0, 2.0, 4.0, 5.0, 5.0]
        >>> backoff_delay(4, cap=10)
        8.0
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return float(min(2 ** (attempt - 1), cap))


# =============================================================================
# Path utilities
# =============================================================================


def remote_parent(path: str) -> Optional[str]:
    """Return the parent directory of a remote path, or None at top level.

    Examples:
        >>> remote_parent("a/b/c.txt")
        'a/b'
        >>> remote_parent("c.txt") is None
        True
    """
    stripped = path.strip("/")
    if "/" not in stripped:
        return None
    return stripped.rsplit("/", 1)[0]


# =============================================================================
# Timestamp and size formatting utilities
# =============================================================================


def now_iso() -> str:
    """Current local time as an ISO-8601 string with UTC offset."""
    return datetime.now(timezone.utc).astimezone().isoformat(timespec="seconds")


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
