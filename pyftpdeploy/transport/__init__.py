"""Transports that apply sync plans to a remote file store."""

from .base import BaseTransport, TransportClient, ensure_remote_directory
from .ftp import FtpTransport

__all__ = [
    "BaseTransport",
    "TransportClient",
    "ensure_remote_directory",
    "FtpTransport",
]
