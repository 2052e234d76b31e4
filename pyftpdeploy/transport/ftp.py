"""FTP transport built on ftplib."""

import ftplib
import logging
from pathlib import Path
from typing import Optional, Union

from ..exceptions import ConnectivityError, TransportOperationError
from ..utils import DEFAULT_FTP_PORT, DEFAULT_TIMEOUT
from .base import BaseTransport

logger = logging.getLogger(__name__)

# ftplib raises these when the socket itself is gone
_CONNECTION_ERRORS = (OSError, EOFError)


class FtpTransport(BaseTransport):
    """Transport that writes to an FTP server.

    The transport never retries on its own; failures are mapped to
    ``ConnectivityError`` (connection unusable) or ``TransportOperationError``
    (the server refused the command) and left to the caller.

    Examples:
        >>> with FtpTransport("ftp.example.com", "deploy", "secret") as ftp:
        ...     ftp.mkdir("assets")
        ...     ftp.put("build/app.js", "assets/app.js")
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        port: int = DEFAULT_FTP_PORT,
        timeout: int = DEFAULT_TIMEOUT,
        use_tls: bool = False,
        remote_root: Optional[str] = None,
        passive: bool = True,
    ):
        """Initialize FTP transport.

        Args:
            host: Server hostname
            username: Login name
            password: Login password
            port: Control connection port
            timeout: Socket timeout in seconds
            use_tls: Use explicit FTPS (AUTH TLS) with a protected data channel
            remote_root: Directory to enter after login; plan paths are
                relative to it
            passive: Use passive mode for data connections
        """
        self.host = host
        self.username = username
        self.password = password
        self.port = port
        self.timeout = timeout
        self.use_tls = use_tls
        self.remote_root = remote_root
        self.passive = passive
        self._ftp: Optional[ftplib.FTP] = None

    @property
    def is_connected(self) -> bool:
        return self._ftp is not None

    def connect(self) -> None:
        """Connect, log in and enter the remote root.

        Raises:
            ConnectivityError: If the server cannot be reached or rejects
                the login
        """
        ftp = ftplib.FTP_TLS() if self.use_tls else ftplib.FTP()
        try:
            ftp.connect(self.host, self.port, timeout=self.timeout)
            ftp.login(self.username, self.password)
            if self.use_tls:
                ftp.prot_p()
            ftp.set_pasv(self.passive)
            if self.remote_root:
                ftp.cwd(self.remote_root)
        except (ftplib.Error, *_CONNECTION_ERRORS) as e:
            ftp.close()
            raise ConnectivityError(
                "connect to", f"{self.host}:{self.port}", str(e)
            ) from e

        self._ftp = ftp
        logger.debug(
            "Connected to %s:%d as %s (tls=%s, passive=%s)",
            self.host,
            self.port,
            self.username,
            self.use_tls,
            self.passive,
        )

    def disconnect(self) -> None:
        if self._ftp is None:
            return
        try:
            self._ftp.quit()
        except (ftplib.Error, *_CONNECTION_ERRORS) as e:
            logger.debug(f"QUIT failed, closing socket: {e}")
            self._ftp.close()
        finally:
            self._ftp = None

    def is_alive(self) -> bool:
        """Send NOOP to check that the control connection still works."""
        if self._ftp is None:
            return False
        try:
            self._ftp.voidcmd("NOOP")
            return True
        except (ftplib.Error, *_CONNECTION_ERRORS):
            return False

    def reconnect(self) -> None:
        logger.debug(f"Reconnecting to {self.host}:{self.port}")
        super().reconnect()

    def mkdir(self, path: str) -> None:
        self._call("mkdir", path, lambda ftp: ftp.mkd(path))

    def rmdir(self, path: str) -> None:
        self._call("rmdir", path, lambda ftp: ftp.rmd(path))

    def delete(self, path: str) -> None:
        self._call("delete", path, lambda ftp: ftp.delete(path))

    def change_dir(self, path: str) -> None:
        self._call("change to", path, lambda ftp: ftp.cwd(path))

    def pwd(self) -> str:
        return self._call("read working directory", "", lambda ftp: ftp.pwd())

    def put(self, local_path: Union[str, Path], remote_path: str) -> None:
        """Upload a local file in binary mode, replacing any remote file."""
        with open(local_path, "rb") as f:
            self._call(
                "upload",
                remote_path,
                lambda ftp: ftp.storbinary(f"STOR {remote_path}", f),
            )

    def _call(self, operation: str, path: str, func):
        if self._ftp is None:
            raise ConnectivityError(operation, path, "not connected")
        try:
            return func(self._ftp)
        except ftplib.error_temp as e:
            # 421: service not available, the server is closing the session
            if str(e).startswith("421"):
                raise ConnectivityError(operation, path, str(e)) from e
            raise TransportOperationError(operation, path, str(e)) from e
        except ftplib.Error as e:
            raise TransportOperationError(operation, path, str(e)) from e
        except _CONNECTION_ERRORS as e:
            raise ConnectivityError(operation, path, str(e)) from e
