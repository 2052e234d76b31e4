"""Configuration management for pyftpdeploy.

Settings are read from environment variables first and then from
``~/.config/pyftpdeploy/config`` (``KEY=value`` lines). The directory can be
moved with ``PYFTPDEPLOY_CONFIG_DIR``.
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "PYFTPDEPLOY_CONFIG_DIR"

SERVER_KEY = "FTPDEPLOY_SERVER"
USERNAME_KEY = "FTPDEPLOY_USERNAME"
PASSWORD_KEY = "FTPDEPLOY_PASSWORD"
REMOTE_TREE_URL_KEY = "FTPDEPLOY_REMOTE_TREE_URL"
LOCAL_DIR_KEY = "FTPDEPLOY_LOCAL_DIR"

KNOWN_KEYS = (
    SERVER_KEY,
    USERNAME_KEY,
    PASSWORD_KEY,
    REMOTE_TREE_URL_KEY,
    LOCAL_DIR_KEY,
)


class Config:
    """Deploy defaults loaded from the environment and the config file."""

    def get_config_dir(self) -> Path:
        override = os.environ.get(CONFIG_DIR_ENV)
        if override:
            return Path(override)
        return Path.home() / ".config" / "pyftpdeploy"

    def get_config_path(self) -> Path:
        return self.get_config_dir() / "config"

    def _load_file(self) -> dict[str, str]:
        path = self.get_config_path()
        if not path.exists():
            return {}

        values: dict[str, str] = {}
        for line_number, line in enumerate(
            path.read_text(encoding="utf-8").splitlines(), start=1
        ):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                logger.debug(f"Ignoring malformed config line {line_number}")
                continue
            key, value = line.split("=", 1)
            values[key.strip()] = value.strip()
        return values

    def get(self, key: str) -> Optional[str]:
        """Look up a setting, environment first."""
        value = os.environ.get(key)
        if value:
            return value
        return self._load_file().get(key) or None

    @property
    def server(self) -> Optional[str]:
        return self.get(SERVER_KEY)

    @property
    def username(self) -> Optional[str]:
        return self.get(USERNAME_KEY)

    @property
    def password(self) -> Optional[str]:
        return self.get(PASSWORD_KEY)

    @property
    def remote_tree_url(self) -> Optional[str]:
        return self.get(REMOTE_TREE_URL_KEY)

    @property
    def local_dir(self) -> Optional[str]:
        return self.get(LOCAL_DIR_KEY)

    def is_configured(self) -> bool:
        """Check whether the settings needed for a deploy are all present."""
        return all(
            (self.server, self.username, self.password, self.remote_tree_url)
        )

    def save(self, **values: Optional[str]) -> Path:
        """Merge values into the config file and write it with mode 0600.

        Args:
            **values: Settings keyed by their variable name; None or empty
                values are left unchanged

        Returns:
            Path of the written file
        """
        unknown = set(values) - set(KNOWN_KEYS)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        current = self._load_file()
        for key, value in values.items():
            if value:
                current[key] = value

        path = self.get_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        content = "".join(f"{key}={value}\n" for key, value in current.items())
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(path, 0o600)
        return path


config = Config()
