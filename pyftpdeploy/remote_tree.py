"""Server side of the remote tree endpoint.

``build_remote_payload`` produces exactly what the deployed endpoint answers
for ``GET <url>?exclude=a,b``: the snapshot of the directory it lives in, or
``{"error": ...}`` when scanning fails. The endpoint script never lists
itself.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from .exceptions import FtpDeployError
from .sync.exclusions import split_patterns
from .sync.scanner import TreeBuilder

logger = logging.getLogger(__name__)

REMOTE_SCRIPT_NAME = "ftp-remote-tree.php"


def parse_exclude_param(exclude_param: Optional[str]) -> list[str]:
    """Split the comma-joined ``exclude`` query parameter.

    Examples:
        >>> parse_exclude_param("vendor/**, .env,,")
        ['vendor/**', '.env']
        >>> parse_exclude_param(None)
        []
    """
    if not exclude_param:
        return []
    return split_patterns([exclude_param])


def build_remote_payload(
    directory: Union[str, Path], exclude_param: Optional[str] = None
) -> dict[str, Any]:
    """Build the endpoint response for ``directory``.

    Args:
        directory: Directory served by the endpoint
        exclude_param: Raw ``exclude`` query parameter

    Returns:
        Snapshot dict, or ``{"error": message}`` if the scan failed
    """
    builder = TreeBuilder(forced_exclusions=[REMOTE_SCRIPT_NAME])
    try:
        snapshot = builder.build(directory, parse_exclude_param(exclude_param))
    except FtpDeployError as e:
        logger.debug(f"Remote tree scan failed: {e}")
        message = str(e)
        if not message.startswith("Failed to scan directory"):
            message = f"Failed to scan directory: {message}"
        return {"error": message}
    return snapshot.to_dict()
