"""JSON artifacts written during a deploy run."""

import json
import logging
from pathlib import Path
from typing import Any, Union

from .snapshot import Snapshot

logger = logging.getLogger(__name__)

LOCAL_TREE_FILE = "local-tree.json"
DIFF_FILE = "diff.json"
RESULTS_FILE = "results.json"
VERIFICATION_FILE = "verification.json"


def save_json(data: Any, path: Union[str, Path]) -> Path:
    """Write ``data`` as pretty-printed UTF-8 JSON.

    Non-ASCII characters and slashes are written as-is.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
    )
    logger.debug(f"Wrote {target}")
    return target


def load_json(path: Union[str, Path]) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """Read a snapshot saved with ``save_json(snapshot.to_dict(), ...)``.

    Raises:
        ValueError: If the file is not valid JSON or not a snapshot
    """
    try:
        data = load_json(path)
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e
    return Snapshot.from_dict(data)
