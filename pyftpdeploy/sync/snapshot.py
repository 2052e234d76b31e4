"""Snapshot data model shared by the local scanner and the remote fetcher."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class EntryKind(str, Enum):
    """Kind of a tree entry (values match the JSON ``type`` field)."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class TreeEntry:
    """A single file or directory in a snapshot."""

    path: str
    """Relative path (forward slashes, no leading slash)"""

    kind: EntryKind
    """File or directory"""

    size: int = 0
    """Size in bytes (0 for directories)"""

    modified_at: int = 0
    """Last modification time (Unix timestamp)"""

    content_hash: Optional[str] = None
    """Content digest (files only)"""

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format used by the remote tree endpoint."""
        data: dict[str, Any] = {
            "path": self.path,
            "type": self.kind.value,
            "size": self.size,
            "modified": self.modified_at,
        }
        if self.content_hash is not None:
            data["hash"] = self.content_hash
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TreeEntry":
        """Create a TreeEntry from its wire format.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        if not isinstance(data, dict):
            raise ValueError(f"Tree entry must be an object, got {type(data).__name__}")

        path = data.get("path")
        if not isinstance(path, str) or not path:
            raise ValueError(f"Tree entry has no path: {data!r}")

        try:
            kind = EntryKind(data.get("type"))
        except ValueError:
            raise ValueError(
                f"Tree entry {path!r} has unknown type {data.get('type')!r}"
            ) from None

        content_hash = data.get("hash")
        if kind is EntryKind.DIRECTORY:
            content_hash = None
        elif content_hash is not None and not isinstance(content_hash, str):
            raise ValueError(f"Tree entry {path!r} has invalid hash")

        try:
            size = int(data.get("size") or 0)
            modified_at = int(data.get("modified") or 0)
        except (TypeError, ValueError):
            raise ValueError(
                f"Tree entry {path!r} has invalid size or modified time"
            ) from None

        return cls(
            path=path.replace("\\", "/").strip("/"),
            kind=kind,
            size=size,
            modified_at=modified_at,
            content_hash=content_hash,
        )


@dataclass(frozen=True)
class Snapshot:
    """Immutable, path-sorted record of a directory tree."""

    generated_at: str
    """ISO timestamp of when the snapshot was built"""

    base_path: str
    """Absolute path of the scanned directory"""

    exclusions: tuple[str, ...] = ()
    """Exclusion patterns in their original order"""

    entries: tuple[TreeEntry, ...] = field(default_factory=tuple)
    """Entries sorted by path (byte-wise)"""

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples
        object.__setattr__(self, "exclusions", tuple(self.exclusions))
        object.__setattr__(self, "entries", sort_entries(self.entries))

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def files(self) -> list[TreeEntry]:
        return [e for e in self.entries if e.kind is EntryKind.FILE]

    @property
    def directories(self) -> list[TreeEntry]:
        return [e for e in self.entries if e.kind is EntryKind.DIRECTORY]

    def by_path(self) -> dict[str, TreeEntry]:
        """Index entries by path (last one wins on duplicates)."""
        return {entry.path: entry for entry in self.entries}

    def to_dict(self) -> dict[str, Any]:
        """Convert snapshot to the JSON shape served by the remote endpoint."""
        return {
            "generated_at": self.generated_at,
            "base_path": self.base_path,
            "exclusions": list(self.exclusions),
            "files": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        """Create a Snapshot from its JSON shape.

        Raises:
            ValueError: If the payload is not shaped like a snapshot
        """
        if not isinstance(data, dict):
            raise ValueError("Snapshot payload must be a JSON object")

        files = data.get("files")
        if not isinstance(files, list):
            raise ValueError("Snapshot payload has no 'files' list")

        exclusions = data.get("exclusions") or []
        if not isinstance(exclusions, list):
            raise ValueError("Snapshot 'exclusions' must be a list")

        return cls(
            generated_at=str(data.get("generated_at") or ""),
            base_path=str(data.get("base_path") or ""),
            exclusions=tuple(str(p) for p in exclusions),
            entries=tuple(TreeEntry.from_dict(item) for item in files),
        )


def sort_entries(entries) -> tuple[TreeEntry, ...]:
    """Sort entries by path using byte-wise comparison."""
    return tuple(
        sorted(entries, key=lambda e: e.path.encode("utf-8", "surrogateescape"))
    )
