"""Tree comparison logic that turns two snapshots into a sync plan."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..utils import now_iso
from .snapshot import EntryKind, Snapshot, TreeEntry

logger = logging.getLogger(__name__)


class SyncActionKind(str, Enum):
    """Mutating actions a plan can contain."""

    CREATE_DIRECTORY = "create_directory"
    """Create a directory on the remote side"""

    UPLOAD_FILE = "upload_file"
    """Upload a file that is missing remotely"""

    UPDATE_FILE = "update_file"
    """Replace a remote file whose content changed"""

    REMOVE_FILE = "remove_file"
    """Delete a file that no longer exists locally"""

    REMOVE_DIRECTORY = "remove_directory"
    """Delete a directory that no longer exists locally"""

    @property
    def rank(self) -> int:
        """Primary ordering key within a plan."""
        return _RANKS[self]

    @property
    def is_create(self) -> bool:
        return self in (SyncActionKind.CREATE_DIRECTORY, SyncActionKind.UPLOAD_FILE)

    @property
    def is_remove(self) -> bool:
        return self in (SyncActionKind.REMOVE_FILE, SyncActionKind.REMOVE_DIRECTORY)


_RANKS = {
    SyncActionKind.CREATE_DIRECTORY: 1,
    SyncActionKind.UPLOAD_FILE: 2,
    SyncActionKind.UPDATE_FILE: 3,
    SyncActionKind.REMOVE_FILE: 4,
    SyncActionKind.REMOVE_DIRECTORY: 5,
}


@dataclass(frozen=True)
class SyncAction:
    """A single mutating step of a sync plan."""

    kind: SyncActionKind
    """Action to take"""

    path: str
    """Relative path the action applies to"""

    entry_kind: EntryKind
    """Kind of the entry being created or removed"""

    size: int = 0
    """Local size for creates/updates, 0 otherwise"""

    local_hash: Optional[str] = None
    """Local content hash (creates and updates of files)"""

    remote_hash: Optional[str] = None
    """Remote content hash (updates and removals of files)"""

    reason: str = ""
    """Human-readable reason for this action"""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "action": self.kind.value,
            "path": self.path,
            "type": self.entry_kind.value,
            "size": self.size,
        }
        if self.kind.is_create or self.kind is SyncActionKind.UPDATE_FILE:
            data["local_hash"] = self.local_hash
        if self.kind.is_remove or self.kind is SyncActionKind.UPDATE_FILE:
            data["remote_hash"] = self.remote_hash
        return data


@dataclass(frozen=True)
class SyncPlan:
    """Ordered, immutable list of actions derived from two snapshots."""

    created_at: str
    actions: tuple[SyncAction, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "actions", tuple(self.actions))

    def __len__(self) -> int:
        return len(self.actions)

    def __iter__(self):
        return iter(self.actions)

    @property
    def is_empty(self) -> bool:
        return not self.actions

    def count(self, kind: SyncActionKind) -> int:
        return sum(1 for a in self.actions if a.kind is kind)

    def to_dict(self) -> dict[str, Any]:
        return {
            "created_at": self.created_at,
            "actions": [a.to_dict() for a in self.actions],
        }


@dataclass(frozen=True)
class PlanSummary:
    """Per-category counts for displaying a work plan."""

    upload_files: int = 0
    upload_dirs: int = 0
    update_files: int = 0
    delete_files: int = 0
    delete_dirs: int = 0
    unchanged_files: int = 0
    unchanged_dirs: int = 0


class TreeComparator:
    """Compares a local and a remote snapshot to determine sync actions.

    Local is authoritative: anything missing remotely is created, anything
    with a different hash is replaced, and anything missing locally is
    removed.
    """

    def compare(self, local: Snapshot, remote: Snapshot) -> SyncPlan:
        """Compare two snapshots and build an ordered plan.

        Args:
            local: Snapshot of the local tree
            remote: Snapshot of the remote tree

        Returns:
            SyncPlan whose actions are safe to execute in order
        """
        # ordering imports SyncAction from this module
        from .ordering import order_actions

        local_entries = local.by_path()
        remote_entries = remote.by_path()

        actions: list[SyncAction] = []
        kind_changed: set[str] = set()

        for path, local_entry in local_entries.items():
            remote_entry = remote_entries.get(path)

            if remote_entry is None:
                actions.append(self._create_action(local_entry, "New local entry"))
                continue

            if local_entry.kind is not remote_entry.kind:
                # Replace the old kind with the new one
                kind_changed.add(path)
                reason = (
                    f"Kind changed ({remote_entry.kind.value} -> "
                    f"{local_entry.kind.value})"
                )
                actions.append(self._remove_action(remote_entry, reason))
                actions.append(self._create_action(local_entry, reason))
                continue

            if (
                local_entry.kind is EntryKind.FILE
                and local_entry.content_hash != remote_entry.content_hash
            ):
                actions.append(
                    SyncAction(
                        kind=SyncActionKind.UPDATE_FILE,
                        path=path,
                        entry_kind=EntryKind.FILE,
                        size=local_entry.size,
                        local_hash=local_entry.content_hash,
                        remote_hash=remote_entry.content_hash,
                        reason="Content changed",
                    )
                )

        for path, remote_entry in remote_entries.items():
            if path not in local_entries:
                actions.append(self._remove_action(remote_entry, "Deleted locally"))

        ordered = order_actions(actions, kind_changed)
        logger.debug(
            "Compared %d local and %d remote entries: %d action(s)",
            len(local_entries),
            len(remote_entries),
            len(ordered),
        )
        return SyncPlan(created_at=now_iso(), actions=tuple(ordered))

    def _create_action(self, entry: TreeEntry, reason: str) -> SyncAction:
        if entry.kind is EntryKind.DIRECTORY:
            return SyncAction(
                kind=SyncActionKind.CREATE_DIRECTORY,
                path=entry.path,
                entry_kind=EntryKind.DIRECTORY,
                reason=reason,
            )
        return SyncAction(
            kind=SyncActionKind.UPLOAD_FILE,
            path=entry.path,
            entry_kind=EntryKind.FILE,
            size=entry.size,
            local_hash=entry.content_hash,
            reason=reason,
        )

    def _remove_action(self, entry: TreeEntry, reason: str) -> SyncAction:
        if entry.kind is EntryKind.DIRECTORY:
            return SyncAction(
                kind=SyncActionKind.REMOVE_DIRECTORY,
                path=entry.path,
                entry_kind=EntryKind.DIRECTORY,
                reason=reason,
            )
        return SyncAction(
            kind=SyncActionKind.REMOVE_FILE,
            path=entry.path,
            entry_kind=EntryKind.FILE,
            remote_hash=entry.content_hash,
            reason=reason,
        )


def diff_trees(local: Snapshot, remote: Snapshot) -> SyncPlan:
    """Shortcut for ``TreeComparator().compare(local, remote)``."""
    return TreeComparator().compare(local, remote)


def summarize_plan(plan: SyncPlan, local: Snapshot) -> PlanSummary:
    """Count plan actions per category plus the local entries left untouched."""
    touched = {action.path for action in plan.actions}
    unchanged_files = 0
    unchanged_dirs = 0
    for entry in local.entries:
        if entry.path in touched:
            continue
        if entry.kind is EntryKind.FILE:
            unchanged_files += 1
        else:
            unchanged_dirs += 1

    return PlanSummary(
        upload_files=plan.count(SyncActionKind.UPLOAD_FILE),
        upload_dirs=plan.count(SyncActionKind.CREATE_DIRECTORY),
        update_files=plan.count(SyncActionKind.UPDATE_FILE),
        delete_files=plan.count(SyncActionKind.REMOVE_FILE),
        delete_dirs=plan.count(SyncActionKind.REMOVE_DIRECTORY),
        unchanged_files=unchanged_files,
        unchanged_dirs=unchanged_dirs,
    )
