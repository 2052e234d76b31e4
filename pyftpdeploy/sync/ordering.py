"""Execution order for sync plan actions.

Actions are grouped by rank (directory creations, uploads, updates, file
removals, directory removals). Creations and updates run in ascending path
order so parents exist before their children; removals run in descending
path order so children are gone before their parent.

When an entry changes kind, the old entry (and anything below it) has to be
removed before the new one can be created, so those removals are moved into
a leading clearing phase.
"""

from collections.abc import Iterable

from .comparator import SyncAction


def _path_key(path: str) -> bytes:
    return path.encode("utf-8", "surrogateescape")


def _under_any(path: str, roots: Iterable[str]) -> bool:
    return any(path == root or path.startswith(root + "/") for root in roots)


def _sort_phase(actions: list[SyncAction]) -> list[SyncAction]:
    by_rank: dict[int, list[SyncAction]] = {}
    for action in actions:
        by_rank.setdefault(action.kind.rank, []).append(action)

    ordered: list[SyncAction] = []
    for rank in sorted(by_rank):
        group = by_rank[rank]
        reverse = group[0].kind.is_remove
        ordered.extend(
            sorted(group, key=lambda a: _path_key(a.path), reverse=reverse)
        )
    return ordered


def order_actions(
    actions: Iterable[SyncAction], kind_changed: Iterable[str] = ()
) -> list[SyncAction]:
    """Return actions in a safe execution order.

    Args:
        actions: Unordered plan actions
        kind_changed: Paths whose entry kind differs between the two sides

    Returns:
        New list with clearing removals first, then every other action
        ordered by rank and path
    """
    changed = list(kind_changed)
    clearing: list[SyncAction] = []
    remaining: list[SyncAction] = []
    for action in actions:
        if changed and action.kind.is_remove and _under_any(action.path, changed):
            clearing.append(action)
        else:
            remaining.append(action)
    return _sort_phase(clearing) + _sort_phase(remaining)
