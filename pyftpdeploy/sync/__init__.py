"""Sync core for pyftpdeploy - snapshot, diff and plan execution."""

from .comparator import (
    PlanSummary,
    SyncAction,
    SyncActionKind,
    SyncPlan,
    TreeComparator,
    diff_trees,
    summarize_plan,
)
from .engine import (
    ActionResult,
    ActionStatus,
    AttemptState,
    ExecutionResult,
    ExecutorEvent,
    SyncExecutor,
)
from .exclusions import ExclusionMatcher, ExclusionRule, is_excluded, split_patterns
from .ordering import order_actions
from .scanner import TreeBuilder
from .snapshot import EntryKind, Snapshot, TreeEntry

__all__ = [
    "EntryKind",
    "TreeEntry",
    "Snapshot",
    "TreeBuilder",
    "ExclusionMatcher",
    "ExclusionRule",
    "is_excluded",
    "split_patterns",
    "TreeComparator",
    "SyncAction",
    "SyncActionKind",
    "SyncPlan",
    "PlanSummary",
    "diff_trees",
    "summarize_plan",
    "order_actions",
    "SyncExecutor",
    "ActionResult",
    "ActionStatus",
    "AttemptState",
    "ExecutionResult",
    "ExecutorEvent",
]
