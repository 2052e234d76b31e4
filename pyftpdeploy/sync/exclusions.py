"""Exclusion pattern matching for tree scans.

Three pattern shapes are supported, each matched against a relative,
slash-separated path:

* ``prefix/**`` excludes ``prefix`` itself and everything below it
* ``prefix/*`` excludes the direct children of ``prefix`` only
* anything else excludes the path that equals it verbatim

Patterns are stripped of surrounding whitespace; empty patterns are ignored.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

RECURSIVE_SUFFIX = "/**"
CHILDREN_SUFFIX = "/*"


class PatternKind(str, Enum):
    """Grammar a pattern was parsed as."""

    RECURSIVE = "recursive"
    CHILDREN = "children"
    EXACT = "exact"


@dataclass(frozen=True)
class ExclusionRule:
    """A parsed exclusion pattern."""

    pattern: str
    """Original (stripped) pattern text"""

    kind: PatternKind
    """How the pattern matches"""

    base: str
    """Pattern with its wildcard suffix removed"""

    @classmethod
    def parse(cls, raw: str) -> Optional["ExclusionRule"]:
        """Parse a raw pattern, returning None for blank patterns.

        Examples:
            >>> ExclusionRule.parse("vendor/**").kind
            <PatternKind.RECURSIVE: 'recursive'>
            >>> ExclusionRule.parse("cache/*").base
            'cache'
            >>> ExclusionRule.parse("   ") is None
            True
        """
        pattern = raw.strip()
        if not pattern:
            return None
        if pattern.endswith(RECURSIVE_SUFFIX):
            return cls(
                pattern, PatternKind.RECURSIVE, pattern[: -len(RECURSIVE_SUFFIX)]
            )
        if pattern.endswith(CHILDREN_SUFFIX):
            return cls(pattern, PatternKind.CHILDREN, pattern[: -len(CHILDREN_SUFFIX)])
        return cls(pattern, PatternKind.EXACT, pattern)

    def matches(self, path: str) -> bool:
        """Check whether this rule excludes ``path``."""
        if self.kind is PatternKind.RECURSIVE:
            return path == self.base or path.startswith(self.base + "/")
        if self.kind is PatternKind.CHILDREN:
            # Directory component must equal the base exactly, i.e. exactly
            # one more segment than the base.
            if "/" not in path:
                return False
            parent = path.rsplit("/", 1)[0]
            return parent == self.base
        return path == self.pattern


def compile_patterns(patterns: Iterable[str]) -> list[ExclusionRule]:
    """Parse patterns into rules, dropping blank ones and keeping order."""
    rules = []
    for raw in patterns:
        rule = ExclusionRule.parse(raw)
        if rule is not None:
            rules.append(rule)
    return rules


def is_excluded(path: str, patterns: Iterable[str]) -> bool:
    """Check if a relative path is excluded by any pattern.

    Args:
        path: Relative path using forward slashes
        patterns: Exclusion patterns

    Returns:
        True if at least one pattern matches

    Examples:
        >>> is_excluded("node_modules/pkg/index.js", ["node_modules/**"])
        True
        >>> is_excluded("cache/a/b.txt", ["cache/*"])
        False
        >>> is_excluded(".env", [" .env "])
        True
    """
    return any(rule.matches(path) for rule in compile_patterns(patterns))


class ExclusionMatcher:
    """Pre-compiled matcher for repeated lookups during a scan."""

    def __init__(self, patterns: Iterable[str]):
        self.patterns = list(patterns)
        self._rules = compile_patterns(self.patterns)

    def is_excluded(self, path: str) -> bool:
        return any(rule.matches(path) for rule in self._rules)

    def __bool__(self) -> bool:
        return bool(self._rules)


def split_patterns(values: Iterable[str]) -> list[str]:
    """Flatten option values that may themselves be comma-joined.

    Order is preserved and duplicates are kept; blank items are dropped.

    Examples:
        >>> split_patterns(["vendor/**,.env", "storage/*"])
        ['vendor/**', '.env', 'storage/*']
    """
    result: list[str] = []
    for value in values:
        for item in value.split(","):
            item = item.strip()
            if item:
                result.append(item)
    return result
