"""Tests for exclusion pattern matching."""

import pytest

from pyftpdeploy.sync.exclusions import (
    ExclusionMatcher,
    ExclusionRule,
    PatternKind,
    is_excluded,
    split_patterns,
)


class TestExclusionRule:
    """Test pattern parsing."""

    @pytest.mark.parametrize(
        "raw,kind,base",
        [
            ("vendor/**", PatternKind.RECURSIVE, "vendor"),
            ("cache/*", PatternKind.CHILDREN, "cache"),
            (".env", PatternKind.EXACT, ".env"),
            ("  logs/**  ", PatternKind.RECURSIVE, "logs"),
        ],
    )
    def test_parse(self, raw, kind, base):
        """Test that each pattern shape is recognised."""
        rule = ExclusionRule.parse(raw)
        assert rule is not None
        assert rule.kind is kind
        assert rule.base == base

    def test_blank_pattern(self):
        """Test that blank patterns parse to None."""
        assert ExclusionRule.parse("") is None
        assert ExclusionRule.parse("   ") is None


class TestIsExcluded:
    """Test is_excluded against the three grammars."""

    def test_recursive_matches_base_itself(self):
        assert is_excluded("node_modules", ["node_modules/**"])

    def test_recursive_matches_descendants(self):
        assert is_excluded("node_modules/pkg/index.js", ["node_modules/**"])

    def test_recursive_requires_segment_boundary(self):
        """Test that a shared prefix is not enough."""
        assert not is_excluded("node_modules_old/x", ["node_modules/**"])

    def test_children_matches_direct_child(self):
        assert is_excluded("cache/a.txt", ["cache/*"])

    def test_children_does_not_match_grandchild(self):
        assert not is_excluded("cache/a/b.txt", ["cache/*"])

    def test_children_does_not_match_base(self):
        assert not is_excluded("cache", ["cache/*"])

    def test_children_nested_base(self):
        assert is_excluded("storage/logs/app.log", ["storage/logs/*"])
        assert not is_excluded("storage/app.log", ["storage/logs/*"])

    def test_exact_match(self):
        assert is_excluded(".env", [".env"])

    def test_exact_does_not_match_children(self):
        assert not is_excluded(".env/x", [".env"])
        assert not is_excluded("config/.env", [".env"])

    def test_patterns_are_trimmed(self):
        assert is_excluded(".env", ["  .env  "])

    def test_empty_patterns_ignored(self):
        assert not is_excluded("a.txt", ["", "   "])

    def test_no_patterns(self):
        assert not is_excluded("a.txt", [])

    def test_any_pattern_excludes(self):
        patterns = ["foo", "vendor/**", ".env"]
        assert is_excluded("vendor/a/b", patterns)
        assert is_excluded("foo", patterns)
        assert not is_excluded("bar", patterns)

    def test_order_independent(self):
        """Test that pattern order does not change the result."""
        patterns = ["a/*", "b/**", "c"]
        paths = ["a/x", "a/x/y", "b", "b/z", "c", "d"]
        for path in paths:
            assert is_excluded(path, patterns) == is_excluded(
                path, list(reversed(patterns))
            )

    def test_no_glob_syntax_in_exact(self):
        """Test that wildcards elsewhere are matched literally."""
        assert not is_excluded("file.log", ["*.log"])
        assert is_excluded("*.log", ["*.log"])


class TestExclusionMatcher:
    """Test the pre-compiled matcher."""

    def test_keeps_original_patterns(self):
        matcher = ExclusionMatcher(["b/**", " a ", ""])
        assert matcher.patterns == ["b/**", " a ", ""]

    def test_matches_like_function(self):
        matcher = ExclusionMatcher(["vendor/**"])
        assert matcher.is_excluded("vendor/x")
        assert not matcher.is_excluded("src/x")

    def test_truthiness(self):
        assert not ExclusionMatcher([])
        assert not ExclusionMatcher(["  "])
        assert ExclusionMatcher([".env"])


class TestSplitPatterns:
    """Test flattening of comma-joined option values."""

    def test_flattens_and_keeps_order(self):
        result = split_patterns(["vendor/**,.env", "storage/*"])
        assert result == ["vendor/**", ".env", "storage/*"]

    def test_drops_blanks(self):
        assert split_patterns([" , a ,, "]) == ["a"]

    def test_keeps_duplicates(self):
        assert split_patterns(["a", "a"]) == ["a", "a"]
