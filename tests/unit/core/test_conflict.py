"""Tests for plugmart.core.conflict module."""

import pytest

from plugmart.core.conflict import (
    ConflictPolicy,
    Rename,
    Replace,
    Skip,
    generate_unique_name,
    resolve_conflict,
)
from plugmart.core.errors import PluginAlreadyExistsError


class TestConflictPolicyParse:
    """Tests for ConflictPolicy.parse()."""

    @pytest.mark.parametrize("value", ["abort", "skip", "replace", "rename"])
    def test_parses_known_policies(self, value: str):
        """Every policy name parses."""
        assert ConflictPolicy.parse(value).value == value

    def test_parse_is_case_insensitive(self):
        """Policy names parse regardless of case."""
        assert ConflictPolicy.parse("Rename") is ConflictPolicy.RENAME

    def test_unknown_policy_raises(self):
        """Unknown policies raise ValueError."""
        with pytest.raises(ValueError, match="Invalid conflict policy"):
            ConflictPolicy.parse("merge")


class TestGenerateUniqueName:
    """Tests for generate_unique_name()."""

    def test_starts_at_two(self):
        """The first candidate is -2, never -1."""
        assert generate_unique_name("foo", {"foo"}) == "foo-2"

    def test_fills_gaps(self):
        """The lowest free suffix is used."""
        assert generate_unique_name("foo", {"foo", "foo-3"}) == "foo-2"

    def test_skips_taken_suffixes(self):
        """Taken suffixes are skipped."""
        assert generate_unique_name("foo", {"foo", "foo-2", "foo-3"}) == "foo-4"


class TestResolveConflict:
    """Tests for resolve_conflict()."""

    def test_no_conflict(self):
        """A free name needs no resolution under any policy."""
        for policy in ConflictPolicy:
            assert resolve_conflict("new", {"old"}, policy) is None

    def test_abort_raises(self):
        """Abort raises an already-exists error."""
        with pytest.raises(PluginAlreadyExistsError, match="foo") as exc_info:
            resolve_conflict("foo", {"foo"}, "abort")
        assert exc_info.value.plugin_name == "foo"

    def test_skip(self):
        """Skip marks the entry to be dropped."""
        assert resolve_conflict("foo", {"foo"}, "skip") == Skip()

    def test_replace(self):
        """Replace marks the entry to overwrite the existing one."""
        assert resolve_conflict("foo", {"foo"}, ConflictPolicy.REPLACE) == Replace()

    def test_rename(self):
        """Rename generates the first free alternative."""
        assert resolve_conflict("foo", {"foo", "foo-3"}, "rename") == Rename("foo-2")

    def test_unknown_policy_raises_even_without_conflict(self):
        """The policy is parsed before checking for a conflict."""
        with pytest.raises(ValueError):
            resolve_conflict("new", set(), "bogus")
