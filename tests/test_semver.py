"""Tests for folder_publisher.semver -- version parsing and constraint matching."""

import pytest

from folder_publisher.semver import parse_version, satisfies

# -------------------------------------------------------------------------
# parse_version
# -------------------------------------------------------------------------


class TestParseVersion:
    """Tests for parse_version()."""

    def test_full_triple(self):
        assert parse_version("1.2.3") == (1, 2, 3)

    def test_missing_components_default_to_zero(self):
        assert parse_version("2") == (2, 0, 0)
        assert parse_version("2.5") == (2, 5, 0)

    def test_leading_v_accepted(self):
        assert parse_version("v3.1.4") == (3, 1, 4)

    def test_prerelease_suffix_ignored(self):
        assert parse_version("1.0.0-beta.2") == (1, 0, 0)

    def test_non_numeric_returns_none(self):
        assert parse_version("latest") is None


# -------------------------------------------------------------------------
# satisfies
# -------------------------------------------------------------------------


class TestSatisfies:
    """Tests for satisfies() over the operator table."""

    @pytest.mark.parametrize("constraint", [None, "", "*", "latest"])
    def test_open_constraints_accept_anything(self, constraint):
        assert satisfies("0.0.1", constraint) is True

    @pytest.mark.parametrize(
        "version,constraint,expected",
        [
            ("1.2.3", "^1.2.0", True),
            ("1.9.0", "^1.2.0", True),
            ("1.1.9", "^1.2.0", False),
            ("2.0.0", "^1.2.0", False),
            ("1.2.9", "~1.2.3", True),
            ("1.3.0", "~1.2.3", False),
            ("1.2.2", "~1.2.3", False),
            ("2.0.0", ">=1.5.0", True),
            ("1.5.0", ">1.5.0", False),
            ("1.4.9", "<1.5.0", True),
            ("1.5.0", "<=1.5.0", True),
            ("1.5.0", "=1.5.0", True),
            ("1.5.1", "1.5.0", False),
        ],
    )
    def test_operators(self, version, constraint, expected):
        assert satisfies(version, constraint) is expected

    def test_exact_string_match(self):
        assert satisfies("1.0.0-rc.1", "1.0.0-rc.1") is True

    def test_unparsable_constraint_is_never_satisfied(self):
        assert satisfies("1.0.0", "next-gen") is False

    def test_unparsable_version_is_never_satisfied(self):
        assert satisfies("workspace", "^1.0.0") is False

    def test_whitespace_around_operator(self):
        assert satisfies("1.4.0", ">= 1.2.0") is True
