"""
Tests for semver.py - version parsing and bumping.
"""

import pytest

from promptforge.services.semver import (
    bump_version,
    compare_versions,
    is_valid_semver,
    parse_version,
)


class TestBumpVersion:

    @pytest.mark.parametrize("current, kind, expected", [
        ("1.2.3", "major", "2.0.0"),
        ("1.2.3", "minor", "1.3.0"),
        ("1.2.3", "patch", "1.2.4"),
        ("0.9.9", "patch", "0.9.10"),
    ])
    def test_bumps(self, current, kind, expected):
        assert bump_version(current, kind) == expected

    def test_result_is_greater(self):
        for kind in ("major", "minor", "patch"):
            assert compare_versions(bump_version("3.4.5", kind), "3.4.5") > 0

    def test_non_numeric_parts_count_as_zero(self):
        assert bump_version("x.y.z", "patch") == "0.0.1"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            bump_version("1.0.0", "huge")


class TestParsing:

    def test_valid_semver(self):
        assert is_valid_semver("10.0.1")
        assert not is_valid_semver("v1.0.0")
        assert not is_valid_semver("1.0")
        assert not is_valid_semver("1.0.0-beta")

    def test_non_ascii_digits_rejected(self):
        assert not is_valid_semver("\u0661.\u0660.\u0660")
        assert parse_version("\u0661.2.3") == (0, 2, 3)

    def test_parse_version_pads_missing(self):
        assert parse_version("2") == (2, 0, 0)

    def test_compare_is_numeric(self):
        assert compare_versions("1.10.0", "1.9.0") > 0
        assert compare_versions("1.0.0", "1.0.0") == 0
