"""
Tests for version_diff.py - line diffs and predecessor lookup.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from promptforge.services.version_diff import diff_contents, previous_version


@dataclass
class V:
    semver: str
    created_at: datetime
    content: str = ""
    id: uuid.UUID = None

    def __post_init__(self):
        self.id = self.id or uuid.uuid4()


T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestDiffContents:

    def test_identical_content(self):
        diff = diff_contents("a\nb", "a\nb")
        assert (diff.added, diff.removed, diff.unchanged) == (0, 0, 2)

    def test_replace_is_removed_then_added(self):
        diff = diff_contents("a\nold\nc", "a\nnew\nc", "1.0.0", "1.0.1")
        kinds = [(line.kind, line.text) for line in diff.lines]
        assert kinds == [
            ("unchanged", "a"),
            ("removed", "old"),
            ("added", "new"),
            ("unchanged", "c"),
        ]
        assert diff.to_dict()["summary"] == {"added": 1, "removed": 1, "unchanged": 2}

    def test_line_numbers(self):
        diff = diff_contents("a", "a\nb")
        added = [line for line in diff.lines if line.kind == "added"][0]
        assert added.new_number == 2
        assert added.old_number is None

    def test_from_empty(self):
        diff = diff_contents("", "x\ny")
        assert diff.added == 2
        assert diff.removed == 0

    def test_unified_has_labels(self):
        unified = diff_contents("a", "b", "1.0.0", "1.0.1").unified()
        assert "--- 1.0.0" in unified
        assert "+++ 1.0.1" in unified


class TestPreviousVersion:

    def test_ranked_by_creation_time_not_input_order(self):
        v1 = V("1.0.0", T0)
        v2 = V("1.1.0", T0 + timedelta(minutes=1))
        v3 = V("1.0.1", T0 + timedelta(minutes=2))  # restored later with a lower number
        versions = [v3, v1, v2]

        assert previous_version(versions, v3) is v2
        assert previous_version(versions, v2) is v1
        assert previous_version(versions, v1) is None

    def test_naive_timestamps_compare_with_aware(self):
        v1 = V("1.0.0", T0.replace(tzinfo=None))
        v2 = V("1.0.1", T0 + timedelta(seconds=1))
        assert previous_version([v2, v1], v2) is v1
