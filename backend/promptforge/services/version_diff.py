"""Line-level comparison of two prompt version snapshots.

Purely textual: placeholders are compared like any other characters. Line
matching comes from difflib.SequenceMatcher; this module only shapes the
opcodes into rows a side-by-side or unified view can render.
"""
import difflib
from dataclasses import dataclass, field, asdict
from typing import Optional, Sequence

from promptforge.services.clock import as_utc
from promptforge.services.semver import parse_version

ADDED = "added"
REMOVED = "removed"
UNCHANGED = "unchanged"


@dataclass
class DiffLine:
    kind: str
    text: str
    old_number: Optional[int] = None
    new_number: Optional[int] = None


@dataclass
class VersionDiff:
    old_label: str
    new_label: str
    lines: list[DiffLine] = field(default_factory=list)

    @property
    def added(self) -> int:
        return sum(1 for line in self.lines if line.kind == ADDED)

    @property
    def removed(self) -> int:
        return sum(1 for line in self.lines if line.kind == REMOVED)

    @property
    def unchanged(self) -> int:
        return sum(1 for line in self.lines if line.kind == UNCHANGED)

    def unified(self, context: int = 3) -> str:
        """Classic unified diff text (``---``/``+++`` headers, ``@@`` hunks)."""
        old_lines = [line.text for line in self.lines if line.kind != ADDED]
        new_lines = [line.text for line in self.lines if line.kind != REMOVED]
        return "\n".join(
            difflib.unified_diff(
                old_lines, new_lines,
                fromfile=self.old_label, tofile=self.new_label,
                n=context, lineterm="",
            )
        )

    def to_dict(self) -> dict:
        return {
            "old_label": self.old_label,
            "new_label": self.new_label,
            "lines": [asdict(line) for line in self.lines],
            "summary": {"added": self.added, "removed": self.removed, "unchanged": self.unchanged},
            "unified": self.unified(),
        }


def _split(text: str) -> list[str]:
    return text.splitlines() if text else []


def diff_contents(old: str, new: str, old_label: str = "", new_label: str = "") -> VersionDiff:
    """Compare two content snapshots line by line."""
    old_lines, new_lines = _split(old), _split(new)
    result = VersionDiff(old_label=old_label, new_label=new_label)
    matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            for offset in range(i2 - i1):
                result.lines.append(DiffLine(
                    UNCHANGED, old_lines[i1 + offset], i1 + offset + 1, j1 + offset + 1,
                ))
            continue
        # "replace" is rendered as the removed block followed by the added block.
        if tag in ("delete", "replace"):
            for index in range(i1, i2):
                result.lines.append(DiffLine(REMOVED, old_lines[index], old_number=index + 1))
        if tag in ("insert", "replace"):
            for index in range(j1, j2):
                result.lines.append(DiffLine(ADDED, new_lines[index], new_number=index + 1))
    return result


def creation_order(version):
    """Sort key: creation time, semver as tie-breaker for equal timestamps."""
    return as_utc(version.created_at), parse_version(version.semver)


def previous_version(versions: Sequence, selected):
    """The version created immediately before ``selected``, or None if oldest.

    ``versions`` may be in any order; rows are ranked by ``created_at``.
    """
    ordered = sorted(versions, key=creation_order)
    for index, version in enumerate(ordered):
        if version.id == selected.id:
            return ordered[index - 1] if index > 0 else None
    return None
