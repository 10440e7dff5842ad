"""Semantic version helpers for prompt history (MAJOR.MINOR.PATCH only)."""
import re
from typing import Literal

VersionBump = Literal["major", "minor", "patch"]

SEMVER_RE = re.compile(r"^[0-9]+\.[0-9]+\.[0-9]+$")


def is_valid_semver(version: str) -> bool:
    return bool(SEMVER_RE.match(version or ""))


def parse_version(version: str) -> tuple[int, int, int]:
    """Split a version into integers. Missing or non-numeric parts count as 0."""
    parts = (version or "").split(".")
    numbers = []
    for index in range(3):
        part = parts[index] if index < len(parts) else ""
        numbers.append(int(part) if part.isascii() and part.isdigit() else 0)
    return numbers[0], numbers[1], numbers[2]


def bump_version(current: str, kind: VersionBump) -> str:
    """Next version for a major/minor/patch bump.

    Callers validate ``current`` upstream; this only computes.
    """
    major, minor, patch = parse_version(current)
    if kind == "major":
        return f"{major + 1}.0.0"
    if kind == "minor":
        return f"{major}.{minor + 1}.0"
    if kind == "patch":
        return f"{major}.{minor}.{patch + 1}"
    raise ValueError(f"Unknown version bump: {kind}")


def compare_versions(v1: str, v2: str) -> int:
    """Negative if v1 < v2, zero if equal, positive if v1 > v2."""
    a, b = parse_version(v1), parse_version(v2)
    for left, right in zip(a, b):
        if left != right:
            return left - right
    return 0
