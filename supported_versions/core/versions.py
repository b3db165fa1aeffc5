"""Minimal semver helpers for tilde-range support checks."""
from __future__ import annotations

import re
from dataclasses import dataclass

_NUMERIC_VERSION = re.compile(r"(?<!\d)(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def coerce(value: object) -> tuple[int, int, int] | None:
    """Return the first ``major[.minor[.patch]]`` found in ``value``, zero padded."""

    if value is None:
        return None
    match = _NUMERIC_VERSION.search(str(value))
    if not match:
        return None
    major, minor, patch = match.groups()
    return int(major), int(minor or 0), int(patch or 0)


@dataclass(frozen=True, slots=True)
class TildeRange:
    """``~major.minor`` range: same major and minor, any patch."""

    major: int
    minor: int | None = None

    def satisfied_by(self, version: object) -> bool:
        coerced = coerce(version)
        if coerced is None:
            return False
        if coerced[0] != self.major:
            return False
        return self.minor is None or coerced[1] == self.minor

    def __str__(self) -> str:
        if self.minor is None:
            return f"~{self.major}"
        return f"~{self.major}.{self.minor}"


def tilde_range(server_version: str | None) -> TildeRange | None:
    """Build the ``~{major}.{minor}`` range for a server version string."""

    if not server_version:
        return None
    # accepts a leading "v" or "="
    parts = str(server_version).strip().lstrip("=v").strip().split(".")[:2]
    try:
        numbers = [int(part) for part in parts]
    except ValueError:
        return None
    if len(numbers) == 1:
        return TildeRange(major=numbers[0])
    return TildeRange(major=numbers[0], minor=numbers[1])
