"""Simplified semantic-version constraint matching.

Supports exact versions plus the ``^``, ``~``, ``>=``, ``>``, ``<=``,
``<`` and ``=`` operators.  Versions are compared as
``(major, minor, patch)`` triples; prerelease and build suffixes are
ignored.  Kept free of any package-manager knowledge so it can be swapped
for a full semver library without touching the sync engine.
"""

from __future__ import annotations

import re
from collections.abc import Callable

Version = tuple[int, int, int]

_CONSTRAINT_PATTERN = re.compile(
    r"^\s*(?P<op>\^|~|>=|<=|>|<|=)?\s*v?(?P<version>\d+(?:\.\d+){0,2})"
    r"(?:-[\w.-]+)?(?:\+[\w.-]+)?\s*$"
)


def parse_version(text: str) -> Version | None:
    """Parse ``"1.2.3"`` (or ``"1.2"``, ``"v1"``) into a triple.

    Missing components default to 0.  Returns ``None`` when the leading
    part is not numeric.
    """
    match = re.match(r"^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?", text)
    if match is None:
        return None
    major, minor, patch = (int(g) if g else 0 for g in match.groups())
    return (major, minor, patch)


def _caret(v: Version, c: Version) -> bool:
    return v[0] == c[0] and v[1:] >= c[1:]


def _tilde(v: Version, c: Version) -> bool:
    return v[:2] == c[:2] and v[2] >= c[2]


_OPERATORS: dict[str, Callable[[Version, Version], bool]] = {
    "^": _caret,
    "~": _tilde,
    ">=": lambda v, c: v >= c,
    ">": lambda v, c: v > c,
    "<=": lambda v, c: v <= c,
    "<": lambda v, c: v < c,
    "=": lambda v, c: v == c,
    "": lambda v, c: v == c,
}


def satisfies(version: str, constraint: str | None) -> bool:
    """Return ``True`` if *version* satisfies *constraint*.

    An empty constraint (or ``*``) accepts any version.  An unparsable
    constraint or version is never satisfied.
    """
    if not constraint or constraint.strip() in ("*", "latest"):
        return True
    if version == constraint:
        return True

    match = _CONSTRAINT_PATTERN.match(constraint)
    installed = parse_version(version)
    if match is None or installed is None:
        return False

    wanted = parse_version(match.group("version"))
    if wanted is None:
        return False
    predicate = _OPERATORS[match.group("op") or ""]
    return predicate(installed, wanted)
