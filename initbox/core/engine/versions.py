"""
Version constraint matching (pure).

Approximates common semver range syntax over (major, minor, patch)
triples. No pre-release or build-metadata precedence.
No I/O, no subprocess.

Supported constraints, first matching rule wins:

    latest, *, x, ""      any version
    ^1.2.3                same major, >= 1.2.3
    ~1.2.3                same major.minor, patch >= 3
    >=1.2 >1.2 <=1.2 <1.2 =1.2
    1.x, 1.2.*            wildcard segments
    1.2.3 - 2.0.0         inclusive range
    ^1.2 || ^2.0          any alternative
    >=1.2 <2.0            every space-separated part
    1.2.3                 exact (missing segments are 0)
"""

from __future__ import annotations

import re

_ANY = frozenset({"latest", "*", "x", ""})

_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_LEADING_INT_RE = re.compile(r"^\d+")

# One operand forms; compound constraints fall through to ||, range, AND
_CARET_RE = re.compile(r"^\^\s*(\S+)$")
_TILDE_RE = re.compile(r"^~\s*(\S+)$")
_OPERATOR_RE = re.compile(r"^(>=|<=|>|<|=)\s*(\S+)$")
_WILDCARD_RE = re.compile(r"^v?(?:\d+|[xX*])(?:\.(?:\d+|[xX*])){0,2}$")
_RANGE_RE = re.compile(r"^(\S+)\s+-\s+(\S+)$")


def parse_version(version: str) -> tuple[int, int, int] | None:
    """Parse up to three leading dot-separated integers.

    A leading ``v`` is ignored and missing segments default to 0.
    Returns None when the string does not start with a number.
    """
    match = _VERSION_RE.match(version.strip().removeprefix("v"))
    if not match:
        return None
    return tuple(int(g) if g else 0 for g in match.groups())  # type: ignore[return-value]


def compare_versions(a: str, b: str) -> int:
    """Compare two version strings segment by segment.

    Segments are read as their leading integer (0 when absent) and the
    shorter list is zero-padded. Returns -1, 0, or 1.
    """
    parts_a = _segments(a)
    parts_b = _segments(b)
    width = max(len(parts_a), len(parts_b))
    parts_a += [0] * (width - len(parts_a))
    parts_b += [0] * (width - len(parts_b))

    for x, y in zip(parts_a, parts_b):
        if x < y:
            return -1
        if x > y:
            return 1
    return 0


def satisfies(version: str, constraint: str) -> bool:
    """Whether ``version`` satisfies ``constraint``.

    An unparsable version satisfies nothing except the match-anything
    constraints; an unparsable operand in the constraint never matches.
    """
    c = constraint.strip()
    if c in _ANY:
        return True

    v = parse_version(version)
    if v is None:
        return False

    match = _CARET_RE.match(c)
    if match:
        target = parse_version(match.group(1))
        if target is None or v[0] != target[0]:
            return False
        return compare_versions(version, match.group(1)) >= 0

    match = _TILDE_RE.match(c)
    if match:
        target = parse_version(match.group(1))
        if target is None or v[:2] != target[:2]:
            return False
        return v[2] >= target[2]

    match = _OPERATOR_RE.match(c)
    if match:
        op, operand = match.groups()
        if parse_version(operand) is None:
            return False
        cmp = compare_versions(version, operand)
        return {
            ">=": cmp >= 0,
            ">": cmp > 0,
            "<=": cmp <= 0,
            "<": cmp < 0,
            "=": cmp == 0,
        }[op]

    if _WILDCARD_RE.match(c) and re.search(r"[xX*]", c):
        return _matches_wildcard(v, c)

    match = _RANGE_RE.match(c)
    if match:
        low, high = match.groups()
        if parse_version(low) is None or parse_version(high) is None:
            return False
        return compare_versions(version, low) >= 0 and compare_versions(version, high) <= 0

    if "||" in c:
        return any(satisfies(version, part) for part in c.split("||"))

    if re.search(r"\s", c):
        return all(satisfies(version, part) for part in c.split())

    if parse_version(c) is None:
        return False
    return compare_versions(version, c) == 0


def _matches_wildcard(v: tuple[int, int, int], constraint: str) -> bool:
    """Concrete segments must match; a wildcard matches the rest."""
    for i, segment in enumerate(constraint.removeprefix("v").split(".")):
        if segment in ("x", "X", "*"):
            return True
        if v[i] != int(segment):
            return False
    return True


def _segments(version: str) -> list[int]:
    parts = []
    for segment in version.strip().removeprefix("v").split("."):
        match = _LEADING_INT_RE.match(segment)
        parts.append(int(match.group()) if match else 0)
    return parts
