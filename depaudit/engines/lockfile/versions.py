"""Semantic-version helpers backed by ``semantic_version``.

npm semantics throughout: ``NpmSpec`` handles caret, tilde, x-ranges,
hyphen ranges and ``||`` unions.
"""

from __future__ import annotations

import re

from semantic_version import NpmSpec, Version

# npm accepts whitespace between a comparator and its version (">= 1.2.3").
_OPERATOR_SPACE_RE = re.compile(r"(<=|>=|<|>|=|~|\^)\s+")


def parse_version(value: object) -> Version | None:
    """Parse a concrete version, tolerating npm's leading ``v`` / ``=``."""
    if not isinstance(value, str):
        return None
    text = value.strip().lstrip("=v").strip()
    if not text:
        return None
    try:
        return Version(text)
    except ValueError:
        return None


def is_valid_version(value: object) -> bool:
    return parse_version(value) is not None


def parse_range(expr: str) -> NpmSpec | None:
    """Parse an npm range expression; ``None`` for dist-tags, URLs and the like."""
    text = _OPERATOR_SPACE_RE.sub(r"\1", expr.strip()) or "*"
    try:
        return NpmSpec(text)
    except ValueError:
        return None


def satisfies(version: str, expr: str) -> bool:
    """True if concrete *version* falls within npm range *expr*.

    An unparsable version or range never satisfies.
    """
    parsed = parse_version(version)
    spec = parse_range(expr)
    if parsed is None or spec is None:
        return False
    return spec.match(parsed)


def versions_equal(a: str, b: str) -> bool:
    """Semver equality (``"v1.0.0"`` equals ``"1.0.0"``); False if either is invalid."""
    left, right = parse_version(a), parse_version(b)
    return left is not None and right is not None and left == right
