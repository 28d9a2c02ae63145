"""Package-name validation applied before any external-service call."""

from __future__ import annotations

import re

import structlog

log = structlog.get_logger("depaudit.services")

# npm package name characters, scope included (e.g. ``@babel/core``).
PACKAGE_NAME_RE = re.compile(r"^[@a-z0-9._/-]+$", re.IGNORECASE)


def is_valid_package_name(name: object) -> bool:
    """Return True if *name* is safe to hand to a registry or subprocess call.

    Names starting with ``-`` are refused as well: they pass the character
    check but would be read as command-line options.
    """
    if not isinstance(name, str) or not name:
        return False
    if name.startswith("-"):
        return False
    return PACKAGE_NAME_RE.match(name) is not None


def validate_package_name(name: str, event: str = "names.invalid") -> str | None:
    """Return *name* unchanged when valid, otherwise log *event* and return None."""
    if is_valid_package_name(name):
        return name
    log.warning(event, package=name)
    return None
