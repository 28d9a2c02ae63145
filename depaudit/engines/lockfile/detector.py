"""Package manager detection from lockfile marker files."""

from __future__ import annotations

from pathlib import Path

import structlog

log = structlog.get_logger("depaudit.lockfile")

DEFAULT_MANAGER = "npm"

# Detection rules: (lockfile_name, manager), ordered by priority
DETECTION_RULES: list[tuple[str, str]] = [
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
    ("package-lock.json", "npm"),
]

LOCKFILE_NAMES: dict[str, str] = {manager: name for name, manager in DETECTION_RULES}


def detect_package_manager(project_root: Path) -> str:
    """Return the manager owning the first lockfile found in *project_root*.

    Only checks for existence.  Falls back to npm so that a project
    without a lockfile still reconciles, against an empty locked set.
    """
    root = Path(project_root)
    for lockfile_name, manager in DETECTION_RULES:
        if (root / lockfile_name).is_file():
            log.debug("detector.found", manager=manager, lockfile=lockfile_name)
            return manager

    log.debug("detector.default", manager=DEFAULT_MANAGER, project_root=str(root))
    return DEFAULT_MANAGER


def lockfile_name(manager: str) -> str | None:
    """Lockfile filename for *manager*, or None if the manager is unknown."""
    return LOCKFILE_NAMES.get(manager)
