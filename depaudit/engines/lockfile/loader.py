"""Graph loader: manifest + lockfile -> DependencyGraph.

Reading is synchronous and whole-file.  Problems that do not stop the run
are collected as strings on the graph instead of being logged here, so the
loader can be tested without capturing output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

# Ensure adapters are registered before any lockfile is read.
import depaudit.engines.lockfile.adapters  # noqa: F401
from depaudit.engines.lockfile.detector import detect_package_manager, lockfile_name
from depaudit.engines.lockfile.manifest import load_manifest
from depaudit.engines.lockfile.models import DependencyGraph, LockedPackage
from depaudit.engines.lockfile.registry import get_adapter
from depaudit.engines.lockfile.versions import is_valid_version
from depaudit.exceptions import LockfileParseError

log = structlog.get_logger("depaudit.lockfile")


@dataclass
class LockfileReadResult:
    """What came out of a single lockfile read."""

    manager: str
    path: Path | None
    packages: dict[str, LockedPackage] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


def to_locked_packages(
    raw: dict[str, str], warnings: list[str] | None = None
) -> dict[str, LockedPackage]:
    """Keep only entries whose version is valid semver."""
    locked: dict[str, LockedPackage] = {}
    for name, version in raw.items():
        if not is_valid_version(version):
            if warnings is not None:
                warnings.append(f"Dropping {name}: locked version {version!r} is not valid semver")
            continue
        locked[name] = LockedPackage(name=name, resolved_version=version)
    return locked


def parse_lockfile_content(manager: str, content: str) -> LockfileReadResult:
    """Run the adapter for *manager* over *content*, never raising."""
    result = LockfileReadResult(manager=manager, path=None)
    adapter = get_adapter(manager)
    if adapter is None:
        result.warnings.append(f"Unknown package manager: {manager}")
        return result

    try:
        raw = adapter.parse(content)
    except LockfileParseError as exc:
        result.warnings.append(f"Failed to parse {adapter.lockfile_name}: {exc.reason}")
        return result

    result.packages = to_locked_packages(raw, result.warnings)
    return result


def read_lockfile(project_root: Path, manager: str) -> LockfileReadResult:
    """Read and parse the lockfile of *manager* inside *project_root*.

    A missing lockfile is not an error: the locked set is simply empty.
    """
    name = lockfile_name(manager)
    if name is None:
        return LockfileReadResult(
            manager=manager, path=None, warnings=[f"Unknown package manager: {manager}"]
        )

    path = Path(project_root) / name
    if not path.is_file():
        return LockfileReadResult(manager=manager, path=None)

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return LockfileReadResult(
            manager=manager, path=path, warnings=[f"Failed to read {name}: {exc}"]
        )

    result = parse_lockfile_content(manager, content)
    result.path = path
    return result


def load_graph(project_root: Path, manager: str | None = None) -> DependencyGraph:
    """Build the :class:`DependencyGraph` for *project_root*.

    Raises :class:`~depaudit.exceptions.ManifestError` when ``package.json``
    is missing or invalid; every lockfile problem degrades to a warning.
    """
    root = Path(project_root)
    warnings: list[str] = []
    manifest = load_manifest(root, warnings)

    manager = manager or detect_package_manager(root)
    lock = read_lockfile(root, manager)
    warnings.extend(lock.warnings)

    return DependencyGraph(
        manager=manager,
        manifest=manifest,
        locked=lock.packages,
        lockfile_path=lock.path,
        warnings=warnings,
    )


def log_warnings(graph: DependencyGraph) -> None:
    """Emit the graph's load warnings through the structured logger."""
    for message in graph.warnings:
        log.warning("lockfile.warning", message=message, manager=graph.manager)
