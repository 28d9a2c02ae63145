"""Data models for the lockfile engine.

Everything here is rebuilt from disk on every invocation and never mutated
after construction.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from depaudit.services.names import is_valid_package_name


class DependencyClass(str, Enum):
    """The four dependency sections of ``package.json``."""

    PRODUCTION = "production"
    DEVELOPMENT = "development"
    OPTIONAL = "optional"
    PEER = "peer"

    @property
    def manifest_key(self) -> str:
        return _MANIFEST_KEYS[self]


_MANIFEST_KEYS = {
    DependencyClass.PRODUCTION: "dependencies",
    DependencyClass.DEVELOPMENT: "devDependencies",
    DependencyClass.OPTIONAL: "optionalDependencies",
    DependencyClass.PEER: "peerDependencies",
}


class ReconcileStatus(str, Enum):
    SATISFIED = "satisfied"
    MISMATCHED = "mismatched"
    UNLOCKED = "unlocked"


@dataclass(frozen=True)
class ManifestDependency:
    """A dependency declared in one section of ``package.json``."""

    name: str
    declared_range: str
    dep_class: DependencyClass

    @property
    def has_valid_name(self) -> bool:
        return is_valid_package_name(self.name)


@dataclass(frozen=True)
class LockedPackage:
    """A package pinned by the lockfile.  ``resolved_version`` is always valid semver."""

    name: str
    resolved_version: str


@dataclass
class Manifest:
    """The parts of ``package.json`` the auditor cares about."""

    name: str
    version: str | None = None
    dependencies: list[ManifestDependency] = field(default_factory=list)

    def ranges(self, dep_class: DependencyClass) -> dict[str, str]:
        """``name -> declared range`` for a single dependency section."""
        return {
            d.name: d.declared_range for d in self.dependencies if d.dep_class is dep_class
        }

    def merged_ranges(self, *classes: DependencyClass) -> dict[str, str]:
        """Merge several sections; a later class overrides an earlier one."""
        merged: dict[str, str] = {}
        for dep_class in classes:
            merged.update(self.ranges(dep_class))
        return merged


@dataclass
class DependencyGraph:
    """Uniform view of manifest + lockfile handed to every report."""

    manager: str
    manifest: Manifest
    locked: dict[str, LockedPackage] = field(default_factory=dict)
    lockfile_path: Path | None = None
    warnings: list[str] = field(default_factory=list)

    def locked_version(self, name: str) -> str | None:
        pkg = self.locked.get(name)
        return pkg.resolved_version if pkg else None


@dataclass(frozen=True)
class ReconciledDependency:
    """Outcome of matching one declared range against the lockfile."""

    dependency: ManifestDependency
    status: ReconcileStatus
    locked_version: str | None = None

    @property
    def name(self) -> str:
        return self.dependency.name


@dataclass(frozen=True)
class ReconciliationResult:
    """Read-only list of :class:`ReconciledDependency`, in manifest order."""

    entries: tuple[ReconciledDependency, ...] = ()

    def __iter__(self) -> Iterator[ReconciledDependency]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def with_status(self, status: ReconcileStatus) -> list[ReconciledDependency]:
        return [e for e in self.entries if e.status is status]

    def satisfied(self) -> list[ReconciledDependency]:
        return self.with_status(ReconcileStatus.SATISFIED)

    def mismatched(self) -> list[ReconciledDependency]:
        return self.with_status(ReconcileStatus.MISMATCHED)

    def unlocked(self) -> list[ReconciledDependency]:
        return self.with_status(ReconcileStatus.UNLOCKED)
