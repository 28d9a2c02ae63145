"""Dependency reconciler: declared ranges vs. locked versions.

Pure and in-memory: no filesystem, network or subprocess access.  Only
first-order mismatches are reported; transitive conflicts are out of scope.
"""

from __future__ import annotations

from collections.abc import Mapping

from depaudit.engines.lockfile.models import (
    DependencyGraph,
    LockedPackage,
    ManifestDependency,
    ReconciledDependency,
    ReconciliationResult,
    ReconcileStatus,
)
from depaudit.engines.lockfile.versions import is_valid_version, satisfies


def reconcile_dependency(
    dep: ManifestDependency,
    locked: Mapping[str, LockedPackage],
) -> ReconciledDependency:
    """Classify a single declared dependency."""
    pkg = locked.get(dep.name)
    if pkg is None or not is_valid_version(pkg.resolved_version):
        return ReconciledDependency(dependency=dep, status=ReconcileStatus.UNLOCKED)

    status = (
        ReconcileStatus.SATISFIED
        if satisfies(pkg.resolved_version, dep.declared_range)
        else ReconcileStatus.MISMATCHED
    )
    return ReconciledDependency(
        dependency=dep, status=status, locked_version=pkg.resolved_version
    )


def reconcile(graph: DependencyGraph) -> ReconciliationResult:
    """Reconcile every manifest dependency, in manifest order."""
    return ReconciliationResult(
        entries=tuple(
            reconcile_dependency(dep, graph.locked) for dep in graph.manifest.dependencies
        )
    )
