"""Lockfile engine: parse lockfiles and reconcile them with package.json."""

from depaudit.engines.lockfile.detector import detect_package_manager, lockfile_name
from depaudit.engines.lockfile.loader import load_graph, read_lockfile
from depaudit.engines.lockfile.models import (
    DependencyClass,
    DependencyGraph,
    LockedPackage,
    Manifest,
    ManifestDependency,
    ReconciledDependency,
    ReconciliationResult,
    ReconcileStatus,
)
from depaudit.engines.lockfile.reconciler import reconcile, reconcile_dependency

__all__ = [
    "DependencyClass",
    "DependencyGraph",
    "LockedPackage",
    "Manifest",
    "ManifestDependency",
    "ReconcileStatus",
    "ReconciledDependency",
    "ReconciliationResult",
    "detect_package_manager",
    "load_graph",
    "lockfile_name",
    "read_lockfile",
    "reconcile",
    "reconcile_dependency",
]
