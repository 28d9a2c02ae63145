"""Inventory report: declared dependencies, locked packages, reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from depaudit.engines.lockfile.models import (
    DependencyClass,
    DependencyGraph,
    ReconciliationResult,
)
from depaudit.engines.lockfile.reconciler import reconcile


@dataclass
class ScanReport:
    manager: str
    declared: dict[DependencyClass, dict[str, str]]
    lockfile: dict[str, str]
    reconciliation: ReconciliationResult = field(default_factory=ReconciliationResult)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"manager": self.manager}
        for dep_class in DependencyClass:
            data[dep_class.manifest_key] = dict(self.declared.get(dep_class, {}))
        data["lockfileDependencies"] = {
            name: {"version": version} for name, version in self.lockfile.items()
        }
        data["reconciliation"] = [
            {
                "name": entry.name,
                "class": entry.dependency.dep_class.value,
                "declaredRange": entry.dependency.declared_range,
                "status": entry.status.value,
                "lockedVersion": entry.locked_version,
            }
            for entry in self.reconciliation
        ]
        return data


def scan(graph: DependencyGraph) -> ScanReport:
    return ScanReport(
        manager=graph.manager,
        declared={dep_class: graph.manifest.ranges(dep_class) for dep_class in DependencyClass},
        lockfile={name: pkg.resolved_version for name, pkg in graph.locked.items()},
        reconciliation=reconcile(graph),
    )
