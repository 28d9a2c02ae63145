"""Explain why automated dependency-update PRs are likely to fail."""

from __future__ import annotations

import json
from dataclasses import dataclass

import structlog

from depaudit.engines.lockfile.detector import lockfile_name
from depaudit.engines.lockfile.models import DependencyClass, DependencyGraph, ReconcileStatus
from depaudit.engines.lockfile.reconciler import reconcile
from depaudit.exceptions import LockfileMissingError, ServiceError
from depaudit.reports.commands import install_command, sync_command
from depaudit.services.models import ProcessResult
from depaudit.services.package_manager import PackageManagerCLI

log = structlog.get_logger("depaudit.reports")

VERSION_MISMATCH = "VERSION_MISMATCH"
MISSING_LOCK_ENTRY = "MISSING_LOCK_ENTRY"
PEER_CONFLICT = "PEER_CONFLICT"

# Optional and peer dependencies are legitimately absent from many lockfiles.
_MUST_BE_LOCKED = (DependencyClass.PRODUCTION, DependencyClass.DEVELOPMENT)

_PEER_MARKERS = ("peer", "conflict")


@dataclass
class Issue:
    type: str
    message: str
    fix: str
    severity: str  # HIGH | MEDIUM


def has_peer_conflict(result: ProcessResult) -> bool:
    """True if a tree listing mentions peer or conflict problems."""
    texts = [result.stderr]
    try:
        listing = json.loads(result.stdout) if result.stdout else None
    except json.JSONDecodeError:
        listing = None
    if isinstance(listing, dict) and isinstance(listing.get("problems"), list):
        texts.extend(str(problem) for problem in listing["problems"])
    combined = "\n".join(texts).lower()
    return any(marker in combined for marker in _PEER_MARKERS)


class DependabotExplainer:
    def __init__(self, package_manager: PackageManagerCLI) -> None:
        self._package_manager = package_manager

    async def explain(self, graph: DependencyGraph) -> list[Issue]:
        if graph.lockfile_path is None:
            expected = lockfile_name(graph.manager) or "lockfile"
            raise LockfileMissingError(f"Missing package.json or {expected}")

        issues = self.lockfile_issues(graph)
        peer_issue = await self._peer_conflict_issue(graph.manager)
        if peer_issue is not None:
            issues.append(peer_issue)
        return issues

    @staticmethod
    def lockfile_issues(graph: DependencyGraph) -> list[Issue]:
        """Issues derived purely from reconciling manifest and lockfile."""
        issues: list[Issue] = []
        for entry in reconcile(graph):
            dep = entry.dependency
            section = dep.dep_class.manifest_key
            if entry.status is ReconcileStatus.MISMATCHED:
                issues.append(
                    Issue(
                        type=VERSION_MISMATCH,
                        message=(
                            f"{dep.name} in {section} requires {dep.declared_range}, "
                            f"but locked at {entry.locked_version}."
                        ),
                        fix=install_command(graph.manager, dep.name, dep.declared_range),
                        severity="HIGH",
                    )
                )
            elif entry.status is ReconcileStatus.UNLOCKED and dep.dep_class in _MUST_BE_LOCKED:
                issues.append(
                    Issue(
                        type=MISSING_LOCK_ENTRY,
                        message=f"{dep.name} in {section} has no entry in the lockfile.",
                        fix=sync_command(graph.manager),
                        severity="MEDIUM",
                    )
                )
        return issues

    async def _peer_conflict_issue(self, manager: str) -> Issue | None:
        try:
            result = await self._package_manager.list_tree()
        except ServiceError as exc:
            log.warning("dependabot.peer_check_failed", error=str(exc))
            return None

        if not has_peer_conflict(result):
            return None
        return Issue(
            type=PEER_CONFLICT,
            message="Potential peer dependency conflicts detected.",
            fix=f"Run {manager} install --legacy-peer-deps or add resolutions",
            severity="MEDIUM",
        )
