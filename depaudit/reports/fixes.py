"""Fix planning: collect the commands that would clean up the project.

Nothing here is executed; the planner only assembles commands.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from depaudit.engines.lockfile.models import DependencyGraph
from depaudit.exceptions import DepAuditError
from depaudit.reports.commands import remove_command, sync_command
from depaudit.reports.dependabot import VERSION_MISMATCH, DependabotExplainer, Issue
from depaudit.reports.unused import UnusedDetector

log = structlog.get_logger("depaudit.reports")

UNUSED_DEPS = "UNUSED_DEPS"
LOCKFILE_SYNC = "LOCKFILE_SYNC"


@dataclass
class FixAction:
    type: str  # UNUSED_DEPS | LOCKFILE_SYNC
    description: str
    command: str
    packages: list[str] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)


class FixPlanner:
    def __init__(self, unused_detector: UnusedDetector, explainer: DependabotExplainer) -> None:
        self._unused = unused_detector
        self._explainer = explainer

    async def plan(self, graph: DependencyGraph) -> list[FixAction]:
        fixes: list[FixAction] = []

        unused = await self._unused.find(graph)
        if unused:
            fixes.append(
                FixAction(
                    type=UNUSED_DEPS,
                    description=f"Remove {len(unused)} unused dependencies",
                    command=" && ".join(remove_command(graph.manager, name) for name in unused),
                    packages=unused,
                )
            )

        try:
            issues = await self._explainer.explain(graph)
        except DepAuditError as exc:
            log.warning("fix.lockfile_check_failed", error=str(exc))
            issues = []

        mismatches = [issue for issue in issues if issue.type == VERSION_MISMATCH]
        if mismatches:
            fixes.append(
                FixAction(
                    type=LOCKFILE_SYNC,
                    description=f"Fix {len(mismatches)} version mismatches",
                    command=sync_command(graph.manager),
                    issues=mismatches,
                )
            )
        return fixes
