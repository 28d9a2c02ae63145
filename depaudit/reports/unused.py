"""Unused dependency detection via the depcheck service."""

from __future__ import annotations

from typing import Protocol

import structlog

from depaudit.engines.lockfile.models import DependencyGraph
from depaudit.exceptions import ServiceError
from depaudit.reports.commands import remove_command
from depaudit.services.models import UnusedReport
from depaudit.services.names import validate_package_name

log = structlog.get_logger("depaudit.reports")


class UnusedService(Protocol):
    async def find_unused(self) -> UnusedReport: ...


class UnusedDetector:
    """Lists declared dependencies and devDependencies nothing imports."""

    def __init__(self, service: UnusedService) -> None:
        self._service = service

    async def find(self, graph: DependencyGraph) -> list[str]:
        if graph.manager != "npm":
            log.warning(
                "unused.limited_support",
                manager=graph.manager,
                message=f"depcheck primarily supports npm; results for {graph.manager} may be incomplete",
            )

        try:
            report = await self._service.find_unused()
        except ServiceError as exc:
            log.error("unused.depcheck_failed", error=str(exc))
            return []

        unused: list[str] = []
        for name in report.all:
            if not validate_package_name(name, "unused.invalid_name"):
                continue
            if name not in unused:
                unused.append(name)
        return unused


def removal_commands(manager: str, names: list[str]) -> list[str]:
    return [remove_command(manager, name) for name in names]
