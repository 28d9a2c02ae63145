"""Dependency health and risk scoring."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from depaudit.engines.lockfile.models import DependencyGraph
from depaudit.exceptions import ServiceError
from depaudit.reports.batch import map_bounded
from depaudit.reports.updates import UPDATE_CLASSES
from depaudit.services.models import PackageMetadata
from depaudit.services.names import validate_package_name
from depaudit.services.package_manager import PackageManagerCLI
from depaudit.services.registry_client import NpmRegistryClient

log = structlog.get_logger("depaudit.reports")

MAX_SCORE = 10
HIGH = "HIGH"
MEDIUM = "MEDIUM"
LOW = "LOW"

_SECONDS_PER_MONTH = 60 * 60 * 24 * 30


@dataclass
class RiskAssessment:
    name: str
    level: str  # HIGH | MEDIUM | LOW
    score: int  # 0..10, higher is healthier
    reason: str
    months_since_update: float = 0.0
    maintainers: int = 0
    weekly_downloads: int = 0
    vulnerable: bool = False


def score_package(
    metadata: PackageMetadata,
    vulnerable: bool,
    now: datetime | None = None,
) -> RiskAssessment:
    """Score one package from registry metadata and audit data.

    Starts at 10 and subtracts: 3 for no publish in 24 months (2 for 12),
    2 for at most one maintainer, 2 for under 1000 weekly downloads, 3 for
    a known vulnerability.
    """
    now = now or datetime.now(timezone.utc)
    last_updated = metadata.last_updated()
    if last_updated is not None and last_updated.tzinfo is None:
        last_updated = last_updated.replace(tzinfo=timezone.utc)
    months = (
        max((now - last_updated).total_seconds(), 0) / _SECONDS_PER_MONTH
        if last_updated is not None
        else 0.0
    )
    maintainers = len(metadata.maintainers)
    downloads = metadata.weekly_downloads

    score = MAX_SCORE
    if months > 24:
        score -= 3
    elif months > 12:
        score -= 2
    if maintainers <= 1:
        score -= 2
    if downloads < 1000:
        score -= 2
    if vulnerable:
        score -= 3
    score = max(0, score)

    if score <= 3:
        level, reasons = HIGH, ["High risk package"]
    elif score <= 6:
        level, reasons = MEDIUM, ["Medium risk package"]
    else:
        level, reasons = LOW, ["Generally healthy"]

    if months > 12:
        reasons.append(f"Last updated {round(months)} months ago")
    if maintainers <= 1:
        reasons.append("Few maintainers")
    if downloads < 1000:
        reasons.append("Low weekly downloads")
    if vulnerable:
        reasons.append("Known vulnerabilities")

    return RiskAssessment(
        name=metadata.name,
        level=level,
        score=score,
        reason=", ".join(reasons),
        months_since_update=round(months, 1),
        maintainers=maintainers,
        weekly_downloads=downloads,
        vulnerable=vulnerable,
    )


def summarize(results: list[RiskAssessment]) -> dict[str, int]:
    counts = {HIGH: 0, MEDIUM: 0, LOW: 0}
    for result in results:
        counts[result.level] += 1
    return counts


class RiskAuditor:
    """Scores every declared, non-peer dependency."""

    def __init__(
        self,
        registry: NpmRegistryClient,
        package_manager: PackageManagerCLI,
        concurrency: int = 8,
    ) -> None:
        self._registry = registry
        self._package_manager = package_manager
        self._concurrency = concurrency

    async def audit(self, graph: DependencyGraph) -> list[RiskAssessment]:
        vulnerable = await self._vulnerable_packages(graph.manager)

        names = [
            name
            for name in graph.manifest.merged_ranges(*UPDATE_CLASSES)
            if validate_package_name(name, "risk.invalid_name")
        ]

        now = datetime.now(timezone.utc)
        results: list[RiskAssessment] = []
        for name, outcome in await map_bounded(
            self._registry.fetch_metadata, names, self._concurrency
        ):
            if isinstance(outcome, BaseException):
                log.warning(
                    "risk.skipped",
                    package=name,
                    reason=str(outcome) or type(outcome).__name__,
                )
                continue
            if isinstance(outcome, PackageMetadata):
                results.append(score_package(outcome, name in vulnerable, now))
        return results

    async def _vulnerable_packages(self, manager: str) -> set[str]:
        try:
            return await self._package_manager.audit()
        except ServiceError as exc:
            log.warning("risk.audit_failed", manager=manager, error=str(exc))
            return set()
