"""Update suggestions: locked/installed version vs. latest on the registry."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from semantic_version import Version

from depaudit.engines.lockfile.models import DependencyClass, DependencyGraph
from depaudit.engines.lockfile.versions import is_valid_version, parse_version, versions_equal
from depaudit.exceptions import ServiceError
from depaudit.reports.batch import map_bounded
from depaudit.reports.commands import install_command
from depaudit.services.names import validate_package_name
from depaudit.services.package_manager import PackageManagerCLI
from depaudit.services.registry_client import NpmRegistryClient

log = structlog.get_logger("depaudit.reports")

# Peer dependencies are the consumer's business, not ours to bump.
UPDATE_CLASSES = (
    DependencyClass.PRODUCTION,
    DependencyClass.DEVELOPMENT,
    DependencyClass.OPTIONAL,
)

MAJOR = "MAJOR"
MINOR = "MINOR"
PATCH = "PATCH"


@dataclass
class UpdateSuggestion:
    name: str
    current: str
    latest: str
    type: str  # MAJOR | MINOR | PATCH
    command: str


def classify_update(current: Version, latest: Version) -> str:
    if latest.major > current.major:
        return MAJOR
    if latest.minor > current.minor:
        return MINOR
    return PATCH


class UpdateAdvisor:
    """Suggests upgrades for every declared, non-peer dependency."""

    def __init__(
        self,
        registry: NpmRegistryClient,
        package_manager: PackageManagerCLI,
        concurrency: int = 8,
    ) -> None:
        self._registry = registry
        self._package_manager = package_manager
        self._concurrency = concurrency

    async def suggest(self, graph: DependencyGraph, safe: bool = False) -> list[UpdateSuggestion]:
        """One suggestion per outdated package; ``safe`` drops major bumps."""
        ranges = graph.manifest.merged_ranges(*UPDATE_CLASSES)
        names = [name for name in ranges if validate_package_name(name, "updates.invalid_name")]

        async def _check(name: str) -> UpdateSuggestion | None:
            return await self._check_one(graph, name, ranges[name], safe)

        suggestions: list[UpdateSuggestion] = []
        for name, outcome in await map_bounded(_check, names, self._concurrency):
            if isinstance(outcome, BaseException):
                log.warning(
                    "updates.skipped",
                    package=name,
                    reason=str(outcome) or type(outcome).__name__,
                )
                continue
            if isinstance(outcome, UpdateSuggestion):
                suggestions.append(outcome)
        return suggestions

    async def _current_version(self, graph: DependencyGraph, name: str, declared: str) -> str:
        """Locked version, else what is installed, else the declared range."""
        locked = graph.locked_version(name)
        if locked and is_valid_version(locked):
            return locked
        try:
            installed = await self._package_manager.installed_version(name)
        except ServiceError as exc:
            log.debug("updates.installed_lookup_failed", package=name, error=str(exc))
            installed = None
        return installed or declared

    async def _check_one(
        self, graph: DependencyGraph, name: str, declared: str, safe: bool
    ) -> UpdateSuggestion | None:
        current = await self._current_version(graph, name, declared)
        latest = await self._registry.latest_version(name)
        if not latest:
            log.warning("updates.skipped", package=name, reason="no version found")
            return None

        current_v = parse_version(current)
        latest_v = parse_version(latest)
        if current_v is None or latest_v is None:
            log.warning(
                "updates.skipped",
                package=name,
                reason="invalid version format",
                current=current,
                latest=latest,
            )
            return None
        if versions_equal(current, latest):
            log.debug("updates.up_to_date", package=name, version=current)
            return None
        if latest_v < current_v:
            return None

        kind = classify_update(current_v, latest_v)
        if safe and kind == MAJOR:
            return None

        return UpdateSuggestion(
            name=name,
            current=current,
            latest=latest,
            type=kind,
            command=install_command(graph.manager, name, latest),
        )
