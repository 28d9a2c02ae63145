"""Data models returned by the external-service clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ProcessResult:
    """Captured output of a finished subprocess."""

    returncode: int
    stdout: str
    stderr: str


@dataclass
class PackageMetadata:
    """Registry facts about one package (packument + download counts)."""

    name: str
    latest_version: str | None
    time: dict[str, str] = field(default_factory=dict)  # "modified", "created", per-version
    maintainers: list[dict] = field(default_factory=list)
    weekly_downloads: int = 0

    def last_updated(self) -> datetime | None:
        """When the package last changed on the registry, if known."""
        for key in ("modified", "created", self.latest_version or ""):
            raw = self.time.get(key) if key else None
            if not isinstance(raw, str):
                continue
            try:
                return datetime.fromisoformat(raw.replace("Z", "+00:00"))
            except ValueError:
                continue
        return None


@dataclass
class UnusedReport:
    """Declared packages that no source file imports."""

    dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)

    @property
    def all(self) -> list[str]:
        return [*self.dependencies, *self.dev_dependencies]
