"""depcheck wrapper: static detection of unused dependencies."""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from depaudit.exceptions import ServiceError
from depaudit.services.models import UnusedReport
from depaudit.services.process import run_command

log = structlog.get_logger("depaudit.services")

DEPCHECK_CMD = ["npx", "--yes", "depcheck", "--json"]


def parse_depcheck_output(stdout: str) -> UnusedReport:
    """Turn ``depcheck --json`` output into an :class:`UnusedReport`."""
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise ServiceError(f"depcheck produced invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ServiceError("depcheck output is not a JSON object")

    def _names(key: str) -> list[str]:
        value = data.get(key)
        if not isinstance(value, list):
            return []
        return [name for name in value if isinstance(name, str)]

    return UnusedReport(
        dependencies=_names("dependencies"),
        dev_dependencies=_names("devDependencies"),
    )


class DepcheckClient:
    """Runs depcheck through npx in the project directory."""

    def __init__(self, project_root: Path, timeout: float = 120.0) -> None:
        self.project_root = Path(project_root)
        self.timeout = timeout

    async def find_unused(self) -> UnusedReport:
        # depcheck exits non-zero whenever it reports something
        result = await run_command(DEPCHECK_CMD, self.project_root, timeout=self.timeout)
        if not result.stdout:
            raise ServiceError(
                f"depcheck failed (exit {result.returncode}): {result.stderr or 'no output'}"
            )
        report = parse_depcheck_output(result.stdout)
        log.debug(
            "depcheck.done",
            unused=len(report.dependencies),
            unused_dev=len(report.dev_dependencies),
        )
        return report
