"""Package-manager CLI wrapper: installed versions, audit, dependency tree."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog

from depaudit.exceptions import InvalidPackageNameError, ServiceError
from depaudit.services.models import ProcessResult
from depaudit.services.names import is_valid_package_name
from depaudit.services.process import run_command

log = structlog.get_logger("depaudit.services")

SUPPORTED_MANAGERS = ("npm", "yarn", "pnpm")


def _json_documents(text: str) -> Iterator[Any]:
    """Yield JSON values from *text*: one document, or one per line (NDJSON)."""
    text = text.strip()
    if not text:
        return
    try:
        yield json.loads(text)
        return
    except json.JSONDecodeError:
        pass
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError:
            continue


def _version_from_tree(tree: Any, name: str) -> str | None:
    """Find ``tree[<section>][name]["version"]`` in npm/pnpm ``ls --json`` output."""
    if not isinstance(tree, dict):
        return None
    for section in ("dependencies", "devDependencies", "optionalDependencies"):
        deps = tree.get(section)
        if not isinstance(deps, dict):
            continue
        info = deps.get(name)
        if isinstance(info, dict) and isinstance(info.get("version"), str):
            return info["version"]
    return None


def parse_installed_version(manager: str, name: str, stdout: str) -> str | None:
    """Extract the installed version of *name* from ``<manager> ls`` JSON output."""
    for doc in _json_documents(stdout):
        if manager == "yarn":
            # {"type": "tree", "data": {"trees": [{"name": "lodash@4.17.21"}]}}
            if not isinstance(doc, dict) or doc.get("type") != "tree":
                continue
            trees = (doc.get("data") or {}).get("trees") or []
            for tree in trees:
                label = tree.get("name", "") if isinstance(tree, dict) else ""
                if label.startswith(f"{name}@"):
                    return label[len(name) + 1:]
        elif isinstance(doc, list):
            # pnpm prints one entry per workspace project
            for project in doc:
                version = _version_from_tree(project, name)
                if version:
                    return version
        else:
            version = _version_from_tree(doc, name)
            if version:
                return version
    return None


def parse_audit_output(stdout: str) -> set[str]:
    """Names of vulnerable packages in ``<manager> audit --json`` output.

    Understands npm v7+ (``vulnerabilities``), npm v6 / pnpm
    (``advisories``) and yarn classic's NDJSON ``auditAdvisory`` stream.
    Raises ``ServiceError`` if nothing in the output is JSON.
    """
    vulnerable: set[str] = set()
    parsed_any = False
    for doc in _json_documents(stdout):
        parsed_any = True
        if not isinstance(doc, dict):
            continue

        vulnerabilities = doc.get("vulnerabilities")
        if isinstance(vulnerabilities, dict):
            for key, entry in vulnerabilities.items():
                vulnerable.add(key)
                if isinstance(entry, dict) and isinstance(entry.get("name"), str):
                    vulnerable.add(entry["name"])

        advisories = doc.get("advisories")
        if isinstance(advisories, dict):
            for advisory in advisories.values():
                if isinstance(advisory, dict) and isinstance(advisory.get("module_name"), str):
                    vulnerable.add(advisory["module_name"])

        if doc.get("type") == "auditAdvisory":
            advisory = (doc.get("data") or {}).get("advisory") or {}
            if isinstance(advisory.get("module_name"), str):
                vulnerable.add(advisory["module_name"])

    if not parsed_any:
        raise ServiceError("audit produced no JSON output")
    return vulnerable


class PackageManagerCLI:
    """Runs the project's package manager as a subprocess (never via a shell)."""

    def __init__(self, manager: str, project_root: Path, timeout: float = 30.0) -> None:
        if manager not in SUPPORTED_MANAGERS:
            raise ServiceError(f"Unsupported package manager: {manager}")
        self.manager = manager
        self.project_root = Path(project_root)
        self.timeout = timeout

    # ── public ─────────────────────────────────────────────────────────────

    async def installed_version(self, name: str) -> str | None:
        """Version of *name* as installed in ``node_modules``, if any."""
        if not is_valid_package_name(name):
            raise InvalidPackageNameError(name)

        if self.manager == "yarn":
            cmd = ["yarn", "list", "--pattern", name, "--json", "--depth=0"]
        else:
            cmd = [self.manager, "ls", name, "--json", "--depth=0"]
        result = await self._run(cmd)
        return parse_installed_version(self.manager, name, result.stdout)

    async def audit(self) -> set[str]:
        """Names of packages with known vulnerabilities in the current tree."""
        result = await self._run([self.manager, "audit", "--json"])
        if not result.stdout and result.returncode != 0:
            raise ServiceError(
                f"{self.manager} audit failed (exit {result.returncode}): {result.stderr}"
            )
        return parse_audit_output(result.stdout)

    async def list_tree(self) -> ProcessResult:
        """Top-level dependency listing; warnings such as peer conflicts land in stderr."""
        if self.manager == "yarn":
            cmd = ["yarn", "list", "--json", "--depth=0"]
        else:
            cmd = [self.manager, "ls", "--json", "--depth=0"]
        return await self._run(cmd)

    # ── internal ───────────────────────────────────────────────────────────

    async def _run(self, cmd: list[str]) -> ProcessResult:
        log.debug("package_manager.run", cmd=cmd)
        return await run_command(cmd, self.project_root, timeout=self.timeout)
