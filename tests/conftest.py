"""Shared pytest fixtures for dep-audit tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from depaudit.engines.lockfile.models import (
    DependencyClass,
    DependencyGraph,
    LockedPackage,
    Manifest,
    ManifestDependency,
)


@pytest.fixture
def write_project(tmp_path):
    """Write package.json (and optionally a lockfile) into tmp_path."""

    def _write(manifest: dict | None = None, lockfiles: dict[str, str] | None = None) -> Path:
        if manifest is not None:
            (tmp_path / "package.json").write_text(json.dumps(manifest))
        for name, content in (lockfiles or {}).items():
            (tmp_path / name).write_text(content)
        return tmp_path

    return _write


def make_graph(
    declared: dict[DependencyClass, dict[str, str]],
    locked: dict[str, str] | None = None,
    manager: str = "npm",
    lockfile_path: Path | None = Path("package-lock.json"),
) -> DependencyGraph:
    deps = [
        ManifestDependency(name=name, declared_range=spec, dep_class=dep_class)
        for dep_class, section in declared.items()
        for name, spec in section.items()
    ]
    return DependencyGraph(
        manager=manager,
        manifest=Manifest(name="app", version="1.0.0", dependencies=deps),
        locked={
            name: LockedPackage(name=name, resolved_version=version)
            for name, version in (locked or {}).items()
        },
        lockfile_path=lockfile_path,
    )


@pytest.fixture
def graph_factory():
    return make_graph
