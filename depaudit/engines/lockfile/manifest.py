"""package.json loading and validation."""

from __future__ import annotations

import json
from pathlib import Path

from depaudit.engines.lockfile.models import DependencyClass, Manifest, ManifestDependency
from depaudit.exceptions import ManifestError

MANIFEST_NAME = "package.json"


def parse_manifest(content: str, warnings: list[str] | None = None) -> Manifest:
    """Build a :class:`Manifest` from raw ``package.json`` text.

    Raises :class:`ManifestError` for anything that is not a JSON object
    with a string ``name``.  Malformed dependency sections or entries are
    skipped and described in *warnings*.
    """
    warnings = warnings if warnings is not None else []
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid {MANIFEST_NAME}: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError(f"Invalid {MANIFEST_NAME}: top level is not an object")

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ManifestError(f"Invalid {MANIFEST_NAME}: missing name field")

    version = data.get("version")
    dependencies: list[ManifestDependency] = []
    for dep_class in DependencyClass:
        section = data.get(dep_class.manifest_key)
        if section is None:
            continue
        if not isinstance(section, dict):
            warnings.append(f"{dep_class.manifest_key} is not an object; ignored")
            continue
        for dep_name, declared in section.items():
            if not isinstance(declared, str):
                warnings.append(
                    f"{dep_class.manifest_key}.{dep_name}: range is not a string; ignored"
                )
                continue
            dependencies.append(
                ManifestDependency(name=dep_name, declared_range=declared, dep_class=dep_class)
            )

    return Manifest(
        name=name,
        version=version if isinstance(version, str) else None,
        dependencies=dependencies,
    )


def load_manifest(project_root: Path, warnings: list[str] | None = None) -> Manifest:
    """Read ``package.json`` from *project_root*."""
    path = Path(project_root) / MANIFEST_NAME
    if not path.is_file():
        raise ManifestError(f"{MANIFEST_NAME} not found in {project_root}")
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Cannot read {path}: {exc}") from exc
    return parse_manifest(content, warnings)
