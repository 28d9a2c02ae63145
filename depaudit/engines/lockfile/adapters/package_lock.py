"""Adapter for npm package-lock.json files."""

from __future__ import annotations

import json

from depaudit.engines.lockfile.registry import register_adapter
from depaudit.exceptions import LockfileParseError

# Hard bound on nesting; malformed or hostile documents can nest arbitrarily.
MAX_DEPTH = 100

_NODE_MODULES = "node_modules/"


def walk_dependency_tree(tree: object) -> dict[str, str]:
    """Flatten a lockfile v1/v2 ``dependencies`` tree into ``name -> version``.

    Depth-first, pre-order, iterative.  A name seen more than once keeps
    the version visited last.  Paths (``/a/b``) already expanded are not
    expanded again, and nothing below :data:`MAX_DEPTH` is visited, so
    cyclic input terminates.
    """
    resolved: dict[str, str] = {}
    if not isinstance(tree, dict):
        return resolved

    visited: set[str] = {""}
    stack: list[tuple[str, object, int, str]] = [
        (str(name), info, 0, "") for name, info in reversed(list(tree.items()))
    ]
    while stack:
        name, info, depth, parent_path = stack.pop()
        if not isinstance(info, dict):
            continue

        version = info.get("version")
        if isinstance(version, str) and version:
            resolved[name] = version

        children = info.get("dependencies")
        if not isinstance(children, dict) or not children:
            continue
        path = f"{parent_path}/{name}"
        if depth + 1 > MAX_DEPTH or path in visited:
            continue
        visited.add(path)
        stack.extend(
            (str(child), child_info, depth + 1, path)
            for child, child_info in reversed(list(children.items()))
        )

    return resolved


def flatten_packages(packages: object) -> dict[str, str]:
    """Read the lockfile v2/v3 ``packages`` map (``node_modules/...`` keys).

    Nested installs are applied before top-level ones so the version a
    project actually imports wins.
    """
    if not isinstance(packages, dict):
        return {}

    entries: list[tuple[int, str, str]] = []
    for key, info in packages.items():
        if not isinstance(key, str) or not isinstance(info, dict):
            continue
        idx = key.rfind(_NODE_MODULES)
        if idx == -1:
            # "" is the root project, other keys are workspace folders
            continue
        name = key[idx + len(_NODE_MODULES):]
        version = info.get("version")
        if not name or not isinstance(version, str) or not version:
            continue
        entries.append((key.count(_NODE_MODULES), name, version))

    entries.sort(key=lambda entry: -entry[0])
    return {name: version for _, name, version in entries}


class PackageLockAdapter:
    manager = "npm"
    lockfile_name = "package-lock.json"

    def parse(self, content: str) -> dict[str, str]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise LockfileParseError(self.manager, f"invalid JSON: {exc}") from exc
        except RecursionError as exc:
            raise LockfileParseError(self.manager, "nesting too deep") from exc

        if not isinstance(data, dict):
            raise LockfileParseError(self.manager, "top level is not a JSON object")

        if isinstance(data.get("dependencies"), dict):
            return walk_dependency_tree(data["dependencies"])
        return flatten_packages(data.get("packages"))


register_adapter(PackageLockAdapter())
