"""Adapter for pnpm-lock.yaml files."""

from __future__ import annotations

import yaml

from depaudit.engines.lockfile.registry import register_adapter
from depaudit.exceptions import LockfileParseError


def split_package_key(key: str) -> tuple[str, str] | None:
    """Split a ``packages`` key into ``(name, version)``.

    ``/lodash@4.17.21`` -> ``("lodash", "4.17.21")``
    ``/@babel/core@7.20.0`` -> ``("@babel/core", "7.20.0")``

    A peer suffix (``/react-dom@18.2.0(react@18.2.0)``) is dropped first.
    Returns None when there is no name/version separator.
    """
    remainder = key[1:] if key.startswith("/") else key
    paren = remainder.find("(")
    if paren != -1:
        remainder = remainder[:paren]

    if remainder.startswith("@"):
        # Scoped: skip the scope's own leading "@".
        at_index = remainder.find("@", 1)
    else:
        at_index = remainder.rfind("@")

    if at_index <= 0:
        return None
    name = remainder[:at_index]
    version = remainder[at_index + 1:]
    if not version:
        return None
    return name, version


class PnpmLockAdapter:
    manager = "pnpm"
    lockfile_name = "pnpm-lock.yaml"

    def parse(self, content: str) -> dict[str, str]:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise LockfileParseError(self.manager, f"invalid YAML: {exc}") from exc
        except RecursionError as exc:
            raise LockfileParseError(self.manager, "nesting too deep") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise LockfileParseError(self.manager, "top level is not a mapping")

        packages = data.get("packages")
        if not isinstance(packages, dict):
            return {}

        resolved: dict[str, str] = {}
        for key in packages:
            split = split_package_key(str(key))
            if split is None:
                continue
            name, version = split
            resolved[name] = version
        return resolved


register_adapter(PnpmLockAdapter())
