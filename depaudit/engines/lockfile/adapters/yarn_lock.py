"""Adapter for yarn.lock files (classic v1 blocks and Berry YAML)."""

from __future__ import annotations

import re

import yaml

from depaudit.engines.lockfile.registry import register_adapter
from depaudit.exceptions import LockfileParseError

# Block field line: `  version "1.2.3"` (v1) or `  version: 1.2.3`
_VERSION_RE = re.compile(r'^  version:?\s+"?([^"\s]+)"?\s*$')

# Berry lockfiles are YAML documents with a metadata header.
_BERRY_MARKER_RE = re.compile(r"^__metadata:", re.MULTILINE)


def package_name_from_descriptor(descriptor: str) -> str:
    """``"@babel/core@^7.0.0"`` -> ``@babel/core``; ``lodash@^4`` -> ``lodash``."""
    cleaned = descriptor.strip().strip("\"'").strip()
    if cleaned.startswith("@"):
        at_index = cleaned.find("@", 1)
        return cleaned if at_index == -1 else cleaned[:at_index]
    return cleaned.split("@", 1)[0]


def names_from_header(header: str) -> list[str]:
    """Split a block header into the distinct package names it covers.

    ``react@^18.0.0, react@^18.2.0`` yields ``["react"]``: one block
    serves every range that resolved to the same install.
    """
    names: list[str] = []
    for descriptor in header.split(","):
        name = package_name_from_descriptor(descriptor)
        if name and name not in names:
            names.append(name)
    return names


class YarnLockAdapter:
    manager = "yarn"
    lockfile_name = "yarn.lock"

    def parse(self, content: str) -> dict[str, str]:
        if _BERRY_MARKER_RE.search(content):
            return self._parse_berry(content)
        return self._parse_classic(content)

    def _parse_classic(self, content: str) -> dict[str, str]:
        resolved: dict[str, str] = {}
        current: list[str] | None = None

        for lineno, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.rstrip()
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue

            if not line[0].isspace():
                if not line.endswith(":"):
                    raise LockfileParseError(
                        self.manager, f"line {lineno}: expected a block header, got {stripped!r}"
                    )
                current = names_from_header(line[:-1])
                continue

            if current is None:
                raise LockfileParseError(self.manager, f"line {lineno}: field outside of a block")

            m = _VERSION_RE.match(line)
            if m:
                for name in current:
                    resolved[name] = m.group(1)

        return resolved

    def _parse_berry(self, content: str) -> dict[str, str]:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise LockfileParseError(self.manager, f"invalid YAML: {exc}") from exc
        except RecursionError as exc:
            raise LockfileParseError(self.manager, "nesting too deep") from exc
        if not isinstance(data, dict):
            raise LockfileParseError(self.manager, "top level is not a mapping")

        resolved: dict[str, str] = {}
        for key, entry in data.items():
            if key == "__metadata" or not isinstance(entry, dict):
                continue
            version = entry.get("version")
            if version is None:
                continue
            for name in names_from_header(str(key)):
                resolved[name] = str(version)
        return resolved


register_adapter(YarnLockAdapter())
