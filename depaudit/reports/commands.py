"""Manager-specific command templates shown to the user (never executed)."""

from __future__ import annotations

_INSTALL = {"npm": "npm install", "yarn": "yarn add", "pnpm": "pnpm add"}
_REMOVE = {"npm": "npm uninstall", "yarn": "yarn remove", "pnpm": "pnpm remove"}
_SYNC = {"npm": "npm install", "yarn": "yarn install", "pnpm": "pnpm install"}


def install_command(manager: str, name: str, spec: str) -> str:
    return f"{_INSTALL.get(manager, _INSTALL['npm'])} {name}@{spec}"


def remove_command(manager: str, name: str) -> str:
    return f"{_REMOVE.get(manager, _REMOVE['npm'])} {name}"


def sync_command(manager: str) -> str:
    return _SYNC.get(manager, _SYNC["npm"])
