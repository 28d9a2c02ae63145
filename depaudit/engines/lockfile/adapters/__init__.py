"""Lockfile adapters: auto-registered on import."""

from depaudit.engines.lockfile.adapters import (
    package_lock,  # noqa: F401
    pnpm_lock,  # noqa: F401
    yarn_lock,  # noqa: F401
)
