"""Custom exceptions for dep-audit."""


class DepAuditError(Exception):
    """Base exception for all dep-audit errors."""


class ManifestError(DepAuditError):
    """Raised when package.json is missing, unreadable or lacks a name."""


class LockfileMissingError(DepAuditError):
    """Raised when a command needs a lockfile and none is present."""


class LockfileParseError(DepAuditError):
    """Raised by a lockfile adapter when the document is malformed."""

    def __init__(self, manager: str, reason: str):
        self.manager = manager
        self.reason = reason
        super().__init__(f"{manager} lockfile parsing failed: {reason}")


class ServiceError(DepAuditError):
    """Raised when an external service (registry, package manager, depcheck) fails."""


class InvalidPackageNameError(ServiceError):
    """Raised when a package name would be unsafe to pass to a subprocess."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid package name: {name!r}")
