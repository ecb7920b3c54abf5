"""langpack exception hierarchy.

All public exceptions inherit from LangpackError, giving callers a single
base class to catch when they want to handle any langpack-specific failure
without swallowing unrelated errors.

Every error carries a stable ``code`` string and an optional ``context``
mapping with structured details (package ids, constraints, URLs).
"""

from __future__ import annotations

from typing import Any


class LangpackError(Exception):
    """Base exception for all langpack errors."""

    code: str = "LANGPACK_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error to a JSON-compatible dict."""
        return {"code": self.code, "message": self.message, "context": self.context}


class InvalidPackageVersionError(LangpackError, ValueError):
    """Raised when a version or version constraint string is malformed."""

    code = "INVALID_PACKAGE_VERSION"


class PackageSourceUnavailableError(LangpackError):
    """Raised when a git host or other package source cannot be reached.

    Covers network failures, unknown refs, and malformed git refs.
    """

    code = "PACKAGE_SOURCE_UNAVAILABLE"


class PackageNotFoundError(LangpackError):
    """Raised when a package, or any version of it, cannot be found."""

    code = "PACKAGE_NOT_FOUND"


class PackageValidationError(LangpackError):
    """Raised when a package manifest or index entry is invalid."""

    code = "PACKAGE_VALIDATION_ERROR"


class DependencyResolutionError(LangpackError):
    """Raised for generic failures while walking the dependency graph."""

    code = "DEPENDENCY_RESOLUTION_ERROR"


class PackageConflictError(LangpackError):
    """Raised by discovery layers for structural or name conflicts.

    The resolver itself never raises this: version conflicts are reported
    as data on the resolution plan.
    """

    code = "PACKAGE_CONFLICT_ERROR"


class PackageInstallationError(LangpackError):
    """Raised when a resolved package cannot be installed."""

    code = "PACKAGE_INSTALLATION_ERROR"


class SDKComplianceError(LangpackError):
    """Raised when a package does not implement the required SDK interfaces."""

    code = "SDK_COMPLIANCE_ERROR"
