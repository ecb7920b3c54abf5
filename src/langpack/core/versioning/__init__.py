"""Semantic versions and version constraints for language packages."""

from langpack.core.versioning.constraints import (
    RangeOperator,
    VersionConstraint,
    VersionRange,
)
from langpack.core.versioning.version import (
    REF_PRERELEASE,
    SEMVER_SHAPED_REF_RE,
    Version,
    compare_versions,
)

__all__ = [
    "REF_PRERELEASE",
    "SEMVER_SHAPED_REF_RE",
    "RangeOperator",
    "Version",
    "VersionConstraint",
    "VersionRange",
    "compare_versions",
]
