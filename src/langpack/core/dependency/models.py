"""Value types for dependency resolution.

Inputs (``Package``, ``PackageSource``, ``DependencyEdge``) are supplied by
the collaborator ports. Outputs (``ResolutionPlan`` and its parts,
``DependencyTree``, ``GitRefResolution``, ``VersionResolution``) are frozen
snapshots: they hold copies of everything they need and are never mutated
after construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator

from langpack.core.versioning import Version, VersionConstraint


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PackageSource:
    """Where a package comes from.

    Attributes:
        url: Git repository URL, or None for a local-only package.
        ref: Git ref (tag, branch or commit) to install from.
        path: Local directory for packages that are not fetched from git.
    """

    url: str | None = None
    ref: str = "main"
    path: str | None = None

    @property
    def is_git(self) -> bool:
        return self.url is not None


@dataclass(frozen=True)
class Package:
    """A language package as seen by the resolver.

    Attributes:
        id: Unique package identifier.
        version: Declared version string from the manifest.
        source: Package origin.
        engines: Host requirements, e.g. ``{"proof-editor": "1.2.0"}``.
    """

    id: str
    version: str
    source: PackageSource = field(default_factory=PackageSource)
    engines: dict[str, str] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class DependencyEdge:
    """A declared dependency from one package on another.

    Attributes:
        target_package_id: Id of the required package.
        version_constraint: Acceptable versions of the target.
        required: False for optional dependencies.
    """

    target_package_id: str
    version_constraint: VersionConstraint
    required: bool = True


# ---------------------------------------------------------------------------
# Version resolution results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GitRefResolution:
    """Outcome of mapping a git ref to a version."""

    resolved_version: Version
    actual_ref: str
    commit_hash: str
    resolved_at: datetime


@dataclass(frozen=True)
class VersionResolution:
    """Outcome of selecting a version under a constraint.

    Attributes:
        best_version: Chosen version. When ``satisfies_constraint`` is False
            this is the best available version, offered as a fallback.
        available_versions: All known versions, in resolution order.
        satisfies_constraint: Whether ``best_version`` meets the constraint.
        resolved_at: When the selection was made (UTC).
    """

    best_version: Version
    available_versions: tuple[Version, ...]
    satisfies_constraint: bool
    resolved_at: datetime


# ---------------------------------------------------------------------------
# Resolution plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Requirement:
    """One dependent's demand on a target package."""

    required_by: str
    constraint: VersionConstraint
    selected_version: Version | None = None


@dataclass(frozen=True)
class ResolvedDependency:
    """A dependency bound to the version chosen for it.

    Attributes:
        package: The resolved target package.
        version: Version selected on first discovery.
        constraint: The constraint that discovered it.
        required_by: Id of the package whose edge discovered it.
        depth: Traversal depth of the dependent (0 for the root's edges).
        satisfies_constraint: False when the version is a best-effort fallback.
    """

    package: Package
    version: Version
    constraint: VersionConstraint
    required_by: str
    depth: int
    satisfies_constraint: bool = True

    @property
    def package_id(self) -> str:
        return self.package.id

    @property
    def is_direct(self) -> bool:
        return self.depth == 0


@dataclass(frozen=True)
class Conflict:
    """A target whose requirements no single candidate version can meet."""

    package_id: str
    requirements: tuple[Requirement, ...]
    candidate_versions: tuple[Version, ...] = ()

    @property
    def required_by(self) -> tuple[str, ...]:
        return tuple(r.required_by for r in self.requirements)

    @property
    def constraints(self) -> tuple[VersionConstraint, ...]:
        return tuple(r.constraint for r in self.requirements)


@dataclass(frozen=True)
class UnresolvedDependency:
    """An edge whose target package could not be found."""

    package_id: str
    required_by: str
    constraint: VersionConstraint
    reason: str


@dataclass(frozen=True)
class ResolutionPlan:
    """Immutable snapshot of one dependency resolution run."""

    root_package: Package
    resolved_dependencies: tuple[ResolvedDependency, ...]
    conflicts: tuple[Conflict, ...]
    installation_order: tuple[str, ...]
    total_packages: int
    resolution_time_ms: float
    unresolved: tuple[UnresolvedDependency, ...] = ()
    cycles_detected: bool = False
    max_depth_reached: bool = False

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "root_package": self.root_package.id,
            "resolved_dependencies": [
                {
                    "package_id": rd.package_id,
                    "version": str(rd.version),
                    "constraint": rd.constraint.raw,
                    "required_by": rd.required_by,
                    "depth": rd.depth,
                    "satisfies_constraint": rd.satisfies_constraint,
                }
                for rd in self.resolved_dependencies
            ],
            "conflicts": [
                {
                    "package_id": c.package_id,
                    "requirements": [
                        {
                            "required_by": r.required_by,
                            "constraint": r.constraint.raw,
                            "selected_version": (
                                str(r.selected_version) if r.selected_version else None
                            ),
                        }
                        for r in c.requirements
                    ],
                    "candidate_versions": [str(v) for v in c.candidate_versions],
                }
                for c in self.conflicts
            ],
            "unresolved": [
                {
                    "package_id": u.package_id,
                    "required_by": u.required_by,
                    "constraint": u.constraint.raw,
                    "reason": u.reason,
                }
                for u in self.unresolved
            ],
            "installation_order": list(self.installation_order),
            "total_packages": self.total_packages,
            "resolution_time_ms": self.resolution_time_ms,
            "cycles_detected": self.cycles_detected,
            "max_depth_reached": self.max_depth_reached,
        }


@dataclass(frozen=True)
class DependencyTree:
    """A package and the subtrees of its dependencies."""

    package: Package
    dependencies: tuple[DependencyTree, ...] = ()
    depth: int = 0

    def walk(self) -> Iterator[DependencyTree]:
        """Yield every node of the tree, depth first, parents before children."""
        yield self
        for child in self.dependencies:
            yield from child.walk()
