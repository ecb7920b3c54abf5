"""Version resolution and dependency resolution for language packages.

Two services live here:

- ``VersionResolutionService`` maps git refs to versions, lists the
  versions a repository offers, and picks the best one under a constraint.
- ``DependencyResolutionService`` walks the dependency graph from a root
  package and produces a ``ResolutionPlan``: resolved dependencies,
  conflicts, unresolvable edges, and an installation order.

Both services reach the outside world only through the protocols in
``langpack.core.dependency.ports``.
"""

from langpack.core.dependency.graph import (
    detect_conflicts,
    find_cycles,
    installation_order,
    pick_highest_satisfying,
)
from langpack.core.dependency.models import (
    Conflict,
    DependencyEdge,
    DependencyTree,
    GitRefResolution,
    Package,
    PackageSource,
    Requirement,
    ResolutionPlan,
    ResolvedDependency,
    UnresolvedDependency,
    VersionResolution,
)
from langpack.core.dependency.ports import (
    DependencyEdgeSource,
    GitRefProvider,
    PackageLookup,
)
from langpack.core.dependency.resolver import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_TREE_DEPTH,
    DependencyResolutionService,
)
from langpack.core.dependency.versions import (
    TRACKED_BRANCHES,
    VersionResolutionService,
    sort_versions,
)

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_TREE_DEPTH",
    "TRACKED_BRANCHES",
    "Conflict",
    "DependencyEdge",
    "DependencyEdgeSource",
    "DependencyResolutionService",
    "DependencyTree",
    "GitRefProvider",
    "GitRefResolution",
    "Package",
    "PackageLookup",
    "PackageSource",
    "Requirement",
    "ResolutionPlan",
    "ResolvedDependency",
    "UnresolvedDependency",
    "VersionResolution",
    "VersionResolutionService",
    "detect_conflicts",
    "find_cycles",
    "installation_order",
    "pick_highest_satisfying",
    "sort_versions",
]
