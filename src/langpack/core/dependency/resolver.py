"""Dependency graph resolution for language packages.

``DependencyResolutionService`` walks the dependency edges reachable from a
root package, selects a version for every target, and assembles an
immutable ``ResolutionPlan``: the resolved set, version conflicts,
unresolvable edges, and an installation order.

Traversal is breadth-first and bounded by ``max_depth`` (the root sits at
depth 0). Each package is expanded at most once. Cycles and conflicts are
data on the plan, never errors; collaborator failures other than a missing
target package abort the call.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict, deque
from collections.abc import Awaitable
from typing import TypeVar

from langpack.core.dependency.graph import (
    detect_conflicts,
    find_cycles,
    installation_order,
)
from langpack.core.dependency.models import (
    DependencyEdge,
    DependencyTree,
    Package,
    Requirement,
    ResolutionPlan,
    ResolvedDependency,
    UnresolvedDependency,
)
from langpack.core.dependency.ports import DependencyEdgeSource, PackageLookup
from langpack.core.dependency.versions import VersionResolutionService
from langpack.core.versioning import Version, VersionConstraint
from langpack.exceptions import (
    DependencyResolutionError,
    InvalidPackageVersionError,
    LangpackError,
    PackageNotFoundError,
    PackageValidationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_DEPTH = 10
DEFAULT_TREE_DEPTH = 5


class DependencyResolutionService:
    """Build resolution plans, dependency trees and cycle reports.

    Args:
        edge_source: Supplies the declared dependency edges of a package.
        package_lookup: Finds packages by id.
        version_resolution: Selects versions for git-hosted packages.
    """

    def __init__(
        self,
        edge_source: DependencyEdgeSource,
        package_lookup: PackageLookup,
        version_resolution: VersionResolutionService,
    ) -> None:
        self._edges = edge_source
        self._lookup = package_lookup
        self._versions = version_resolution

    # -- collaborator calls -------------------------------------------------

    @staticmethod
    async def _guarded(awaitable: Awaitable[T], what: str) -> T:
        try:
            return await awaitable
        except LangpackError:
            raise
        except Exception as exc:
            raise DependencyResolutionError(
                f"Failed to {what}: {exc}", {"operation": what}
            ) from exc

    async def _dependencies_of(self, package_id: str) -> list[DependencyEdge]:
        return await self._guarded(
            self._edges.find_dependencies_for_package(package_id),
            f"load dependencies of {package_id}",
        )

    async def _find_package(self, package_id: str) -> Package:
        return await self._guarded(
            self._lookup.find_package_by_id(package_id), f"look up {package_id}"
        )

    async def _select_version(
        self, package: Package, constraint: VersionConstraint
    ) -> tuple[Version, bool, tuple[Version, ...]]:
        """Choose a version of *package* for *constraint*.

        Returns ``(version, satisfies_constraint, known_versions)``. Git
        packages go through version resolution; local packages use their
        declared version.
        """
        if package.source.url is not None:
            resolution = await self._versions.resolve_version_constraint(
                package.source.url, constraint
            )
            return (
                resolution.best_version,
                resolution.satisfies_constraint,
                resolution.available_versions,
            )
        try:
            version = Version.parse(package.version)
        except InvalidPackageVersionError as exc:
            raise PackageValidationError(
                f"Invalid version format: {exc.message}",
                {"package_id": package.id, "version": package.version},
            ) from exc
        return version, constraint.satisfied_by(version), (version,)

    # -- resolution ---------------------------------------------------------

    async def resolve_dependencies_for_package(
        self,
        root: Package,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        include_optional: bool = False,
    ) -> ResolutionPlan:
        """Resolve everything *root* depends on, up to *max_depth* levels.

        Args:
            root: The package being installed.
            max_depth: Number of edge levels to follow. Packages found at
                this depth are resolved but not expanded.
            include_optional: Follow edges marked ``required=False``.

        Returns:
            A fresh ``ResolutionPlan``.

        Raises:
            DependencyResolutionError: If *max_depth* is negative or a
                collaborator fails unexpectedly.
            PackageSourceUnavailableError: If a git provider call fails.
            PackageNotFoundError: If a git-hosted target has no versions.
        """
        if max_depth < 0:
            raise DependencyResolutionError(
                "max_depth must be non-negative", {"max_depth": max_depth}
            )
        started = time.perf_counter()

        resolved: dict[str, ResolvedDependency] = {}
        requirements: dict[str, list[Requirement]] = defaultdict(list)
        candidates: dict[str, list[Version]] = defaultdict(list)
        adjacency: dict[str, list[str]] = {}
        unresolved: list[UnresolvedDependency] = []
        selections: dict[tuple[str, str], tuple[Version, bool]] = {}
        packages: dict[str, Package] = {root.id: root}
        depth_limited = False

        queue: deque[tuple[Package, int]] = deque([(root, 0)])
        while queue:
            package, depth = queue.popleft()
            if depth >= max_depth:
                depth_limited = True
                continue

            edges = await self._dependencies_of(package.id)
            logger.debug("Expanding %s at depth %d (%d edges)", package.id, depth, len(edges))
            adjacency[package.id] = []

            for edge in edges:
                if not edge.required and not include_optional:
                    continue
                target_id = edge.target_package_id
                constraint = edge.version_constraint

                target = packages.get(target_id)
                if target is None:
                    try:
                        target = await self._find_package(target_id)
                    except PackageNotFoundError as exc:
                        logger.warning(
                            "Unresolved dependency %s required by %s: %s",
                            target_id, package.id, exc.message,
                        )
                        unresolved.append(
                            UnresolvedDependency(
                                package_id=target_id,
                                required_by=package.id,
                                constraint=constraint,
                                reason=exc.message,
                            )
                        )
                        continue
                    packages[target_id] = target

                adjacency[package.id].append(target.id)

                key = (target.id, constraint.raw)
                if key not in selections:
                    version, satisfied, known = await self._select_version(target, constraint)
                    selections[key] = (version, satisfied)
                    candidates[target.id].extend(known)
                version, satisfied = selections[key]
                requirements[target.id].append(Requirement(package.id, constraint, version))

                if target.id == root.id or target.id in resolved:
                    continue
                resolved[target.id] = ResolvedDependency(
                    package=target,
                    version=version,
                    constraint=constraint,
                    required_by=package.id,
                    depth=depth,
                    satisfies_constraint=satisfied,
                )
                queue.append((target, depth + 1))

        conflicts = detect_conflicts(requirements, candidates)
        order = installation_order(list(resolved), adjacency)
        cycles = find_cycles(root.id, adjacency)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        logger.info(
            "Resolved %s: %d dependencies, %d conflicts, %d unresolved in %.1f ms",
            root.id, len(resolved), len(conflicts), len(unresolved), elapsed_ms,
        )
        return ResolutionPlan(
            root_package=root,
            resolved_dependencies=tuple(resolved.values()),
            conflicts=tuple(conflicts),
            installation_order=tuple(order),
            total_packages=len(resolved) + 1,
            resolution_time_ms=elapsed_ms,
            unresolved=tuple(unresolved),
            cycles_detected=bool(cycles),
            max_depth_reached=depth_limited,
        )

    # -- diagnostics --------------------------------------------------------

    async def find_circular_dependencies(self, root: Package) -> list[list[str]]:
        """Report dependency cycles reachable from *root*.

        At least one cycle is reported for every group of mutually dependent
        packages, though not necessarily every simple cycle through it (see
        ``find_cycles``). An empty result means the graph is acyclic.
        Optional edges are followed. Targets the lookup cannot find are
        skipped, and a package the edge source does not know has no edges.

        Returns:
            Cycles as closed id paths, e.g. ``[["a", "b", "a"]]``.
        """
        adjacency: dict[str, list[str]] = {}
        known: set[str] = {root.id}
        pending: deque[str] = deque([root.id])

        while pending:
            package_id = pending.popleft()
            try:
                edges = await self._dependencies_of(package_id)
            except PackageNotFoundError:
                edges = []
            targets: list[str] = []
            for edge in edges:
                target_id = edge.target_package_id
                if target_id not in known:
                    try:
                        await self._find_package(target_id)
                    except PackageNotFoundError:
                        continue
                    known.add(target_id)
                    pending.append(target_id)
                targets.append(target_id)
            adjacency[package_id] = targets

        return find_cycles(root.id, adjacency)

    async def build_dependency_tree(
        self, root: Package, max_depth: int = DEFAULT_TREE_DEPTH
    ) -> DependencyTree:
        """Build the nested dependency tree of *root*.

        A package that already appears on the path from the root becomes a
        leaf, as does every package at *max_depth*. Missing packages are
        left out.
        """
        return await self._build_tree(root, 0, max_depth, frozenset())

    async def _build_tree(
        self, package: Package, depth: int, max_depth: int, path: frozenset[str]
    ) -> DependencyTree:
        if depth >= max_depth or package.id in path:
            return DependencyTree(package=package, depth=depth)

        children: list[DependencyTree] = []
        for edge in await self._dependencies_of(package.id):
            try:
                child = await self._find_package(edge.target_package_id)
            except PackageNotFoundError:
                logger.debug("Skipping missing package %s in tree", edge.target_package_id)
                continue
            children.append(
                await self._build_tree(child, depth + 1, max_depth, path | {package.id})
            )
        return DependencyTree(package=package, dependencies=tuple(children), depth=depth)

    def validate_dependency_compatibility(self, a: Package, b: Package) -> bool:
        """Check that two packages' host requirements do not clash.

        For every engine both packages declare (``proof-editor``, ``node``
        and so on), the two versions must be equal or one must be
        compatible with the other.

        Returns:
            False if any shared engine requirement is incompatible.

        Raises:
            PackageValidationError: If a declared engine version is not a
                valid semantic version.
        """
        for engine in sorted(set(a.engines) & set(b.engines)):
            try:
                va = Version.parse(a.engines[engine])
                vb = Version.parse(b.engines[engine])
            except InvalidPackageVersionError as exc:
                raise PackageValidationError(
                    "Invalid version format",
                    {"engine": engine, "packages": [a.id, b.id], "error": exc.message},
                ) from exc
            if va == vb or va.is_compatible_with(vb) or vb.is_compatible_with(va):
                continue
            logger.info(
                "Incompatible %s requirements: %s requires %s, %s requires %s",
                engine, a.id, va, b.id, vb,
            )
            return False
        return True
