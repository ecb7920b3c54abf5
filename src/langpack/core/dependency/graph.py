"""Pure graph algorithms over a collected dependency adjacency map.

The resolver walks collaborators asynchronously and records what it sees;
everything here works on that plain data and performs no I/O:

- conflict detection over the per-target requirement multimap,
- installation ordering (dependencies before dependents),
- cycle detection via DFS with a recursion stack,
- an optional conflict-resolution helper that callers may apply.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from langpack.core.dependency.models import Conflict, Requirement
from langpack.core.dependency.versions import sort_versions
from langpack.core.versioning import Version, VersionConstraint


def _unique_versions(versions: Sequence[Version]) -> list[Version]:
    seen: set[Version] = set()
    result: list[Version] = []
    for version in versions:
        if version not in seen:
            seen.add(version)
            result.append(version)
    return result


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


def detect_conflicts(
    requirements: Mapping[str, Sequence[Requirement]],
    candidates: Mapping[str, Sequence[Version]],
) -> list[Conflict]:
    """Find targets whose requirements cannot be met by one version.

    A target is in conflict when it is required under at least two distinct
    constraints and no candidate version satisfies all of them. Candidates
    are every version seen for the target during traversal plus the
    versions selected for its requirements.

    Args:
        requirements: Target id to the requirements recorded for it, in
            discovery order.
        candidates: Target id to the versions known for it.

    Returns:
        Conflicts in the iteration order of *requirements*.
    """
    conflicts: list[Conflict] = []
    for package_id, reqs in requirements.items():
        constraints: list[VersionConstraint] = []
        for req in reqs:
            if req.constraint not in constraints:
                constraints.append(req.constraint)
        if len(constraints) < 2:
            continue

        pool = list(candidates.get(package_id, ()))
        pool.extend(r.selected_version for r in reqs if r.selected_version is not None)
        pool = _unique_versions(pool)

        if any(all(c.satisfied_by(v) for c in constraints) for v in pool):
            continue

        conflicts.append(
            Conflict(
                package_id=package_id,
                requirements=tuple(reqs),
                candidate_versions=tuple(sort_versions(pool)),
            )
        )
    return conflicts


def pick_highest_satisfying(conflict: Conflict) -> Version | None:
    """Suggest one version for a conflicted target.

    Chooses the candidate that satisfies the most requirements, preferring
    the higher version on ties. Returns None when there are no candidates.
    Never called by the resolver itself.
    """
    best: Version | None = None
    best_score = -1
    # candidate_versions is already ordered best-first, so a strict ">" keeps
    # the higher version on ties.
    for version in conflict.candidate_versions:
        score = sum(1 for c in conflict.constraints if c.satisfied_by(version))
        if score > best_score:
            best, best_score = version, score
    return best


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def installation_order(
    discovered: Sequence[str], adjacency: Mapping[str, Sequence[str]]
) -> list[str]:
    """Order packages so that dependencies come before their dependents.

    Depth-first post-order over *discovered*, following edges in their
    declared order. Independent subgraphs keep discovery order. Back edges
    of cycles, and edges to packages outside *discovered*, are ignored.

    Args:
        discovered: Package ids in the order traversal found them.
        adjacency: Package id to the ids it depends on.

    Returns:
        Every id in *discovered*, each exactly once.
    """
    members = set(discovered)
    order: list[str] = []
    seen: set[str] = set()

    def _visit(node: str) -> None:
        seen.add(node)
        for dep in adjacency.get(node, ()):
            if dep in members and dep not in seen:
                _visit(dep)
        order.append(node)

    for node in discovered:
        if node not in seen:
            _visit(node)
    return order


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


def _cycle_key(cycle: Sequence[str]) -> tuple[str, ...]:
    """Rotation-independent identity of a closed cycle ``[a, b, ..., a]``."""
    ring = list(cycle[:-1])
    start = ring.index(min(ring))
    return tuple(ring[start:] + ring[:start])


def find_cycles(root: str, adjacency: Mapping[str, Sequence[str]]) -> list[list[str]]:
    """Detect dependency cycles reachable from *root*.

    DFS with a recursion stack. Each back edge yields one cycle, reported
    once as the path from where it was entered back to the same id
    (``["A", "B", "A"]``). Every cyclic strongly connected component
    reachable from *root* contributes at least one cycle, but not every
    simple cycle is listed: a cycle that closes only through an
    already-finished node is not reported.

    Args:
        root: Id to start from.
        adjacency: Package id to the ids it depends on.

    Returns:
        Cycles in the order they were found. Empty if there are none.
    """
    cycles: list[list[str]] = []
    keys: set[tuple[str, ...]] = set()
    visited: set[str] = set()
    on_stack: set[str] = set()
    path: list[str] = []

    def _dfs(node: str) -> None:
        visited.add(node)
        on_stack.add(node)
        path.append(node)
        for dep in adjacency.get(node, ()):
            if dep in on_stack:
                cycle = path[path.index(dep):] + [dep]
                key = _cycle_key(cycle)
                if key not in keys:
                    keys.add(key)
                    cycles.append(cycle)
            elif dep not in visited:
                _dfs(dep)
        path.pop()
        on_stack.discard(node)

    _dfs(root)
    return cycles
