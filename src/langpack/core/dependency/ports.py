"""Collaborator interfaces consumed by the resolution services.

Discovery, persistence and git access live outside this package. The
services only see these three narrow protocols, passed in through their
constructors.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from langpack.core.dependency.models import DependencyEdge, Package


@runtime_checkable
class GitRefProvider(Protocol):
    """Read-only access to a git host.

    Implementations raise ``PackageSourceUnavailableError`` on failure.
    """

    async def resolve_ref_to_commit(self, url: str, ref: str) -> tuple[str, str]:
        """Return ``(commit_hash, actual_ref)`` for *ref* in repository *url*."""
        ...

    async def list_available_tags(self, url: str) -> list[str]:
        ...

    async def list_available_branches(self, url: str) -> list[str]:
        ...

    async def get_commit_timestamp(self, url: str, commit: str) -> datetime:
        ...


@runtime_checkable
class DependencyEdgeSource(Protocol):
    """Source of declared dependency edges.

    Implementations raise ``PackageNotFoundError`` for unknown packages.
    """

    async def find_dependencies_for_package(self, package_id: str) -> list[DependencyEdge]:
        ...


@runtime_checkable
class PackageLookup(Protocol):
    """Lookup of packages by id.

    Implementations raise ``PackageNotFoundError`` for unknown ids.
    """

    async def find_package_by_id(self, package_id: str) -> Package:
        ...
