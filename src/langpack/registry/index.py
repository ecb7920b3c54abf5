"""YAML package index: a local stand-in for discovery and git hosting.

A single document describes the packages, their dependency edges, and the
tags and branches of the repositories they come from. ``PackageIndex``
implements all three collaborator protocols on top of it, so the resolution
services can run without network access.

.. code-block:: yaml

    packages:
      - id: propositional-logic
        version: 1.0.0
        git: {url: https://github.com/org/prop, ref: v1.0.0}
        engines: {proof-editor: 1.2.0}
        dependencies:
          - {id: core-rules, constraint: ^1.0.0, required: true}
    repositories:
      https://github.com/org/prop:
        tags: [v1.0.0, v1.1.0]
        branches: [main]
        refs: {v1.0.0: abc1234}
        timestamps: {abc1234: 2024-01-31T12:00:00Z}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from langpack.core.dependency.models import DependencyEdge, Package, PackageSource
from langpack.core.versioning import VersionConstraint
from langpack.exceptions import (
    InvalidPackageVersionError,
    PackageNotFoundError,
    PackageSourceUnavailableError,
    PackageValidationError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Repository:
    """Recorded state of one git repository.

    Attributes:
        tags: Tag names, in listing order.
        branches: Branch names, in listing order.
        refs: Ref name to commit hash.
        timestamps: Commit hash to commit time (UTC).
    """

    tags: tuple[str, ...] = ()
    branches: tuple[str, ...] = ()
    refs: dict[str, str] = field(default_factory=dict, hash=False)
    timestamps: dict[str, datetime] = field(default_factory=dict, hash=False)


# ---------------------------------------------------------------------------
# Document parsing
# ---------------------------------------------------------------------------


def _require_mapping(value: Any, where: str) -> dict[str, Any]:  # noqa: ANN401
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise PackageValidationError(f"{where} must be a mapping", {"where": where})
    return value


def _require_list(value: Any, where: str) -> list[Any]:  # noqa: ANN401
    if value is None:
        return []
    if not isinstance(value, list):
        raise PackageValidationError(f"{where} must be a list", {"where": where})
    return value


def _to_datetime(value: Any, where: str) -> datetime:  # noqa: ANN401
    # yaml.safe_load already turns unquoted ISO timestamps into datetimes.
    if isinstance(value, datetime):
        stamp = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            stamp = datetime.fromisoformat(text)
        except ValueError as exc:
            raise PackageValidationError(
                f"Invalid timestamp in {where}: {value}", {"where": where}
            ) from exc
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


def _parse_edge(raw: Any, where: str) -> DependencyEdge:  # noqa: ANN401
    entry = _require_mapping(raw, where)
    target = entry.get("id")
    constraint = entry.get("constraint")
    if not target or constraint is None:
        raise PackageValidationError(
            f"{where} needs an id and a constraint", {"where": where}
        )
    try:
        parsed = VersionConstraint(str(constraint))
    except InvalidPackageVersionError as exc:
        raise PackageValidationError(
            f"Invalid constraint in {where}: {exc.message}",
            {"where": where, "constraint": str(constraint)},
        ) from exc
    return DependencyEdge(
        target_package_id=str(target),
        version_constraint=parsed,
        required=bool(entry.get("required", True)),
    )


def _parse_package(raw: Any, index: int) -> tuple[Package, list[DependencyEdge]]:  # noqa: ANN401
    where = f"packages[{index}]"
    entry = _require_mapping(raw, where)
    package_id = entry.get("id")
    version = entry.get("version")
    if not package_id or version is None:
        raise PackageValidationError(f"{where} needs an id and a version", {"where": where})

    git = _require_mapping(entry.get("git"), f"{where}.git")
    if git:
        if not git.get("url"):
            raise PackageValidationError(f"{where}.git needs a url", {"where": where})
        source = PackageSource(url=str(git["url"]), ref=str(git.get("ref", "main")))
    else:
        path = entry.get("path")
        source = PackageSource(path=str(path) if path is not None else None)

    engines = {
        str(k): str(v)
        for k, v in _require_mapping(entry.get("engines"), f"{where}.engines").items()
    }
    edges = [
        _parse_edge(dep, f"{where}.dependencies[{i}]")
        for i, dep in enumerate(_require_list(entry.get("dependencies"), f"{where}.dependencies"))
    ]
    package = Package(id=str(package_id), version=str(version), source=source, engines=engines)
    return package, edges


def _parse_repository(url: str, raw: Any) -> Repository:  # noqa: ANN401
    where = f"repositories[{url}]"
    entry = _require_mapping(raw, where)
    refs = _require_mapping(entry.get("refs"), f"{where}.refs")
    timestamps = _require_mapping(entry.get("timestamps"), f"{where}.timestamps")
    return Repository(
        tags=tuple(str(t) for t in _require_list(entry.get("tags"), f"{where}.tags")),
        branches=tuple(
            str(b) for b in _require_list(entry.get("branches"), f"{where}.branches")
        ),
        refs={str(k): str(v) for k, v in refs.items()},
        timestamps={str(k): _to_datetime(v, where) for k, v in timestamps.items()},
    )


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class PackageIndex:
    """In-memory package index loaded from YAML.

    Implements ``PackageLookup``, ``DependencyEdgeSource`` and
    ``GitRefProvider``. Build one with ``from_path`` or ``from_mapping``.
    """

    def __init__(
        self,
        packages: dict[str, Package],
        edges: dict[str, list[DependencyEdge]],
        repositories: dict[str, Repository],
    ) -> None:
        self._packages = packages
        self._edges = edges
        self._repositories = repositories

    @classmethod
    def from_mapping(cls, data: Any) -> PackageIndex:  # noqa: ANN401
        """Build an index from a parsed YAML document.

        Raises:
            PackageValidationError: If the document is malformed.
        """
        doc = _require_mapping(data, "index")
        packages: dict[str, Package] = {}
        edges: dict[str, list[DependencyEdge]] = {}
        for i, raw in enumerate(_require_list(doc.get("packages"), "packages")):
            package, package_edges = _parse_package(raw, i)
            if package.id in packages:
                raise PackageValidationError(
                    f"Duplicate package id: {package.id}", {"package_id": package.id}
                )
            packages[package.id] = package
            edges[package.id] = package_edges

        repositories = {
            str(url): _parse_repository(str(url), raw)
            for url, raw in _require_mapping(doc.get("repositories"), "repositories").items()
        }
        logger.debug(
            "Loaded index with %d packages and %d repositories",
            len(packages), len(repositories),
        )
        return cls(packages, edges, repositories)

    @classmethod
    def from_path(cls, path: Path | str) -> PackageIndex:
        """Load an index from a YAML file.

        Raises:
            PackageValidationError: If the file cannot be read or parsed.
        """
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
            data = yaml.safe_load(raw)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise PackageValidationError(
                f"Cannot load package index {path}: {exc}", {"path": str(path)}
            ) from exc
        return cls.from_mapping(data)

    @property
    def package_ids(self) -> list[str]:
        return list(self._packages)

    def _repository(self, url: str) -> Repository:
        try:
            return self._repositories[url]
        except KeyError:
            raise PackageSourceUnavailableError(
                f"Repository not available: {url}", {"url": url}
            ) from None

    # -- PackageLookup / DependencyEdgeSource -------------------------------

    async def find_package_by_id(self, package_id: str) -> Package:
        try:
            return self._packages[package_id]
        except KeyError:
            raise PackageNotFoundError(
                f"Package not found: {package_id}", {"package_id": package_id}
            ) from None

    async def find_dependencies_for_package(self, package_id: str) -> list[DependencyEdge]:
        try:
            return list(self._edges[package_id])
        except KeyError:
            raise PackageNotFoundError(
                f"Package not found: {package_id}", {"package_id": package_id}
            ) from None

    # -- GitRefProvider -----------------------------------------------------

    async def resolve_ref_to_commit(self, url: str, ref: str) -> tuple[str, str]:
        repo = self._repository(url)
        commit = repo.refs.get(ref)
        if commit is None:
            raise PackageSourceUnavailableError(
                f"Unknown ref {ref} in {url}", {"url": url, "ref": ref}
            )
        return commit, ref

    async def list_available_tags(self, url: str) -> list[str]:
        return list(self._repository(url).tags)

    async def list_available_branches(self, url: str) -> list[str]:
        return list(self._repository(url).branches)

    async def get_commit_timestamp(self, url: str, commit: str) -> datetime:
        stamp = self._repository(url).timestamps.get(commit)
        if stamp is None:
            raise PackageSourceUnavailableError(
                f"No timestamp recorded for commit {commit}", {"url": url, "commit": commit}
            )
        return stamp
