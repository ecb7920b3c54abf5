"""Mapping git refs to versions and selecting versions under constraints.

``VersionResolutionService`` sits between the dependency resolver and a
``GitRefProvider``. It keeps no state besides the provider and caches
nothing: every call reflects the provider's current answers.

Ordering policy for available versions: stable versions first, then
prereleases, each partition sorted newest-first, then ref-versions in the
order the provider listed them. For a fixed set of provider responses the
order is fully deterministic.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import TypeVar

from langpack.core.dependency.models import (
    GitRefResolution,
    PackageSource,
    VersionResolution,
)
from langpack.core.dependency.ports import GitRefProvider
from langpack.core.versioning import (
    SEMVER_SHAPED_REF_RE,
    RangeOperator,
    Version,
    VersionConstraint,
    compare_versions,
)
from langpack.exceptions import (
    InvalidPackageVersionError,
    PackageNotFoundError,
    PackageSourceUnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Branches offered as ref-versions. Other branches are ignored.
TRACKED_BRANCHES: tuple[str, ...] = ("main", "master", "develop")

_WHITESPACE_RUN_RE = re.compile(r"\s{2,}")

# Syntactic pre-check for user input. Looser than ``VersionConstraint``
# parsing: only the leading operator and three numeric components are checked.
_CONSTRAINT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\*$"),
    re.compile(r"^\d+\.\d+\.\d+$"),
    re.compile(r"^\^\d+\.\d+\.\d+"),
    re.compile(r"^~\d+\.\d+\.\d+"),
    re.compile(r"^>=?\d+\.\d+\.\d+"),
    re.compile(r"^<=?\d+\.\d+\.\d+"),
)

_version_sort_key = cmp_to_key(compare_versions)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def sort_versions(versions: list[Version]) -> list[Version]:
    """Order versions for presentation and selection.

    Stable versions come first, newest first, then prereleases, newest
    first. Ref-versions come last in their input order. Equal versions keep
    their input order.
    """
    stable = [v for v in versions if v.is_stable]
    prerelease = [v for v in versions if v.is_prerelease and not v.is_ref_version]
    refs = [v for v in versions if v.is_ref_version]
    stable.sort(key=_version_sort_key, reverse=True)
    prerelease.sort(key=_version_sort_key, reverse=True)
    return stable + prerelease + refs


def version_from_tag(tag: str) -> Version | None:
    """Interpret a git tag as a version.

    Returns None for empty tags and for semver-shaped tags that are not
    valid semver (``v1.2.3.4``). Any other non-semver tag yields a
    ref-version.
    """
    stripped = tag.strip()
    if not stripped or _WHITESPACE_RUN_RE.search(stripped):
        return None
    if SEMVER_SHAPED_REF_RE.match(stripped):
        try:
            return Version.parse(stripped[1:] if stripped.startswith("v") else stripped)
        except InvalidPackageVersionError:
            return None
    return Version.ref_version(stripped)


class VersionResolutionService:
    """Resolve refs and constraints against a git host.

    Args:
        git_ref_provider: Collaborator used for every git lookup.
    """

    def __init__(self, git_ref_provider: GitRefProvider) -> None:
        self._provider = git_ref_provider

    async def _call_provider(self, awaitable: Awaitable[T], url: str) -> T:
        """Await a provider call, normalising failures.

        ``PackageSourceUnavailableError`` passes through untouched; any other
        exception is wrapped with its message preserved.
        """
        try:
            return await awaitable
        except PackageSourceUnavailableError:
            raise
        except Exception as exc:
            raise PackageSourceUnavailableError(str(exc), {"url": url}) from exc

    async def resolve_git_ref_to_version(self, source: PackageSource) -> GitRefResolution:
        """Map a git ref to a concrete version and commit.

        Never fails because a ref is not semver: non-release refs resolve to
        ref-versions.

        Raises:
            PackageSourceUnavailableError: If the ref is blank or malformed,
                the source has no URL, or the provider fails.
        """
        ref = source.ref
        if not ref or not ref.strip():
            raise PackageSourceUnavailableError("Git ref cannot be empty")
        if _WHITESPACE_RUN_RE.search(ref):
            raise PackageSourceUnavailableError(
                "Git ref contains invalid whitespace", {"ref": ref}
            )
        if source.url is None:
            raise PackageSourceUnavailableError(
                "Package source has no git URL", {"ref": ref}
            )

        commit, actual_ref = await self._call_provider(
            self._provider.resolve_ref_to_commit(source.url, ref), source.url
        )
        version = Version.from_git_ref(actual_ref or ref)
        logger.debug("Resolved %s@%s to %s (%s)", source.url, ref, version, commit)

        return GitRefResolution(
            resolved_version=version,
            actual_ref=actual_ref,
            commit_hash=commit,
            resolved_at=_utcnow(),
        )

    async def get_available_versions(self, git_url: str) -> tuple[Version, ...]:
        """List every version the repository offers.

        Tags become versions (invalid semver-shaped tags are dropped), and the
        tracked branches become ref-versions.

        Raises:
            PackageSourceUnavailableError: If listing tags or branches fails.
        """
        tags = await self._call_provider(self._provider.list_available_tags(git_url), git_url)
        branches = await self._call_provider(
            self._provider.list_available_branches(git_url), git_url
        )

        versions: list[Version] = []
        for tag in tags:
            version = version_from_tag(tag)
            if version is None:
                logger.debug("Dropping unparseable tag %r from %s", tag, git_url)
                continue
            versions.append(version)

        for branch in branches:
            if branch in TRACKED_BRANCHES:
                versions.append(Version.ref_version(branch))

        return tuple(sort_versions(versions))

    async def resolve_version_constraint(
        self, git_url: str, constraint: VersionConstraint
    ) -> VersionResolution:
        """Select the best available version under *constraint*.

        When nothing satisfies the constraint the call still succeeds, with
        ``satisfies_constraint=False`` and the best available version as a
        fallback.

        Raises:
            PackageNotFoundError: If the repository has no versions at all.
            PackageSourceUnavailableError: If the provider fails.
        """
        available = await self.get_available_versions(git_url)
        if not available:
            raise PackageNotFoundError(
                f"No versions found for repository: {git_url}", {"url": git_url}
            )

        satisfying = [v for v in available if self._satisfies(constraint, v)]
        if not satisfying:
            logger.debug(
                "No version of %s satisfies %r, falling back to %s",
                git_url, constraint.raw, available[0],
            )
            return VersionResolution(
                best_version=available[0],
                available_versions=available,
                satisfies_constraint=False,
                resolved_at=_utcnow(),
            )

        return VersionResolution(
            best_version=self.select_best_version(satisfying, constraint),
            available_versions=available,
            satisfies_constraint=True,
            resolved_at=_utcnow(),
        )

    @staticmethod
    def _satisfies(constraint: VersionConstraint, version: Version) -> bool:
        # Ref-versions never satisfy a constraint.
        return constraint.satisfied_by(version)

    @staticmethod
    def select_best_version(
        versions: list[Version], constraint: VersionConstraint
    ) -> Version:
        """Pick the preferred version among ones that satisfy *constraint*.

        Caret and tilde constraints prefer the highest stable version when
        one exists. Otherwise the highest version wins.
        """
        if constraint.operator in (RangeOperator.CARET, RangeOperator.TILDE):
            stable = [v for v in versions if v.is_stable]
            if stable:
                return max(stable, key=_version_sort_key)
        return max(versions, key=_version_sort_key)

    async def find_latest_stable_version(self, git_url: str) -> Version:
        """Return the newest stable version.

        Raises:
            PackageNotFoundError: If the repository has no stable version.
        """
        available = await self.get_available_versions(git_url)
        for version in available:
            if version.is_stable:
                return version
        raise PackageNotFoundError(
            f"No stable versions found for repository: {git_url}", {"url": git_url}
        )

    async def find_latest_version(
        self, git_url: str, include_prerelease: bool = False
    ) -> Version:
        """Return the newest version, preferring stable ones.

        Without *include_prerelease*, a stable version is returned when one
        exists; otherwise the best prerelease or ref-version is returned
        instead of failing. With it, the highest version by precedence wins
        regardless of stability.

        Raises:
            PackageNotFoundError: If the repository has no versions at all.
        """
        available = await self.get_available_versions(git_url)
        if not available:
            raise PackageNotFoundError(
                f"No versions found for repository: {git_url}", {"url": git_url}
            )
        if include_prerelease:
            return max(available, key=_version_sort_key)
        for version in available:
            if version.is_stable:
                return version
        return available[0]

    def validate_version_constraint(self, constraint: str) -> bool:
        """Cheap syntactic check of a constraint string for user input.

        Looser than ``VersionConstraint`` parsing, and it also accepts the
        ``*`` wildcard that the strict parser rejects.

        Raises:
            PackageSourceUnavailableError: If the string is empty or does not
                look like a constraint.
        """
        if not constraint or not constraint.strip():
            raise PackageSourceUnavailableError("Version constraint cannot be empty")
        normalized = constraint.strip()
        if not any(p.match(normalized) for p in _CONSTRAINT_PATTERNS):
            raise PackageSourceUnavailableError(
                f"Invalid version constraint format: {normalized}",
                {"constraint": normalized},
            )
        return True
