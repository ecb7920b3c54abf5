"""Semantic version values for language packages.

A ``Version`` is an immutable ``major.minor.patch[-prerelease][+build]``
value. Build metadata never takes part in equality or ordering.

Two departures from SemVer 2.0.0 precedence are part of the contract:

- Prerelease strings are compared as whole strings, not identifier by
  identifier (``1.0.0-alpha.10`` sorts below ``1.0.0-alpha.9``).
- A git ref that is not semver-shaped becomes a *ref-version*
  ``0.0.0-dev+<ref>``. Ref-versions are never stable, sort below every
  released version, and are equal to each other only when the raw refs match.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from langpack.exceptions import InvalidPackageVersionError


# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------

_IDENTIFIERS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    rf"(?:-(?P<pre>{_IDENTIFIERS}))?"
    rf"(?:\+(?P<build>{_IDENTIFIERS}))?$"
)

_IDENTIFIERS_RE = re.compile(rf"^{_IDENTIFIERS}$")

# A ref "looks like" a release tag when it starts with an optional ``v``
# followed by three numeric components.
SEMVER_SHAPED_REF_RE = re.compile(r"^v?\d+\.\d+\.\d+")

_FULL_SHA_RE = re.compile(r"^[0-9a-fA-F]{40}$")

# Prerelease marker carried by every ref-version.
REF_PRERELEASE = "dev"


def compare_versions(a: Version, b: Version) -> int:
    """Three-way comparison of two versions.

    Returns a negative number if ``a < b``, zero if they have equal
    precedence and a positive number if ``a > b``.
    """
    return a.compare(b)


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Version:
    """An immutable semantic version.

    Attributes:
        major: Major component (non-negative).
        minor: Minor component (non-negative).
        patch: Patch component (non-negative).
        prerelease: Dot-separated prerelease identifiers, or None.
        build: Dot-separated build metadata, or None. Ignored by comparisons.
        ref: The raw git ref for ref-versions, None for real releases.
    """

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None
    ref: str | None = None

    def __post_init__(self) -> None:
        for name in ("major", "minor", "patch"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise InvalidPackageVersionError(
                    f"Version component {name} must be a non-negative integer",
                    {name: value},
                )
        if self.prerelease is not None and not _IDENTIFIERS_RE.match(self.prerelease):
            raise InvalidPackageVersionError(
                f"Invalid prerelease identifier: {self.prerelease!r}"
            )

    # -- construction -------------------------------------------------------

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a strict semantic version string.

        Args:
            text: Version text such as ``"1.2.3"`` or ``"2.0.0-rc.1+build.5"``.
                Surrounding whitespace is ignored.

        Returns:
            The parsed ``Version``.

        Raises:
            InvalidPackageVersionError: If the text is empty or not valid
                ``major.minor.patch[-prerelease][+build]`` syntax. Numeric
                components may not carry leading zeros.
        """
        stripped = text.strip()
        if not stripped:
            raise InvalidPackageVersionError("Version string cannot be empty")
        m = _SEMVER_RE.match(stripped)
        if not m:
            raise InvalidPackageVersionError(
                f"Invalid semantic version format: {stripped}", {"version": stripped}
            )
        return cls(
            major=int(m.group("major")),
            minor=int(m.group("minor")),
            patch=int(m.group("patch")),
            prerelease=m.group("pre"),
            build=m.group("build"),
        )

    @classmethod
    def from_git_ref(cls, ref: str) -> Version:
        """Derive a version from a git tag, branch name or commit SHA.

        Semver-shaped refs (``v1.2.3``, ``1.2.3-beta``) parse as releases with
        any leading ``v`` removed. Every other ref, including a semver-shaped
        ref that fails strict parsing, becomes a ref-version.

        Raises:
            InvalidPackageVersionError: If *ref* is empty.
        """
        stripped = ref.strip()
        if not stripped:
            raise InvalidPackageVersionError("Git ref cannot be empty")
        if SEMVER_SHAPED_REF_RE.match(stripped):
            try:
                return cls.parse(stripped[1:] if stripped.startswith("v") else stripped)
            except InvalidPackageVersionError:
                pass
        return cls.ref_version(stripped)

    @classmethod
    def ref_version(cls, ref: str) -> Version:
        """Build the ``0.0.0-dev+<ref>`` placeholder for a non-release ref.

        Full 40-character commit SHAs are shortened to 7 characters in the
        build field; the ``ref`` attribute always keeps the raw value.
        """
        stripped = ref.strip()
        if not stripped:
            raise InvalidPackageVersionError("Git ref cannot be empty")
        build = stripped[:7] if _FULL_SHA_RE.match(stripped) else stripped
        return cls(0, 0, 0, prerelease=REF_PRERELEASE, build=build, ref=stripped)

    # -- classification -----------------------------------------------------

    @property
    def is_stable(self) -> bool:
        """True iff the version has no prerelease part."""
        return self.prerelease is None

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    @property
    def is_ref_version(self) -> bool:
        return self.ref is not None

    def is_compatible_with(self, other: Version) -> bool:
        """Return True if this version can stand in for *other*.

        Same major component, and this version's ``(minor, patch)`` is at
        least *other*'s. The relation is not symmetric: ``1.3.0`` is
        compatible with ``1.2.0`` but not the other way round.
        """
        if self.major != other.major:
            return False
        return (self.minor, self.patch) >= (other.minor, other.patch)

    def satisfies_constraint(self, constraint: str) -> bool:
        """Lenient constraint check that never raises.

        An empty constraint or ``*`` matches every version. A constraint that
        cannot be parsed matches nothing.
        """
        from langpack.core.versioning.constraints import VersionConstraint

        stripped = constraint.strip()
        if stripped in ("", "*"):
            return True
        try:
            return VersionConstraint(stripped).satisfied_by(self)
        except InvalidPackageVersionError:
            return False

    # -- ordering -----------------------------------------------------------

    def compare(self, other: Version) -> int:
        """Three-way comparison ignoring build metadata.

        Numeric components are compared first. With equal numbers, a release
        outranks any prerelease, and two prereleases compare as plain strings.
        A ref-version ranks below every non-ref version; two ref-versions
        have equal precedence.
        """
        if self.is_ref_version or other.is_ref_version:
            return int(other.is_ref_version) - int(self.is_ref_version)
        left = (self.major, self.minor, self.patch)
        right = (other.major, other.minor, other.patch)
        if left != right:
            return -1 if left < right else 1
        if self.prerelease == other.prerelease:
            return 0
        if self.prerelease is None:
            return 1
        if other.prerelease is None:
            return -1
        return -1 if self.prerelease < other.prerelease else 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        if self.ref is not None or other.ref is not None:
            return self.ref == other.ref
        return self.compare(other) == 0

    def __hash__(self) -> int:
        if self.ref is not None:
            return hash(("ref", self.ref))
        return hash((self.major, self.minor, self.patch, self.prerelease))

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) >= 0

    # -- rendering ----------------------------------------------------------

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease is not None:
            text += f"-{self.prerelease}"
        if self.build is not None:
            text += f"+{self.build}"
        return text

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "major": self.major,
            "minor": self.minor,
            "patch": self.patch,
            "prerelease": self.prerelease,
            "build": self.build,
            "version": str(self),
        }
