"""Version constraints for language package dependencies.

A constraint string parses to exactly one range. Supported forms, checked
in this order:

- Inclusive range: ``1.0.0 - 2.0.0``
- Caret: ``^1.2.3`` (same major, at least the given minor/patch)
- Tilde: ``~1.2.3`` (same major.minor, at least the given patch)
- Bounds: ``>=1.0.0``, ``<=2.0.0``, ``>1.0.0``, ``<2.0.0``
- Exact: ``1.2.3``

Caret pins only the major component, including when it is 0 (``^0.2.3``
accepts ``0.9.0``). Compound AND/OR expressions are not supported.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from langpack.core.versioning.version import Version
from langpack.exceptions import InvalidPackageVersionError


class RangeOperator(str, Enum):
    """How a ``VersionRange`` matches versions."""

    EXACT = "exact"
    CARET = "caret"
    TILDE = "tilde"
    GTE = "gte"
    LTE = "lte"
    GT = "gt"
    LT = "lt"
    RANGE = "range"


# Prefix operators in match order: ``>=``/``<=`` must precede ``>``/``<``.
_PREFIX_OPERATORS: tuple[tuple[str, RangeOperator], ...] = (
    ("^", RangeOperator.CARET),
    ("~", RangeOperator.TILDE),
    (">=", RangeOperator.GTE),
    ("<=", RangeOperator.LTE),
    (">", RangeOperator.GT),
    ("<", RangeOperator.LT),
)

_RANGE_SEPARATOR = " - "


# ---------------------------------------------------------------------------
# VersionRange
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VersionRange:
    """One operator applied to one bound (two for ``RANGE``).

    Attributes:
        operator: The matching rule.
        version: The bound, or the lower bound for ``RANGE``.
        upper_bound: Inclusive upper bound, only set for ``RANGE``.
    """

    operator: RangeOperator
    version: Version
    upper_bound: Version | None = None

    def contains(self, candidate: Version) -> bool:
        """Return True if *candidate* falls inside this range.

        Ref-versions have no numeric position and fall inside no range.
        """
        if candidate.is_ref_version:
            return False
        bound = self.version
        op = self.operator

        if op is RangeOperator.EXACT:
            return candidate.compare(bound) == 0
        if op is RangeOperator.CARET:
            if candidate.major != bound.major:
                return False
            return candidate.minor > bound.minor or (
                candidate.minor == bound.minor and candidate.patch >= bound.patch
            )
        if op is RangeOperator.TILDE:
            return (
                candidate.major == bound.major
                and candidate.minor == bound.minor
                and candidate.patch >= bound.patch
            )
        if op is RangeOperator.GTE:
            return candidate.compare(bound) >= 0
        if op is RangeOperator.LTE:
            return candidate.compare(bound) <= 0
        if op is RangeOperator.GT:
            return candidate.compare(bound) > 0
        if op is RangeOperator.LT:
            return candidate.compare(bound) < 0
        if op is RangeOperator.RANGE:
            assert self.upper_bound is not None
            return candidate.compare(bound) >= 0 and candidate.compare(self.upper_bound) <= 0
        raise ValueError(f"Unknown operator: {op!r}")  # pragma: no cover


def _parse_range(raw: str) -> VersionRange:
    text = raw.strip()
    if not text:
        raise InvalidPackageVersionError("Version constraint cannot be empty")

    # The separator is looked up on the untrimmed input so that a dangling
    # ``"1.0.0 - "`` is still reported as a malformed range.
    if _RANGE_SEPARATOR in raw:
        low, _, high = raw.partition(_RANGE_SEPARATOR)
        try:
            return VersionRange(
                RangeOperator.RANGE, Version.parse(low), Version.parse(high)
            )
        except InvalidPackageVersionError as exc:
            raise InvalidPackageVersionError(
                f"Invalid range format: {raw}", {"constraint": raw}
            ) from exc

    for prefix, operator in _PREFIX_OPERATORS:
        if text.startswith(prefix):
            try:
                return VersionRange(operator, Version.parse(text[len(prefix):]))
            except InvalidPackageVersionError as exc:
                raise InvalidPackageVersionError(
                    f"Invalid {operator.value} constraint: {text}", {"constraint": text}
                ) from exc

    try:
        return VersionRange(RangeOperator.EXACT, Version.parse(text))
    except InvalidPackageVersionError as exc:
        raise InvalidPackageVersionError(
            f"Invalid version format: {text}", {"constraint": text}
        ) from exc


# ---------------------------------------------------------------------------
# VersionConstraint
# ---------------------------------------------------------------------------


class VersionConstraint:
    """An immutable, parsed version requirement.

    Args:
        raw: Constraint text such as ``"^1.2.3"`` or ``"1.0.0 - 2.0.0"``.

    Raises:
        InvalidPackageVersionError: If *raw* is empty or malformed.
    """

    __slots__ = ("_raw", "_range")

    def __init__(self, raw: str) -> None:
        object.__setattr__(self, "_range", _parse_range(raw))
        object.__setattr__(self, "_raw", raw.strip())

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def create(cls, raw: str) -> VersionConstraint:
        """Parse *raw* into a constraint. Alias for the constructor."""
        return cls(raw)

    @property
    def raw(self) -> str:
        """The trimmed constraint string."""
        return self._raw

    @property
    def range(self) -> VersionRange:
        return self._range

    @property
    def ranges(self) -> tuple[VersionRange, ...]:
        return (self._range,)

    @property
    def operator(self) -> RangeOperator:
        return self._range.operator

    def satisfies(self, version: str) -> bool:
        """Check whether a version string satisfies this constraint.

        Args:
            version: A semantic version string. Surrounding whitespace is
                ignored.

        Returns:
            True if the version is inside the constraint's range.

        Raises:
            InvalidPackageVersionError: If *version* is not a valid semantic
                version. This is distinct from a False result.
        """
        stripped = version.strip()
        try:
            parsed = Version.parse(stripped)
        except InvalidPackageVersionError as exc:
            raise InvalidPackageVersionError(
                f"Invalid version format: {stripped}", {"version": stripped}
            ) from exc
        return self._range.contains(parsed)

    def satisfied_by(self, version: Version) -> bool:
        """Evaluate an already-parsed ``Version``."""
        return self._range.contains(version)

    def to_json(self) -> str:
        return self._raw

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionConstraint):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __str__(self) -> str:
        return self._raw

    def __repr__(self) -> str:
        return f"VersionConstraint({self._raw!r})"
