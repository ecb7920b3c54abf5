"""``langpack check <constraint> [versions...]`` — Evaluate a version constraint.

Parses CONSTRAINT and reports, for each VERSION, whether it satisfies it.

Exit Codes:
    0 — The constraint is valid and every version satisfies it.
    1 — Some version does not satisfy the constraint or is invalid.
    2 — The constraint itself is invalid.
"""

from __future__ import annotations

import sys

import click

from langpack.cli.output import console, print_constraint_check, print_error
from langpack.core.versioning import VersionConstraint
from langpack.exceptions import InvalidPackageVersionError


@click.command("check")
@click.argument("constraint")
@click.argument("versions", nargs=-1)
def check_command(constraint: str, versions: tuple[str, ...]) -> None:
    """Check VERSIONS against CONSTRAINT.

    Examples:

        langpack check "^1.2.0" 1.2.5 2.0.0

        langpack check "1.0.0 - 2.0.0" 1.5.0
    """
    try:
        parsed = VersionConstraint(constraint)
    except InvalidPackageVersionError as exc:
        print_error(exc.message)
        sys.exit(2)

    if not versions:
        console.print(f"Constraint {parsed.raw} is valid ({parsed.operator.value}).")
        return

    results: list[tuple[str, bool | None]] = []
    for version in versions:
        try:
            results.append((version, parsed.satisfies(version)))
        except InvalidPackageVersionError:
            results.append((version, None))
    print_constraint_check(parsed.raw, results)

    sys.exit(0 if all(ok for _, ok in results) else 1)
