"""``langpack versions <url>`` — List the versions a repository offers.

Versions come from a YAML package index when ``--index`` is given, and
from the GitHub API otherwise.

Usage::

    langpack versions https://github.com/org/prop --index packages.yaml
    langpack versions https://github.com/org/prop --constraint "^1.0.0"

Exit Codes:
    0 — Versions listed (and, with --constraint, one satisfies it).
    1 — The source failed, or no version satisfies --constraint.
    2 — Invalid arguments (including an invalid --constraint).
"""

from __future__ import annotations

import sys

import click

from langpack.cli.common import INDEX_PATH, load_index, run_async
from langpack.cli.output import console, print_json, print_versions
from langpack.core.dependency import GitRefProvider, VersionResolutionService
from langpack.core.versioning import VersionConstraint
from langpack.exceptions import InvalidPackageVersionError
from langpack.registry import GitHubRefProvider
from langpack.registry.http_client import DEFAULT_TIMEOUT


def _provider(index: str | None, timeout: float, token: str | None) -> GitRefProvider:
    if index is not None:
        return load_index(index)
    return GitHubRefProvider(timeout=timeout, token=token)


@click.command("versions")
@click.argument("url")
@click.option("--index", "index", type=INDEX_PATH, default=None, help="Read repositories from a YAML package index.")
@click.option("--constraint", default=None, help="Also select the best version under this constraint.")
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_TIMEOUT,
    envvar="LANGPACK_TIMEOUT",
    show_default=True,
    help="HTTP timeout in seconds for remote lookups.",
)
@click.option("--token", envvar="GITHUB_TOKEN", default=None, help="GitHub API token.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table.")
def versions_command(
    url: str,
    index: str | None,
    constraint: str | None,
    timeout: float,
    token: str | None,
    as_json: bool,
) -> None:
    """List the versions available from the repository at URL.

    Stable versions are listed first, newest first, followed by
    prereleases and tracked branches.
    """
    parsed = None
    if constraint is not None:
        try:
            parsed = VersionConstraint(constraint)
        except InvalidPackageVersionError as exc:
            raise click.BadParameter(exc.message, param_hint="--constraint") from exc

    service = VersionResolutionService(_provider(index, timeout, token))
    resolution = None
    if parsed is not None:
        resolution = run_async(service.resolve_version_constraint(url, parsed))
        versions = resolution.available_versions
    else:
        versions = run_async(service.get_available_versions(url))

    if as_json:
        data: dict = {"url": url, "versions": [str(v) for v in versions]}
        if resolution is not None:
            data["best_version"] = str(resolution.best_version)
            data["satisfies_constraint"] = resolution.satisfies_constraint
        print_json(data)
    else:
        print_versions(url, versions)
        if resolution is not None:
            style = "green" if resolution.satisfies_constraint else "yellow"
            note = "" if resolution.satisfies_constraint else " (fallback, constraint not met)"
            console.print(f"Best for {parsed.raw}: [{style}]{resolution.best_version}[/{style}]{note}")

    if resolution is not None and not resolution.satisfies_constraint:
        sys.exit(1)
