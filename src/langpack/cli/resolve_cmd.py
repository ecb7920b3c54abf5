"""``langpack resolve <index> <package-id>`` — Resolve a package's dependencies.

Loads a YAML package index, walks the dependency graph of PACKAGE_ID, and
prints the resolution plan (or the dependency tree with ``--tree``).

Exit Codes:
    0 — Every dependency resolved without conflicts.
    1 — Conflicts or unresolved dependencies, or a source failure.
"""

from __future__ import annotations

import sys

import click

from langpack.cli.common import INDEX_PATH, load_index, run_async
from langpack.cli.output import print_dependency_tree, print_json, print_resolution_plan
from langpack.core.dependency import (
    DEFAULT_MAX_DEPTH,
    DependencyResolutionService,
    VersionResolutionService,
)


@click.command("resolve")
@click.argument("index", type=INDEX_PATH)
@click.argument("package_id")
@click.option(
    "--max-depth",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_DEPTH,
    envvar="LANGPACK_MAX_DEPTH",
    show_default=True,
    help="Number of dependency levels to follow.",
)
@click.option("--include-optional", is_flag=True, help="Also follow optional dependencies.")
@click.option("--tree", "as_tree", is_flag=True, help="Print the dependency tree instead of the plan.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of tables.")
def resolve_command(
    index: str,
    package_id: str,
    max_depth: int,
    include_optional: bool,
    as_tree: bool,
    as_json: bool,
) -> None:
    """Resolve the dependencies of PACKAGE_ID from the package index INDEX.

    Examples:

        langpack resolve packages.yaml propositional-logic

        langpack resolve packages.yaml modal-logic --max-depth 3 --json
    """
    package_index = load_index(index)
    service = DependencyResolutionService(
        package_index, package_index, VersionResolutionService(package_index)
    )
    root = run_async(package_index.find_package_by_id(package_id))

    if as_tree:
        tree = run_async(service.build_dependency_tree(root, max_depth=max_depth))
        print_dependency_tree(tree)
        return

    plan = run_async(
        service.resolve_dependencies_for_package(
            root, max_depth=max_depth, include_optional=include_optional
        )
    )
    if as_json:
        print_json(plan.to_dict())
    else:
        print_resolution_plan(plan)

    sys.exit(1 if plan.conflicts or plan.unresolved else 0)
