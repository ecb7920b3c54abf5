"""``langpack cycles <index> <package-id>`` — Report dependency cycles.

Exit Codes:
    0 — No cycles reachable from the package.
    1 — One or more cycles found, or the package could not be loaded.
"""

from __future__ import annotations

import sys

import click

from langpack.cli.common import INDEX_PATH, load_index, run_async
from langpack.cli.output import print_cycles, print_json
from langpack.core.dependency import DependencyResolutionService, VersionResolutionService


@click.command("cycles")
@click.argument("index", type=INDEX_PATH)
@click.argument("package_id")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text.")
def cycles_command(index: str, package_id: str, as_json: bool) -> None:
    """Find dependency cycles reachable from PACKAGE_ID in INDEX."""
    package_index = load_index(index)
    service = DependencyResolutionService(
        package_index, package_index, VersionResolutionService(package_index)
    )
    root = run_async(package_index.find_package_by_id(package_id))
    cycles = run_async(service.find_circular_dependencies(root))

    if as_json:
        print_json({"package_id": package_id, "cycles": cycles})
    else:
        print_cycles(package_id, cycles)
    sys.exit(1 if cycles else 0)
