"""langpack CLI — Version and dependency resolution for language packages.

Entry point for the ``langpack`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    versions — List the versions a repository offers.
    resolve  — Resolve a package's dependencies from a package index.
    cycles   — Report dependency cycles reachable from a package.
    check    — Evaluate a version constraint against versions.

Usage::

    langpack versions https://github.com/org/prop
    langpack versions https://github.com/org/prop --index packages.yaml
    langpack resolve packages.yaml propositional-logic
    langpack resolve packages.yaml propositional-logic --tree
    langpack cycles packages.yaml propositional-logic
    langpack check "^1.2.0" 1.2.5 2.0.0
"""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from langpack import __version__
from langpack.cli.check_cmd import check_command
from langpack.cli.cycles_cmd import cycles_command
from langpack.cli.output import err_console
from langpack.cli.resolve_cmd import resolve_command
from langpack.cli.versions_cmd import versions_command


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """langpack: Version and dependency resolution for language packages.

    Maps git refs to semantic versions, selects versions under
    constraints, and plans dependency installation with conflict and
    cycle reporting.
    """
    _configure_logging(verbose)


# Register all subcommands
cli.add_command(versions_command)
cli.add_command(resolve_command)
cli.add_command(cycles_command)
cli.add_command(check_command)
