"""Rich output formatting helpers for the langpack CLI.

Provides consistent terminal output for version listings, resolution
plans, dependency trees, cycle reports, and constraint checks.

Status Color Mapping:
    satisfied / stable = green, fallback / prerelease = yellow,
    conflict / unresolved / error = bold red
"""

from __future__ import annotations

import json
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from langpack.core.dependency import DependencyTree, ResolutionPlan
from langpack.core.versioning import Version

console = Console()
err_console = Console(stderr=True)


def version_style(version: Version) -> str:
    """Return the Rich style string for a version's stability."""
    if version.is_stable:
        return "green"
    if version.is_ref_version:
        return "cyan"
    return "yellow"


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_versions(url: str, versions: tuple[Version, ...]) -> None:
    """Print the versions a repository offers, in resolution order.

    Args:
        url: Repository URL.
        versions: Versions as returned by ``get_available_versions``.
    """
    if not versions:
        console.print(f"[dim]No versions found for {url}.[/dim]")
        return

    table = Table(title=f"Versions of {url}", show_header=True, header_style="bold")
    table.add_column("Version", style="bold")
    table.add_column("Kind", justify="center")
    for version in versions:
        if version.is_ref_version:
            kind = "ref"
        elif version.is_prerelease:
            kind = "prerelease"
        else:
            kind = "stable"
        table.add_row(str(version), Text(kind, style=version_style(version)))
    console.print(table)


def print_resolution_plan(plan: ResolutionPlan) -> None:
    """Print a resolution plan: dependencies, problems, and install order.

    Args:
        plan: The plan returned by ``resolve_dependencies_for_package``.
    """
    ok = not plan.conflicts and not plan.unresolved
    status = (
        "[bold green]Resolution successful[/bold green]"
        if ok
        else "[bold red]Resolution has problems[/bold red]"
    )
    console.print(Panel(status, title=f"Dependency Resolution: {plan.root_package.id}"))

    if plan.resolved_dependencies:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Package", style="bold")
        table.add_column("Version")
        table.add_column("Constraint", style="dim")
        table.add_column("Required By")
        table.add_column("Depth", justify="right")
        for dep in plan.resolved_dependencies:
            version = Text(str(dep.version), style="green" if dep.satisfies_constraint else "yellow")
            table.add_row(dep.package_id, version, dep.constraint.raw, dep.required_by, str(dep.depth))
        console.print(table)
    else:
        console.print("[dim]No dependencies to resolve.[/dim]")

    for conflict in plan.conflicts:
        demands = ", ".join(f"{r.required_by} wants {r.constraint.raw}" for r in conflict.requirements)
        console.print(f"  [red]- conflict on {conflict.package_id}: {escape(demands)}[/red]")
    for missing in plan.unresolved:
        console.print(
            f"  [red]- unresolved {missing.package_id} "
            f"(required by {missing.required_by}): {escape(missing.reason)}[/red]"
        )

    if plan.installation_order:
        console.print("Installation order: " + " -> ".join(plan.installation_order))
    notes = []
    if plan.cycles_detected:
        notes.append("cycles detected")
    if plan.max_depth_reached:
        notes.append("max depth reached")
    notes.append(f"{plan.total_packages} packages")
    notes.append(f"{plan.resolution_time_ms:.1f} ms")
    console.print("[dim]" + " | ".join(notes) + "[/dim]")


def _add_branch(node: Tree, tree: DependencyTree) -> None:
    for child in tree.dependencies:
        branch = node.add(f"{child.package.id} [dim]{child.package.version}[/dim]")
        _add_branch(branch, child)


def print_dependency_tree(tree: DependencyTree) -> None:
    """Render a dependency tree with Rich's tree widget."""
    root = Tree(f"[bold]{tree.package.id}[/bold] [dim]{tree.package.version}[/dim]")
    _add_branch(root, tree)
    console.print(root)


def print_cycles(package_id: str, cycles: list[list[str]]) -> None:
    """Print the dependency cycles reachable from a package."""
    if not cycles:
        console.print(f"[green]No dependency cycles reachable from {package_id}.[/green]")
        return
    console.print(f"[bold red]{len(cycles)} dependency cycle(s) reachable from {package_id}:[/bold red]")
    for cycle in cycles:
        console.print("  " + " -> ".join(cycle))


def print_constraint_check(constraint: str, results: list[tuple[str, bool | None]]) -> None:
    """Print whether each version satisfies a constraint.

    Args:
        constraint: The constraint as typed.
        results: ``(version, satisfied)`` pairs; None marks an invalid version.
    """
    table = Table(title=f"Constraint {constraint}", show_header=True, header_style="bold")
    table.add_column("Version", style="bold")
    table.add_column("Result", justify="center")
    for version, satisfied in results:
        if satisfied is None:
            result = Text("INVALID", style="bold red")
        elif satisfied:
            result = Text("OK", style="bold green")
        else:
            result = Text("NO", style="yellow")
        table.add_row(version, result)
    console.print(table)


def print_json(data: Any) -> None:
    """Print data as indented JSON on stdout.

    Args:
        data: JSON-serializable data.
    """
    click.echo(json.dumps(data, indent=2, default=str))
