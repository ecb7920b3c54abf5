"""Helpers shared by the langpack subcommands."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Coroutine
from typing import Any, TypeVar

import click

from langpack.cli.output import print_error
from langpack.exceptions import LangpackError
from langpack.registry import PackageIndex

T = TypeVar("T")

# Shared path type for the INDEX argument.
INDEX_PATH = click.Path(exists=True, dir_okay=False)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a library coroutine, turning langpack errors into exit code 1.

    Args:
        coro: Awaitable coroutine to execute.

    Returns:
        The coroutine's return value.
    """
    try:
        return asyncio.run(coro)
    except LangpackError as exc:
        print_error(f"{exc.message} [{exc.code}]")
        sys.exit(1)


def load_index(path: str) -> PackageIndex:
    """Load a YAML package index, exiting with code 1 if it is invalid."""
    try:
        return PackageIndex.from_path(path)
    except LangpackError as exc:
        print_error(f"{exc.message} [{exc.code}]")
        sys.exit(1)
