"""Shared fixtures for langpack tests."""

from __future__ import annotations

import pathlib
from typing import Any

import pytest
import yaml

from langpack.core.dependency import DependencyResolutionService, VersionResolutionService
from langpack.registry import PackageIndex

PROP_URL = "https://github.com/org/prop"
RULES_URL = "https://github.com/org/rules"


@pytest.fixture
def index_document() -> dict[str, Any]:
    """A small package index.

    ``propositional-logic`` depends on ``core-rules`` (git-hosted) and
    ``notation`` (local). ``notation`` depends on ``core-rules`` again with
    a compatible constraint, and optionally on ``pretty``.
    """
    return {
        "packages": [
            {
                "id": "propositional-logic",
                "version": "1.0.0",
                "git": {"url": PROP_URL, "ref": "v1.0.0"},
                "engines": {"proof-editor": "1.2.0"},
                "dependencies": [
                    {"id": "core-rules", "constraint": "^1.0.0"},
                    {"id": "notation", "constraint": ">=0.1.0"},
                ],
            },
            {
                "id": "core-rules",
                "version": "1.1.0",
                "git": {"url": RULES_URL, "ref": "v1.1.0"},
                "engines": {"proof-editor": "1.3.0"},
            },
            {
                "id": "notation",
                "version": "0.2.0",
                "path": "packages/notation",
                "dependencies": [
                    {"id": "core-rules", "constraint": "~1.1.0"},
                    {"id": "pretty", "constraint": "1.0.0", "required": False},
                ],
            },
            {"id": "pretty", "version": "1.0.0"},
        ],
        "repositories": {
            PROP_URL: {
                "tags": ["v1.0.0"],
                "branches": ["main"],
                "refs": {"v1.0.0": "a" * 40, "main": "b" * 40},
            },
            RULES_URL: {
                "tags": ["v1.0.0", "v1.1.0", "v2.0.0-beta.1", "nightly", "v1.2.3.4"],
                "branches": ["main", "feature/x"],
                "refs": {"v1.1.0": "c" * 40},
                "timestamps": {"c" * 40: "2024-01-31T12:00:00Z"},
            },
        },
    }


@pytest.fixture
def index(index_document: dict[str, Any]) -> PackageIndex:
    """The shared index loaded into a ``PackageIndex``."""
    return PackageIndex.from_mapping(index_document)


@pytest.fixture
def index_file(tmp_path: pathlib.Path, index_document: dict[str, Any]) -> pathlib.Path:
    """The shared index written to a YAML file."""
    path = tmp_path / "packages.yaml"
    path.write_text(yaml.safe_dump(index_document), encoding="utf-8")
    return path


@pytest.fixture
def resolver(index: PackageIndex) -> DependencyResolutionService:
    """A resolution service wired entirely to the shared index."""
    return DependencyResolutionService(index, index, VersionResolutionService(index))
