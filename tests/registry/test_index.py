"""Tests for the YAML-backed PackageIndex.

Verifies:
    - Loading from a file and from a parsed mapping.
    - Each collaborator protocol is implemented.
    - Malformed documents raise PackageValidationError.
    - Lookups of unknown packages, repositories and refs fail cleanly.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from langpack.core.dependency import DependencyEdgeSource, GitRefProvider, PackageLookup
from langpack.core.versioning import VersionConstraint
from langpack.exceptions import (
    PackageNotFoundError,
    PackageSourceUnavailableError,
    PackageValidationError,
)
from langpack.registry import PackageIndex

RULES_URL = "https://github.com/org/rules"


class TestLoading:
    """Building an index."""

    def test_from_path(self, index_file: Path) -> None:
        index = PackageIndex.from_path(index_file)
        assert index.package_ids == ["propositional-logic", "core-rules", "notation", "pretty"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PackageValidationError, match="Cannot load package index"):
            PackageIndex.from_path(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("packages: [unclosed\n", encoding="utf-8")
        with pytest.raises(PackageValidationError):
            PackageIndex.from_path(path)

    def test_empty_document(self) -> None:
        assert PackageIndex.from_mapping(None).package_ids == []

    def test_implements_protocols(self, index: PackageIndex) -> None:
        assert isinstance(index, PackageLookup)
        assert isinstance(index, DependencyEdgeSource)
        assert isinstance(index, GitRefProvider)


class TestValidation:
    """Malformed documents are rejected."""

    @pytest.mark.parametrize(
        "document",
        [
            ["not", "a", "mapping"],
            {"packages": {"id": "x"}},
            {"packages": [{"version": "1.0.0"}]},
            {"packages": [{"id": "x"}]},
            {"packages": [{"id": "x", "version": "1.0.0", "git": {"ref": "main"}}]},
            {"packages": [{"id": "x", "version": "1.0.0", "dependencies": [{"id": "y"}]}]},
            {"repositories": {RULES_URL: {"tags": "v1.0.0"}}},
            {"repositories": {RULES_URL: {"timestamps": {"abc": "yesterday"}}}},
        ],
    )
    def test_rejected(self, document: Any) -> None:
        with pytest.raises(PackageValidationError):
            PackageIndex.from_mapping(document)

    def test_duplicate_ids(self) -> None:
        doc = {"packages": [{"id": "x", "version": "1.0.0"}, {"id": "x", "version": "2.0.0"}]}
        with pytest.raises(PackageValidationError, match="Duplicate package id: x"):
            PackageIndex.from_mapping(doc)

    def test_invalid_constraint(self) -> None:
        doc = {
            "packages": [
                {"id": "x", "version": "1.0.0", "dependencies": [{"id": "y", "constraint": "^1"}]}
            ]
        }
        with pytest.raises(PackageValidationError, match="Invalid caret constraint"):
            PackageIndex.from_mapping(doc)


class TestPackages:
    """``PackageLookup`` and ``DependencyEdgeSource``."""

    def test_git_package(self, index: PackageIndex) -> None:
        package = asyncio.run(index.find_package_by_id("core-rules"))
        assert package.source.url == RULES_URL
        assert package.source.ref == "v1.1.0"
        assert package.source.is_git
        assert package.engines == {"proof-editor": "1.3.0"}

    def test_local_package(self, index: PackageIndex) -> None:
        package = asyncio.run(index.find_package_by_id("notation"))
        assert not package.source.is_git
        assert package.source.path == "packages/notation"

    def test_unknown_package(self, index: PackageIndex) -> None:
        with pytest.raises(PackageNotFoundError, match="Package not found: ghost"):
            asyncio.run(index.find_package_by_id("ghost"))

    def test_edges(self, index: PackageIndex) -> None:
        edges = asyncio.run(index.find_dependencies_for_package("notation"))
        assert [e.target_package_id for e in edges] == ["core-rules", "pretty"]
        assert edges[0].version_constraint == VersionConstraint("~1.1.0")
        assert edges[0].required
        assert not edges[1].required

    def test_edges_of_unknown_package(self, index: PackageIndex) -> None:
        with pytest.raises(PackageNotFoundError):
            asyncio.run(index.find_dependencies_for_package("ghost"))


class TestRepositories:
    """``GitRefProvider``."""

    def test_tags_and_branches(self, index: PackageIndex) -> None:
        assert "nightly" in asyncio.run(index.list_available_tags(RULES_URL))
        assert asyncio.run(index.list_available_branches(RULES_URL)) == ["main", "feature/x"]

    def test_resolve_ref(self, index: PackageIndex) -> None:
        assert asyncio.run(index.resolve_ref_to_commit(RULES_URL, "v1.1.0")) == ("c" * 40, "v1.1.0")

    def test_unknown_ref(self, index: PackageIndex) -> None:
        with pytest.raises(PackageSourceUnavailableError, match="Unknown ref"):
            asyncio.run(index.resolve_ref_to_commit(RULES_URL, "v0.0.1"))

    def test_unknown_repository(self, index: PackageIndex) -> None:
        with pytest.raises(PackageSourceUnavailableError, match="Repository not available"):
            asyncio.run(index.list_available_tags("https://github.com/org/none"))

    def test_commit_timestamp(self, index: PackageIndex) -> None:
        stamp = asyncio.run(index.get_commit_timestamp(RULES_URL, "c" * 40))
        assert stamp == datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)

    def test_unquoted_yaml_timestamp(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yaml"
        path.write_text(
            "repositories:\n"
            f"  {RULES_URL}:\n"
            "    timestamps:\n"
            "      abc1234: 2024-01-31 12:00:00\n",
            encoding="utf-8",
        )
        index = PackageIndex.from_path(path)
        stamp = asyncio.run(index.get_commit_timestamp(RULES_URL, "abc1234"))
        assert stamp.tzinfo is not None
        assert stamp.hour == 12

    def test_missing_timestamp(self, index: PackageIndex) -> None:
        with pytest.raises(PackageSourceUnavailableError):
            asyncio.run(index.get_commit_timestamp(RULES_URL, "deadbee"))
