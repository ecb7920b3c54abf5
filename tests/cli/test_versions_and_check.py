"""Tests for ``langpack versions``, ``langpack check`` and the CLI group.

Verifies:
    - Version listings from a YAML index, as a table and as JSON.
    - ``--constraint`` selection and the fallback exit code.
    - Constraint checks and their exit codes (0, 1, 2).
    - ``--version`` and ``--verbose`` on the group.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from langpack import __version__
from langpack.cli.main import cli
from langpack.registry import PackageIndex

RULES_URL = "https://github.com/org/rules"


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


class TestVersionsCommand:
    """``langpack versions URL --index INDEX``."""

    def test_table(self, runner: CliRunner, index_file: Path) -> None:
        result = runner.invoke(cli, ["versions", RULES_URL, "--index", str(index_file)])
        assert result.exit_code == 0, result.output
        assert "1.1.0" in result.output
        assert "prerelease" in result.output

    def test_json(self, runner: CliRunner, index_file: Path) -> None:
        result = runner.invoke(cli, ["versions", RULES_URL, "--index", str(index_file), "--json"])
        data = json.loads(result.output)
        assert data["versions"][:3] == ["1.1.0", "1.0.0", "2.0.0-beta.1"]

    def test_constraint(self, runner: CliRunner, index_file: Path) -> None:
        result = runner.invoke(
            cli, ["versions", RULES_URL, "--index", str(index_file), "--constraint", "~1.0.0", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["best_version"] == "1.0.0"
        assert data["satisfies_constraint"] is True

    def test_constraint_lists_repository_once(
        self, runner: CliRunner, index_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[str] = []
        original = PackageIndex.list_available_tags

        async def counting(self: PackageIndex, url: str) -> list[str]:
            calls.append(url)
            return await original(self, url)

        monkeypatch.setattr(PackageIndex, "list_available_tags", counting)
        result = runner.invoke(
            cli, ["versions", RULES_URL, "--index", str(index_file), "--constraint", "^1.0.0", "--json"]
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["versions"][0] == "1.1.0"
        assert calls == [RULES_URL]

    def test_unsatisfiable_constraint_exits_1(self, runner: CliRunner, index_file: Path) -> None:
        result = runner.invoke(
            cli, ["versions", RULES_URL, "--index", str(index_file), "--constraint", ">=9.0.0"]
        )
        assert result.exit_code == 1
        assert "fallback" in result.output

    def test_invalid_constraint_exits_2(self, runner: CliRunner, index_file: Path) -> None:
        result = runner.invoke(
            cli, ["versions", RULES_URL, "--index", str(index_file), "--constraint", "^x"]
        )
        assert result.exit_code == 2

    def test_unknown_repository(self, runner: CliRunner, index_file: Path) -> None:
        result = runner.invoke(
            cli, ["versions", "https://github.com/org/none", "--index", str(index_file)]
        )
        assert result.exit_code == 1
        assert "PACKAGE_SOURCE_UNAVAILABLE" in result.output


class TestCheckCommand:
    """``langpack check CONSTRAINT [VERSION...]``."""

    def test_all_satisfy(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check", "^1.2.0", "1.2.5", "1.9.0"])
        assert result.exit_code == 0
        assert "OK" in result.output

    def test_some_fail(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check", "^1.2.0", "1.2.5", "2.0.0"])
        assert result.exit_code == 1
        assert "NO" in result.output

    def test_invalid_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check", "^1.2.0", "1.2"])
        assert result.exit_code == 1
        assert "INVALID" in result.output

    def test_invalid_constraint(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check", "^1.2"])
        assert result.exit_code == 2
        assert "Invalid caret constraint: ^1.2" in result.output

    def test_constraint_only(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check", "1.0.0 - 2.0.0"])
        assert result.exit_code == 0
        assert "valid (range)" in result.output


class TestGroup:
    """Top-level options."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_verbose_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--verbose", "check", "1.0.0", "1.0.0"])
        assert result.exit_code == 0

    def test_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        for name in ("versions", "resolve", "cycles", "check"):
            assert name in result.output
