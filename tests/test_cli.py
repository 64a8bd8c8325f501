"""Integration tests for CLI commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from rendezvous import __version__
from rendezvous.cli import app

runner = CliRunner()

PROBLEM = "5\n1 2 1\n2 3 1\n3 4 0\n4 5 1\n3\n2 1 3\n2 1 4\n1 5\n"


@pytest.fixture
def problem_file(tmp_path: Path) -> Path:
    path = tmp_path / "problem.txt"
    path.write_text(PROBLEM)
    return path


class TestVersion:
    """Tests for the '--version' flag."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestSolveCommand:
    """Tests for 'rendezvous solve'."""

    def test_solve_from_stdin(self):
        result = runner.invoke(app, ["solve"], input=PROBLEM)

        assert result.exit_code == 0
        assert result.stdout.split() == ["1", "0", "2"]

    def test_solve_from_file(self, problem_file: Path):
        result = runner.invoke(app, ["solve", str(problem_file)])

        assert result.exit_code == 0
        assert result.stdout.split() == ["1", "0", "2"]

    def test_solve_to_file(self, problem_file: Path, tmp_path: Path):
        out = tmp_path / "answers.txt"
        result = runner.invoke(app, ["solve", str(problem_file), "-o", str(out)])

        assert result.exit_code == 0
        assert out.read_text() == "1\n0\n2\n"

    @pytest.mark.parametrize("backend", ["python", "best"])
    @pytest.mark.parametrize("pairing", ["anchored", "all"])
    def test_solve_options(self, problem_file: Path, backend, pairing):
        result = runner.invoke(
            app, ["solve", str(problem_file), "-b", backend, "--pairing", pairing]
        )

        assert result.exit_code == 0
        assert result.stdout.split() == ["1", "0", "2"]

    def test_malformed_input(self):
        result = runner.invoke(app, ["solve"], input="3\n1 2 1\n")

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_unknown_backend(self, problem_file: Path):
        result = runner.invoke(app, ["solve", str(problem_file), "-b", "gpu"])

        assert result.exit_code == 1
        assert "Unknown backend" in result.output

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["solve", str(tmp_path / "missing.txt")])

        assert result.exit_code != 0


class TestStatsCommand:
    """Tests for 'rendezvous stats'."""

    def test_stats(self, problem_file: Path):
        result = runner.invoke(app, ["stats", str(problem_file)])

        assert result.exit_code == 0
        assert "Cities:        5" in result.stdout
        assert "Open roads:    3" in result.stdout
        assert "Trees:         2" in result.stdout
        assert "Queries:       3" in result.stdout

    def test_stats_malformed(self):
        result = runner.invoke(app, ["stats"], input="x\n")

        assert result.exit_code == 1
