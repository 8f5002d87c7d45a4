"""
Tests for the command line interface.
"""

import logging

import pytest
from click.testing import CliRunner

from graphdump import __version__
from graphdump.cli import cli
from graphdump.core.program import loads


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach the handlers each invocation installs."""
    yield
    logger = logging.getLogger("graphdump")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


class TestDumpCommand:
    """Tests for graphdump dump."""

    def test_dump_to_file(self, runner, tmp_path):
        """Test writing a program to a file."""
        output = tmp_path / "table.py"

        result = runner.invoke(cli, ["dump", "resources.marked:TABLE", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "Wrote" in result.output
        table = loads(output.read_text())
        assert table["name"] == "table"
        assert table["self"] is table

    def test_dump_to_stdout(self, runner):
        """Test printing the program."""
        result = runner.invoke(cli, ["dump", "resources.stored_keys:ROUTES"])

        assert result.exit_code == 0, result.output
        assert "result = _cache[" in result.output

    def test_deterministic_flag(self, runner, tmp_path):
        """Test emitting importable functions by reference."""
        output = tmp_path / "routes.py"

        result = runner.invoke(
            cli, ["dump", "resources.stored_keys:ROUTES", "--deterministic", "-o", str(output)]
        )

        assert result.exit_code == 0, result.output
        assert "_require('resources.stored_keys').handler" in output.read_text()

    def test_unsupported_value_fails(self, runner):
        """Test strict mode error reporting."""
        result = runner.invoke(cli, ["dump", "resources.marked:NUMBERS"])

        assert result.exit_code == 1
        assert "UnsupportedTypeError" in result.output
        assert "at value" in result.output

    def test_lenient_flag(self, runner, tmp_path):
        """Test that --lenient turns errors into warnings."""
        output = tmp_path / "numbers.py"

        result = runner.invoke(cli, ["dump", "resources.marked:NUMBERS", "--lenient", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "does not support" in result.output
        assert loads(output.read_text()) is None

    def test_config_file(self, runner, tmp_path):
        """Test settings from --config."""
        config = tmp_path / "graphdump.yml"
        config.write_text("graphdump:\n  strict_mode: false\n")
        output = tmp_path / "numbers.py"

        result = runner.invoke(
            cli, ["dump", "resources.marked:NUMBERS", "--config", str(config), "-o", str(output)]
        )

        assert result.exit_code == 0, result.output

    def test_unknown_target(self, runner):
        """Test a target that cannot be imported."""
        result = runner.invoke(cli, ["dump", "resources.no_such_module"])

        assert result.exit_code == 2
        assert "cannot resolve" in result.output


class TestCheckCommand:
    """Tests for graphdump check."""

    def test_check_passes(self, runner):
        """Test a module whose keys are stored as values."""
        result = runner.invoke(cli, ["check", "resources.stored_keys"])

        assert result.exit_code == 0, result.output
        assert "can be marked static" in result.output

    def test_check_reports_key_paths(self, runner):
        """Test a module with unresolvable keys."""
        result = runner.invoke(cli, ["check", "resources.keyed"])

        assert result.exit_code == 1
        assert "2 path(s)" in result.output
        assert "resources.keyed.HANDLERS" in result.output
        assert "allow_reference_keys" in result.output


class TestGroup:
    """Tests for group-level options."""

    def test_version(self, runner):
        """Test --version."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_verbose_log_file(self, runner, tmp_path):
        """Test that debug logs reach the JSON log file."""
        log_file = tmp_path / "logs" / "graphdump.jsonl"

        result = runner.invoke(
            cli, ["-v", "--log-file", str(log_file), "dump", "resources.stored_keys:ROUTES"]
        )

        assert result.exit_code == 0, result.output
        assert '"message": "Dumping dict value"' in log_file.read_text()
