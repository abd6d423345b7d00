"""Tests for wfverify CLI utility functions."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import typer
from rich.logging import RichHandler
from typer.testing import CliRunner

from wfverify.cli_utils import (
    EXIT_SUCCESS,
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    configure_logging,
    error,
    resolve_path,
    wire_config,
)

# Default CliRunner - note that stderr is mixed into stdout by default
runner = CliRunner()


class TestErrorFormatting:
    """Tests for error formatting helpers."""

    def test_error_exits_with_user_error_code_by_default(self) -> None:
        """Test that error() exits with EXIT_USER_ERROR by default."""
        app = typer.Typer()

        @app.command()
        def cmd() -> None:
            error("Test error message")

        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_USER_ERROR
        assert "Error:" in result.output
        assert "Test error message" in result.output

    def test_error_exits_with_custom_exit_code(self) -> None:
        """Test that error() can use a custom exit code."""
        app = typer.Typer()

        @app.command()
        def cmd() -> None:
            error("System error", exit_code=EXIT_SYSTEM_ERROR)

        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_SYSTEM_ERROR

    def test_exit_code_constants(self) -> None:
        """Test that exit code constants have correct values."""
        assert EXIT_SUCCESS == 0
        assert EXIT_USER_ERROR == 1
        assert EXIT_SYSTEM_ERROR == 2


class TestPathResolution:
    """Tests for resolve_path."""

    def test_resolve_path_absolute(self, tmp_path: Path) -> None:
        """Test absolute paths are kept."""
        target = tmp_path / "wf.json"
        assert resolve_path(target) == target.resolve()

    def test_resolve_path_relative(self, tmp_path: Path) -> None:
        """Test relative paths are joined to the base path."""
        assert resolve_path("flows/wf.json", tmp_path) == (tmp_path / "flows" / "wf.json").resolve()

    def test_resolve_path_missing_ok(self, tmp_path: Path) -> None:
        """Test paths that do not exist still resolve."""
        assert not resolve_path("missing", tmp_path).exists()


class TestConfigWiring:
    """Tests for wire_config."""

    def test_wire_config_no_overrides(self, tmp_path: Path) -> None:
        """Test wire_config with no overrides uses defaults."""
        config = wire_config(start_dir=tmp_path)
        assert config.strict is False
        assert config.skip_workflows is False
        assert config.exclude_rules == []

    def test_wire_config_false_flags_fall_through(self, tmp_path: Path) -> None:
        """Test unset flags leave file settings in place."""
        (tmp_path / ".wfverifyrc").write_text("strict = true\nskip_workflows = true\n")
        config = wire_config(strict=False, skip_workflows=False, start_dir=tmp_path)
        assert config.strict is True
        assert config.skip_workflows is True

    def test_wire_config_flags(self, tmp_path: Path) -> None:
        """Test set flags override."""
        config = wire_config(strict=True, skip_workflows=True, start_dir=tmp_path)
        assert config.strict is True
        assert config.skip_workflows is True

    def test_wire_config_extends_exclude_rules(self, tmp_path: Path) -> None:
        """Test --exclude-rules adds to the configured deny-list."""
        (tmp_path / ".wfverifyrc").write_text('exclude_rules = ["WEBHOOK-ID"]\n')
        config = wire_config(exclude_rules="LLM-MODEL-ID, WEBHOOK-ID", start_dir=tmp_path)
        assert config.exclude_rules == ["WEBHOOK-ID", "LLM-MODEL-ID"]

    def test_wire_config_invalid(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test invalid configuration exits with a user error."""
        monkeypatch.setenv("WFVERIFY_PARALLEL", "sometimes")
        with pytest.raises(typer.Exit) as exc_info:
            wire_config(start_dir=tmp_path)
        assert exc_info.value.exit_code == EXIT_USER_ERROR


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture
    def _restore_root_logger(self) -> Generator[None, None, None]:
        root = logging.getLogger()
        handlers = root.handlers[:]
        level = root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_default_level(self, _restore_root_logger: None) -> None:
        """Test the default level keeps debug output quiet."""
        configure_logging()
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert any(isinstance(handler, RichHandler) for handler in root.handlers)

    def test_verbose_level(self, _restore_root_logger: None) -> None:
        """Test --verbose enables debug logging."""
        configure_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG
