"""Tests for main CLI module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
import typer
import yaml
from typer.testing import CliRunner

from cluster_gitops import __version__


class TestCLIMain:
    """Test main CLI entry point."""

    @pytest.mark.unit
    @pytest.mark.cli
    def test_help_option(self, cli_runner: CliRunner, cli_app: typer.Typer) -> None:
        """Test --help lists the GitOps commands."""
        result = cli_runner.invoke(cli_app, ["--help"])
        assert result.exit_code == 0
        for command in (
            "install",
            "update",
            "cleanup",
            "pause",
            "resume",
            "reconcile",
            "validate",
            "init",
        ):
            assert command in result.stdout

    @pytest.mark.unit
    @pytest.mark.cli
    def test_version_option(self, cli_runner: CliRunner, cli_app: typer.Typer) -> None:
        """Test --version option displays version."""
        result = cli_runner.invoke(cli_app, ["--version"])
        assert result.exit_code == 0
        assert f"cluster-gitops version {__version__}" in result.stdout

    @pytest.mark.unit
    @pytest.mark.cli
    def test_verbose_flag(self, cli_runner: CliRunner, cli_app: typer.Typer) -> None:
        """Test --verbose flag is accepted."""
        result = cli_runner.invoke(cli_app, ["--verbose", "--help"])
        assert result.exit_code == 0

    @pytest.mark.unit
    @pytest.mark.cli
    def test_install_requires_filename(self, cli_runner: CliRunner, cli_app: typer.Typer) -> None:
        """Test install fails when no cluster file is given."""
        result = cli_runner.invoke(cli_app, ["install", "--kubeconfig", "kc"])
        assert result.exit_code != 0


class TestInitCommand:
    """Test init command."""

    @pytest.mark.unit
    @pytest.mark.cli
    def test_init_creates_config(
        self, cli_runner: CliRunner, cli_app: typer.Typer, temp_dir: Path
    ) -> None:
        """Test init writes a default configuration file."""
        config_dir = temp_dir / "config"
        config_file = config_dir / "config.yaml"

        with (
            patch("cluster_gitops.cli.commands.init.CONFIG_DIR", config_dir),
            patch("cluster_gitops.cli.commands.init.CONFIG_FILE", config_file),
        ):
            result = cli_runner.invoke(cli_app, ["init"])

        assert result.exit_code == 0
        assert "initialized successfully" in result.stdout
        data = yaml.safe_load(config_file.read_text())
        assert data["github"]["token_env"] == "GITHUB_TOKEN"

    @pytest.mark.unit
    @pytest.mark.cli
    def test_init_existing_config_fails(
        self, cli_runner: CliRunner, cli_app: typer.Typer, temp_dir: Path
    ) -> None:
        """Test init refuses to overwrite an existing configuration."""
        config_dir = temp_dir / "config"
        config_dir.mkdir(parents=True)
        config_file = config_dir / "config.yaml"
        config_file.write_text("github: {}\n")

        with (
            patch("cluster_gitops.cli.commands.init.CONFIG_DIR", config_dir),
            patch("cluster_gitops.cli.commands.init.CONFIG_FILE", config_file),
        ):
            result = cli_runner.invoke(cli_app, ["init"])

        assert result.exit_code == 1
        assert "already exists" in result.stdout
        assert config_file.read_text() == "github: {}\n"

    @pytest.mark.unit
    @pytest.mark.cli
    def test_init_force_overwrites(
        self, cli_runner: CliRunner, cli_app: typer.Typer, temp_dir: Path
    ) -> None:
        """Test init --force replaces an existing configuration."""
        config_dir = temp_dir / "config"
        config_dir.mkdir(parents=True)
        config_file = config_dir / "config.yaml"
        config_file.write_text("github: {}\n")

        with (
            patch("cluster_gitops.cli.commands.init.CONFIG_DIR", config_dir),
            patch("cluster_gitops.cli.commands.init.CONFIG_FILE", config_file),
        ):
            result = cli_runner.invoke(cli_app, ["init", "--force"])

        assert result.exit_code == 0
        assert "retry" in yaml.safe_load(config_file.read_text())
