"""Application configuration models."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from cluster_gitops.core.cluster.models import FluxBundle

# XDG-compliant config location
CONFIG_DIR = Path.home() / ".config" / "cluster-gitops"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

CONFIG_HEADER = """\
# Cluster GitOps CLI Configuration
# Environment variables prefixed with CLUSTER_GITOPS_ override these values.
"""


class RetryConfig(BaseModel):
    """Retry settings shared by every remote operation."""

    model_config = ConfigDict(extra="forbid")

    max_attempts: int = 5
    backoff_seconds: float = 5.0

    @field_validator("max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        """Validate at least one attempt is made."""
        if v < 1:
            raise ValueError("max_attempts must be at least 1")
        return v

    @field_validator("backoff_seconds")
    @classmethod
    def validate_backoff(cls, v: float) -> float:
        """Validate backoff is not negative."""
        if v < 0:
            raise ValueError("backoff_seconds must be non-negative")
        return v


class GitHubConfig(BaseModel):
    """GitHub hosting provider settings."""

    model_config = ConfigDict(extra="forbid")

    api_url: str = "https://api.github.com"
    token_env: str = "GITHUB_TOKEN"
    timeout: int = 30

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the API URL."""
        return v.rstrip("/")

    def token(self) -> str | None:
        """Read the access token from the configured environment variable."""
        return os.environ.get(self.token_env) or None


class BinariesConfig(BaseModel):
    """Optional explicit paths to external binaries."""

    model_config = ConfigDict(extra="forbid")

    git: str | None = None
    flux: str | None = None


class SystemConfig(BaseModel):
    """Complete CLI configuration."""

    model_config = ConfigDict(extra="forbid")

    version: str = "1.0"
    work_dir: str = "."
    retry: RetryConfig = RetryConfig()
    github: GitHubConfig = GitHubConfig()
    binaries: BinariesConfig = BinariesConfig()
    flux_bundle: FluxBundle = Field(default_factory=FluxBundle)

    @field_validator("work_dir")
    @classmethod
    def expand_work_dir(cls, v: str) -> str:
        """Expand ~ in the working directory."""
        return str(Path(v).expanduser())

    @property
    def work_path(self) -> Path:
        """Working directory as a Path."""
        return Path(self.work_dir)

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> SystemConfig:
        """Create configuration with environment variable overrides.

        Supported environment variables:
            CLUSTER_GITOPS_WORK_DIR: Root for local repository checkouts
            CLUSTER_GITOPS_RETRY_ATTEMPTS: Maximum attempts per remote operation
            CLUSTER_GITOPS_RETRY_BACKOFF: Fixed delay between attempts in seconds
            CLUSTER_GITOPS_GITHUB_API_URL: GitHub API base URL
            CLUSTER_GITOPS_GIT_BINARY: Path to the git binary
            CLUSTER_GITOPS_FLUX_BINARY: Path to the flux binary
        """
        config_dict = dict(base_config) if base_config else {}
        retry = dict(config_dict.get("retry") or {})
        github = dict(config_dict.get("github") or {})
        binaries = dict(config_dict.get("binaries") or {})

        if work_dir := os.environ.get("CLUSTER_GITOPS_WORK_DIR"):
            config_dict["work_dir"] = work_dir
        if attempts := os.environ.get("CLUSTER_GITOPS_RETRY_ATTEMPTS"):
            retry["max_attempts"] = int(attempts)
        if backoff := os.environ.get("CLUSTER_GITOPS_RETRY_BACKOFF"):
            retry["backoff_seconds"] = float(backoff)
        if api_url := os.environ.get("CLUSTER_GITOPS_GITHUB_API_URL"):
            github["api_url"] = api_url
        if git_binary := os.environ.get("CLUSTER_GITOPS_GIT_BINARY"):
            binaries["git"] = git_binary
        if flux_binary := os.environ.get("CLUSTER_GITOPS_FLUX_BINARY"):
            binaries["flux"] = flux_binary

        config_dict["retry"] = retry
        config_dict["github"] = github
        config_dict["binaries"] = binaries
        return cls.model_validate(config_dict)

    def to_yaml(self) -> str:
        """Render the configuration as YAML with a comment header."""
        body = yaml.safe_dump(
            self.model_dump(mode="json", by_alias=True),
            default_flow_style=False,
            sort_keys=False,
        )
        return CONFIG_HEADER + body


def load_raw_config(path: Path | None = None) -> dict[str, Any]:
    """Load the configuration file as a plain dict.

    Returns an empty dict when the file is absent or not valid YAML.
    """
    config_path = path or CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: Path | None = None) -> SystemConfig | None:
    """Load and validate the configuration file.

    Args:
        path: Config file path, defaults to ~/.config/cluster-gitops/config.yaml.

    Returns:
        The validated config, or None if the file does not exist.

    Raises:
        ValueError: If the file is not valid YAML or fails validation.
    """
    config_path = path or CONFIG_FILE
    if not config_path.exists():
        return None
    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
    return SystemConfig.model_validate(data)


def resolve_config(path: Path | None = None) -> SystemConfig:
    """Load the config file (if any) and apply environment overrides."""
    loaded = load_config(path)
    base = loaded.model_dump(mode="json", by_alias=True) if loaded else None
    return SystemConfig.from_env(base)
