"""Configuration management with Pydantic validation."""

from cluster_gitops.core.config.models import (
    BinariesConfig,
    GitHubConfig,
    RetryConfig,
    SystemConfig,
    load_config,
    resolve_config,
)

__all__ = [
    "BinariesConfig",
    "GitHubConfig",
    "RetryConfig",
    "SystemConfig",
    "load_config",
    "resolve_config",
]
