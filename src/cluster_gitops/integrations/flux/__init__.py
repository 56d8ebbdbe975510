"""Flux toolkit integration."""

from cluster_gitops.integrations.flux.cli_client import FluxCliClient
from cluster_gitops.integrations.flux.exceptions import (
    FluxBinaryNotFoundError,
    FluxCommandError,
    FluxError,
)
from cluster_gitops.integrations.flux.manager import FluxManager
from cluster_gitops.integrations.flux.toolkit import FluxToolkit

__all__ = [
    "FluxBinaryNotFoundError",
    "FluxCliClient",
    "FluxCommandError",
    "FluxError",
    "FluxManager",
    "FluxToolkit",
]
