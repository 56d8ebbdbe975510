"""Flux CLI exceptions."""

from __future__ import annotations

from cluster_gitops.integrations.kubernetes.exceptions import KubernetesError


class FluxError(KubernetesError):
    """Base exception for Flux operations."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message=message)
        self.stderr = stderr


class FluxBinaryNotFoundError(FluxError):
    """Raised when the flux binary is not found in PATH."""

    def __init__(self) -> None:
        super().__init__(
            message=(
                "flux binary not found in PATH. "
                "Install from: https://fluxcd.io/flux/installation/"
            ),
        )


class FluxCommandError(FluxError):
    """Raised when a flux command fails."""
