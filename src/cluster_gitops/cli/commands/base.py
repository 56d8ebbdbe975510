"""Shared options and error handling for the GitOps commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console

from cluster_gitops.core.cluster.exceptions import ClusterConfigError
from cluster_gitops.integrations.filewriter import FileWriterError
from cluster_gitops.integrations.flux.exceptions import FluxBinaryNotFoundError, FluxError
from cluster_gitops.integrations.git.exceptions import (
    GitBinaryNotFoundError,
    GitCommandError,
    GitError,
    GitProviderAuthError,
    GitProviderConnectionError,
)
from cluster_gitops.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
)
from cluster_gitops.services.gitops.exceptions import (
    ConfigPathConflictError,
    ConfigVersionControlFailedError,
    GitOpsError,
    GitRepositorySyncError,
    OperationCancelledError,
)
from cluster_gitops.services.gitops.templates import TemplateRenderError

# Shared console instance
console = Console()

HANDLED_ERRORS = (
    GitOpsError,
    GitError,
    KubernetesError,
    ClusterConfigError,
    FileWriterError,
    TemplateRenderError,
)


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

ClusterFileOption = Annotated[
    Path,
    typer.Option(
        "--filename",
        "-f",
        help="Cluster configuration file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]

KubeconfigOption = Annotated[
    str,
    typer.Option(
        "--kubeconfig",
        help="Kubeconfig of the target cluster",
    ),
]

ExistingManagementOption = Annotated[
    bool,
    typer.Option(
        "--existing-management",
        help="The cluster is managed by an existing management cluster; skip Flux bootstrap",
    ),
]


# =============================================================================
# Error Handling
# =============================================================================


def _print_hint(hint: str) -> None:
    console.print(f"\n[dim]Hint: {hint}[/dim]")


def handle_gitops_error(error: Exception) -> NoReturn:
    """Print a GitOps error with user-friendly output.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, OperationCancelledError):
        console.print("[yellow]Cancelled.[/yellow]")

    elif isinstance(error, ConfigPathConflictError):
        console.print("[red]Error:[/red] Cluster configuration already exists")
        console.print(f"  {error.message}")
        _print_hint("Set a different clusterConfigPath or cluster name in the GitOpsConfig.")

    elif isinstance(error, ConfigVersionControlFailedError):
        console.print("[red]Error:[/red] Version control of the cluster configuration failed")
        console.print(f"  {error.message}")
        if isinstance(error.error, GitProviderAuthError):
            _print_hint("Check the GitHub token has the repo scope.")

    elif isinstance(error, GitRepositorySyncError):
        console.print("[red]Error:[/red] Cannot check out the GitOps repository")
        console.print(f"  {error.message}")
        _print_hint("Update and cleanup need a repository created by a previous install.")

    elif isinstance(error, GitProviderAuthError):
        console.print("[red]Error:[/red] GitHub authentication failed")
        console.print(f"  {error}")
        _print_hint("Export a personal access token in $GITHUB_TOKEN.")

    elif isinstance(error, GitProviderConnectionError):
        console.print("[red]Error:[/red] Cannot reach GitHub")
        console.print(f"  {error.message}")

    elif isinstance(error, GitBinaryNotFoundError | FluxBinaryNotFoundError):
        console.print(f"[red]Error:[/red] {error.message}")

    elif isinstance(error, GitCommandError):
        console.print("[red]Error:[/red] git command failed")
        console.print(f"  {error}")

    elif isinstance(error, FluxError):
        console.print("[red]Error:[/red] Flux command failed")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesConnectionError):
        console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        console.print(f"  {error.message}")
        if error.original_error:
            console.print(f"  Cause: {error.original_error}")
        _print_hint("Check that the kubeconfig is valid and the cluster is reachable.")

    elif isinstance(error, KubernetesAuthError):
        console.print("[red]Error:[/red] Authentication/authorization failed")
        console.print(f"  {error.message}")

    elif isinstance(error, ClusterConfigError):
        console.print("[red]Error:[/red] Invalid cluster configuration")
        console.print(f"  {error}")

    else:
        console.print(f"[red]Error:[/red] {error}")

    raise typer.Exit(1)
