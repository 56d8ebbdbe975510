"""GitOps lifecycle commands."""

from __future__ import annotations

import signal
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import FrameType

import structlog
import typer

from cluster_gitops.cli.commands.base import (
    HANDLED_ERRORS,
    ClusterFileOption,
    ExistingManagementOption,
    KubeconfigOption,
    console,
    handle_gitops_error,
)
from cluster_gitops.cli.output import validation_table
from cluster_gitops.core.cluster.models import ClusterSpec, KubernetesCluster
from cluster_gitops.core.cluster.registry import ConfigRegistry, build_default_registry
from cluster_gitops.core.config.models import SystemConfig, resolve_config
from cluster_gitops.integrations.filewriter import FileWriter
from cluster_gitops.integrations.flux.cli_client import FluxCliClient
from cluster_gitops.integrations.flux.toolkit import FluxToolkit
from cluster_gitops.integrations.git.session import GitSessionHandle, build_git_session
from cluster_gitops.services.gitops.orchestrator import GitOpsOrchestrator
from cluster_gitops.services.gitops.retry import CancellationToken, RetryPolicy
from cluster_gitops.services.gitops.validations import run_validations

logger = structlog.get_logger()


@dataclass
class CommandContext:
    """Everything a GitOps command needs for one invocation."""

    orchestrator: GitOpsOrchestrator
    spec: ClusterSpec
    token: CancellationToken


# =============================================================================
# Helpers
# =============================================================================


def _registry(ctx: typer.Context) -> ConfigRegistry:
    if isinstance(ctx.obj, dict) and "registry" in ctx.obj:
        return ctx.obj["registry"]
    return build_default_registry()


def load_settings() -> SystemConfig:
    """Load the CLI configuration, exiting on invalid content."""
    try:
        return resolve_config()
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(1) from e


def load_cluster_spec(
    registry: ConfigRegistry, cluster_file: Path, settings: SystemConfig
) -> ClusterSpec:
    """Parse ``cluster_file`` and apply the configured controller images."""
    spec = registry.parse(cluster_file.read_text(), source=str(cluster_file))
    return spec.model_copy(update={"flux_bundle": settings.flux_bundle})


def build_orchestrator(
    spec: ClusterSpec, settings: SystemConfig
) -> tuple[GitOpsOrchestrator, GitSessionHandle | None]:
    """Wire the GitHub session and Flux toolkit for ``spec``."""
    handle = None
    if spec.gitops_config is not None:
        writer = FileWriter(settings.work_path / spec.cluster.name)
        handle = build_git_session(spec, settings, writer)

    github_token = settings.github.token()
    toolkit = FluxToolkit(
        lambda: FluxCliClient(settings.binaries.flux, github_token=github_token)
    )
    orchestrator = GitOpsOrchestrator(
        toolkit,
        handle,
        retry_policy=RetryPolicy.from_config(settings.retry),
    )
    return orchestrator, handle


@contextmanager
def cancel_on_interrupt() -> Iterator[CancellationToken]:
    """Cancel the yielded token on SIGINT instead of raising KeyboardInterrupt."""
    token = CancellationToken()

    def _cancel(signum: int, frame: FrameType | None) -> None:
        logger.warning("interrupt_received_cancelling")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _cancel)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


@contextmanager
def gitops_command(ctx: typer.Context, cluster_file: Path) -> Iterator[CommandContext]:
    """Set up one command invocation and translate its errors."""
    settings = load_settings()
    handle: GitSessionHandle | None = None
    with cancel_on_interrupt() as token:
        try:
            spec = load_cluster_spec(_registry(ctx), cluster_file, settings)
            orchestrator, handle = build_orchestrator(spec, settings)
            if not orchestrator.is_configured:
                console.print(
                    f"[yellow]GitOps is not configured for cluster {spec.cluster.name}; "
                    "nothing to do.[/yellow]"
                )
            yield CommandContext(orchestrator=orchestrator, spec=spec, token=token)
        except HANDLED_ERRORS as e:
            handle_gitops_error(e)
        finally:
            if handle is not None:
                handle.close()


def _cluster(
    spec: ClusterSpec, kubeconfig: str, existing_management: bool = False
) -> KubernetesCluster:
    return KubernetesCluster(
        name=spec.cluster.name,
        kubeconfig_file=kubeconfig,
        existing_management=existing_management,
    )


# =============================================================================
# Commands
# =============================================================================


def install(
    ctx: typer.Context,
    filename: ClusterFileOption,
    kubeconfig: KubeconfigOption,
    existing_management: ExistingManagementOption = False,
) -> None:
    """Commit the cluster configuration to git and bootstrap Flux."""
    with gitops_command(ctx, filename) as command:
        cluster = _cluster(command.spec, kubeconfig, existing_management)
        command.orchestrator.install(cluster, command.spec, token=command.token)
        if command.orchestrator.is_configured:
            console.print(f"[green]GitOps installed for cluster {cluster.name}[/green]")


def update(ctx: typer.Context, filename: ClusterFileOption) -> None:
    """Push the updated cluster configuration to git."""
    with gitops_command(ctx, filename) as command:
        command.orchestrator.update(command.spec, token=command.token)
        if command.orchestrator.is_configured:
            console.print("[green]Cluster configuration updated[/green]")


def cleanup(ctx: typer.Context, filename: ClusterFileOption) -> None:
    """Remove the cluster configuration from git."""
    with gitops_command(ctx, filename) as command:
        command.orchestrator.cleanup(command.spec, token=command.token)
        if command.orchestrator.is_configured:
            console.print("[green]Cluster configuration removed from git[/green]")


def pause(ctx: typer.Context, filename: ClusterFileOption, kubeconfig: KubeconfigOption) -> None:
    """Suspend Flux reconciliation."""
    with gitops_command(ctx, filename) as command:
        command.orchestrator.pause(
            _cluster(command.spec, kubeconfig), command.spec, token=command.token
        )
        if command.orchestrator.is_configured:
            console.print("[green]Reconciliation paused[/green]")


def resume(ctx: typer.Context, filename: ClusterFileOption, kubeconfig: KubeconfigOption) -> None:
    """Resume Flux reconciliation."""
    with gitops_command(ctx, filename) as command:
        command.orchestrator.resume(
            _cluster(command.spec, kubeconfig), command.spec, token=command.token
        )
        if command.orchestrator.is_configured:
            console.print("[green]Reconciliation resumed[/green]")


def reconcile(
    ctx: typer.Context, filename: ClusterFileOption, kubeconfig: KubeconfigOption
) -> None:
    """Force Flux to sync the git repository now."""
    with gitops_command(ctx, filename) as command:
        command.orchestrator.force_reconcile(
            _cluster(command.spec, kubeconfig), command.spec, token=command.token
        )
        if command.orchestrator.is_configured:
            console.print("[green]Reconciliation requested[/green]")


def validate(ctx: typer.Context, filename: ClusterFileOption) -> None:
    """Check the cluster's GitOps path is free in the remote repository."""
    with gitops_command(ctx, filename) as command:
        results = command.orchestrator.validate(command.spec, token=command.token)
        if not results:
            return
        console.print(validation_table(results))
        if run_validations(results):
            raise typer.Exit(1)
