"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from rich.console import Console

from cluster_gitops import __version__
from cluster_gitops.cli.commands import gitops, init
from cluster_gitops.core.cluster.registry import build_default_registry
from cluster_gitops.logging.config import configure_logging

app = typer.Typer(
    name="cluster-gitops",
    help="Keep cluster configuration in a GitOps repository and bootstrap Flux.",
    add_completion=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"cluster-gitops version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
) -> None:
    """Cluster GitOps CLI - version cluster configuration and run Flux."""
    configure_logging(verbose=verbose, debug=debug)
    ctx.obj = {"registry": build_default_registry()}


# Register subcommands
app.add_typer(init.app, name="init")
app.command()(gitops.install)
app.command()(gitops.update)
app.command()(gitops.cleanup)
app.command()(gitops.pause)
app.command()(gitops.resume)
app.command()(gitops.reconcile)
app.command()(gitops.validate)


if __name__ == "__main__":
    app()
