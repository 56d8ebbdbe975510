"""Init command for writing a default configuration."""

from __future__ import annotations

import structlog
import typer
from rich.console import Console
from rich.panel import Panel

from cluster_gitops.core.config.models import (
    CONFIG_DIR,
    CONFIG_FILE,
    SystemConfig,
)

app = typer.Typer(help="Initialize the cluster-gitops configuration.")
console = Console()
logger = structlog.get_logger()


@app.callback(invoke_without_command=True)
def init(
    ctx: typer.Context,
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration.",
    ),
) -> None:
    """Write a default configuration to ~/.config/cluster-gitops/."""
    if ctx.invoked_subcommand is not None:
        return

    logger.info("Initializing config", path=str(CONFIG_FILE))
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    if CONFIG_FILE.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {CONFIG_FILE}[/yellow]")
        console.print("Use --force to overwrite.")
        raise typer.Exit(code=1)

    config = SystemConfig()
    CONFIG_FILE.write_text(config.to_yaml())

    console.print(
        Panel(
            f"[green]Configuration initialized successfully![/green]\n\n"
            f"Configuration created at: {CONFIG_FILE}\n\n"
            f"Next steps:\n"
            f"  1. Export a GitHub token in ${config.github.token_env}\n"
            f"  2. Run [bold]cluster-gitops validate -f cluster.yaml[/bold]",
            title="cluster-gitops init",
            border_style="green",
        )
    )

    logger.info("Configuration initialized", config_file=str(CONFIG_FILE))
