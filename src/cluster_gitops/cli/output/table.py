"""Table output for CLI commands."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rich.table import Table as RichTable

from cluster_gitops.services.gitops.validations import ValidationResult


class Table(RichTable):
    """Rich Table whose columns wrap long text instead of truncating it.

    Usage:
        table = Table(title="Validations")
        table.add_column("Name")
        table.add_column("ID", no_wrap=True)
    """

    def add_column(self, *args: Any, overflow: Any = "fold", **kwargs: Any) -> None:
        """Add a column with ``overflow="fold"`` by default."""
        super().add_column(*args, overflow=overflow, **kwargs)


def validation_table(results: Iterable[ValidationResult], title: str = "Validations") -> Table:
    """Render validation results as name, status and remediation rows."""
    table = Table(title=title)
    table.add_column("Validation", style="cyan")
    table.add_column("Status", no_wrap=True)
    table.add_column("Details")
    for result in results:
        if result.passed:
            table.add_row(result.name, "[green]passed[/green]", "")
        else:
            table.add_row(
                result.name,
                "[red]failed[/red]",
                f"{result.error}\n[dim]{result.remediation}[/dim]",
            )
    return table
