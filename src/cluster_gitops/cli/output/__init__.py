"""Centralized CLI output utilities.

Usage:
    from cluster_gitops.cli.output import Table

    table = Table(title="Results")
    table.add_column("Name", style="cyan")
    table.add_row("foo")
    console.print(table)
"""

from cluster_gitops.cli.output.table import Table, validation_table

__all__ = ["Table", "validation_table"]
