"""Cluster configuration errors."""

from __future__ import annotations


class ClusterConfigError(Exception):
    """Raised when a cluster configuration file cannot be turned into a spec.

    Attributes:
        message: Human-readable error message.
        source: File or document the error refers to.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.source:
            return f"{self.message} [{self.source}]"
        return self.message
