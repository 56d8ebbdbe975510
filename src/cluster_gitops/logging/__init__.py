"""Logging configuration for cluster_gitops."""

from cluster_gitops.logging.config import configure_logging

__all__ = ["configure_logging"]
