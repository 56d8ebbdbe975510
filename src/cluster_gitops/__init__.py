"""Cluster GitOps - keep cluster configuration in a GitOps repository."""

from cluster_gitops.__version__ import __version__

__all__ = ["__version__"]
