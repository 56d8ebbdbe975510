"""Version information for cluster_gitops."""

__version__ = "0.1.0"
