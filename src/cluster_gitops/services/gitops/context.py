"""Per-cluster git coordinates."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

from cluster_gitops.core.cluster.models import ClusterSpec

EKSA_SYSTEM_DIR = "eksa-system"


@dataclass(frozen=True)
class ClusterGitContext:
    """Immutable view of where a cluster's configuration lives in the repository.

    Built fresh for every operation from the cluster spec; recompute rather
    than patch.
    """

    owner: str
    repository: str
    branch: str
    config_path: str
    namespace: str
    personal: bool
    self_managed: bool
    cluster_name: str

    @classmethod
    def from_spec(cls, spec: ClusterSpec) -> ClusterGitContext:
        """Resolve the context for ``spec``.

        Raises:
            ValueError: If the spec has no GitOps configuration. Callers check
                for an unconfigured cluster before resolving a context.
        """
        if spec.gitops_config is None:
            raise ValueError(f"cluster {spec.cluster.name} has no GitOps configuration")
        github = spec.gitops_config.github
        name = spec.cluster.name
        return cls(
            owner=github.owner,
            repository=github.repository,
            branch=github.branch,
            config_path=github.config_path_for(name).strip("/"),
            namespace=github.flux_system_namespace,
            personal=github.personal,
            self_managed=spec.cluster.is_self_managed(),
            cluster_name=name,
        )

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}"

    @property
    def cluster_dir(self) -> str:
        """``<path>/<cluster>``"""
        return posixpath.join(self.config_path, self.cluster_name)

    @property
    def eksa_system_dir(self) -> str:
        """``<path>/<cluster>/eksa-system``"""
        return posixpath.join(self.cluster_dir, EKSA_SYSTEM_DIR)

    @property
    def flux_system_dir(self) -> str:
        """``<path>/<namespace>``"""
        return posixpath.join(self.config_path, self.namespace)

    @property
    def stage_root(self) -> str:
        """Parent of the config path, ``.`` when the path is top level."""
        return posixpath.dirname(self.config_path) or "."
