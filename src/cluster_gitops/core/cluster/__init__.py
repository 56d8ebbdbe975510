"""Cluster configuration models, parsing and serialization."""

from cluster_gitops.core.cluster.exceptions import ClusterConfigError
from cluster_gitops.core.cluster.marshaller import marshal_cluster_spec
from cluster_gitops.core.cluster.models import (
    ClusterConfig,
    ClusterSpec,
    FluxBundle,
    GithubProviderConfig,
    GitOpsConfig,
    Image,
    KubernetesCluster,
    ProviderObject,
)
from cluster_gitops.core.cluster.registry import ConfigRegistry, build_default_registry

__all__ = [
    "ClusterConfig",
    "ClusterConfigError",
    "ClusterSpec",
    "ConfigRegistry",
    "FluxBundle",
    "GitOpsConfig",
    "GithubProviderConfig",
    "Image",
    "KubernetesCluster",
    "ProviderObject",
    "build_default_registry",
    "marshal_cluster_spec",
]
