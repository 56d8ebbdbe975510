"""Fixtures for Flux integration tests."""

from __future__ import annotations

import pytest

from cluster_gitops.core.cluster.models import GitOpsConfig, KubernetesCluster
from cluster_gitops.core.cluster.registry import build_default_registry


@pytest.fixture
def gitops_config(cluster_yaml: str) -> GitOpsConfig:
    spec = build_default_registry().parse(cluster_yaml)
    assert spec.gitops_config is not None
    return spec.gitops_config


@pytest.fixture
def kube_cluster() -> KubernetesCluster:
    return KubernetesCluster(name="prod1", kubeconfig_file="/tmp/prod1.kubeconfig")
