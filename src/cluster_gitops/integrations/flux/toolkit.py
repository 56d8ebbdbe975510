"""Flux implementation of the toolkit controller."""

from __future__ import annotations

from collections.abc import Callable

from cluster_gitops.core.cluster.models import GitOpsConfig, KubernetesCluster
from cluster_gitops.integrations.flux.cli_client import FluxCliClient
from cluster_gitops.integrations.flux.manager import FluxManager
from cluster_gitops.integrations.kubernetes.client import KubernetesClient


class FluxToolkit:
    """Drives Flux through its CLI and the Kubernetes API.

    Installation and removal go through the flux binary; suspend, resume and
    annotation patches go straight to the cluster's API server.
    """

    def __init__(
        self,
        cli_factory: Callable[[], FluxCliClient] = FluxCliClient,
        client_factory: Callable[[str], KubernetesClient] = KubernetesClient,
    ) -> None:
        self._cli_factory = cli_factory
        self._cli_client: FluxCliClient | None = None
        self._client_factory = client_factory

    @property
    def _cli(self) -> FluxCliClient:
        # created on first use
        if self._cli_client is None:
            self._cli_client = self._cli_factory()
        return self._cli_client

    def _manager(self, cluster: KubernetesCluster) -> tuple[KubernetesClient, FluxManager]:
        client = self._client_factory(cluster.kubeconfig_file)
        return client, FluxManager(client)

    def bootstrap(self, cluster: KubernetesCluster, gitops_config: GitOpsConfig) -> None:
        self._cli.bootstrap_github(cluster, gitops_config)

    def uninstall(self, cluster: KubernetesCluster, gitops_config: GitOpsConfig) -> None:
        self._cli.uninstall(cluster, gitops_config)

    def pause_reconciliation(
        self, cluster: KubernetesCluster, gitops_config: GitOpsConfig
    ) -> None:
        client, manager = self._manager(cluster)
        with client:
            manager.suspend_kustomizations(gitops_config.github.flux_system_namespace)

    def resume_reconciliation(
        self, cluster: KubernetesCluster, gitops_config: GitOpsConfig
    ) -> None:
        client, manager = self._manager(cluster)
        with client:
            manager.resume_kustomizations(gitops_config.github.flux_system_namespace)

    def force_reconcile(self, cluster: KubernetesCluster, namespace: str) -> None:
        client, manager = self._manager(cluster)
        with client:
            manager.reconcile_git_repository(namespace)

    def delete_system_secret(self, cluster: KubernetesCluster, namespace: str) -> None:
        client, manager = self._manager(cluster)
        with client:
            manager.delete_system_secret(namespace)

    def reconcile(self, cluster: KubernetesCluster, gitops_config: GitOpsConfig) -> None:
        self._cli.reconcile(cluster, gitops_config)
