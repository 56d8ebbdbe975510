"""Toolkit controller interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cluster_gitops.core.cluster.models import GitOpsConfig, KubernetesCluster


@runtime_checkable
class ToolkitController(Protocol):
    """The reconciliation toolkit running in the cluster.

    Failures propagate to the caller unchanged.
    """

    def bootstrap(self, cluster: KubernetesCluster, gitops_config: GitOpsConfig) -> None: ...

    def uninstall(self, cluster: KubernetesCluster, gitops_config: GitOpsConfig) -> None: ...

    def pause_reconciliation(
        self, cluster: KubernetesCluster, gitops_config: GitOpsConfig
    ) -> None: ...

    def resume_reconciliation(
        self, cluster: KubernetesCluster, gitops_config: GitOpsConfig
    ) -> None: ...

    def force_reconcile(self, cluster: KubernetesCluster, namespace: str) -> None: ...

    def delete_system_secret(self, cluster: KubernetesCluster, namespace: str) -> None: ...

    def reconcile(self, cluster: KubernetesCluster, gitops_config: GitOpsConfig) -> None: ...
