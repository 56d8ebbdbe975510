"""Unit tests for FluxManager."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from kubernetes.client import ApiException

from cluster_gitops.integrations.flux.manager import (
    GIT_REPOSITORY_PLURAL,
    KUSTOMIZATION_PLURAL,
    KUSTOMIZE_GROUP,
    KUSTOMIZE_VERSION,
    RECONCILE_ANNOTATION,
    SOURCE_GROUP,
    SOURCE_VERSION,
    FluxManager,
)
from cluster_gitops.integrations.kubernetes.client import KubernetesClient
from cluster_gitops.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesNotFoundError,
)

NAMESPACE = "flux-system"


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client with real error translation."""
    mock_client = MagicMock()
    mock_client.kubeconfig_file = "/tmp/prod1.kubeconfig"
    mock_client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    return mock_client


@pytest.fixture
def flux_manager(mock_k8s_client: MagicMock) -> FluxManager:
    """Create a FluxManager with mocked client."""
    return FluxManager(mock_k8s_client)


def _kustomizations(*names: str) -> dict[str, list[dict[str, dict[str, str]]]]:
    return {"items": [{"metadata": {"name": name, "namespace": NAMESPACE}} for name in names]}


# =============================================================================
# Kustomizations
# =============================================================================


@pytest.mark.unit
@pytest.mark.flux
class TestFluxManagerKustomizations:
    """Tests for suspending and resuming Kustomizations."""

    def test_list_kustomization_names(
        self, flux_manager: FluxManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should list Kustomization names in the namespace."""
        mock_k8s_client.custom_objects.list_namespaced_custom_object.return_value = (
            _kustomizations("flux-system", "apps")
        )

        assert flux_manager.list_kustomization_names(NAMESPACE) == ["flux-system", "apps"]
        mock_k8s_client.custom_objects.list_namespaced_custom_object.assert_called_once_with(
            KUSTOMIZE_GROUP, KUSTOMIZE_VERSION, NAMESPACE, KUSTOMIZATION_PLURAL
        )

    def test_suspend_kustomizations(
        self, flux_manager: FluxManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should patch suspend=true on every Kustomization."""
        mock_k8s_client.custom_objects.list_namespaced_custom_object.return_value = (
            _kustomizations("flux-system", "apps")
        )

        assert flux_manager.suspend_kustomizations(NAMESPACE) == ["flux-system", "apps"]

        patch_calls = mock_k8s_client.custom_objects.patch_namespaced_custom_object.call_args_list
        assert [c.args[4] for c in patch_calls] == ["flux-system", "apps"]
        assert all(c.args[5] == {"spec": {"suspend": True}} for c in patch_calls)

    def test_resume_kustomizations(
        self, flux_manager: FluxManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should patch suspend=false on every Kustomization."""
        mock_k8s_client.custom_objects.list_namespaced_custom_object.return_value = (
            _kustomizations("flux-system")
        )

        flux_manager.resume_kustomizations(NAMESPACE)

        args = mock_k8s_client.custom_objects.patch_namespaced_custom_object.call_args.args
        assert args[5] == {"spec": {"suspend": False}}

    def test_no_kustomizations(
        self, flux_manager: FluxManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should patch nothing when the namespace is empty."""
        mock_k8s_client.custom_objects.list_namespaced_custom_object.return_value = {"items": []}

        assert flux_manager.suspend_kustomizations(NAMESPACE) == []
        mock_k8s_client.custom_objects.patch_namespaced_custom_object.assert_not_called()

    def test_list_forbidden(self, flux_manager: FluxManager, mock_k8s_client: MagicMock) -> None:
        """Should translate API errors."""
        mock_k8s_client.custom_objects.list_namespaced_custom_object.side_effect = ApiException(
            status=403, reason="Forbidden"
        )

        with pytest.raises(KubernetesAuthError):
            flux_manager.suspend_kustomizations(NAMESPACE)

    def test_patch_not_found(self, flux_manager: FluxManager, mock_k8s_client: MagicMock) -> None:
        """Should raise when a Kustomization disappears mid-patch."""
        mock_k8s_client.custom_objects.list_namespaced_custom_object.return_value = (
            _kustomizations("apps")
        )
        mock_k8s_client.custom_objects.patch_namespaced_custom_object.side_effect = ApiException(
            status=404, reason="Not Found"
        )

        with pytest.raises(KubernetesNotFoundError) as exc_info:
            flux_manager.resume_kustomizations(NAMESPACE)

        assert exc_info.value.resource_name == "apps"


# =============================================================================
# GitRepository
# =============================================================================


@pytest.mark.unit
@pytest.mark.flux
class TestFluxManagerGitRepository:
    """Tests for FluxManager.reconcile_git_repository."""

    def test_reconcile_git_repository(
        self, flux_manager: FluxManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should annotate the flux-system GitRepository with a timestamp."""
        requested_at = flux_manager.reconcile_git_repository(NAMESPACE)

        args = mock_k8s_client.custom_objects.patch_namespaced_custom_object.call_args.args
        assert args[:5] == (
            SOURCE_GROUP,
            SOURCE_VERSION,
            NAMESPACE,
            GIT_REPOSITORY_PLURAL,
            "flux-system",
        )
        assert args[5]["metadata"]["annotations"][RECONCILE_ANNOTATION] == requested_at

    def test_reconcile_missing_repository(
        self, flux_manager: FluxManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should raise when the GitRepository does not exist."""
        mock_k8s_client.custom_objects.patch_namespaced_custom_object.side_effect = ApiException(
            status=404, reason="Not Found"
        )

        with pytest.raises(KubernetesNotFoundError):
            flux_manager.reconcile_git_repository(NAMESPACE)


# =============================================================================
# Secrets
# =============================================================================


@pytest.mark.unit
@pytest.mark.flux
class TestFluxManagerSecret:
    """Tests for FluxManager.delete_system_secret."""

    def test_delete(self, flux_manager: FluxManager, mock_k8s_client: MagicMock) -> None:
        """Should delete the flux-system secret."""
        flux_manager.delete_system_secret(NAMESPACE)

        mock_k8s_client.core_v1.delete_namespaced_secret.assert_called_once_with(
            "flux-system", NAMESPACE
        )

    def test_delete_missing_is_ignored(
        self, flux_manager: FluxManager, mock_k8s_client: MagicMock
    ) -> None:
        """A missing secret is not an error."""
        mock_k8s_client.core_v1.delete_namespaced_secret.side_effect = ApiException(
            status=404, reason="Not Found"
        )

        flux_manager.delete_system_secret(NAMESPACE)

    def test_delete_forbidden(self, flux_manager: FluxManager, mock_k8s_client: MagicMock) -> None:
        """Other failures propagate."""
        mock_k8s_client.core_v1.delete_namespaced_secret.side_effect = ApiException(
            status=403, reason="Forbidden"
        )

        with pytest.raises(KubernetesAuthError):
            flux_manager.delete_system_secret(NAMESPACE)
