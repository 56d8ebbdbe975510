"""Flux custom resource manager.

Suspends, resumes and re-triggers Flux resources through the Kubernetes
``CustomObjectsApi``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, NoReturn

import structlog

from cluster_gitops.integrations.kubernetes.client import KubernetesClient
from cluster_gitops.integrations.kubernetes.exceptions import KubernetesNotFoundError

logger = structlog.get_logger()

# =============================================================================
# CRD Coordinates
# =============================================================================

SOURCE_GROUP = "source.toolkit.fluxcd.io"
SOURCE_VERSION = "v1"
GIT_REPOSITORY_PLURAL = "gitrepositories"

KUSTOMIZE_GROUP = "kustomize.toolkit.fluxcd.io"
KUSTOMIZE_VERSION = "v1"
KUSTOMIZATION_PLURAL = "kustomizations"

FLUX_SYSTEM_NAME = "flux-system"

# Annotation key used to trigger reconciliation
RECONCILE_ANNOTATION = "reconcile.fluxcd.io/requestedAt"


class FluxManager:
    """Manager for the Flux resources of one cluster."""

    def __init__(self, client: KubernetesClient) -> None:
        self._client = client
        self._log = logger.bind(entity="flux", kubeconfig=client.kubeconfig_file)

    def _handle_api_error(
        self,
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> NoReturn:
        raise self._client.translate_api_exception(
            e,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        ) from e

    # =========================================================================
    # Kustomization Operations
    # =========================================================================

    def list_kustomization_names(self, namespace: str) -> list[str]:
        """Return the names of every Kustomization in ``namespace``."""
        try:
            result = self._client.custom_objects.list_namespaced_custom_object(
                KUSTOMIZE_GROUP,
                KUSTOMIZE_VERSION,
                namespace,
                KUSTOMIZATION_PLURAL,
            )
        except Exception as e:
            self._handle_api_error(e, "Kustomization", None, namespace)
        return [item["metadata"]["name"] for item in result.get("items", [])]

    def _set_suspend(self, namespace: str, suspend: bool) -> list[str]:
        names = self.list_kustomization_names(namespace)
        patch: dict[str, Any] = {"spec": {"suspend": suspend}}
        for name in names:
            try:
                self._client.custom_objects.patch_namespaced_custom_object(
                    KUSTOMIZE_GROUP,
                    KUSTOMIZE_VERSION,
                    namespace,
                    KUSTOMIZATION_PLURAL,
                    name,
                    patch,
                )
            except Exception as e:
                self._handle_api_error(e, "Kustomization", name, namespace)
        return names

    def suspend_kustomizations(self, namespace: str) -> list[str]:
        """Suspend reconciliation of every Kustomization in ``namespace``.

        Returns:
            Names of the suspended Kustomizations.
        """
        names = self._set_suspend(namespace, True)
        self._log.info("suspended_kustomizations", namespace=namespace, count=len(names))
        return names

    def resume_kustomizations(self, namespace: str) -> list[str]:
        """Resume reconciliation of every Kustomization in ``namespace``.

        Returns:
            Names of the resumed Kustomizations.
        """
        names = self._set_suspend(namespace, False)
        self._log.info("resumed_kustomizations", namespace=namespace, count=len(names))
        return names

    # =========================================================================
    # GitRepository Operations
    # =========================================================================

    def reconcile_git_repository(self, namespace: str, name: str = FLUX_SYSTEM_NAME) -> str:
        """Request an immediate sync of a GitRepository.

        Annotates the resource with the current timestamp.

        Returns:
            The requested-at timestamp.
        """
        requested_at = datetime.now(UTC).isoformat()
        patch: dict[str, Any] = {
            "metadata": {
                "annotations": {RECONCILE_ANNOTATION: requested_at},
            },
        }
        try:
            self._client.custom_objects.patch_namespaced_custom_object(
                SOURCE_GROUP,
                SOURCE_VERSION,
                namespace,
                GIT_REPOSITORY_PLURAL,
                name,
                patch,
            )
        except Exception as e:
            self._handle_api_error(e, "GitRepository", name, namespace)
        self._log.info("reconciled_git_repository", name=name, namespace=namespace)
        return requested_at

    # =========================================================================
    # Secrets
    # =========================================================================

    def delete_system_secret(self, namespace: str) -> None:
        """Delete the ``flux-system`` deploy-key secret; a missing secret is ignored."""
        try:
            self._client.core_v1.delete_namespaced_secret(FLUX_SYSTEM_NAME, namespace)
        except Exception as e:
            translated = self._client.translate_api_exception(
                e, "Secret", FLUX_SYSTEM_NAME, namespace
            )
            if isinstance(translated, KubernetesNotFoundError):
                self._log.debug("flux_system_secret_absent", namespace=namespace)
                return
            raise translated from e
        self._log.info("deleted_flux_system_secret", namespace=namespace)
