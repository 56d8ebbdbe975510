"""Kubernetes API client bound to a single kubeconfig.

Each toolkit operation targets the cluster named by a ``KubernetesCluster``
descriptor, so clients are built per kubeconfig file instead of switching the
process-wide default configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from cluster_gitops.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)

if TYPE_CHECKING:
    from kubernetes.client import ApiClient, CoreV1Api, CustomObjectsApi

logger = structlog.get_logger()


class KubernetesClient:
    """Kubernetes API client for one cluster.

    Example:
        ```python
        with KubernetesClient("prod1/prod1-eks-a-cluster.kubeconfig") as client:
            client.core_v1.read_namespace("flux-system")
        ```
    """

    def __init__(self, kubeconfig_file: str, context: str | None = None) -> None:
        """Load the kubeconfig.

        Args:
            kubeconfig_file: Path to the cluster's kubeconfig.
            context: Optional context within the kubeconfig.

        Raises:
            KubernetesConnectionError: If the kubeconfig cannot be loaded.
        """
        from kubernetes import config
        from kubernetes.config import ConfigException

        self.kubeconfig_file = kubeconfig_file
        try:
            self._api_client: ApiClient = config.new_client_from_config(
                config_file=kubeconfig_file,
                context=context,
            )
        except (ConfigException, OSError) as e:
            raise KubernetesConnectionError(
                message=f"Cannot load kubeconfig {kubeconfig_file}",
                original_error=e,
            ) from e

        self._core_v1: CoreV1Api | None = None
        self._custom_objects: CustomObjectsApi | None = None
        logger.debug("kubernetes_client_initialized", kubeconfig=kubeconfig_file)

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance (namespaces, secrets)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api(self._api_client)
        return self._core_v1

    @property
    def custom_objects(self) -> CustomObjectsApi:
        """Get CustomObjectsApi instance (Flux CRDs)."""
        if self._custom_objects is None:
            from kubernetes.client import CustomObjectsApi

            self._custom_objects = CustomObjectsApi(self._api_client)
        return self._custom_objects

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException to a custom exception.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException
        from urllib3.exceptions import MaxRetryError, ReadTimeoutError

        if isinstance(e, ReadTimeoutError):
            return KubernetesTimeoutError(message=f"Kubernetes request timed out: {e}")
        if isinstance(e, MaxRetryError):
            return KubernetesConnectionError(
                message=f"Kubernetes API server unreachable: {e.reason}",
                original_error=e,
            )
        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status == 409:
            return KubernetesConflictError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status in (400, 422):
            return KubernetesValidationError(
                message=e.reason or "Validation failed",
                status_code=status,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the underlying API client."""
        self._api_client.close()
        self._core_v1 = None
        self._custom_objects = None
        logger.debug("Kubernetes client closed")

    def __enter__(self) -> KubernetesClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
