"""Manifest templates bundled with the package.

Templates are loaded once from ``cluster_gitops/services/gitops/manifests``
and rendered with jinja2. Undefined values are errors rather than empty
strings.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from cluster_gitops.core.cluster.models import FluxBundle

logger = structlog.get_logger()

TEMPLATE_PACKAGE = "cluster_gitops.services.gitops"
TEMPLATE_DIR = "manifests"

EKSA_KUSTOMIZATION = "eksa-system/kustomization.yaml"
FLUX_KUSTOMIZATION = "flux-system/kustomization.yaml"
FLUX_SYNC = "flux-system/gotk-sync.yaml"
FLUX_PATCHES = "flux-system/gotk-patches.yaml"

TEMPLATE_NAMES = (EKSA_KUSTOMIZATION, FLUX_KUSTOMIZATION, FLUX_SYNC, FLUX_PATCHES)


class TemplateRenderError(Exception):
    """Raised when a manifest template is missing or cannot be rendered."""

    def __init__(self, message: str, template: str) -> None:
        super().__init__(message)
        self.message = message
        self.template = template

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.message} [{self.template}]"


class ManifestGenerator:
    """Renders the named manifest templates.

    Example:
        ```python
        generator = ManifestGenerator()
        content = generator.render(
            EKSA_KUSTOMIZATION, {"config_file_name": "eksa-cluster.yaml"}
        )
        ```
    """

    def __init__(self, environment: Environment | None = None) -> None:
        self._env = environment or Environment(
            loader=PackageLoader(TEMPLATE_PACKAGE, TEMPLATE_DIR),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def render(self, name: str, values: Mapping[str, Any] | None = None) -> bytes:
        """Render template ``name`` with ``values``.

        Raises:
            TemplateRenderError: If the template is unknown or a value is missing.
        """
        try:
            template = self._env.get_template(name)
            content = template.render(dict(values or {}))
        except TemplateError as e:
            raise TemplateRenderError(f"error rendering manifest: {e}", name) from e
        logger.debug("rendered_manifest", template=name, size=len(content))
        return content.encode()


def flux_patch_values(namespace: str, bundle: FluxBundle) -> dict[str, str]:
    """Substitutions for the toolkit controller image patches."""
    return {
        "flux_namespace": namespace,
        "source_controller_image": bundle.source_controller.versioned_image(),
        "kustomize_controller_image": bundle.kustomize_controller.versioned_image(),
        "helm_controller_image": bundle.helm_controller.versioned_image(),
        "notification_controller_image": bundle.notification_controller.versioned_image(),
    }
