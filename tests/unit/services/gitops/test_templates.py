"""Unit tests for manifest templates."""

from __future__ import annotations

import pytest
import yaml
from jinja2 import DictLoader, Environment, StrictUndefined

from cluster_gitops.core.cluster.models import FluxBundle, Image
from cluster_gitops.services.gitops.templates import (
    EKSA_KUSTOMIZATION,
    FLUX_KUSTOMIZATION,
    FLUX_PATCHES,
    FLUX_SYNC,
    TEMPLATE_NAMES,
    ManifestGenerator,
    TemplateRenderError,
    flux_patch_values,
)


@pytest.fixture
def generator() -> ManifestGenerator:
    return ManifestGenerator()


@pytest.mark.unit
@pytest.mark.gitops
class TestManifestGenerator:
    """Tests for rendering the bundled templates."""

    def test_eksa_kustomization(self, generator: ManifestGenerator) -> None:
        """The eksa-system kustomization lists the cluster config file."""
        content = generator.render(EKSA_KUSTOMIZATION, {"config_file_name": "eksa-cluster.yaml"})

        document = yaml.safe_load(content)
        assert document["kind"] == "Kustomization"
        assert document["resources"] == ["eksa-cluster.yaml"]

    def test_flux_kustomization(self, generator: ManifestGenerator) -> None:
        """The flux-system kustomization is scoped to the namespace."""
        content = generator.render(FLUX_KUSTOMIZATION, {"flux_namespace": "gitops"})

        document = yaml.safe_load(content)

        assert document["namespace"] == "gitops"
        assert document["resources"] == ["gotk-components.yaml", "gotk-sync.yaml"]
        assert document["patchesStrategicMerge"] == ["gotk-patches.yaml"]

    def test_flux_sync_needs_no_values(self, generator: ManifestGenerator) -> None:
        """The sync placeholder renders without values."""
        assert generator.render(FLUX_SYNC).endswith(b"\n")

    def test_flux_patches(self, generator: ManifestGenerator) -> None:
        """One deployment patch per controller, each with its image."""
        bundle = FluxBundle(source_controller=Image(repository="mirror/source", tag="v9"))

        content = generator.render(FLUX_PATCHES, flux_patch_values("flux-system", bundle))

        patches = list(yaml.safe_load_all(content))
        assert [patch["metadata"]["name"] for patch in patches] == [
            "source-controller",
            "kustomize-controller",
            "helm-controller",
            "notification-controller",
        ]
        container = patches[0]["spec"]["template"]["spec"]["containers"][0]
        assert container["image"] == "mirror/source:v9"

    @pytest.mark.parametrize("name", TEMPLATE_NAMES)
    def test_bundled_templates_exist(self, generator: ManifestGenerator, name: str) -> None:
        """Every named template ships with the package."""
        values = {"config_file_name": "f.yaml", **flux_patch_values("ns", FluxBundle())}

        assert generator.render(name, values)

    def test_missing_value(self, generator: ManifestGenerator) -> None:
        """Undefined values are errors rather than empty strings."""
        with pytest.raises(TemplateRenderError) as exc_info:
            generator.render(FLUX_KUSTOMIZATION)

        assert exc_info.value.template == FLUX_KUSTOMIZATION
        assert FLUX_KUSTOMIZATION in str(exc_info.value)

    def test_missing_patch_namespace(self, generator: ManifestGenerator) -> None:
        """The controller patches need the flux namespace."""
        values = flux_patch_values("flux-system", FluxBundle())
        del values["flux_namespace"]

        with pytest.raises(TemplateRenderError):
            generator.render(FLUX_PATCHES, values)

    def test_unknown_template(self, generator: ManifestGenerator) -> None:
        """An unknown template name is an error."""
        with pytest.raises(TemplateRenderError):
            generator.render("missing/template.yaml")

    def test_custom_environment(self) -> None:
        """A caller-supplied environment replaces the bundled templates."""
        env = Environment(
            loader=DictLoader({"a.yaml": "name: {{ name }}"}),
            undefined=StrictUndefined,
        )

        assert ManifestGenerator(env).render("a.yaml", {"name": "x"}) == b"name: x"


@pytest.mark.unit
@pytest.mark.gitops
class TestFluxPatchValues:
    """Tests for flux_patch_values."""

    def test_values(self) -> None:
        """Images are rendered as repository:tag."""
        bundle = FluxBundle()

        values = flux_patch_values("flux-system", bundle)

        assert values["flux_namespace"] == "flux-system"
        assert values["helm_controller_image"] == bundle.helm_controller.versioned_image()
        image = values["kustomize_controller_image"]
        assert image.startswith("ghcr.io/fluxcd/kustomize-controller:")
