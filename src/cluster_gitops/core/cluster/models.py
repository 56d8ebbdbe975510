"""Cluster configuration models.

These mirror the documents of a cluster configuration file: the ``Cluster``
object, its ``GitOpsConfig`` and the provider datacenter/machine configs.
YAML keys are camelCase; every model also accepts the snake_case field names.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

API_VERSION = "anywhere.eks.amazonaws.com/v1alpha1"
CLUSTER_KIND = "Cluster"
GITOPS_CONFIG_KIND = "GitOpsConfig"

DEFAULT_BRANCH = "main"
DEFAULT_FLUX_NAMESPACE = "flux-system"
DEFAULT_CONFIG_ROOT = "clusters"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ObjectMeta(_CamelModel):
    """Subset of Kubernetes object metadata used by cluster documents."""

    name: str
    namespace: str | None = None


class Ref(_CamelModel):
    """Reference to another document by kind and name."""

    kind: str
    name: str


class ManagementCluster(_CamelModel):
    """Name of the cluster managing this one."""

    name: str = ""


class ClusterSpecFields(_CamelModel):
    """``spec`` of a ``Cluster`` document.

    Only the fields the GitOps workflow reads are typed; the rest of the spec
    is preserved verbatim so the marshalled file round-trips.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    management_cluster: ManagementCluster = Field(default_factory=ManagementCluster)
    gitops_ref: Ref | None = Field(default=None, alias="gitOpsRef")
    datacenter_ref: Ref | None = None


class ClusterConfig(_CamelModel):
    """The ``Cluster`` document."""

    api_version: str = API_VERSION
    kind: str = CLUSTER_KIND
    metadata: ObjectMeta
    spec: ClusterSpecFields = Field(default_factory=ClusterSpecFields)

    @property
    def name(self) -> str:
        """Cluster name."""
        return self.metadata.name

    def is_self_managed(self) -> bool:
        """Whether the cluster manages its own lifecycle."""
        management = self.spec.management_cluster.name
        return not management or management == self.name

    def is_managed(self) -> bool:
        """Whether a separate management cluster owns this cluster."""
        return not self.is_self_managed()


class GithubProviderConfig(_CamelModel):
    """GitHub coordinates of the GitOps repository."""

    owner: str
    repository: str
    branch: str = DEFAULT_BRANCH
    cluster_config_path: str = ""
    flux_system_namespace: str = DEFAULT_FLUX_NAMESPACE
    personal: bool = False

    def config_path_for(self, cluster_name: str) -> str:
        """Return the configured path, or ``clusters/<cluster_name>`` when unset."""
        return self.cluster_config_path or f"{DEFAULT_CONFIG_ROOT}/{cluster_name}"


class FluxConfig(_CamelModel):
    """Flux section of a GitOps config."""

    github: GithubProviderConfig


class GitOpsConfigSpec(_CamelModel):
    """``spec`` of a ``GitOpsConfig`` document."""

    flux: FluxConfig


class GitOpsConfig(_CamelModel):
    """The ``GitOpsConfig`` document."""

    api_version: str = API_VERSION
    kind: str = GITOPS_CONFIG_KIND
    metadata: ObjectMeta
    spec: GitOpsConfigSpec

    @property
    def github(self) -> GithubProviderConfig:
        """Shortcut to the GitHub provider settings."""
        return self.spec.flux.github


class ProviderObject(BaseModel):
    """A datacenter or machine config document, kept verbatim."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    api_version: str = Field(default=API_VERSION, alias="apiVersion")
    kind: str
    metadata: ObjectMeta


class Image(_CamelModel):
    """A container image reference."""

    repository: str
    tag: str

    def versioned_image(self) -> str:
        """Return ``repository:tag``."""
        return f"{self.repository}:{self.tag}"


class FluxBundle(_CamelModel):
    """Versioned images of the Flux toolkit controllers."""

    source_controller: Image = Image(repository="ghcr.io/fluxcd/source-controller", tag="v1.4.1")
    kustomize_controller: Image = Image(
        repository="ghcr.io/fluxcd/kustomize-controller", tag="v1.4.0"
    )
    helm_controller: Image = Image(repository="ghcr.io/fluxcd/helm-controller", tag="v1.1.0")
    notification_controller: Image = Image(
        repository="ghcr.io/fluxcd/notification-controller", tag="v1.4.0"
    )


class ClusterSpec(BaseModel):
    """Everything known about a cluster after parsing its configuration."""

    model_config = ConfigDict(extra="forbid")

    cluster: ClusterConfig
    gitops_config: GitOpsConfig | None = None
    datacenter_config: ProviderObject | None = None
    machine_configs: list[ProviderObject] = Field(default_factory=list)
    flux_bundle: FluxBundle = Field(default_factory=FluxBundle)


@dataclass(frozen=True)
class KubernetesCluster:
    """A reachable cluster handed to toolkit operations."""

    name: str
    kubeconfig_file: str
    existing_management: bool = False

