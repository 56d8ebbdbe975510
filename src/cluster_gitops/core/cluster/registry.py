"""Registry of cluster configuration document kinds.

A ``ConfigRegistry`` knows how to build typed objects out of the documents of
a cluster configuration file and how to fold them into a ``ClusterSpec``.
The CLI entry point builds one with ``build_default_registry()`` and passes it
down; there is no module-level instance.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ValidationError

from cluster_gitops.core.cluster.exceptions import ClusterConfigError
from cluster_gitops.core.cluster.models import (
    CLUSTER_KIND,
    GITOPS_CONFIG_KIND,
    ClusterConfig,
    ClusterSpec,
    GitOpsConfig,
    ProviderObject,
    Ref,
)

logger = structlog.get_logger()

DATACENTER_KINDS = (
    "CloudStackDatacenterConfig",
    "DockerDatacenterConfig",
    "NutanixDatacenterConfig",
    "SnowDatacenterConfig",
    "TinkerbellDatacenterConfig",
    "VSphereDatacenterConfig",
)
MACHINE_KINDS = (
    "CloudStackMachineConfig",
    "NutanixMachineConfig",
    "SnowMachineConfig",
    "TinkerbellMachineConfig",
    "VSphereMachineConfig",
)


class ObjectLookup:
    """Parsed documents indexed by kind and name."""

    def __init__(self) -> None:
        self._objects: dict[tuple[str, str], BaseModel] = {}

    def add(self, kind: str, name: str, obj: BaseModel) -> None:
        key = (kind, name)
        if key in self._objects:
            raise ClusterConfigError(f"duplicate {kind} named '{name}'")
        self._objects[key] = obj

    def get(self, ref: Ref) -> BaseModel | None:
        return self._objects.get((ref.kind, ref.name))

    def of_kind(self, *kinds: str) -> list[BaseModel]:
        return [obj for (kind, _), obj in self._objects.items() if kind in kinds]


@dataclass
class SpecBuilder:
    """Mutable accumulator the processors fill in before the spec is frozen."""

    cluster: ClusterConfig | None = None
    gitops_config: GitOpsConfig | None = None
    datacenter_config: ProviderObject | None = None
    machine_configs: list[ProviderObject] = field(default_factory=list)


Processor = Callable[[SpecBuilder, ObjectLookup], None]


@dataclass
class RegistryEntry:
    """Kinds contributed by one concern and the processors that consume them."""

    object_mapping: dict[str, type[BaseModel]] = field(default_factory=dict)
    processors: list[Processor] = field(default_factory=list)


class ConfigRegistry:
    """Builds ``ClusterSpec`` objects from multi-document YAML."""

    def __init__(self) -> None:
        self._mapping: dict[str, type[BaseModel]] = {}
        self._processors: list[Processor] = []

    def register(self, *entries: RegistryEntry) -> None:
        """Register entries.

        Raises:
            ClusterConfigError: If a kind is already registered.
        """
        for entry in entries:
            for kind, model in entry.object_mapping.items():
                if kind in self._mapping:
                    raise ClusterConfigError(f"kind '{kind}' is already registered")
                self._mapping[kind] = model
            self._processors.extend(entry.processors)

    @property
    def kinds(self) -> list[str]:
        """Registered kinds, sorted."""
        return sorted(self._mapping)

    def parse(self, text: str, source: str | None = None) -> ClusterSpec:
        """Parse a cluster configuration file.

        Args:
            text: Multi-document YAML content.
            source: File name used in error messages.

        Returns:
            The assembled cluster spec.

        Raises:
            ClusterConfigError: On malformed YAML, invalid documents, or a
                missing ``Cluster`` object.
        """
        try:
            documents = [doc for doc in yaml.safe_load_all(text) if doc]
        except yaml.YAMLError as e:
            raise ClusterConfigError(f"invalid YAML: {e}", source) from e

        lookup = ObjectLookup()
        for document in documents:
            self._add_document(document, lookup, source)

        builder = SpecBuilder()
        for processor in self._processors:
            processor(builder, lookup)

        if builder.cluster is None:
            raise ClusterConfigError(f"no {CLUSTER_KIND} object found", source)

        return ClusterSpec(
            cluster=builder.cluster,
            gitops_config=builder.gitops_config,
            datacenter_config=builder.datacenter_config,
            machine_configs=builder.machine_configs,
        )

    def _add_document(self, document: Any, lookup: ObjectLookup, source: str | None) -> None:
        if not isinstance(document, dict):
            raise ClusterConfigError("every document must be a mapping", source)
        kind = document.get("kind")
        model = self._mapping.get(kind) if isinstance(kind, str) else None
        if model is None:
            logger.debug("skipping_unregistered_kind", kind=kind)
            return
        try:
            obj = model.model_validate(document)
        except ValidationError as e:
            raise ClusterConfigError(f"invalid {kind} document: {e}", source) from e
        name = getattr(getattr(obj, "metadata", None), "name", "")
        lookup.add(kind, name, obj)


# =============================================================================
# Default entries
# =============================================================================


def _process_cluster(builder: SpecBuilder, objects: ObjectLookup) -> None:
    clusters = objects.of_kind(CLUSTER_KIND)
    if len(clusters) > 1:
        raise ClusterConfigError(f"expected exactly one {CLUSTER_KIND}, found {len(clusters)}")
    if clusters and isinstance(clusters[0], ClusterConfig):
        builder.cluster = clusters[0]


def _process_gitops(builder: SpecBuilder, objects: ObjectLookup) -> None:
    if builder.cluster is None or builder.cluster.spec.gitops_ref is None:
        return
    ref = builder.cluster.spec.gitops_ref
    gitops = objects.get(ref)
    if not isinstance(gitops, GitOpsConfig):
        raise ClusterConfigError(f"gitOpsRef {ref.kind}/{ref.name} does not match any document")
    builder.gitops_config = gitops


def _process_provider(builder: SpecBuilder, objects: ObjectLookup) -> None:
    if builder.cluster is None:
        return
    ref = builder.cluster.spec.datacenter_ref
    if ref is not None:
        datacenter = objects.get(ref)
        if isinstance(datacenter, ProviderObject):
            builder.datacenter_config = datacenter
    builder.machine_configs = [
        obj for obj in objects.of_kind(*MACHINE_KINDS) if isinstance(obj, ProviderObject)
    ]


def cluster_entry() -> RegistryEntry:
    return RegistryEntry(
        object_mapping={CLUSTER_KIND: ClusterConfig},
        processors=[_process_cluster],
    )


def gitops_entry() -> RegistryEntry:
    return RegistryEntry(
        object_mapping={GITOPS_CONFIG_KIND: GitOpsConfig},
        processors=[_process_gitops],
    )


def provider_entry() -> RegistryEntry:
    return RegistryEntry(
        object_mapping={kind: ProviderObject for kind in (*DATACENTER_KINDS, *MACHINE_KINDS)},
        processors=[_process_provider],
    )


def build_default_registry() -> ConfigRegistry:
    """Build the registry with every kind the CLI understands."""
    registry = ConfigRegistry()
    registry.register(cluster_entry(), gitops_entry(), provider_entry())
    return registry
