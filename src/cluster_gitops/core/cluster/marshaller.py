"""Serialize a cluster spec into the file committed to the GitOps repository."""

from __future__ import annotations

from typing import Any

import yaml
from pydantic import BaseModel

from cluster_gitops.core.cluster.models import ClusterSpec

DOCUMENT_SEPARATOR = "\n---\n"


def _to_document(obj: BaseModel) -> dict[str, Any]:
    return obj.model_dump(mode="json", by_alias=True, exclude_none=True)


def marshal_cluster_spec(spec: ClusterSpec) -> bytes:
    """Render the cluster and its companion documents as multi-document YAML.

    Document order is cluster, datacenter config, machine configs, then the
    GitOps config.
    """
    objects: list[BaseModel] = [spec.cluster]
    if spec.datacenter_config is not None:
        objects.append(spec.datacenter_config)
    objects.extend(spec.machine_configs)
    if spec.gitops_config is not None:
        objects.append(spec.gitops_config)

    rendered = [
        yaml.safe_dump(_to_document(obj), default_flow_style=False, sort_keys=False).rstrip()
        for obj in objects
    ]
    return (DOCUMENT_SEPARATOR.join(rendered) + "\n").encode()
