"""Shared pytest fixtures for cluster_gitops tests."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from cluster_gitops.cli.main import app

CLUSTER_YAML = """\
apiVersion: anywhere.eks.amazonaws.com/v1alpha1
kind: Cluster
metadata:
  name: prod1
spec:
  kubernetesVersion: "1.30"
  datacenterRef:
    kind: CloudStackDatacenterConfig
    name: prod1
  gitOpsRef:
    kind: GitOpsConfig
    name: prod1-gitops
  managementCluster:
    name: prod1
---
apiVersion: anywhere.eks.amazonaws.com/v1alpha1
kind: CloudStackDatacenterConfig
metadata:
  name: prod1
spec:
  availabilityZones:
  - name: zone1
---
apiVersion: anywhere.eks.amazonaws.com/v1alpha1
kind: CloudStackMachineConfig
metadata:
  name: prod1-cp
spec:
  computeOffering:
    name: large
---
apiVersion: anywhere.eks.amazonaws.com/v1alpha1
kind: GitOpsConfig
metadata:
  name: prod1-gitops
spec:
  flux:
    github:
      owner: acme
      repository: fleet
      branch: main
      clusterConfigPath: clusters
"""


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def cluster_yaml() -> str:
    """A self-managed cluster with a GitOps config for acme/fleet."""
    return CLUSTER_YAML


@pytest.fixture
def cluster_file(temp_dir: Path, cluster_yaml: str) -> Path:
    """Write the cluster configuration to a temporary file."""
    path = temp_dir / "prod1.yaml"
    path.write_text(cluster_yaml)
    return path


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("CLUSTER_GITOPS_") or key == "GITHUB_TOKEN":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app
