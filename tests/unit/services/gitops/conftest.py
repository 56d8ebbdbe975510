"""Fixtures for GitOps service tests."""

from __future__ import annotations

import shutil
from collections import defaultdict
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from cluster_gitops.core.cluster.models import ClusterSpec, KubernetesCluster
from cluster_gitops.core.cluster.registry import build_default_registry
from cluster_gitops.integrations.filewriter import FileWriter
from cluster_gitops.integrations.git.models import (
    CreateRepoOptions,
    RepositoryProbe,
    RepositoryStatus,
)
from cluster_gitops.integrations.git.session import GitSessionHandle
from cluster_gitops.services.gitops.context import ClusterGitContext
from cluster_gitops.services.gitops.orchestrator import GitOpsOrchestrator
from cluster_gitops.services.gitops.retry import RetryPolicy


class FakeSession:
    """In-memory repository session that records every call.

    ``fail(name, *errors)`` queues exceptions raised by the next calls of
    ``name``, one per call.
    """

    def __init__(self, repo_dir: Path, status: RepositoryStatus = RepositoryStatus.PRESENT):
        self.repo_dir = repo_dir
        self.status = status
        self.calls: list[tuple[Any, ...]] = []
        self.commits: list[str] = []
        self.pushed_commits: list[str] = []
        self.created: list[CreateRepoOptions] = []
        self.remote_paths: set[str] = set()
        self._failures: dict[str, list[Exception]] = defaultdict(list)

    def fail(self, name: str, *errors: Exception) -> None:
        self._failures[name].extend(errors)

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def count(self, name: str) -> int:
        return self.names().count(name)

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if self._failures[name]:
            raise self._failures[name].pop(0)

    def probe(self) -> RepositoryProbe:
        self._record("probe")
        if self.status is RepositoryStatus.ABSENT:
            return RepositoryProbe.absent()
        return RepositoryProbe(self.status, "fleet")

    def create(self, opts: CreateRepoOptions) -> None:
        self._record("create", opts)
        self.created.append(opts)
        self.status = RepositoryStatus.EMPTY

    def clone(self) -> None:
        self._record("clone")
        (self.repo_dir / ".git").mkdir(parents=True, exist_ok=True)

    def init(self) -> None:
        self._record("init")
        (self.repo_dir / ".git").mkdir(parents=True, exist_ok=True)

    def checkout_branch(self, name: str) -> None:
        self._record("checkout_branch", name)

    def stage(self, path: str) -> None:
        self._record("stage", path)

    def remove(self, path: str) -> None:
        self._record("remove", path)
        shutil.rmtree(self.repo_dir / path)

    def commit(self, message: str) -> None:
        self._record("commit", message)
        self.commits.append(message)

    def push(self) -> None:
        self._record("push")
        self.pushed_commits = list(self.commits)
        self.status = RepositoryStatus.PRESENT

    def pull(self, branch: str) -> None:
        self._record("pull", branch)

    def path_exists(self, owner: str, repository: str, branch: str, path: str) -> bool:
        self._record("path_exists", owner, repository, branch, path)
        return path in self.remote_paths

    def close(self) -> None:
        self._record("close")


def _spec_from(yaml_text: str) -> ClusterSpec:
    return build_default_registry().parse(yaml_text)


@pytest.fixture
def spec(cluster_yaml: str) -> ClusterSpec:
    """Self-managed cluster prod1 syncing to acme/fleet under clusters."""
    return _spec_from(cluster_yaml)


@pytest.fixture
def managed_spec(cluster_yaml: str) -> ClusterSpec:
    """The same cluster managed by a separate management cluster."""
    text = cluster_yaml.replace(
        "  managementCluster:\n    name: prod1", "  managementCluster:\n    name: mgmt"
    )
    return _spec_from(text)


@pytest.fixture
def unconfigured_spec(cluster_yaml: str) -> ClusterSpec:
    """The cluster without a GitOps config."""
    cluster_doc = cluster_yaml.split("---")[0]
    gitops_ref = "  gitOpsRef:\n    kind: GitOpsConfig\n    name: prod1-gitops\n"
    text = cluster_doc.replace(gitops_ref, "")
    return _spec_from(text)


@pytest.fixture
def context(spec: ClusterSpec) -> ClusterGitContext:
    return ClusterGitContext.from_spec(spec)


@pytest.fixture
def repo_dir(temp_dir: Path) -> Path:
    return temp_dir / "prod1" / "git" / "fleet"


@pytest.fixture
def session(repo_dir: Path) -> FakeSession:
    return FakeSession(repo_dir)


@pytest.fixture
def handle(session: FakeSession, repo_dir: Path) -> GitSessionHandle:
    return GitSessionHandle(session=session, writer=FileWriter(repo_dir))


@pytest.fixture
def retry_policy() -> RetryPolicy:
    """Three attempts with no delay."""
    return RetryPolicy(max_attempts=3, delay=0)


@pytest.fixture
def toolkit() -> MagicMock:
    """Toolkit controller double."""
    return MagicMock()


@pytest.fixture
def kube_cluster() -> KubernetesCluster:
    return KubernetesCluster(name="prod1", kubeconfig_file="/tmp/prod1.kubeconfig")


@pytest.fixture
def orchestrator(
    toolkit: MagicMock, handle: GitSessionHandle, retry_policy: RetryPolicy
) -> GitOpsOrchestrator:
    return GitOpsOrchestrator(toolkit, handle, retry_policy=retry_policy)
