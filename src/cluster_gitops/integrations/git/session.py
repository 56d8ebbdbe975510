"""Repository session interface and its construction."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from cluster_gitops.core.cluster.models import ClusterSpec
from cluster_gitops.core.config.models import SystemConfig
from cluster_gitops.integrations.filewriter import FileWriter
from cluster_gitops.integrations.git.cli_client import GitCliClient
from cluster_gitops.integrations.git.github_client import GitHubClient
from cluster_gitops.integrations.git.github_session import GitHubRepositorySession
from cluster_gitops.integrations.git.models import CreateRepoOptions, RepositoryProbe

logger = structlog.get_logger()

GITHUB_WEB_URL = "https://github.com"
PUBLIC_API_URL = "https://api.github.com"


@runtime_checkable
class RepositorySession(Protocol):
    """Operations on a remote repository and its local checkout.

    ``probe`` reports a repository without commits as ``EMPTY`` rather than
    failing, since such a repository cannot be cloned.
    """

    def probe(self) -> RepositoryProbe: ...

    def create(self, opts: CreateRepoOptions) -> None: ...

    def clone(self) -> None: ...

    def init(self) -> None: ...

    def checkout_branch(self, name: str) -> None: ...

    def stage(self, path: str) -> None: ...

    def remove(self, path: str) -> None: ...

    def commit(self, message: str) -> None: ...

    def push(self) -> None: ...

    def pull(self, branch: str) -> None: ...

    def path_exists(self, owner: str, repository: str, branch: str, path: str) -> bool: ...

    def close(self) -> None: ...


@dataclass
class GitSessionHandle:
    """A repository session paired with a writer scoped to its checkout."""

    session: RepositorySession
    writer: FileWriter

    @property
    def repo_dir(self) -> Path:
        return self.writer.dir

    def has_local_checkout(self) -> bool:
        """Whether the checkout directory already holds a git repository."""
        return (self.writer.dir / ".git").exists()

    def close(self) -> None:
        self.session.close()


def _web_url(api_url: str) -> str:
    if api_url == PUBLIC_API_URL:
        return GITHUB_WEB_URL
    # GitHub Enterprise serves the REST API under /api/v3 on the web host
    return api_url.removesuffix("/api/v3")


def build_git_session(
    spec: ClusterSpec,
    settings: SystemConfig,
    writer: FileWriter,
) -> GitSessionHandle | None:
    """Build the session handle for a cluster.

    Args:
        spec: Parsed cluster configuration.
        settings: CLI configuration.
        writer: Writer scoped to the cluster's working directory.

    Returns:
        None when the cluster has no GitOps configuration, otherwise a
        handle whose checkout lives at ``git/<repository>`` below ``writer``.

    Raises:
        GitProviderAuthError: If the access token is missing or rejected.
        GitBinaryNotFoundError: If git is not installed.
    """
    if spec.gitops_config is None:
        logger.debug("gitops_not_configured", cluster=spec.cluster.name)
        return None

    github = spec.gitops_config.github
    token = settings.github.token()
    api = GitHubClient(settings.github, token=token)
    try:
        login = api.authenticated_user()
    except Exception:
        api.close()
        raise
    logger.debug("github_token_validated", login=login)

    repo_writer = writer.with_dir(f"git/{github.repository}")
    repo_writer.clean_up_temp()

    remote_url = f"{_web_url(settings.github.api_url)}/{github.owner}/{github.repository}.git"
    git = GitCliClient(
        repo_writer.dir,
        remote_url,
        token=token,
        binary_path=settings.binaries.git,
    )
    session = GitHubRepositorySession(api, git, github.owner, github.repository)
    return GitSessionHandle(session=session, writer=repo_writer)
