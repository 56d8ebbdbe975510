"""GitHub-backed repository session.

Combines the GitHub REST client (remote side) with the git CLI client
(local checkout) behind the ``RepositorySession`` interface.
"""

from __future__ import annotations

import structlog

from cluster_gitops.integrations.git.cli_client import GitCliClient
from cluster_gitops.integrations.git.github_client import GitHubClient
from cluster_gitops.integrations.git.models import CreateRepoOptions, RepositoryProbe

logger = structlog.get_logger()


class GitHubRepositorySession:
    """Repository session bound to one GitHub repository and one checkout."""

    def __init__(
        self,
        github: GitHubClient,
        git: GitCliClient,
        owner: str,
        repository: str,
    ) -> None:
        self._github = github
        self._git = git
        self.owner = owner
        self.repository = repository

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}"

    def probe(self) -> RepositoryProbe:
        return self._github.get_repository(self.owner, self.repository)

    def create(self, opts: CreateRepoOptions) -> None:
        self._github.create_repository(opts)

    def clone(self) -> None:
        if (self._git.repo_dir / ".git").exists():
            logger.info("git_checkout_exists_skipping_clone", repository=self.full_name)
            return
        self._git.clone()

    def init(self) -> None:
        self._git.init()

    def checkout_branch(self, name: str) -> None:
        self._git.checkout_branch(name)

    def stage(self, path: str) -> None:
        self._git.add(path)

    def remove(self, path: str) -> None:
        self._git.remove(path)

    def commit(self, message: str) -> None:
        self._git.commit(message)

    def push(self) -> None:
        self._git.push()

    def pull(self, branch: str) -> None:
        self._git.pull(branch)

    def path_exists(self, owner: str, repository: str, branch: str, path: str) -> bool:
        return self._github.path_exists(owner, repository, branch, path)

    def close(self) -> None:
        """Release the HTTP connection pool."""
        self._github.close()
