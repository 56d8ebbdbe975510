"""Checkout, stage, commit and push for update and cleanup flows."""

from __future__ import annotations

import structlog

from cluster_gitops.integrations.git.models import RepositoryStatus
from cluster_gitops.integrations.git.session import GitSessionHandle
from cluster_gitops.services.gitops.context import ClusterGitContext
from cluster_gitops.services.gitops.exceptions import (
    ConfigVersionControlFailedError,
    GitRepositorySyncError,
    OperationCancelledError,
)
from cluster_gitops.services.gitops.retry import CancellationToken, RetryPolicy

logger = structlog.get_logger()

INITIAL_COMMIT_MESSAGE = "Initial commit of cluster configuration; generated by EKS-A CLI"
UPDATE_COMMIT_MESSAGE = "Update commit of cluster configuration; generated by EKS-A CLI"
DELETE_COMMIT_MESSAGE = "Delete commit of cluster configuration; generated by EKS-A CLI"


class GitSync:
    """Commits changes under the checkout and pushes them to the remote.

    Staging and commit failures are wrapped in
    ``ConfigVersionControlFailedError`` and stop the transaction before any
    push. Pushes are retried under the policy.
    """

    def __init__(
        self,
        handle: GitSessionHandle,
        retry_policy: RetryPolicy,
        context: ClusterGitContext,
        token: CancellationToken | None = None,
    ) -> None:
        self._handle = handle
        self._session = handle.session
        self._retry = retry_policy
        self._context = context
        self._token = token or CancellationToken()
        self._log = logger.bind(repository=context.full_name, branch=context.branch)

    def ensure_local_checkout(self) -> None:
        """Make sure the checkout exists and is on the target branch.

        Without a local checkout the remote must already hold the repository,
        since update and cleanup only follow an install.

        Raises:
            GitRepositorySyncError: If the remote is missing or empty, or the
                checkout cannot be prepared.
        """
        repository = self._context.full_name
        branch = self._context.branch
        try:
            if self._handle.has_local_checkout():
                self._session.checkout_branch(branch)
                return

            probe = self._retry.run(self._session.probe, token=self._token)
            if probe.status is not RepositoryStatus.PRESENT:
                raise GitRepositorySyncError(
                    repository, f"remote repository is {probe.status.value}"
                )
            self._log.info("cloning_remote_repository", name=probe.name)
            self._retry.run(self._session.clone, token=self._token)
            self._retry.run(lambda: self._session.checkout_branch(branch), token=self._token)
        except (OperationCancelledError, GitRepositorySyncError):
            raise
        except Exception as e:
            raise GitRepositorySyncError(repository, str(e)) from e

    def stage(self, path: str) -> None:
        try:
            self._session.stage(path)
        except Exception as e:
            raise ConfigVersionControlFailedError(e, f"adding {path} to git") from e

    def remove(self, path: str) -> None:
        try:
            self._session.remove(path)
        except Exception as e:
            raise ConfigVersionControlFailedError(e, f"removing {path} in git") from e

    def commit_and_push(self, path: str, message: str) -> None:
        """Commit the staged changes and push them.

        Raises:
            ConfigVersionControlFailedError: If the commit fails (no push is
                attempted) or every push attempt fails.
            OperationCancelledError: If the token is cancelled while pushing.
        """
        try:
            self._session.commit(message)
        except Exception as e:
            raise ConfigVersionControlFailedError(e, f"committing {path} to git") from e

        try:
            self._retry.run(self._session.push, token=self._token)
        except OperationCancelledError:
            raise
        except Exception as e:
            raise ConfigVersionControlFailedError(e, f"pushing {path} to git") from e
        self._log.info("pushed_cluster_config", path=path)
