"""Repository setup for a first install.

Probes the remote and takes one of three paths to a usable local checkout:

- ``PRESENT``: clone, then check out the target branch.
- ``EMPTY``: the remote has no commits and cannot be cloned, so initialize
  locally with a placeholder commit and create the branch.
- ``ABSENT``: create the remote, then initialize locally as for ``EMPTY``.

Partially created remote resources are not rolled back on failure.
"""

from __future__ import annotations

from enum import StrEnum

import structlog

from cluster_gitops.integrations.git.models import (
    CreateRepoOptions,
    RepositoryProbe,
    RepositoryStatus,
)
from cluster_gitops.integrations.git.session import GitSessionHandle
from cluster_gitops.services.gitops.context import ClusterGitContext
from cluster_gitops.services.gitops.exceptions import (
    ConfigVersionControlFailedError,
    OperationCancelledError,
)
from cluster_gitops.services.gitops.retry import CancellationToken, RetryPolicy

logger = structlog.get_logger()

REPOSITORY_DESCRIPTION = "EKS-A cluster configuration repository"
PLACEHOLDER_COMMIT_MESSAGE = "initializing repository"


class SetupState(StrEnum):
    """Progress of a repository setup run."""

    UNPROBED = "unprobed"
    REMOTE_ABSENT = "remote_absent"
    REMOTE_EMPTY = "remote_empty"
    REMOTE_PRESENT = "remote_present"
    LOCAL_READY = "local_ready"
    FAILED = "failed"


_PROBE_STATES = {
    RepositoryStatus.ABSENT: SetupState.REMOTE_ABSENT,
    RepositoryStatus.EMPTY: SetupState.REMOTE_EMPTY,
    RepositoryStatus.PRESENT: SetupState.REMOTE_PRESENT,
}


class RepositorySetup:
    """Brings the local checkout to ``LOCAL_READY`` for an install."""

    def __init__(
        self,
        handle: GitSessionHandle,
        retry_policy: RetryPolicy,
        context: ClusterGitContext,
        token: CancellationToken | None = None,
    ) -> None:
        self._session = handle.session
        self._retry = retry_policy
        self._context = context
        self._token = token or CancellationToken()
        self.state = SetupState.UNPROBED
        self._log = logger.bind(repository=context.full_name, branch=context.branch)

    def run(self) -> SetupState:
        """Drive the setup to completion.

        Returns:
            ``SetupState.LOCAL_READY``.

        Raises:
            ConfigVersionControlFailedError: If any step fails.
            OperationCancelledError: If the token is cancelled.
        """
        try:
            probe = self._probe()
            self.state = _PROBE_STATES[probe.status]
            if probe.status is RepositoryStatus.PRESENT:
                self._clone(probe)
            elif probe.status is RepositoryStatus.EMPTY:
                self._log.info("remote_repository_empty_initializing_locally")
                self._initialize_local()
            else:
                self._create_remote()
                self._initialize_local()
        except (OperationCancelledError, ConfigVersionControlFailedError):
            self.state = SetupState.FAILED
            raise
        except Exception as e:
            self.state = SetupState.FAILED
            raise ConfigVersionControlFailedError(e) from e

        self.state = SetupState.LOCAL_READY
        self._log.debug("repository_setup_complete")
        return self.state

    def _probe(self) -> RepositoryProbe:
        try:
            return self._retry.run(self._session.probe, token=self._token)
        except OperationCancelledError:
            raise
        except Exception as e:
            raise ConfigVersionControlFailedError(e, "describing the remote repository") from e

    def _clone(self, probe: RepositoryProbe) -> None:
        self._log.info("cloning_remote_repository", name=probe.name)
        self._retry.run(self._session.clone, token=self._token)
        self._log.debug("checking_out_branch")
        self._retry.run(
            lambda: self._session.checkout_branch(self._context.branch),
            token=self._token,
        )

    def _create_remote(self) -> None:
        opts = CreateRepoOptions(
            name=self._context.repository,
            owner=self._context.owner,
            description=REPOSITORY_DESCRIPTION,
            personal=self._context.personal,
            private=True,
        )
        self._log.info("creating_remote_repository", personal=opts.personal)
        try:
            self._retry.run(lambda: self._session.create(opts), token=self._token)
        except OperationCancelledError:
            raise
        except Exception as e:
            raise ConfigVersionControlFailedError(e, "creating the remote repository") from e
        self._log.info("remote_repository_created")

    def _initialize_local(self) -> None:
        self._session.init()
        # a branch can only be created once the repository has a commit
        self._session.commit(PLACEHOLDER_COMMIT_MESSAGE)
        self._session.checkout_branch(self._context.branch)
        self._log.debug("local_repository_initialized")
