"""Unit tests for RepositorySetup."""

from __future__ import annotations

from typing import Any

import pytest

from cluster_gitops.integrations.git.exceptions import GitCommandError, GitProviderError
from cluster_gitops.integrations.git.models import RepositoryStatus
from cluster_gitops.integrations.git.session import GitSessionHandle
from cluster_gitops.services.gitops.context import ClusterGitContext
from cluster_gitops.services.gitops.exceptions import (
    ConfigVersionControlFailedError,
    OperationCancelledError,
)
from cluster_gitops.services.gitops.repository import (
    PLACEHOLDER_COMMIT_MESSAGE,
    RepositorySetup,
    SetupState,
)
from cluster_gitops.services.gitops.retry import CancellationToken, RetryPolicy


@pytest.fixture
def setup(
    handle: GitSessionHandle, retry_policy: RetryPolicy, context: ClusterGitContext
) -> RepositorySetup:
    return RepositorySetup(handle, retry_policy, context)


@pytest.mark.unit
@pytest.mark.gitops
class TestRepositorySetup:
    """Tests for bringing the checkout to a usable state."""

    def test_initial_state(self, setup: RepositorySetup) -> None:
        """Setup starts unprobed."""
        assert setup.state is SetupState.UNPROBED

    def test_present_remote(self, setup: RepositorySetup, session: Any) -> None:
        """A present remote is cloned and the branch checked out."""
        assert setup.run() is SetupState.LOCAL_READY

        assert session.names() == ["probe", "clone", "checkout_branch"]
        assert session.calls[-1] == ("checkout_branch", "main")

    def test_empty_remote(self, setup: RepositorySetup, session: Any) -> None:
        """An empty remote is initialized locally with a placeholder commit."""
        session.status = RepositoryStatus.EMPTY

        setup.run()

        assert session.names() == ["probe", "init", "commit", "checkout_branch"]
        assert session.commits == [PLACEHOLDER_COMMIT_MESSAGE]

    def test_absent_remote(self, setup: RepositorySetup, session: Any) -> None:
        """An absent remote is created once and then initialized locally."""
        session.status = RepositoryStatus.ABSENT

        setup.run()

        assert session.names() == ["probe", "create", "init", "commit", "checkout_branch"]
        opts = session.created[0]
        assert (opts.owner, opts.name, opts.private, opts.personal) == (
            "acme",
            "fleet",
            True,
            False,
        )

    def test_probe_retried(self, setup: RepositorySetup, session: Any) -> None:
        """A transient probe failure is retried."""
        session.fail("probe", GitProviderError("bad gateway", status_code=502))

        setup.run()

        assert session.count("probe") == 2

    def test_probe_exhausted(self, setup: RepositorySetup, session: Any) -> None:
        """Failing every probe marks the setup failed."""
        error = GitProviderError("bad gateway", status_code=502)
        session.fail("probe", error, error, error)

        with pytest.raises(ConfigVersionControlFailedError) as exc_info:
            setup.run()

        assert exc_info.value.step == "describing the remote repository"
        assert setup.state is SetupState.FAILED

    def test_create_failure(self, setup: RepositorySetup, session: Any) -> None:
        """Failing to create the remote stops before any local work."""
        session.status = RepositoryStatus.ABSENT
        error = GitProviderError("forbidden", status_code=422)
        session.fail("create", error, error, error)

        with pytest.raises(ConfigVersionControlFailedError) as exc_info:
            setup.run()

        assert exc_info.value.step == "creating the remote repository"
        assert session.count("create") == 3
        assert session.count("init") == 0

    def test_clone_failure_wrapped(self, setup: RepositorySetup, session: Any) -> None:
        """Exhausted clone attempts are wrapped."""
        error = GitCommandError("git clone failed")
        session.fail("clone", error, error, error)

        with pytest.raises(ConfigVersionControlFailedError) as exc_info:
            setup.run()

        assert exc_info.value.error is error
        assert setup.state is SetupState.FAILED

    def test_local_init_failure_wrapped(self, setup: RepositorySetup, session: Any) -> None:
        """Local initialization failures are not retried."""
        session.status = RepositoryStatus.EMPTY
        session.fail("init", GitCommandError("git init failed"))

        with pytest.raises(ConfigVersionControlFailedError):
            setup.run()

        assert session.count("init") == 1

    def test_cancelled(
        self,
        handle: GitSessionHandle,
        retry_policy: RetryPolicy,
        context: ClusterGitContext,
        session: Any,
    ) -> None:
        """Cancellation is not wrapped."""
        token = CancellationToken()
        token.cancel()
        setup = RepositorySetup(handle, retry_policy, context, token)

        with pytest.raises(OperationCancelledError):
            setup.run()

        assert setup.state is SetupState.FAILED
        assert session.calls == []
