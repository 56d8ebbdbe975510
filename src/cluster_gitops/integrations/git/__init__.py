"""Git repository integration.

A ``RepositorySession`` covers the remote hosting provider and the local
checkout; ``build_git_session`` wires the GitHub implementation.
"""

from cluster_gitops.integrations.git.exceptions import (
    GitBinaryNotFoundError,
    GitCommandError,
    GitError,
    GitProviderAuthError,
    GitProviderConnectionError,
    GitProviderError,
)
from cluster_gitops.integrations.git.models import (
    CreateRepoOptions,
    RepositoryProbe,
    RepositoryStatus,
)
from cluster_gitops.integrations.git.session import (
    GitSessionHandle,
    RepositorySession,
    build_git_session,
)

__all__ = [
    "CreateRepoOptions",
    "GitBinaryNotFoundError",
    "GitCommandError",
    "GitError",
    "GitProviderAuthError",
    "GitProviderConnectionError",
    "GitProviderError",
    "GitSessionHandle",
    "RepositoryProbe",
    "RepositorySession",
    "RepositoryStatus",
    "build_git_session",
]
