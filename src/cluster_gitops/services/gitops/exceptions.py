"""GitOps workflow exceptions."""

from __future__ import annotations


class GitOpsError(Exception):
    """Base exception for GitOps operations.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class ConfigVersionControlFailedError(GitOpsError):
    """Raised when staging, committing, pushing or repository setup fails.

    Attributes:
        error: The underlying cause.
        step: The git step that failed, e.g. "pushing clusters to git".
    """

    def __init__(self, error: BaseException, step: str | None = None) -> None:
        detail = f"error when {step}: {error}" if step else str(error)
        super().__init__(
            f"Encountered an error when attempting to version control cluster config: {detail}"
        )
        self.error = error
        self.step = step


class ConfigPathConflictError(GitOpsError):
    """Raised when a cluster configuration already exists at the target path."""

    def __init__(self, path: str, *, remote: bool = False) -> None:
        if remote:
            message = f"flux path {path} already exists in remote repository"
        else:
            message = f"a cluster configuration file already exists at path {path}"
        super().__init__(message)
        self.path = path
        self.remote = remote


class GitRepositorySyncError(GitOpsError):
    """Raised when an existing repository is required but cannot be checked out."""

    def __init__(self, repository: str, reason: str) -> None:
        super().__init__(f"cannot sync repository {repository}: {reason}")
        self.repository = repository
        self.reason = reason


class OperationCancelledError(GitOpsError):
    """Raised when the invocation's cancellation token fires."""

    def __init__(self, message: str = "operation cancelled") -> None:
        super().__init__(message)
