"""Git and hosting provider exceptions."""

from __future__ import annotations


class GitError(Exception):
    """Base exception for git operations.

    Attributes:
        message: Human-readable error message.
        repository: Repository the operation targeted, when known.
    """

    def __init__(self, message: str, repository: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.repository = repository

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.repository:
            return f"{self.message} [{self.repository}]"
        return self.message


class GitBinaryNotFoundError(GitError):
    """Raised when the git binary is not found in PATH."""

    def __init__(self) -> None:
        super().__init__(
            message="git binary not found in PATH. Install from: https://git-scm.com/downloads",
        )


class GitCommandError(GitError):
    """Raised when a git command exits non-zero or times out."""

    def __init__(
        self,
        message: str,
        stderr: str | None = None,
        repository: str | None = None,
    ) -> None:
        super().__init__(message=message, repository=repository)
        self.stderr = stderr


class GitProviderError(GitError):
    """Raised when the hosting provider API rejects a request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        repository: str | None = None,
    ) -> None:
        super().__init__(message=message, repository=repository)
        self.status_code = status_code

    def __str__(self) -> str:
        """Return string representation of the error."""
        base = super().__str__()
        if self.status_code:
            return f"{base} (status: {self.status_code})"
        return base


class GitProviderConnectionError(GitProviderError):
    """Raised when the hosting provider cannot be reached."""


class GitProviderAuthError(GitProviderError):
    """Raised when the access token is missing, invalid or lacks permissions."""

    def __init__(
        self,
        message: str = "GitHub authentication failed",
        status_code: int | None = 401,
    ) -> None:
        super().__init__(message=message, status_code=status_code)
