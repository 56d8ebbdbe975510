"""Git CLI wrapper for the local repository checkout.

Wraps the git binary via subprocess. Credentials reach git through
environment-provided config (``GIT_CONFIG_COUNT``), so the token never appears
on a command line or in the checkout's ``.git/config``.
"""

from __future__ import annotations

import base64
import os
import shutil
import subprocess
from pathlib import Path

import structlog

from cluster_gitops.integrations.git.exceptions import GitBinaryNotFoundError, GitCommandError

logger = structlog.get_logger()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

GIT_TIMEOUT_SECONDS = 300
DEFAULT_REMOTE = "origin"
DEFAULT_AUTHOR_NAME = "cluster-gitops"
DEFAULT_AUTHOR_EMAIL = "cluster-gitops@users.noreply.github.com"


class GitCliClient:
    """Runs git commands against one local repository directory."""

    def __init__(
        self,
        repo_dir: Path,
        remote_url: str,
        *,
        token: str | None = None,
        binary_path: str | None = None,
        author_name: str = DEFAULT_AUTHOR_NAME,
        author_email: str = DEFAULT_AUTHOR_EMAIL,
    ) -> None:
        """Initialize the client.

        Args:
            repo_dir: Local checkout directory.
            remote_url: HTTPS URL of the remote repository.
            token: Access token used for fetch and push.
            binary_path: Optional explicit path to the git binary.
            author_name: Commit author name.
            author_email: Commit author email.

        Raises:
            GitBinaryNotFoundError: If the binary is not found.
        """
        self._binary = self._find_binary(binary_path)
        self._repo_dir = repo_dir
        self._remote_url = remote_url
        self._token = token
        self._author = (author_name, author_email)
        self._log = logger.bind(repo_dir=str(repo_dir), remote=remote_url)

    @staticmethod
    def _find_binary(binary_path: str | None) -> str:
        if binary_path:
            path = Path(binary_path)
            if not path.exists():
                raise GitBinaryNotFoundError()
            return str(path.resolve())

        found = shutil.which("git")
        if not found:
            raise GitBinaryNotFoundError()
        return found

    @property
    def repo_dir(self) -> Path:
        """Local checkout directory."""
        return self._repo_dir

    def _auth_env(self) -> dict[str, str]:
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        if self._token:
            credentials = base64.b64encode(f"x-access-token:{self._token}".encode()).decode()
            env.update(
                {
                    "GIT_CONFIG_COUNT": "1",
                    "GIT_CONFIG_KEY_0": "http.extraheader",
                    "GIT_CONFIG_VALUE_0": f"AUTHORIZATION: basic {credentials}",
                }
            )
        return env

    def _mask(self, text: str) -> str:
        if self._token:
            return text.replace(self._token, "***")
        return text

    def _run(
        self,
        args: list[str],
        *,
        cwd: Path | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run a git command.

        Args:
            args: Command arguments (without the ``git`` prefix).
            cwd: Working directory, defaults to the checkout.
            check: Raise on non-zero exit.

        Raises:
            GitCommandError: On non-zero exit (when ``check``) or timeout.
        """
        self._log.debug("running_git_command", args=args)
        try:
            result = subprocess.run(
                [self._binary, *args],
                cwd=cwd or self._repo_dir,
                env=self._auth_env(),
                capture_output=True,
                text=True,
                check=False,
                timeout=GIT_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(
                message=f"git {args[0]} timed out after {GIT_TIMEOUT_SECONDS}s",
                repository=self._remote_url,
            ) from e

        if check and result.returncode != 0:
            stderr = self._mask(result.stderr.strip())
            raise GitCommandError(
                message=f"git {args[0]} failed: {stderr or f'exit code {result.returncode}'}",
                stderr=stderr,
                repository=self._remote_url,
            )
        return result

    def _ref_exists(self, ref: str) -> bool:
        result = self._run(["rev-parse", "--verify", "--quiet", ref], check=False)
        return result.returncode == 0

    # -----------------------------------------------------------------------
    # Repository lifecycle
    # -----------------------------------------------------------------------

    def init(self) -> None:
        """Initialize an empty repository with ``origin`` pointing at the remote."""
        self._repo_dir.mkdir(parents=True, exist_ok=True)
        self._run(["init"])
        remotes = self._run(["remote"]).stdout.split()
        if DEFAULT_REMOTE not in remotes:
            self._run(["remote", "add", DEFAULT_REMOTE, self._remote_url])
        self._log.info("git_repository_initialized")

    def clone(self) -> None:
        """Clone the remote into the checkout directory."""
        self._repo_dir.mkdir(parents=True, exist_ok=True)
        self._run(
            ["clone", "--origin", DEFAULT_REMOTE, self._remote_url, str(self._repo_dir)],
            cwd=self._repo_dir.parent,
        )
        self._log.info("git_repository_cloned")

    def checkout_branch(self, name: str) -> None:
        """Switch to ``name``, creating it from the remote branch or HEAD.

        When the remote already has the branch, the local branch is
        fast-forwarded to it.
        """
        remote_ref = f"refs/remotes/{DEFAULT_REMOTE}/{name}"
        tracked = self._run(
            ["for-each-ref", "--count=1", "--format=%(refname)", f"refs/remotes/{DEFAULT_REMOTE}"]
        )
        if tracked.stdout.strip():
            self._run(["fetch", DEFAULT_REMOTE])

        if self._ref_exists(f"refs/heads/{name}"):
            self._run(["checkout", name])
        elif self._ref_exists(remote_ref):
            self._run(["checkout", "-b", name, "--track", f"{DEFAULT_REMOTE}/{name}"])
        else:
            self._run(["checkout", "-b", name])
            self._log.debug("git_branch_created", branch=name)
            return

        if self._ref_exists(remote_ref):
            self._run(["merge", "--ff-only", f"{DEFAULT_REMOTE}/{name}"])

    # -----------------------------------------------------------------------
    # Changes
    # -----------------------------------------------------------------------

    def add(self, path: str) -> None:
        """Stage ``path`` (relative to the checkout)."""
        self._run(["add", "--all", "--", path])

    def remove(self, path: str) -> None:
        """Remove ``path`` from the index and the working tree."""
        self._run(["rm", "-r", "--quiet", "--", path])

    def commit(self, message: str) -> None:
        """Commit staged changes; an empty commit is allowed."""
        name, email = self._author
        self._run(
            [
                "-c",
                f"user.name={name}",
                "-c",
                f"user.email={email}",
                "commit",
                "--allow-empty",
                "-m",
                message,
            ]
        )
        self._log.debug("git_committed", message=message)

    # -----------------------------------------------------------------------
    # Remote sync
    # -----------------------------------------------------------------------

    def push(self) -> None:
        """Push the current branch, setting upstream."""
        self._run(["push", "--set-upstream", DEFAULT_REMOTE, "HEAD"])
        self._log.info("git_pushed")

    def pull(self, branch: str) -> None:
        """Fast-forward the current branch from the remote ``branch``."""
        self._run(["pull", "--ff-only", DEFAULT_REMOTE, branch])
        self._log.debug("git_pulled", branch=branch)
