"""GitHub REST API client.

Provides the hosting-side half of a repository session: describing,
creating and inspecting repositories.
"""

from __future__ import annotations

from typing import Any, cast

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cluster_gitops.core.config.models import GitHubConfig
from cluster_gitops.integrations.git.exceptions import (
    GitProviderAuthError,
    GitProviderConnectionError,
    GitProviderError,
)
from cluster_gitops.integrations.git.models import CreateRepoOptions, RepositoryProbe

logger = structlog.get_logger()

API_VERSION_HEADER = "2022-11-28"
CONNECT_RETRIES = 3


class GitHubClient:
    """Thin client over the GitHub REST API.

    Example:
        ```python
        config = GitHubConfig()
        with GitHubClient(config, token=config.token()) as client:
            probe = client.get_repository("acme", "fleet")
        ```
    """

    def __init__(self, config: GitHubConfig, token: str | None) -> None:
        """Initialize the client.

        Args:
            config: GitHub settings.
            token: Personal access token.
        """
        self.base_url = config.api_url
        self.timeout = config.timeout
        self._token = token
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION_HEADER,
            }
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
            )
        return self._client

    def __enter__(self) -> GitHubClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - close client."""
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug("GitHub client closed")

    # -----------------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make an HTTP request, retrying connection failures.

        Raises:
            GitProviderConnectionError: If GitHub cannot be reached.
        """

        @retry(
            retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
            stop=stop_after_attempt(CONNECT_RETRIES),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )
        def _send() -> httpx.Response:
            return self.client.request(method, path, **kwargs)

        try:
            return _send()
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error("GitHub connection failed", error=str(e), path=path)
            raise GitProviderConnectionError(f"Failed to connect to GitHub: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, repository: str | None = None) -> None:
        if response.status_code in (401, 403):
            raise GitProviderAuthError(
                message=f"GitHub rejected the access token: {response.text}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise GitProviderError(
                f"GitHub request failed: {response.text}",
                status_code=response.status_code,
                repository=repository,
            )

    # -----------------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------------

    def authenticated_user(self) -> str:
        """Return the login of the token's owner.

        Raises:
            GitProviderAuthError: If no token is configured or GitHub rejects it.
        """
        if not self._token:
            raise GitProviderAuthError("GitHub access token is not set", status_code=None)
        response = self._request("GET", "/user")
        self._raise_for_status(response)
        return cast(str, response.json()["login"])

    def get_repository(self, owner: str, name: str) -> RepositoryProbe:
        """Describe a repository.

        Returns:
            ``absent`` on 404, ``empty`` if the repository has no commits,
            ``present`` otherwise.
        """
        full_name = f"{owner}/{name}"
        response = self._request("GET", f"/repos/{full_name}")
        if response.status_code == 404:
            logger.debug("github_repository_not_found", repository=full_name)
            return RepositoryProbe.absent()
        self._raise_for_status(response, full_name)
        repo_name = cast(str, response.json().get("name", name))

        # GitHub answers 409 Conflict on the commits endpoint of an empty repository
        commits = self._request("GET", f"/repos/{full_name}/commits", params={"per_page": 1})
        if commits.status_code == 409:
            return RepositoryProbe.empty(repo_name)
        self._raise_for_status(commits, full_name)
        return RepositoryProbe.present(repo_name)

    def create_repository(self, opts: CreateRepoOptions) -> str:
        """Create a repository under a user or an organization.

        Returns:
            The created repository's full name.
        """
        path = "/user/repos" if opts.personal else f"/orgs/{opts.owner}/repos"
        body = {
            "name": opts.name,
            "description": opts.description,
            "private": opts.private,
        }
        response = self._request("POST", path, json=body)
        self._raise_for_status(response, f"{opts.owner}/{opts.name}")
        full_name = cast(str, response.json().get("full_name", f"{opts.owner}/{opts.name}"))
        logger.info("github_repository_created", repository=full_name, private=opts.private)
        return full_name

    def path_exists(self, owner: str, repository: str, branch: str, path: str) -> bool:
        """Check whether ``path`` exists on ``branch`` of the repository."""
        full_name = f"{owner}/{repository}"
        response = self._request(
            "GET",
            f"/repos/{full_name}/contents/{path.strip('/')}",
            params={"ref": branch},
        )
        if response.status_code == 404:
            return False
        self._raise_for_status(response, full_name)
        return True
