"""Flux CLI wrapper for toolkit installation and reconciliation.

Wraps the flux binary via subprocess for ``bootstrap github``, ``uninstall``
and ``reconcile``.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import structlog

from cluster_gitops.core.cluster.models import GitOpsConfig, KubernetesCluster
from cluster_gitops.integrations.flux.exceptions import (
    FluxBinaryNotFoundError,
    FluxCommandError,
    FluxError,
)

logger = structlog.get_logger()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BOOTSTRAP_TIMEOUT_SECONDS = 600
FLUX_TIMEOUT_SECONDS = 300
GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
FLUX_SYSTEM_NAME = "flux-system"


class FluxCliClient:
    """Client for the Flux CLI."""

    def __init__(self, binary_path: str | None = None, github_token: str | None = None) -> None:
        """Initialize Flux client.

        Args:
            binary_path: Optional explicit path to flux binary.
                If None, searches PATH.
            github_token: Token exported as ``GITHUB_TOKEN`` for bootstrap.

        Raises:
            FluxBinaryNotFoundError: If binary not found.
        """
        self._binary = self._find_binary(binary_path)
        self._github_token = github_token
        self._log = logger.bind(binary=self._binary)
        self._log.debug("flux_client_initialized")

    @staticmethod
    def _find_binary(binary_path: str | None) -> str:
        if binary_path:
            path = Path(binary_path)
            if not path.exists():
                raise FluxBinaryNotFoundError()
            return str(path.resolve())

        found = shutil.which("flux")
        if not found:
            raise FluxBinaryNotFoundError()

        return found

    def _run(
        self,
        args: list[str],
        *,
        timeout: int = FLUX_TIMEOUT_SECONDS,
    ) -> subprocess.CompletedProcess[str]:
        """Run a flux command.

        Args:
            args: Command arguments (without the ``flux`` prefix).
            timeout: Timeout in seconds.

        Raises:
            FluxCommandError: On non-zero exit.
            FluxError: On timeout.
        """
        env = dict(os.environ)
        if self._github_token:
            env[GITHUB_TOKEN_ENV] = self._github_token
        self._log.debug("running_flux_command", args=args)

        try:
            return subprocess.run(
                [self._binary, *args],
                capture_output=True,
                text=True,
                check=True,
                timeout=timeout,
                env=env,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.strip() if e.stderr else ""
            raise FluxCommandError(
                message=f"Flux command failed: {stderr or f'exit code {e.returncode}'}",
                stderr=e.stderr,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise FluxError(message=f"Flux command timed out after {timeout}s") from e

    @staticmethod
    def _common_args(cluster: KubernetesCluster, namespace: str) -> list[str]:
        return ["--kubeconfig", cluster.kubeconfig_file, "--namespace", namespace]

    # -----------------------------------------------------------------------
    # Toolkit lifecycle
    # -----------------------------------------------------------------------

    def bootstrap_github(self, cluster: KubernetesCluster, gitops_config: GitOpsConfig) -> None:
        """Install the toolkit and point it at the GitHub repository."""
        github = gitops_config.github
        args = [
            "bootstrap",
            "github",
            "--repository",
            github.repository,
            "--owner",
            github.owner,
            "--path",
            github.config_path_for(cluster.name),
            "--branch",
            github.branch,
            *self._common_args(cluster, github.flux_system_namespace),
        ]
        if github.personal:
            args.append("--personal")
        self._run(args, timeout=BOOTSTRAP_TIMEOUT_SECONDS)
        self._log.info(
            "flux_bootstrapped",
            cluster=cluster.name,
            repository=f"{github.owner}/{github.repository}",
        )

    def uninstall(self, cluster: KubernetesCluster, gitops_config: GitOpsConfig) -> None:
        """Remove the toolkit components and its custom resources."""
        namespace = gitops_config.github.flux_system_namespace
        self._run(["uninstall", "--silent", *self._common_args(cluster, namespace)])
        self._log.info("flux_uninstalled", cluster=cluster.name, namespace=namespace)

    def reconcile(self, cluster: KubernetesCluster, gitops_config: GitOpsConfig) -> None:
        """Reconcile the ``flux-system`` source and then its kustomization."""
        common = self._common_args(cluster, gitops_config.github.flux_system_namespace)
        self._run(["reconcile", "source", "git", FLUX_SYSTEM_NAME, *common])
        self._run(["reconcile", "kustomization", FLUX_SYSTEM_NAME, "--with-source", *common])
        self._log.debug("flux_reconciled", cluster=cluster.name)
