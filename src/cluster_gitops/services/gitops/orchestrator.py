"""GitOps orchestrator.

Top-level entry for the GitOps side of the cluster lifecycle: commits the
cluster configuration and toolkit manifests to the repository, bootstraps
the toolkit and keeps the repository in step with later updates.

Every operation is a logged no-op when the cluster has no GitOps
configuration.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

import structlog

from cluster_gitops.core.cluster.marshaller import marshal_cluster_spec
from cluster_gitops.core.cluster.models import ClusterSpec, GitOpsConfig, KubernetesCluster
from cluster_gitops.integrations.filewriter import FileWriter, FileWriterError
from cluster_gitops.integrations.git.session import GitSessionHandle
from cluster_gitops.services.gitops.context import ClusterGitContext
from cluster_gitops.services.gitops.exceptions import (
    ConfigPathConflictError,
    ConfigVersionControlFailedError,
    GitOpsError,
    OperationCancelledError,
)
from cluster_gitops.services.gitops.repository import RepositorySetup
from cluster_gitops.services.gitops.retry import CancellationToken, RetryPolicy
from cluster_gitops.services.gitops.sync import (
    DELETE_COMMIT_MESSAGE,
    INITIAL_COMMIT_MESSAGE,
    UPDATE_COMMIT_MESSAGE,
    GitSync,
)
from cluster_gitops.services.gitops.templates import (
    EKSA_KUSTOMIZATION,
    FLUX_KUSTOMIZATION,
    FLUX_PATCHES,
    FLUX_SYNC,
    ManifestGenerator,
    TemplateRenderError,
    flux_patch_values,
)
from cluster_gitops.services.gitops.toolkit import ToolkitController
from cluster_gitops.services.gitops.validations import ValidationResult

logger = structlog.get_logger()

T = TypeVar("T")

CLUSTER_CONFIG_FILE_NAME = "eksa-cluster.yaml"
KUSTOMIZE_FILE_NAME = "kustomization.yaml"
FLUX_SYNC_FILE_NAME = "gotk-sync.yaml"
FLUX_PATCH_FILE_NAME = "gotk-patches.yaml"

FLUX_PATH_VALIDATION = "Flux path"
FLUX_PATH_REMEDIATION = "Please provide a different path or different cluster name"


class GitOpsOrchestrator:
    """Facade over repository setup, sync and the toolkit controller.

    Example:
        ```python
        orchestrator = GitOpsOrchestrator(toolkit, handle, retry_policy=policy)
        orchestrator.install(cluster, spec, token=token)
        ```
    """

    def __init__(
        self,
        toolkit: ToolkitController,
        handle: GitSessionHandle | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
        generator: ManifestGenerator | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            toolkit: Toolkit controller for the cluster.
            handle: Repository session and checkout writer, or None when GitOps
                is not configured.
            retry_policy: Policy for remote operations.
            generator: Manifest template renderer.
        """
        self._toolkit = toolkit
        self._handle = handle
        self._retry = retry_policy or RetryPolicy()
        self._generator = generator or ManifestGenerator()

    @property
    def is_configured(self) -> bool:
        return self._handle is not None

    def _configured(
        self, spec: ClusterSpec, operation: str
    ) -> tuple[GitSessionHandle, GitOpsConfig] | None:
        if self._handle is None or spec.gitops_config is None:
            logger.info("gitops_not_configured_skipping", operation=operation)
            return None
        return self._handle, spec.gitops_config

    def _run(self, operation: Callable[[], T], token: CancellationToken | None) -> T:
        return self._retry.run(operation, token=token)

    # =========================================================================
    # Install
    # =========================================================================

    def install(
        self,
        cluster: KubernetesCluster,
        spec: ClusterSpec,
        token: CancellationToken | None = None,
    ) -> None:
        """Commit the cluster configuration and bootstrap the toolkit.

        Raises:
            ConfigVersionControlFailedError: If a git step fails.
            ConfigPathConflictError: If a self-managed cluster's configuration
                already exists in the checkout.
            Exception: The toolkit's bootstrap error, after a best-effort
                uninstall.
        """
        configured = self._configured(spec, "install")
        if configured is None:
            return
        handle, gitops_config = configured
        context = ClusterGitContext.from_spec(spec)
        log = logger.bind(repository=context.full_name, cluster=context.cluster_name)
        log.info("adding_cluster_configuration_to_git")

        RepositorySetup(handle, self._retry, context, token).run()
        if context.self_managed and (handle.repo_dir / context.config_path).exists():
            raise ConfigPathConflictError(context.config_path)

        self._write_eksa_system_files(handle, spec, context)
        if context.self_managed:
            self._write_flux_system_files(handle, spec, context)
        else:
            log.debug("skipping_flux_system_files")

        sync = GitSync(handle, self._retry, context, token)
        sync.stage(context.stage_root)
        sync.commit_and_push(context.stage_root, INITIAL_COMMIT_MESSAGE)

        if not cluster.existing_management:
            self._bootstrap(cluster, gitops_config, token)
        else:
            log.info("gitops_bootstrap_skipped", reason="existing management cluster")

        self._pull_after_bootstrap(handle, context, token)

    def _bootstrap(
        self,
        cluster: KubernetesCluster,
        gitops_config: GitOpsConfig,
        token: CancellationToken | None,
    ) -> None:
        try:
            self._run(lambda: self._toolkit.bootstrap(cluster, gitops_config), token)
        except OperationCancelledError:
            raise
        except Exception:
            try:
                self._run(lambda: self._toolkit.uninstall(cluster, gitops_config), token)
            except Exception as uninstall_err:
                logger.warning(
                    "toolkit_uninstall_failed",
                    cluster=cluster.name,
                    error=str(uninstall_err),
                )
            raise
        logger.info("toolkit_bootstrapped", cluster=cluster.name)

    def _pull_after_bootstrap(
        self,
        handle: GitSessionHandle,
        context: ClusterGitContext,
        token: CancellationToken | None,
    ) -> None:
        session = handle.session
        try:
            self._run(lambda: session.pull(context.branch), token)
        except OperationCancelledError:
            raise
        except Exception as e:
            # the install already succeeded; the checkout may lag the remote
            logger.error(
                "post_bootstrap_pull_failed",
                repository=context.full_name,
                branch=context.branch,
                error=str(e),
                hint="run git pull in the local repository",
            )

    # =========================================================================
    # Manifests
    # =========================================================================

    @staticmethod
    def _writer_for(handle: GitSessionHandle, sub_dir: str) -> FileWriter:
        writer = handle.writer.with_dir(sub_dir)
        writer.clean_up_temp()
        return writer

    def _write_eksa_system_files(
        self, handle: GitSessionHandle, spec: ClusterSpec, context: ClusterGitContext
    ) -> None:
        try:
            writer = self._writer_for(handle, context.eksa_system_dir)
            writer.write(CLUSTER_CONFIG_FILE_NAME, marshal_cluster_spec(spec))
            writer.write(
                KUSTOMIZE_FILE_NAME,
                self._generator.render(
                    EKSA_KUSTOMIZATION, {"config_file_name": CLUSTER_CONFIG_FILE_NAME}
                ),
            )
        except (FileWriterError, TemplateRenderError) as e:
            raise ConfigVersionControlFailedError(e, "writing eksa-system manifests") from e

    def _write_flux_system_files(
        self, handle: GitSessionHandle, spec: ClusterSpec, context: ClusterGitContext
    ) -> None:
        try:
            writer = self._writer_for(handle, context.flux_system_dir)
            writer.write(
                KUSTOMIZE_FILE_NAME,
                self._generator.render(FLUX_KUSTOMIZATION, {"flux_namespace": context.namespace}),
            )
            writer.write(FLUX_SYNC_FILE_NAME, self._generator.render(FLUX_SYNC))
            writer.write(
                FLUX_PATCH_FILE_NAME,
                self._generator.render(
                    FLUX_PATCHES, flux_patch_values(context.namespace, spec.flux_bundle)
                ),
            )
        except (FileWriterError, TemplateRenderError) as e:
            raise ConfigVersionControlFailedError(e, "writing flux-system manifests") from e

    # =========================================================================
    # Update / Cleanup
    # =========================================================================

    def update(self, spec: ClusterSpec, token: CancellationToken | None = None) -> None:
        """Rewrite the cluster configuration and push it as an update commit.

        Only git is touched, so unlike install no cluster handle is taken; Flux
        picks the commit up on its next reconciliation.
        """
        configured = self._configured(spec, "update")
        if configured is None:
            return
        handle, _ = configured
        context = ClusterGitContext.from_spec(spec)
        sync = GitSync(handle, self._retry, context, token)
        sync.ensure_local_checkout()

        self._write_eksa_system_files(handle, spec, context)
        sync.stage(context.eksa_system_dir)
        sync.commit_and_push(context.eksa_system_dir, UPDATE_COMMIT_MESSAGE)
        logger.info("cluster_configuration_updated", repository=context.full_name)

    def cleanup(self, spec: ClusterSpec, token: CancellationToken | None = None) -> None:
        """Remove the cluster's files from the repository.

        A managed cluster loses its own directory; a self-managed cluster
        loses the whole configured path. Nothing is committed when the path
        is already gone.
        """
        configured = self._configured(spec, "cleanup")
        if configured is None:
            return
        handle, _ = configured
        context = ClusterGitContext.from_spec(spec)
        sync = GitSync(handle, self._retry, context, token)
        sync.ensure_local_checkout()

        path = context.config_path if context.self_managed else context.cluster_dir
        if not (handle.repo_dir / path).exists():
            logger.info("cluster_dir_absent_skipping_cleanup", path=path)
            return

        sync.remove(path)
        sync.commit_and_push(path, DELETE_COMMIT_MESSAGE)
        logger.info("cluster_configuration_removed", repository=context.full_name, path=path)

    # =========================================================================
    # Toolkit
    # =========================================================================

    def pause(
        self,
        cluster: KubernetesCluster,
        spec: ClusterSpec,
        token: CancellationToken | None = None,
    ) -> None:
        """Suspend reconciliation of every Kustomization."""
        configured = self._configured(spec, "pause")
        if configured is None:
            return
        _, gitops_config = configured
        namespace = gitops_config.github.flux_system_namespace
        logger.debug("pausing_reconciliation", namespace=namespace)
        self._run(lambda: self._toolkit.pause_reconciliation(cluster, gitops_config), token)

    def resume(
        self,
        cluster: KubernetesCluster,
        spec: ClusterSpec,
        token: CancellationToken | None = None,
    ) -> None:
        """Resume reconciliation of every Kustomization."""
        configured = self._configured(spec, "resume")
        if configured is None:
            return
        _, gitops_config = configured
        namespace = gitops_config.github.flux_system_namespace
        logger.debug("resuming_reconciliation", namespace=namespace)
        self._run(lambda: self._toolkit.resume_reconciliation(cluster, gitops_config), token)

    def force_reconcile(
        self,
        cluster: KubernetesCluster,
        spec: ClusterSpec,
        token: CancellationToken | None = None,
    ) -> None:
        """Ask the toolkit to sync the git source now. Not retried."""
        configured = self._configured(spec, "force_reconcile")
        if configured is None:
            return
        _, gitops_config = configured
        if token is not None:
            token.raise_if_cancelled()
        self._toolkit.force_reconcile(cluster, gitops_config.github.flux_system_namespace)

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(
        self, spec: ClusterSpec, token: CancellationToken | None = None
    ) -> list[ValidationResult]:
        """Check that a self-managed cluster's path is free in the remote repository."""
        configured = self._configured(spec, "validate")
        if configured is None:
            return []
        handle, _ = configured
        context = ClusterGitContext.from_spec(spec)
        if not context.self_managed:
            return []
        if token is not None:
            token.raise_if_cancelled()
        return [
            ValidationResult(
                name=FLUX_PATH_VALIDATION,
                remediation=FLUX_PATH_REMEDIATION,
                error=self._remote_path_error(handle, context),
            )
        ]

    @staticmethod
    def _remote_path_error(
        handle: GitSessionHandle, context: ClusterGitContext
    ) -> GitOpsError | None:
        try:
            exists = handle.session.path_exists(
                context.owner, context.repository, context.branch, context.config_path
            )
        except Exception as e:
            return GitOpsError(f"failed validating remote flux config path: {e}")
        if exists:
            return ConfigPathConflictError(context.config_path, remote=True)
        return None
