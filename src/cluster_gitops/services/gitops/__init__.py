"""GitOps repository synchronization and toolkit bootstrap."""

from cluster_gitops.services.gitops.context import ClusterGitContext
from cluster_gitops.services.gitops.exceptions import (
    ConfigPathConflictError,
    ConfigVersionControlFailedError,
    GitOpsError,
    GitRepositorySyncError,
    OperationCancelledError,
)
from cluster_gitops.services.gitops.orchestrator import GitOpsOrchestrator
from cluster_gitops.services.gitops.repository import RepositorySetup, SetupState
from cluster_gitops.services.gitops.retry import CancellationToken, RetryPolicy
from cluster_gitops.services.gitops.sync import GitSync
from cluster_gitops.services.gitops.templates import ManifestGenerator
from cluster_gitops.services.gitops.toolkit import ToolkitController
from cluster_gitops.services.gitops.validations import ValidationResult, run_validations

__all__ = [
    "CancellationToken",
    "ClusterGitContext",
    "ConfigPathConflictError",
    "ConfigVersionControlFailedError",
    "GitOpsError",
    "GitOpsOrchestrator",
    "GitRepositorySyncError",
    "GitSync",
    "ManifestGenerator",
    "OperationCancelledError",
    "RepositorySetup",
    "RetryPolicy",
    "SetupState",
    "ToolkitController",
    "ValidationResult",
    "run_validations",
]
