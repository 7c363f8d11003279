"""Deployment orchestration: configuration, versions, status and watching."""

from .lifecycle import StackLifecycleManager, StackStatusSource
from .models import (
    ArtifactInfo,
    DeployConfig,
    QuotaRequestResult,
    ResourceStatus,
    StackInfo,
    UserPayload,
)
from .status import (
    COMPLETED_STATUSES,
    FAILED_STATUSES,
    DeployAction,
    StackStatus,
    WatchState,
    classify_status,
)
from .version_resolver import ArtifactStore, VersionResolver, artifacts_bucket_for
from .watcher import DeploymentWatcher, NullProgress, ProgressReporter, WatchResult

__all__ = [
    'ArtifactInfo',
    'ArtifactStore',
    'COMPLETED_STATUSES',
    'DeployAction',
    'DeployConfig',
    'DeploymentWatcher',
    'FAILED_STATUSES',
    'NullProgress',
    'ProgressReporter',
    'QuotaRequestResult',
    'ResourceStatus',
    'StackInfo',
    'StackLifecycleManager',
    'StackStatus',
    'StackStatusSource',
    'UserPayload',
    'VersionResolver',
    'WatchResult',
    'WatchState',
    'artifacts_bucket_for',
    'classify_status',
]
