"""Cloud provider protocol for dependency injection.

Every vendor implementation (AWS today) satisfies :class:`CloudProvider`.
The CLI only talks to this contract, so vendors are selected at runtime by
registry key.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .deployment.models import (
    ArtifactInfo,
    DeployConfig,
    QuotaRequestResult,
    StackInfo,
    UserPayload,
)
from .deployment.status import DeployAction
from .deployment.watcher import ProgressReporter, WatchResult


@runtime_checkable
class CloudProvider(Protocol):
    """Deployment lifecycle, discovery, storage, quota and artifact queries."""

    name: str
    profile: str
    region: str

    # ── Lifecycle ──────────────────────────────────────────────────
    async def deploy_service(self, stack_name: str, config: DeployConfig) -> str: ...
    async def update_service(self, stack_name: str, config: DeployConfig) -> str: ...
    async def delete_service(self, stack_name: str, with_storage: bool) -> str: ...
    async def watch_service(
        self,
        stack_name: str,
        progress: ProgressReporter,
        action: DeployAction,
    ) -> WatchResult: ...

    # ── Information ────────────────────────────────────────────────
    async def list_stacks(self) -> list[StackInfo]: ...
    async def has_stack(self, stack_name: str) -> bool: ...
    async def get_stack_status(self, stack_name: str) -> str: ...
    def get_console_url(self, stack_id: str) -> str: ...
    def default_artifacts_bucket(self) -> str: ...

    # ── Endpoints ──────────────────────────────────────────────────
    async def get_data_api_url(self, stack_name: str) -> str: ...
    async def get_license_api_url(self, stack_name: str) -> str: ...

    # ── Users / storage ────────────────────────────────────────────
    async def add_user(self, stack_name: str, user: UserPayload) -> None: ...
    async def get_storage_bucket(self, stack_name: str) -> str: ...
    async def get_service_license(self, bucket: str, key: str) -> str: ...
    async def upgrade_service_license(self, bucket: str, key: str, content: str) -> None: ...

    # ── Quota ──────────────────────────────────────────────────────
    async def get_compute_quota(self) -> float: ...
    async def request_compute_quota_increase(self, new_quota: float) -> QuotaRequestResult: ...

    # ── Artifacts ──────────────────────────────────────────────────
    async def get_artifact_info(
        self,
        bucket: str,
        version: str | None = None,
        arch: str | None = None,
    ) -> ArtifactInfo: ...
