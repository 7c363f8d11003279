"""Stack lifecycle contract consumed by providers and the watcher."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import DeployConfig, StackInfo

STORAGE_BUCKET_RESOURCE = 'StorageBucket'
INIT_LAMBDA_OUTPUT = 'ClapDBInitLambda'
DATA_API_URL_OUTPUT = 'ClapDataApiURL'
LICENSE_API_URL_OUTPUT = 'ClapLicenseApiURL'


@runtime_checkable
class StackStatusSource(Protocol):
    """What the watcher needs from a lifecycle manager."""

    async def get_stack_status(self, stack_name: str) -> str: ...
    async def get_resource_statuses(self, stack_name: str) -> dict[str, str]: ...


@runtime_checkable
class StackLifecycleManager(StackStatusSource, Protocol):
    """Create, update, delete and inspect managed stacks."""

    async def create_stack(self, stack_name: str, config: DeployConfig) -> str: ...
    async def update_stack(self, stack_name: str, config: DeployConfig) -> str: ...
    async def delete_stack(self, stack_name: str) -> None: ...
    async def has_stack(self, stack_name: str) -> bool: ...
    async def list_stacks(self) -> list[StackInfo]: ...
    async def get_stack_parameters(self, stack_name: str) -> dict[str, str]: ...
    async def get_outputs(self, stack_name: str) -> dict[str, str]: ...
    async def get_resources(self, stack_name: str) -> dict[str, str]: ...
