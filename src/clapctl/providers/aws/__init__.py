"""AWS implementation of the cloud provider contract."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...settings import ClapctlSettings
from .cloudformation import CloudFormationStackManager
from .lambda_service import LambdaService
from .provider import PROVIDER_NAME, AWSCloudProvider
from .quota import QuotaService
from .s3 import S3Service

if TYPE_CHECKING:
    from ..registry import ProviderRegistry


def register(registry: ProviderRegistry, settings: ClapctlSettings | None = None) -> None:
    """Register the AWS factory under ``aws``."""

    async def _factory(profile: str) -> AWSCloudProvider:
        return await AWSCloudProvider.create(profile, settings)

    registry.register(PROVIDER_NAME, _factory)


__all__ = [
    'AWSCloudProvider',
    'CloudFormationStackManager',
    'LambdaService',
    'QuotaService',
    'S3Service',
    'register',
]
