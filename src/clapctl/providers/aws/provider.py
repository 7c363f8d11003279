"""AWSCloudProvider: the CloudProvider contract backed by AWS.

CloudFormation manages the stack, S3 holds artifacts, licenses and the
stack's storage bucket, Lambda creates database users and Service Quotas
reports Lambda concurrency.

Deploy and update resolve the version token before any mutating call, so
CloudFormation never sees ``""`` or ``"latest"``.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ...deployment.models import (
    ArtifactInfo,
    DeployConfig,
    QuotaRequestResult,
    StackInfo,
    UserPayload,
)
from ...deployment.status import DeployAction
from ...deployment.version_resolver import VersionResolver, artifacts_bucket_for
from ...deployment.watcher import DeploymentWatcher, ProgressReporter, WatchResult
from ...errors import InvalidCredentialsError
from ...settings import ClapctlSettings
from .client import run_blocking
from .cloudformation import CloudFormationStackManager
from .lambda_service import LambdaService
from .quota import QuotaService
from .s3 import S3Service

logger = logging.getLogger(__name__)

PROVIDER_NAME = 'aws'


class AWSCloudProvider:
    """CloudProvider implementation for Amazon Web Services."""

    name = PROVIDER_NAME

    def __init__(
        self,
        profile: str,
        *,
        settings: ClapctlSettings | None = None,
        session: Any | None = None,
        cloudformation: CloudFormationStackManager | None = None,
        s3: S3Service | None = None,
        lambda_service: LambdaService | None = None,
        quota: QuotaService | None = None,
    ) -> None:
        self.profile = profile
        self._settings = settings or ClapctlSettings(profile=profile)
        self.region = self._settings.region

        services = (cloudformation, s3, lambda_service, quota)
        if session is None and any(service is None for service in services):
            session = boto3.Session(profile_name=profile, region_name=self.region)

        self._cloudformation = cloudformation or CloudFormationStackManager(
            session.client('cloudformation'), region=self.region,
        )
        self._s3 = s3 or S3Service(session.client('s3'))
        self._lambda = lambda_service or LambdaService(session.client('lambda'))
        self._quota = quota or QuotaService(session.client('service-quotas'))
        self._resolver = VersionResolver(self._s3)

    @classmethod
    async def create(
        cls,
        profile: str,
        settings: ClapctlSettings | None = None,
    ) -> AWSCloudProvider:
        """Build a provider after validating the profile's credentials.

        Raises:
            InvalidCredentialsError: The profile is unknown or STS rejects it.
        """
        settings = settings or ClapctlSettings.from_env()
        try:
            session = boto3.Session(profile_name=profile, region_name=settings.region)
            sts = session.client('sts')
            identity = await run_blocking(sts.get_caller_identity)
        except (BotoCoreError, ClientError) as exc:
            logger.debug('Credential check failed for profile %s', profile, exc_info=True)
            raise InvalidCredentialsError(profile) from exc

        logger.info(
            'Using AWS account %s in %s',
            identity.get('Account', ''),
            settings.region,
            extra={'operation': 'validate_credentials'},
        )
        return cls(profile, settings=settings, session=session)

    @property
    def cloudformation(self) -> CloudFormationStackManager:
        return self._cloudformation

    @property
    def is_china_region(self) -> bool:
        return self.region.startswith('cn-')

    def default_artifacts_bucket(self) -> str:
        return artifacts_bucket_for(self.region, self._settings.artifacts_bucket_prefix)

    # ── Lifecycle ────────────────────────────────────────────────

    async def deploy_service(self, stack_name: str, config: DeployConfig) -> str:
        bucket = config.artifacts_bucket or self.default_artifacts_bucket()
        version = await self._resolver.resolve(
            bucket, config.clapdb_version, config.arch, action=DeployAction.DEPLOY,
        )
        resolved = config.model_copy(
            update={'clapdb_version': version, 'artifacts_bucket': bucket},
        )
        return await self._cloudformation.create_stack(stack_name, resolved)

    async def update_service(self, stack_name: str, config: DeployConfig) -> str:
        bucket = config.artifacts_bucket or self.default_artifacts_bucket()
        version = await self._resolver.resolve(
            bucket, config.clapdb_version, config.arch, action=DeployAction.UPDATE,
        )
        changes: dict[str, Any] = {'clapdb_version': version}
        # The published template and its bucket travel together.
        if config.update_builtin_template:
            changes['artifacts_bucket'] = bucket
        resolved = config.model_copy(update=changes)
        return await self._cloudformation.update_stack(stack_name, resolved)

    async def delete_service(self, stack_name: str, with_storage: bool) -> str:
        if with_storage:
            bucket = await self._cloudformation.get_storage_bucket(stack_name)
            if bucket:
                logger.info(
                    'Deleting storage bucket: %s',
                    bucket,
                    extra={'stack_name': stack_name, 'bucket': bucket},
                )
                await self._s3.delete_bucket(bucket)

        await self._cloudformation.delete_stack(stack_name)
        return self.get_console_url(stack_name)

    async def watch_service(
        self,
        stack_name: str,
        progress: ProgressReporter,
        action: DeployAction,
    ) -> WatchResult:
        watcher = DeploymentWatcher(
            self._cloudformation,
            poll_interval=self._settings.poll_interval_seconds,
        )
        return await watcher.watch(stack_name, action, progress)

    # ── Information ──────────────────────────────────────────────

    async def list_stacks(self) -> list[StackInfo]:
        return await self._cloudformation.list_stacks()

    async def has_stack(self, stack_name: str) -> bool:
        return await self._cloudformation.has_stack(stack_name)

    async def get_stack_status(self, stack_name: str) -> str:
        return await self._cloudformation.get_stack_status(stack_name)

    def get_console_url(self, stack_id: str) -> str:
        domain = (
            'https://console.amazonaws.cn'
            if self.is_china_region
            else 'https://console.aws.amazon.com'
        )
        return (
            f'{domain}/cloudformation/home?region={self.region}'
            f'#/stacks/stackinfo?stackId={quote(stack_id, safe="")}'
        )

    # ── Endpoints ────────────────────────────────────────────────

    async def get_data_api_url(self, stack_name: str) -> str:
        return await self._cloudformation.get_data_api_url(stack_name)

    async def get_license_api_url(self, stack_name: str) -> str:
        return await self._cloudformation.get_license_api_url(stack_name)

    # ── Users / storage ──────────────────────────────────────────

    async def add_user(self, stack_name: str, user: UserPayload) -> None:
        function_name = await self._cloudformation.get_init_lambda_name(stack_name)
        await self._lambda.invoke(function_name, json.dumps(user.model_dump()))
        logger.info(
            'Added user %s',
            user.name,
            extra={'stack_name': stack_name, 'operation': 'add_user'},
        )

    async def get_storage_bucket(self, stack_name: str) -> str:
        return await self._cloudformation.get_storage_bucket(stack_name)

    async def get_service_license(self, bucket: str, key: str) -> str:
        return await self._s3.read_object(bucket, key)

    async def upgrade_service_license(self, bucket: str, key: str, content: str) -> None:
        await self._s3.put_object(bucket, key, content)

    # ── Quota ────────────────────────────────────────────────────

    async def get_compute_quota(self) -> float:
        return await self._quota.get_lambda_quota()

    async def request_compute_quota_increase(self, new_quota: float) -> QuotaRequestResult:
        current = await self._quota.get_lambda_quota()
        request_id = await self._quota.request_lambda_quota(new_quota)
        return QuotaRequestResult(
            request_id=request_id,
            requested_value=new_quota,
            current_value=current,
        )

    # ── Artifacts ────────────────────────────────────────────────

    async def get_artifact_info(
        self,
        bucket: str,
        version: str | None = None,
        arch: str | None = None,
    ) -> ArtifactInfo:
        latest_tag = await self._s3.latest_tag(bucket)
        latest_hash = await self._s3.latest_hash(bucket)
        exists = True
        if version and arch:
            exists = await self._s3.has_artifact(bucket, version, arch)
        return ArtifactInfo(latest_tag=latest_tag, latest_hash=latest_hash, exists=exists)
