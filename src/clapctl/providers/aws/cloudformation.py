"""CloudFormation-backed stack lifecycle manager.

Maps :class:`DeployConfig` onto the ClapDB template parameters:

  StackName, Arch, ArtifactsBucket, ClapDBVersion, LambdaMemorySize,
  DispatcherMemorySize, ReducerMemorySize, WorkerMemorySize,
  EnablePrivateVPC, EnablePrivateEndpoint, EnableLogging

Creates send every parameter. Updates send ``StackName`` and
``ClapDBVersion`` explicitly and every other parameter only when the caller
set the field; the rest go out as ``UsePreviousValue`` so a partial update
never resets unrelated settings.

Stack outputs are read from the engine on every call; nothing is cached on
the manager.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from botocore.exceptions import ClientError

from ...deployment.lifecycle import (
    DATA_API_URL_OUTPUT,
    INIT_LAMBDA_OUTPUT,
    LICENSE_API_URL_OUTPUT,
    STORAGE_BUCKET_RESOURCE,
)
from ...deployment.models import DeployConfig, ResourceStatus, StackInfo
from ...deployment.version_resolver import is_unresolved
from ...errors import StackNotFoundError
from .client import is_missing_stack_error, is_validation_error, run_blocking

logger = logging.getLogger(__name__)

VENDOR_TAG = {'Key': 'Vendor', 'Value': 'ClapDB'}
CREATE_CAPABILITIES = ('CAPABILITY_IAM',)
UPDATE_CAPABILITIES = ('CAPABILITY_NAMED_IAM',)
BUILTIN_TEMPLATE_FILENAME = 'template.yaml'


def _render_bool(value: bool) -> str:
    return 'true' if value else 'false'


# (template parameter, DeployConfig field, renderer)
_CONFIG_PARAMETERS: tuple[tuple[str, str, Callable[[Any], str]], ...] = (
    ('Arch', 'arch', str),
    ('ArtifactsBucket', 'artifacts_bucket', str),
    ('LambdaMemorySize', 'lambda_memory_size', str),
    ('DispatcherMemorySize', 'dispatcher_memory_size', str),
    ('ReducerMemorySize', 'reducer_memory_size', str),
    ('WorkerMemorySize', 'worker_memory_size', str),
    ('EnablePrivateVPC', 'enable_private_vpc', _render_bool),
    ('EnablePrivateEndpoint', 'enable_private_endpoint', _render_bool),
    ('EnableLogging', 'enable_logging', _render_bool),
)


def builtin_template_url(bucket: str, version: str, region: str) -> str:
    """URL of the template published next to a version's artifacts."""
    domain = 'amazonaws.com.cn' if region.startswith('cn-') else 'amazonaws.com'
    return f'https://{bucket}.s3.{region}.{domain}/{version}/{BUILTIN_TEMPLATE_FILENAME}'


def build_create_parameters(stack_name: str, config: DeployConfig) -> list[dict[str, str]]:
    params = [
        {'ParameterKey': 'StackName', 'ParameterValue': stack_name},
        {'ParameterKey': 'ClapDBVersion', 'ParameterValue': str(config.clapdb_version)},
    ]
    for key, field_name, render in _CONFIG_PARAMETERS:
        value = getattr(config, field_name)
        if value is None:
            continue
        params.append({'ParameterKey': key, 'ParameterValue': render(value)})
    return params


def build_update_parameters(
    stack_name: str,
    config: DeployConfig,
) -> list[dict[str, Any]]:
    params: list[dict[str, Any]] = [
        {'ParameterKey': 'StackName', 'ParameterValue': stack_name},
        {'ParameterKey': 'ClapDBVersion', 'ParameterValue': str(config.clapdb_version)},
    ]
    for key, field_name, render in _CONFIG_PARAMETERS:
        value = getattr(config, field_name)
        if config.is_explicit(field_name) and value is not None:
            params.append({'ParameterKey': key, 'ParameterValue': render(value)})
        else:
            params.append({'ParameterKey': key, 'UsePreviousValue': True})
    return params


class CloudFormationStackManager:
    """Create, update, delete and inspect ClapDB stacks."""

    def __init__(self, client: Any, *, region: str) -> None:
        self._client = client
        self.region = region

    # ── Mutations ────────────────────────────────────────────────

    async def create_stack(self, stack_name: str, config: DeployConfig) -> str:
        """Submit a create request and return the stack id."""
        _require_resolved(config)
        request: dict[str, Any] = {
            'StackName': stack_name,
            'Capabilities': list(CREATE_CAPABILITIES),
            'Parameters': build_create_parameters(stack_name, config),
            'Tags': [dict(VENDOR_TAG)],
        }
        if config.template_body:
            request['TemplateBody'] = config.template_body
        else:
            request['TemplateURL'] = builtin_template_url(
                str(config.artifacts_bucket), str(config.clapdb_version), self.region,
            )

        logger.info(
            'Deploy stack: %s with version: %s arch: %s',
            stack_name,
            config.clapdb_version,
            config.arch,
            extra={
                'stack_name': stack_name,
                'operation': 'create_stack',
                'version': config.clapdb_version,
            },
        )
        response = await run_blocking(self._client.create_stack, **request)
        return response.get('StackId', '')

    async def update_stack(self, stack_name: str, config: DeployConfig) -> str:
        """Submit an update request and return the stack id.

        Without a template override the currently applied template is
        fetched and resubmitted unchanged, unless the built-in template
        published with the version was requested.
        """
        _require_resolved(config)
        request: dict[str, Any] = {
            'StackName': stack_name,
            'Capabilities': list(UPDATE_CAPABILITIES),
            'Parameters': build_update_parameters(stack_name, config),
            'Tags': [dict(VENDOR_TAG)],
        }
        if config.template_body:
            request['TemplateBody'] = config.template_body
        elif config.update_builtin_template and config.artifacts_bucket:
            request['TemplateURL'] = builtin_template_url(
                config.artifacts_bucket, str(config.clapdb_version), self.region,
            )
        else:
            request['TemplateBody'] = await self.get_template_body(stack_name)

        logger.info(
            'Update stack: %s to version: %s',
            stack_name,
            config.clapdb_version,
            extra={
                'stack_name': stack_name,
                'operation': 'update_stack',
                'version': config.clapdb_version,
            },
        )
        response = await run_blocking(self._client.update_stack, **request)
        return response.get('StackId', '')

    async def delete_stack(self, stack_name: str) -> None:
        """Request deletion; completion is observed through the watcher."""
        logger.info(
            'Delete stack: %s',
            stack_name,
            extra={'stack_name': stack_name, 'operation': 'delete_stack'},
        )
        await run_blocking(self._client.delete_stack, StackName=stack_name)

    # ── Queries ──────────────────────────────────────────────────

    async def list_stacks(self) -> list[StackInfo]:
        """List stacks carrying the ClapDB vendor tag."""
        stacks = await run_blocking(self._describe_all_stacks)
        result: list[StackInfo] = []
        for stack in stacks:
            tags = stack.get('Tags') or []
            is_clapdb = any(
                tag.get('Key') == VENDOR_TAG['Key'] and tag.get('Value') == VENDOR_TAG['Value']
                for tag in tags
            )
            if not is_clapdb:
                continue
            if not (stack.get('StackName') and stack.get('StackStatus') and stack.get('CreationTime')):
                continue
            result.append(
                StackInfo(
                    name=stack['StackName'],
                    status=stack['StackStatus'],
                    created_at=stack['CreationTime'],
                )
            )
        return result

    def _describe_all_stacks(self) -> list[dict[str, Any]]:
        paginator = self._client.get_paginator('describe_stacks')
        stacks: list[dict[str, Any]] = []
        for page in paginator.paginate():
            stacks.extend(page.get('Stacks') or [])
        return stacks

    async def _describe_stack(self, stack_name: str) -> dict[str, Any]:
        try:
            response = await run_blocking(self._client.describe_stacks, StackName=stack_name)
        except ClientError as exc:
            if is_missing_stack_error(exc):
                raise StackNotFoundError(stack_name) from exc
            raise
        stacks = response.get('Stacks') or []
        if not stacks:
            raise StackNotFoundError(stack_name)
        return stacks[0]

    async def get_stack_status(self, stack_name: str) -> str:
        stack = await self._describe_stack(stack_name)
        return stack.get('StackStatus', '')

    async def get_stack_parameters(self, stack_name: str) -> dict[str, str]:
        stack = await self._describe_stack(stack_name)
        return {
            p['ParameterKey']: p.get('ParameterValue', '')
            for p in stack.get('Parameters') or []
            if p.get('ParameterKey')
        }

    async def has_stack(self, stack_name: str) -> bool:
        """Return False when the engine rejects the name as unknown.

        Only the ``ValidationError`` class maps to False; any other failure
        propagates.
        """
        try:
            response = await run_blocking(self._client.describe_stacks, StackName=stack_name)
        except ClientError as exc:
            if is_validation_error(exc):
                return False
            raise
        return len(response.get('Stacks') or []) > 0

    async def get_template_body(self, stack_name: str) -> str:
        response = await run_blocking(self._client.get_template, StackName=stack_name)
        body = response.get('TemplateBody', '')
        # boto3 decodes JSON templates into dicts.
        if isinstance(body, dict):
            return json.dumps(body)
        return body

    async def get_outputs(self, stack_name: str) -> dict[str, str]:
        response = await run_blocking(self._client.describe_stacks, StackName=stack_name)
        outputs: dict[str, str] = {}
        for stack in response.get('Stacks') or []:
            for output in stack.get('Outputs') or []:
                key = output.get('OutputKey')
                value = output.get('OutputValue')
                if key and value:
                    outputs[key] = value
        return outputs

    async def _output(self, stack_name: str, key: str) -> str:
        outputs = await self.get_outputs(stack_name)
        return outputs.get(key, '')

    async def get_data_api_url(self, stack_name: str) -> str:
        return await self._output(stack_name, DATA_API_URL_OUTPUT)

    async def get_license_api_url(self, stack_name: str) -> str:
        return await self._output(stack_name, LICENSE_API_URL_OUTPUT)

    async def get_init_lambda_name(self, stack_name: str) -> str:
        return await self._output(stack_name, INIT_LAMBDA_OUTPUT)

    async def _stack_resources(self, stack_name: str) -> list[dict[str, Any]]:
        response = await run_blocking(
            self._client.describe_stack_resources, StackName=stack_name,
        )
        return response.get('StackResources') or []

    async def describe_resources(self, stack_name: str) -> list[ResourceStatus]:
        return [
            ResourceStatus(
                logical_id=r['LogicalResourceId'],
                resource_type=r.get('ResourceType', ''),
                status=r['ResourceStatus'],
            )
            for r in await self._stack_resources(stack_name)
            if r.get('LogicalResourceId') and r.get('ResourceStatus')
        ]

    async def get_resource_statuses(self, stack_name: str) -> dict[str, str]:
        """Logical resource id -> resource status, in engine order."""
        return {r.logical_id: r.status for r in await self.describe_resources(stack_name)}

    async def get_resources(self, stack_name: str) -> dict[str, str]:
        """Logical resource id -> physical resource id."""
        return {
            r['LogicalResourceId']: r['PhysicalResourceId']
            for r in await self._stack_resources(stack_name)
            if r.get('LogicalResourceId') and r.get('PhysicalResourceId')
        }

    async def get_storage_bucket(self, stack_name: str) -> str:
        resources = await self.get_resources(stack_name)
        return resources.get(STORAGE_BUCKET_RESOURCE, '')


def _require_resolved(config: DeployConfig) -> None:
    if is_unresolved(config.clapdb_version):
        raise ValueError(
            f'clapdb_version must be resolved before submitting a stack request, '
            f'got {config.clapdb_version!r}'
        )
