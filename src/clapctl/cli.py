"""clapctl command line.

Thin layer over the provider contract: build settings, pick a provider from
the registry, run one command, report errors and exit non-zero on failure.

Interrupting a deploy/update/delete (Ctrl+C) only stops watching. The
remote stack operation keeps running.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import Any, Awaitable, Callable

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError
from rich.prompt import Confirm

from . import console
from .deployment.models import (
    DEFAULT_MEMORY_SIZE_MB,
    DeployConfig,
    UserPayload,
)
from .deployment.status import DeployAction
from .errors import ClapctlError
from .logging_setup import configure_logging
from .passwords import generate_random_password
from .protocols import CloudProvider
from .providers import ProviderRegistry, build_registry
from .settings import ClapctlSettings

logger = logging.getLogger(__name__)

LICENSE_KEY = 'license.json'

_ARCH_CHOICES = ('x86_64', 'arm64', 'x86', 'x64')
_INTERRUPT_LABELS = {'deploy': 'Deployment', 'delete': 'Deletion'}
_MEMORY_OPTIONS = (
    ('--lambda-memory-size', 'lambda_memory_size', 'Lambda memory size(MB)'),
    ('--dispatcher-memory-size', 'dispatcher_memory_size', 'Dispatcher memory size(MB)'),
    ('--reducer-memory-size', 'reducer_memory_size', 'Reducer memory size(MB)'),
    ('--worker-memory-size', 'worker_memory_size', 'Worker memory size(MB)'),
)

CommandHandler = Callable[[CloudProvider, argparse.Namespace], Awaitable[int]]


# ── Commands ─────────────────────────────────────────────────────────


async def cmd_deploy(provider: CloudProvider, args: argparse.Namespace) -> int:
    if args.list:
        console.console.print(console.stack_table(await provider.list_stacks()))
        return 0
    if not args.stack_name:
        console.error('--stack-name is required')
        return 2

    console.console.print(f'Deploy ClapDB service to {provider.region} region now.')

    password = args.password or generate_random_password(12)
    user = UserPayload(
        name=args.user,
        password=password,
        tenant=args.tenant,
        database=args.database,
    )
    config = DeployConfig(
        stack_name=args.stack_name,
        arch=args.arch,
        lambda_memory_size=args.lambda_memory_size or DEFAULT_MEMORY_SIZE_MB,
        dispatcher_memory_size=args.dispatcher_memory_size or DEFAULT_MEMORY_SIZE_MB,
        reducer_memory_size=args.reducer_memory_size or DEFAULT_MEMORY_SIZE_MB,
        worker_memory_size=args.worker_memory_size or DEFAULT_MEMORY_SIZE_MB,
        enable_private_vpc=args.private_vpc,
        enable_private_endpoint=args.private_endpoint,
        enable_logging=bool(args.logging),
        clapdb_version=args.commit,
        artifacts_bucket=args.artifacts_bucket,
    )

    stack_id = await provider.deploy_service(args.stack_name, config)
    console.console.print(f'Deployment details: {provider.get_console_url(stack_id)}')

    with console.spinner('This will take a while...') as progress:
        await provider.watch_service(args.stack_name, progress, DeployAction.DEPLOY)

    await provider.add_user(args.stack_name, user)
    console.success('Add ClapDB user done.')

    data_api_url = await provider.get_data_api_url(args.stack_name)
    license_api_url = await provider.get_license_api_url(args.stack_name)
    console.success('ClapDB service deploy done.')
    console.console.print(f'Data API URL Endpoint:    {data_api_url}')
    console.console.print(f'License API URL Endpoint: {license_api_url}')
    console.console.print(f'User: {user.name}  Password: {user.password}', highlight=False)
    return 0


async def cmd_update(provider: CloudProvider, args: argparse.Namespace) -> int:
    if not await provider.has_stack(args.stack_name):
        console.error(f"Stack '{args.stack_name}' not found")
        return 1

    console.console.print(f'Update ClapDB service in {provider.region} region.')

    # Only options given on the command line are sent; the rest keep the
    # stack's previous values.
    fields: dict[str, Any] = {'stack_name': args.stack_name}
    for _, dest, _ in _MEMORY_OPTIONS:
        if getattr(args, dest) is not None:
            fields[dest] = getattr(args, dest)
    if args.logging is not None:
        fields['enable_logging'] = args.logging
    if args.commit:
        fields['clapdb_version'] = args.commit
    if args.artifacts_bucket:
        fields['artifacts_bucket'] = args.artifacts_bucket
    if args.update_template:
        fields['update_builtin_template'] = True

    stack_id = await provider.update_service(args.stack_name, DeployConfig(**fields))
    console.console.print(f'Deployment details: {provider.get_console_url(stack_id)}')

    with console.spinner('Updating ClapDB service...') as progress:
        await provider.watch_service(args.stack_name, progress, DeployAction.UPDATE)
    console.success('ClapDB service updated.')
    return 0


async def cmd_delete(provider: CloudProvider, args: argparse.Namespace) -> int:
    if not await provider.has_stack(args.stack_name):
        console.error(f"Stack '{args.stack_name}' not found")
        return 1

    if not args.yes:
        confirmed = Confirm.ask(
            f"Are you sure you want to delete stack '{args.stack_name}'?",
            default=False,
        )
        if not confirmed:
            console.warning('Deletion cancelled.')
            return 0

    url = await provider.delete_service(args.stack_name, args.with_s3)
    console.console.print(f'Deployment details: {url}')

    with console.spinner('Deleting ClapDB service...') as progress:
        await provider.watch_service(args.stack_name, progress, DeployAction.DELETE)
    console.success('ClapDB service deleted.')
    return 0


async def cmd_status(provider: CloudProvider, args: argparse.Namespace) -> int:
    stack = args.stack_id or args.stack_name
    if not stack:
        console.error('--stack-name or --stack-id is required')
        return 2

    console.console.print(f'Deployment details: {provider.get_console_url(stack)}')
    status = await provider.get_stack_status(stack)
    console.console.print(f'ClapDB service deployment status: {status}')

    console.console.print()
    console.console.print(f'Data API URL Endpoint:    {await provider.get_data_api_url(stack)}')
    console.console.print(f'License API URL Endpoint: {await provider.get_license_api_url(stack)}')
    return 0


async def cmd_quota(provider: CloudProvider, args: argparse.Namespace) -> int:
    if args.quota_action == 'show':
        quota = await provider.get_compute_quota()
        console.console.print(f'Current Lambda concurrent executions quota: {quota:g}')
        return 0

    if args.value is None:
        console.error('Quota value is required. Use -v or --value option.')
        return 2
    if args.value <= 0:
        console.error('Invalid quota value. Must be a positive number.')
        return 2

    result = await provider.request_compute_quota_increase(args.value)
    if result.current_value is not None:
        console.console.print(
            f'Requesting Lambda concurrent executions quota: '
            f'{result.current_value:g} -> {result.requested_value:g}'
        )
    console.success(f'Quota increase request submitted. Request ID: {result.request_id}')
    console.info('Quota increase requests may take some time to be processed.')
    return 0


async def cmd_license(provider: CloudProvider, args: argparse.Namespace) -> int:
    bucket = await provider.get_storage_bucket(args.stack_name)

    if args.license_action == 'show':
        license_text = await provider.get_service_license(bucket, LICENSE_KEY)
        console.console.print('Current License:')
        console.console.print(license_text, markup=False, highlight=False)
        return 0

    if not args.license:
        console.error('License key is required for upgrade. Use -l or --license option.')
        return 2
    await provider.upgrade_service_license(bucket, LICENSE_KEY, args.license)
    console.success('License upgraded successfully.')
    return 0


async def cmd_artifacts(provider: CloudProvider, args: argparse.Namespace) -> int:
    bucket = args.artifacts_bucket or provider.default_artifacts_bucket()
    artifact = await provider.get_artifact_info(bucket, args.commit, args.arch)
    console.console.print(f'Artifacts bucket: {bucket}')
    console.console.print(f'Latest tag:  {artifact.latest_tag}')
    console.console.print(f'Latest hash: {artifact.latest_hash}')
    if args.commit:
        found = 'found' if artifact.exists else 'missing'
        console.console.print(f'{args.commit} ({args.arch}): {found}')
    return 0 if artifact.exists else 1


async def cmd_user(provider: CloudProvider, args: argparse.Namespace) -> int:
    password = args.password
    if not password:
        password = generate_random_password(12)
        console.console.print(f'Generated password: {password}', markup=False, highlight=False)

    user = UserPayload(
        name=args.user,
        password=password,
        tenant=args.tenant,
        database=args.database,
    )
    await provider.add_user(args.stack_name, user)
    console.success(f"User '{user.name}' added successfully.")
    return 0


COMMANDS: dict[str, CommandHandler] = {
    'deploy': cmd_deploy,
    'update': cmd_update,
    'delete': cmd_delete,
    'status': cmd_status,
    'quota': cmd_quota,
    'license': cmd_license,
    'artifacts': cmd_artifacts,
    'user': cmd_user,
}


# ── Parser ───────────────────────────────────────────────────────────


def _add_memory_options(parser: argparse.ArgumentParser) -> None:
    for flag, dest, help_text in _MEMORY_OPTIONS:
        parser.add_argument(flag, dest=dest, type=int, default=None, help=help_text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='clapctl', description='Manage ClapDB deployments')
    parser.add_argument('--profile', default=None, help='Credential profile (default: from env or "default")')
    parser.add_argument('--provider', default=None, help='Cloud provider (default: aws)')
    parser.add_argument('--log-level', default=None, help='Log level (default: WARNING)')
    parser.add_argument('--log-json', action='store_true', default=None, help='Emit JSON logs')
    sub = parser.add_subparsers(dest='command', required=True)

    deploy = sub.add_parser('deploy', help='Deploy ClapDB service')
    deploy.add_argument('-n', '--stack-name', help='Deployment stack name')
    deploy.add_argument('-a', '--arch', default='x86_64', choices=_ARCH_CHOICES)
    deploy.add_argument('-l', '--list', action='store_true', help='List ClapDB deployment stacks')
    deploy.add_argument('-u', '--user', default='root', help='User name')
    deploy.add_argument('-p', '--password', help='Password (generated when omitted)')
    deploy.add_argument('-t', '--tenant', default='clapdb')
    deploy.add_argument('-d', '--database', default='local')
    _add_memory_options(deploy)
    deploy.add_argument('--private-vpc', action='store_true', help='Deploy within private VPC')
    deploy.add_argument('--private-endpoint', action='store_true', help='Use a private API Gateway endpoint')
    deploy.add_argument('--logging', action='store_true', help='Enable API Gateway logging')
    deploy.add_argument('-c', '--commit', help='ClapDB version: latest or a specific tag/commit')
    deploy.add_argument('--artifacts-bucket', help='Override the artifact bucket')

    update = sub.add_parser('update', help='Update ClapDB service deployment')
    update.add_argument('-n', '--stack-name', required=True)
    _add_memory_options(update)
    update.add_argument('--logging', action=argparse.BooleanOptionalAction, default=None)
    update.add_argument('-c', '--commit', help='ClapDB version: latest or a specific tag/commit')
    update.add_argument('--artifacts-bucket', help='Override the artifact bucket')
    update.add_argument('--update-template', action='store_true', help='Apply the template published with the version')

    delete = sub.add_parser('delete', help='Delete ClapDB service deployment')
    delete.add_argument('-n', '--stack-name', required=True)
    delete.add_argument('-y', '--yes', action='store_true', help='Skip confirmation prompt')
    delete.add_argument('--with-s3', action='store_true', help='Also delete the S3 storage bucket')

    status = sub.add_parser('status', help='Show ClapDB service deployment status')
    status.add_argument('-n', '--stack-name')
    status.add_argument('--stack-id')

    quota = sub.add_parser('quota', help='Manage Lambda concurrency quota')
    quota.add_argument('quota_action', choices=('show', 'request'))
    quota.add_argument('-v', '--value', type=float)

    license_parser = sub.add_parser('license', help='Manage ClapDB license')
    license_parser.add_argument('license_action', choices=('show', 'upgrade'))
    license_parser.add_argument('-n', '--stack-name', required=True)
    license_parser.add_argument('-l', '--license')

    artifacts = sub.add_parser('artifacts', help='Show published artifact versions')
    artifacts.add_argument('--artifacts-bucket')
    artifacts.add_argument('-c', '--commit')
    artifacts.add_argument('-a', '--arch', default='x86_64', choices=('x86_64', 'arm64'))

    user = sub.add_parser('user', help='Manage ClapDB users')
    user.add_argument('user_action', choices=('add',))
    user.add_argument('-n', '--stack-name', required=True)
    user.add_argument('-u', '--user', default='root', help='User name')
    user.add_argument('-p', '--password', help='Password (generated when omitted)')
    user.add_argument('-t', '--tenant', default='clapdb')
    user.add_argument('-d', '--database', default='local')

    return parser


def _settings_from_args(args: argparse.Namespace, base: ClapctlSettings) -> ClapctlSettings:
    overrides: dict[str, Any] = {}
    if args.profile:
        overrides['profile'] = args.profile
    if args.provider:
        overrides['provider'] = args.provider.lower()
    if args.log_level:
        overrides['log_level'] = args.log_level.upper()
    if args.log_json:
        overrides['log_json'] = True
    if not overrides:
        return base
    return replace(base, **overrides)


async def run(
    args: argparse.Namespace,
    settings: ClapctlSettings,
    registry: ProviderRegistry,
) -> int:
    provider = await registry.create(settings.provider, settings.profile)
    return await COMMANDS[args.command](provider, args)


def main(
    argv: list[str] | None = None,
    *,
    registry: ProviderRegistry | None = None,
    settings: ClapctlSettings | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    settings = _settings_from_args(args, settings or ClapctlSettings.from_env())
    configure_logging(settings.log_level, json_output=settings.log_json)
    for problem in settings.validate():
        logger.warning('Configuration: %s', problem)

    registry = registry or build_registry(settings)
    label = args.command.capitalize()

    try:
        return asyncio.run(run(args, settings, registry))
    except KeyboardInterrupt:
        console.console.print(f'{_INTERRUPT_LABELS.get(args.command, label)} interrupted, exited.')
        return 1
    except (ClapctlError, ValidationError, ClientError, BotoCoreError) as exc:
        console.error(f'{label} error: {exc}')
        logger.debug('%s failed', args.command, exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
