"""Helpers shared by the boto3-backed AWS services.

boto3 clients are blocking; every call is pushed to the default executor
so the event loop keeps spinning progress output between polls.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Callable, TypeVar

from botocore.exceptions import ClientError

T = TypeVar('T')

VALIDATION_ERROR_CODE = 'ValidationError'


async def run_blocking(fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Run a blocking boto3 call in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))


def client_error_code(exc: BaseException) -> str:
    """Return the AWS error code of a ClientError, or ``''``."""
    if isinstance(exc, ClientError):
        return str(exc.response.get('Error', {}).get('Code', ''))
    return ''


def client_error_message(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get('Error', {}).get('Message', ''))
    return str(exc)


def is_validation_error(exc: BaseException) -> bool:
    return client_error_code(exc) == VALIDATION_ERROR_CODE


def is_missing_stack_error(exc: BaseException) -> bool:
    """CloudFormation reports unknown stack names as ``ValidationError``."""
    return is_validation_error(exc) and 'does not exist' in client_error_message(exc)
