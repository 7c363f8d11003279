"""Lambda invocation used to create database users."""

from __future__ import annotations

from typing import Any

from ...errors import LambdaInvocationError
from .client import run_blocking


class LambdaService:
    def __init__(self, client: Any) -> None:
        self._client = client

    async def invoke(self, function_name: str, payload: str) -> str:
        """Invoke synchronously and return the decoded response payload."""
        response = await run_blocking(
            self._client.invoke,
            FunctionName=function_name,
            Payload=payload.encode('utf-8'),
        )
        stream = response.get('Payload')
        body = (await run_blocking(stream.read)).decode('utf-8') if stream else ''

        if response.get('FunctionError'):
            raise LambdaInvocationError(function_name, response['FunctionError'], body)
        return body
