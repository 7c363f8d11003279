"""Service Quotas access for Lambda concurrent executions."""

from __future__ import annotations

import logging
from typing import Any

from .client import run_blocking

logger = logging.getLogger(__name__)

LAMBDA_SERVICE_CODE = 'lambda'
LAMBDA_CONCURRENT_EXECUTIONS_QUOTA = 'L-B99A9384'


class QuotaService:
    def __init__(self, client: Any) -> None:
        self._client = client

    async def get_lambda_quota(self) -> float:
        """Current concurrent-executions quota, 0 when not reported."""
        response = await run_blocking(
            self._client.get_service_quota,
            ServiceCode=LAMBDA_SERVICE_CODE,
            QuotaCode=LAMBDA_CONCURRENT_EXECUTIONS_QUOTA,
        )
        return (response.get('Quota') or {}).get('Value', 0)

    async def request_lambda_quota(self, desired_value: float) -> str:
        """Submit an increase request and return its id."""
        response = await run_blocking(
            self._client.request_service_quota_increase,
            ServiceCode=LAMBDA_SERVICE_CODE,
            QuotaCode=LAMBDA_CONCURRENT_EXECUTIONS_QUOTA,
            DesiredValue=float(desired_value),
        )
        request_id = (response.get('RequestedQuota') or {}).get('Id', '')
        logger.info(
            'Quota increase requested: %s -> %s',
            LAMBDA_CONCURRENT_EXECUTIONS_QUOTA,
            desired_value,
            extra={'operation': 'request_quota_increase'},
        )
        return request_id
