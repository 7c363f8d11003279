"""S3 access for artifact markers, license objects and storage teardown.

Artifact bucket layout::

    {bucket}/
        LATEST_TAG                      newest released tag
        LATEST_HASH                     newest built commit hash
        {version}/{arch}/bootstrap.zip  deployable bundle
        {version}/template.yaml         template published with the version

Implements the :class:`ArtifactStore` protocol for version resolution.
"""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import ClientError

from ...deployment.version_resolver import LATEST_HASH_KEY, LATEST_TAG_KEY, artifact_key
from ...errors import ArtifactStoreError
from .client import client_error_code, run_blocking

logger = logging.getLogger(__name__)

# HEAD on a missing key answers 403 when the caller may not list the bucket.
_MISSING_OBJECT_CODES = frozenset({'404', 'NoSuchKey', 'NotFound', '403', 'Forbidden', 'AccessDenied'})
_DELETE_BATCH_SIZE = 1000


class S3Service:
    """Object reads/writes and artifact queries against S3."""

    def __init__(self, client: Any) -> None:
        self._client = client

    # ── Objects ──────────────────────────────────────────────────

    async def read_object(self, bucket: str, key: str) -> str:
        response = await run_blocking(self._client.get_object, Bucket=bucket, Key=key)
        body = response['Body']
        try:
            return (await run_blocking(body.read)).decode('utf-8')
        finally:
            body.close()

    async def put_object(self, bucket: str, key: str, content: str) -> None:
        await run_blocking(
            self._client.put_object,
            Bucket=bucket,
            Key=key,
            Body=content.encode('utf-8'),
        )

    async def list_objects(self, bucket: str, prefix: str = '') -> list[str]:
        return await run_blocking(self._list_keys, bucket, prefix)

    def _list_keys(self, bucket: str, prefix: str) -> list[str]:
        paginator = self._client.get_paginator('list_objects_v2')
        keys: list[str] = []
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            keys.extend(obj['Key'] for obj in page.get('Contents') or [] if obj.get('Key'))
        return keys

    async def delete_bucket(self, bucket: str) -> int:
        """Empty ``bucket`` and delete it. Returns the number of objects removed."""
        keys = await self.list_objects(bucket)
        for start in range(0, len(keys), _DELETE_BATCH_SIZE):
            batch = keys[start:start + _DELETE_BATCH_SIZE]
            await run_blocking(
                self._client.delete_objects,
                Bucket=bucket,
                Delete={'Objects': [{'Key': key} for key in batch], 'Quiet': True},
            )
        await run_blocking(self._client.delete_bucket, Bucket=bucket)
        logger.info(
            'Deleted bucket %s (%d objects)',
            bucket,
            len(keys),
            extra={'bucket': bucket, 'operation': 'delete_bucket'},
        )
        return len(keys)

    # ── Artifact store ───────────────────────────────────────────

    async def _read_marker(self, bucket: str, key: str, reason: str) -> str:
        try:
            content = await self.read_object(bucket, key)
        except ClientError as exc:
            raise ArtifactStoreError(bucket, reason) from exc
        marker = content.strip()
        if not marker:
            raise ArtifactStoreError(bucket, reason)
        return marker

    async def latest_tag(self, bucket: str) -> str:
        return await self._read_marker(bucket, LATEST_TAG_KEY, 'latest tag')

    async def latest_hash(self, bucket: str) -> str:
        return await self._read_marker(bucket, LATEST_HASH_KEY, 'latest hash')

    async def has_artifact(self, bucket: str, version: str, arch: str) -> bool:
        try:
            await run_blocking(
                self._client.head_object,
                Bucket=bucket,
                Key=artifact_key(version, arch),
            )
        except ClientError as exc:
            if client_error_code(exc) in _MISSING_OBJECT_CODES:
                return False
            raise
        return True
