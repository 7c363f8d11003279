"""S3Service tests against a mocked boto3 client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from clapctl.errors import ArtifactStoreError
from clapctl.providers.aws.s3 import S3Service


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def s3(client):
    return S3Service(client)


def _body(content: bytes):
    body = MagicMock()
    body.read.return_value = content
    return body


# ── Markers ───────────────────────────────────────────────────────────


class TestArtifactMarkers:

    @pytest.mark.asyncio
    async def test_latest_tag_is_stripped(self, s3, client):
        body = _body(b'v1.4.2\n')
        client.get_object.return_value = {'Body': body}

        assert await s3.latest_tag('pkgs') == 'v1.4.2'
        client.get_object.assert_called_once_with(Bucket='pkgs', Key='LATEST_TAG')
        body.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_latest_hash(self, s3, client):
        client.get_object.return_value = {'Body': _body(b'abc1234')}

        assert await s3.latest_hash('pkgs') == 'abc1234'
        client.get_object.assert_called_once_with(Bucket='pkgs', Key='LATEST_HASH')

    @pytest.mark.asyncio
    async def test_marker_read_failure(self, s3, client, client_error):
        client.get_object.side_effect = client_error('NoSuchKey', 'missing')

        with pytest.raises(ArtifactStoreError) as exc_info:
            await s3.latest_hash('pkgs')

        assert str(exc_info.value) == 'Failed to get latest hash from bucket pkgs'
        assert exc_info.value.bucket == 'pkgs'

    @pytest.mark.asyncio
    @pytest.mark.parametrize('content', [b'', b'\n', b'   \n'])
    async def test_blank_marker_is_unavailable(self, s3, client, content):
        client.get_object.return_value = {'Body': _body(content)}

        with pytest.raises(ArtifactStoreError) as exc_info:
            await s3.latest_tag('pkgs')

        assert str(exc_info.value) == 'Failed to get latest tag from bucket pkgs'


class TestHasArtifact:

    @pytest.mark.asyncio
    async def test_present(self, s3, client):
        client.head_object.return_value = {'ContentLength': 10}

        assert await s3.has_artifact('pkgs', 'v3', 'arm64') is True
        client.head_object.assert_called_once_with(Bucket='pkgs', Key='v3/arm64/bootstrap.zip')

    @pytest.mark.asyncio
    @pytest.mark.parametrize('code', ['404', 'NoSuchKey', 'NotFound', '403'])
    async def test_missing(self, s3, client, client_error, code):
        client.head_object.side_effect = client_error(code)
        assert await s3.has_artifact('pkgs', 'v3', 'x86_64') is False

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, s3, client, client_error):
        client.head_object.side_effect = client_error('SlowDown')
        with pytest.raises(ClientError):
            await s3.has_artifact('pkgs', 'v3', 'x86_64')


# ── Objects ───────────────────────────────────────────────────────────


class TestObjects:

    @pytest.mark.asyncio
    async def test_put_object_encodes(self, s3, client):
        await s3.put_object('storage', 'license.json', '{"k": 1}')
        client.put_object.assert_called_once_with(
            Bucket='storage', Key='license.json', Body=b'{"k": 1}',
        )

    @pytest.mark.asyncio
    async def test_read_object(self, s3, client):
        client.get_object.return_value = {'Body': _body(b'{"license": "x"}')}
        assert await s3.read_object('storage', 'license.json') == '{"license": "x"}'

    @pytest.mark.asyncio
    async def test_delete_bucket_empties_in_batches(self, s3, client):
        keys = [{'Key': f'obj-{i}'} for i in range(1500)]
        client.get_paginator.return_value.paginate.return_value = [
            {'Contents': keys[:1000]},
            {'Contents': keys[1000:]},
            {},
        ]

        removed = await s3.delete_bucket('storage')

        assert removed == 1500
        assert client.delete_objects.call_count == 2
        first = client.delete_objects.call_args_list[0].kwargs
        assert len(first['Delete']['Objects']) == 1000
        assert first['Delete']['Quiet'] is True
        client.delete_bucket.assert_called_once_with(Bucket='storage')

    @pytest.mark.asyncio
    async def test_delete_empty_bucket(self, s3, client):
        client.get_paginator.return_value.paginate.return_value = [{}]

        assert await s3.delete_bucket('storage') == 0
        client.delete_objects.assert_not_called()
        client.delete_bucket.assert_called_once_with(Bucket='storage')
