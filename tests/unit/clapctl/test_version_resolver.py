"""VersionResolver tests.

Each resolution makes exactly one artifact-store call:
  ""        -> latest_tag
  "latest"  -> latest_hash
  explicit  -> has_artifact (error type depends on the action)
"""

from __future__ import annotations

import pytest

from clapctl.deployment.status import DeployAction
from clapctl.deployment.version_resolver import (
    VersionResolver,
    artifact_key,
    artifacts_bucket_for,
    is_unresolved,
)
from clapctl.errors import (
    ArtifactNotFoundError,
    ArtifactStoreError,
    InvalidVersionError,
    VersionResolutionError,
)

BUCKET = 'clapdb-pkgs-us-east-1'


class FakeArtifactStore:
    """In-memory artifact store that records every call."""

    def __init__(self, tag='v1.2.0', commit='abc1234', artifacts=(), fail_markers=False):
        self.tag = tag
        self.commit = commit
        self.artifacts = set(artifacts)
        self.fail_markers = fail_markers
        self.calls: list[tuple] = []

    async def latest_tag(self, bucket):
        self.calls.append(('latest_tag', bucket))
        if self.fail_markers:
            raise ArtifactStoreError(bucket, 'latest tag')
        return self.tag

    async def latest_hash(self, bucket):
        self.calls.append(('latest_hash', bucket))
        if self.fail_markers:
            raise ArtifactStoreError(bucket, 'latest hash')
        return self.commit

    async def has_artifact(self, bucket, version, arch):
        self.calls.append(('has_artifact', bucket, version, arch))
        return (version, arch) in self.artifacts


# ── Resolution ────────────────────────────────────────────────────────


class TestResolve:

    @pytest.mark.asyncio
    @pytest.mark.parametrize('requested', [None, '', '   '])
    async def test_empty_uses_latest_tag(self, requested):
        store = FakeArtifactStore()
        version = await VersionResolver(store).resolve(BUCKET, requested, 'x86_64')

        assert version == 'v1.2.0'
        assert store.calls == [('latest_tag', BUCKET)]

    @pytest.mark.asyncio
    async def test_latest_uses_latest_hash(self):
        store = FakeArtifactStore()
        version = await VersionResolver(store).resolve(BUCKET, 'latest', 'arm64')

        assert version == 'abc1234'
        assert store.calls == [('latest_hash', BUCKET)]

    @pytest.mark.asyncio
    async def test_explicit_version_verified(self):
        store = FakeArtifactStore(artifacts={('v3', 'x86_64')})
        version = await VersionResolver(store).resolve(BUCKET, 'v3', 'x86_64')

        assert version == 'v3'
        assert store.calls == [('has_artifact', BUCKET, 'v3', 'x86_64')]

    @pytest.mark.asyncio
    async def test_missing_version_on_deploy(self):
        store = FakeArtifactStore(artifacts={('v3', 'x86_64')})

        with pytest.raises(InvalidVersionError) as exc_info:
            await VersionResolver(store).resolve(BUCKET, 'v3', 'arm64', action=DeployAction.DEPLOY)

        assert str(exc_info.value) == 'Invalid version'
        assert exc_info.value.code == 'invalid_version'
        assert len(store.calls) == 1

    @pytest.mark.asyncio
    async def test_missing_version_on_update(self):
        store = FakeArtifactStore()

        with pytest.raises(ArtifactNotFoundError) as exc_info:
            await VersionResolver(store).resolve(BUCKET, 'deadbee', 'x86_64', action=DeployAction.UPDATE)

        assert str(exc_info.value) == 'Artifact not found, check the version/commit'
        assert isinstance(exc_info.value, VersionResolutionError)
        assert exc_info.value.version == 'deadbee'

    @pytest.mark.asyncio
    async def test_marker_failure_propagates_without_retry(self):
        store = FakeArtifactStore(fail_markers=True)

        with pytest.raises(ArtifactStoreError, match='Failed to get latest tag from bucket'):
            await VersionResolver(store).resolve(BUCKET, '', 'x86_64')

        assert store.calls == [('latest_tag', BUCKET)]


# ── Helpers ───────────────────────────────────────────────────────────


def test_artifact_key():
    assert artifact_key('v3', 'arm64') == 'v3/arm64/bootstrap.zip'


def test_artifacts_bucket_for_region():
    assert artifacts_bucket_for('cn-north-1') == 'clapdb-pkgs-cn-north-1'
    assert artifacts_bucket_for('eu-west-1', prefix='mirror') == 'mirror-eu-west-1'


@pytest.mark.parametrize(
    'version, expected',
    [(None, True), ('', True), ('latest', True), ('v1', False), ('abc1234', False)],
)
def test_is_unresolved(version, expected):
    assert is_unresolved(version) is expected
