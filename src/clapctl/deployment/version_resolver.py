"""Version selection contract for deploy and update.

Turns the user-supplied version token into a concrete, existence-verified
version before any mutating stack call:

  ""         -> LATEST_TAG marker in the artifact bucket
  "latest"   -> LATEST_HASH marker in the artifact bucket
  <version>  -> verified: <version>/<arch>/bootstrap.zip must exist

Exactly one artifact-store call is made per resolution. Store failures
propagate without retry.
"""

from __future__ import annotations

import logging
from typing import Protocol

from ..errors import ArtifactNotFoundError, InvalidVersionError
from .status import DeployAction

logger = logging.getLogger(__name__)

LATEST_TOKEN = 'latest'
LATEST_TAG_KEY = 'LATEST_TAG'
LATEST_HASH_KEY = 'LATEST_HASH'
ARTIFACT_FILENAME = 'bootstrap.zip'


class ArtifactStore(Protocol):
    """Artifact bucket queries used by version resolution."""

    async def latest_tag(self, bucket: str) -> str:
        """Return the content of the ``LATEST_TAG`` marker."""
        ...

    async def latest_hash(self, bucket: str) -> str:
        """Return the content of the ``LATEST_HASH`` marker."""
        ...

    async def has_artifact(self, bucket: str, version: str, arch: str) -> bool:
        """Return True if the bootstrap bundle exists for ``version``/``arch``."""
        ...


def artifacts_bucket_for(region: str, prefix: str = 'clapdb-pkgs') -> str:
    """Default artifact bucket for a region: ``<prefix>-<region>``."""
    return f'{prefix}-{region}'


def artifact_key(version: str, arch: str) -> str:
    return f'{version}/{arch}/{ARTIFACT_FILENAME}'


def is_unresolved(version: str | None) -> bool:
    """True for tokens that still need resolution (``None``, ``""``, ``latest``)."""
    return not version or version == LATEST_TOKEN


class VersionResolver:
    """Resolve version tokens against an :class:`ArtifactStore`."""

    def __init__(self, store: ArtifactStore) -> None:
        self._store = store

    async def resolve(
        self,
        bucket: str,
        requested_version: str | None,
        arch: str,
        *,
        action: DeployAction = DeployAction.DEPLOY,
    ) -> str:
        """Return a concrete version for ``requested_version``.

        Raises:
            ArtifactStoreError: If a latest marker cannot be read.
            InvalidVersionError: Explicit version missing (deploy).
            ArtifactNotFoundError: Explicit version missing (update).
        """
        requested = (requested_version or '').strip()

        if not requested:
            version = await self._store.latest_tag(bucket)
            source = 'latest_tag'
        elif requested == LATEST_TOKEN:
            version = await self._store.latest_hash(bucket)
            source = 'latest_hash'
        else:
            exists = await self._store.has_artifact(bucket, requested, arch)
            if not exists:
                logger.info(
                    'Artifact missing: bucket=%s version=%s arch=%s',
                    bucket,
                    requested,
                    arch,
                    extra={'bucket': bucket, 'version': requested, 'action': action.value},
                )
                if action is DeployAction.UPDATE:
                    raise ArtifactNotFoundError(requested, arch)
                raise InvalidVersionError(requested, arch)
            version = requested
            source = 'explicit'

        logger.debug(
            'Resolved version %s via %s',
            version,
            source,
            extra={'bucket': bucket, 'version': version, 'action': action.value},
        )
        return version
