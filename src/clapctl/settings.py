"""clapctl runtime settings.

ClapctlSettings is the single configuration object handed to provider
factories and the CLI. It is a plain dataclass (not env-coupled) so tests
can inject config without touching os.environ.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_REGION = 'us-east-1'
DEFAULT_ARTIFACTS_BUCKET_PREFIX = 'clapdb-pkgs'
DEFAULT_POLL_INTERVAL_SECONDS = 0.5

AWS_REGIONS = (
    'us-east-1',
    'us-east-2',
    'us-west-1',
    'us-west-2',
    'ap-south-1',
    'ap-northeast-1',
    'ap-northeast-2',
    'ap-northeast-3',
    'ap-southeast-1',
    'ap-southeast-2',
    'ca-central-1',
    'eu-central-1',
    'eu-west-1',
    'eu-west-2',
    'eu-west-3',
    'eu-north-1',
    'sa-east-1',
    'cn-north-1',
    'cn-northwest-1',
)

_TRUE_VALUES = frozenset({'1', 'true', 'yes', 'on'})


@dataclass(frozen=True, slots=True)
class ClapctlSettings:
    """Configuration for provider construction and polling.

    All fields have defaults suitable for a workstation with a
    ``default`` AWS profile.
    """

    # ── Identity ───────────────────────────────────────────────────
    profile: str = 'default'
    """Credential profile handed to the provider factory."""

    provider: str = 'aws'
    """Registry key of the cloud provider implementation."""

    region: str = DEFAULT_REGION
    """Region deployments are created in."""

    # ── Artifacts ──────────────────────────────────────────────────
    artifacts_bucket_prefix: str = DEFAULT_ARTIFACTS_BUCKET_PREFIX
    """Artifact bucket is ``<prefix>-<region>`` unless overridden per deploy."""

    # ── Watcher ────────────────────────────────────────────────────
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS

    # ── Logging ────────────────────────────────────────────────────
    log_level: str = 'WARNING'
    log_json: bool = False

    @property
    def is_china_region(self) -> bool:
        return self.region.startswith('cn-')

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if not self.profile:
            errors.append('profile must not be empty')
        if not self.provider:
            errors.append('provider must not be empty')
        if self.region not in AWS_REGIONS:
            errors.append(f'region {self.region!r} is not a supported region')
        if self.poll_interval_seconds <= 0:
            errors.append('poll_interval_seconds must be > 0')
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors.append(f'unknown log level {self.log_level!r}')
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> ClapctlSettings:
        """Build settings from environment variables.

        Tests should construct ClapctlSettings directly.
        """
        if env is None:
            env = dict(os.environ)

        region = (
            env.get('AWS_REGION')
            or env.get('AWS_DEFAULT_REGION')
            or DEFAULT_REGION
        )

        poll_raw = env.get('CLAPCTL_POLL_INTERVAL', '').strip()
        try:
            poll_interval = float(poll_raw) if poll_raw else DEFAULT_POLL_INTERVAL_SECONDS
        except ValueError:
            poll_interval = DEFAULT_POLL_INTERVAL_SECONDS

        return cls(
            profile=env.get('CLAPCTL_PROFILE') or env.get('AWS_PROFILE') or 'default',
            provider=env.get('CLAPCTL_PROVIDER', 'aws').strip().lower() or 'aws',
            region=region.strip(),
            artifacts_bucket_prefix=(
                env.get('CLAPCTL_ARTIFACTS_BUCKET_PREFIX', '').strip()
                or DEFAULT_ARTIFACTS_BUCKET_PREFIX
            ),
            poll_interval_seconds=poll_interval,
            log_level=env.get('CLAPCTL_LOG_LEVEL', 'WARNING').strip().upper() or 'WARNING',
            log_json=env.get('CLAPCTL_LOG_JSON', '').strip().lower() in _TRUE_VALUES,
        )
