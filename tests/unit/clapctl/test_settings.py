"""ClapctlSettings tests: defaults, env parsing and validation."""

from __future__ import annotations

import pytest

from clapctl.settings import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_REGION,
    ClapctlSettings,
)


class TestFromEnv:

    def test_empty_env_defaults(self):
        settings = ClapctlSettings.from_env({})
        assert settings.profile == 'default'
        assert settings.provider == 'aws'
        assert settings.region == DEFAULT_REGION
        assert settings.artifacts_bucket_prefix == 'clapdb-pkgs'
        assert settings.poll_interval_seconds == DEFAULT_POLL_INTERVAL_SECONDS
        assert settings.log_level == 'WARNING'
        assert settings.log_json is False
        assert settings.validate() == []

    def test_clapctl_profile_wins_over_aws_profile(self):
        settings = ClapctlSettings.from_env({'CLAPCTL_PROFILE': 'ops', 'AWS_PROFILE': 'dev'})
        assert settings.profile == 'ops'
        assert ClapctlSettings.from_env({'AWS_PROFILE': 'dev'}).profile == 'dev'

    def test_region_precedence(self):
        env = {'AWS_REGION': 'eu-west-1', 'AWS_DEFAULT_REGION': 'us-west-2'}
        assert ClapctlSettings.from_env(env).region == 'eu-west-1'
        assert ClapctlSettings.from_env({'AWS_DEFAULT_REGION': 'us-west-2'}).region == 'us-west-2'

    def test_overrides(self):
        settings = ClapctlSettings.from_env(
            {
                'CLAPCTL_PROVIDER': 'AWS',
                'CLAPCTL_ARTIFACTS_BUCKET_PREFIX': 'mirror',
                'CLAPCTL_POLL_INTERVAL': '2.5',
                'CLAPCTL_LOG_LEVEL': 'debug',
                'CLAPCTL_LOG_JSON': 'true',
            }
        )
        assert settings.provider == 'aws'
        assert settings.artifacts_bucket_prefix == 'mirror'
        assert settings.poll_interval_seconds == 2.5
        assert settings.log_level == 'DEBUG'
        assert settings.log_json is True

    def test_bad_poll_interval_falls_back(self):
        settings = ClapctlSettings.from_env({'CLAPCTL_POLL_INTERVAL': 'soon'})
        assert settings.poll_interval_seconds == DEFAULT_POLL_INTERVAL_SECONDS


class TestValidate:

    @pytest.mark.parametrize(
        'overrides, fragment',
        [
            ({'profile': ''}, 'profile'),
            ({'provider': ''}, 'provider'),
            ({'region': 'mars-1'}, 'region'),
            ({'poll_interval_seconds': 0}, 'poll_interval_seconds'),
            ({'log_level': 'LOUD'}, 'log level'),
        ],
    )
    def test_reports_problem(self, overrides, fragment):
        errors = ClapctlSettings(**overrides).validate()
        assert len(errors) == 1
        assert fragment in errors[0]

    def test_china_region(self):
        assert ClapctlSettings(region='cn-northwest-1').is_china_region
        assert not ClapctlSettings().is_china_region
