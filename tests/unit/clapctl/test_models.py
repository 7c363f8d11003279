"""DeployConfig and UserPayload validation tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from clapctl.deployment.models import (
    DEFAULT_MEMORY_SIZE_MB,
    DeployConfig,
    UserPayload,
)


class TestDeployConfig:

    def test_defaults(self):
        config = DeployConfig(stack_name='db')
        assert config.arch == 'x86_64'
        assert config.lambda_memory_size == DEFAULT_MEMORY_SIZE_MB
        assert config.worker_memory_size == DEFAULT_MEMORY_SIZE_MB
        assert config.enable_private_vpc is False
        assert config.clapdb_version is None
        assert config.update_builtin_template is False

    @pytest.mark.parametrize('alias, expected', [('x86', 'x86_64'), ('X64', 'x86_64'), ('aarch64', 'arm64')])
    def test_arch_aliases(self, alias, expected):
        assert DeployConfig(stack_name='db', arch=alias).arch == expected

    def test_unknown_arch_rejected(self):
        with pytest.raises(ValidationError):
            DeployConfig(stack_name='db', arch='riscv')

    @pytest.mark.parametrize('size', [64, 20000])
    def test_memory_bounds(self, size):
        with pytest.raises(ValidationError):
            DeployConfig(stack_name='db', reducer_memory_size=size)

    def test_empty_stack_name_rejected(self):
        with pytest.raises(ValidationError):
            DeployConfig(stack_name='')

    def test_private_endpoint_requires_vpc(self):
        with pytest.raises(ValidationError, match='private endpoint must be used with private-vpc=true'):
            DeployConfig(stack_name='db', enable_private_endpoint=True)

        config = DeployConfig(stack_name='db', enable_private_vpc=True, enable_private_endpoint=True)
        assert config.enable_private_endpoint

    def test_frozen(self):
        config = DeployConfig(stack_name='db')
        with pytest.raises(ValidationError):
            config.stack_name = 'other'

    def test_explicit_fields_tracked(self):
        config = DeployConfig(stack_name='db', lambda_memory_size=4096)
        assert config.is_explicit('lambda_memory_size')
        assert not config.is_explicit('dispatcher_memory_size')

        resolved = config.model_copy(update={'clapdb_version': 'v3'})
        assert resolved.is_explicit('clapdb_version')
        assert resolved.is_explicit('lambda_memory_size')
        assert not config.is_explicit('clapdb_version')


class TestUserPayload:

    def test_valid(self):
        user = UserPayload(name='root', password='Str0ng!pw', tenant='clapdb', database='local')
        assert user.model_dump() == {
            'name': 'root',
            'password': 'Str0ng!pw',
            'tenant': 'clapdb',
            'database': 'local',
        }

    @pytest.mark.parametrize('password', ['short1!', 'alllower1!', 'NoDigits!!', 'NoSpecial123'])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(ValidationError):
            UserPayload(name='root', password=password, tenant='clapdb', database='local')
