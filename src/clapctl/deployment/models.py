"""Deployment configuration and observed-state models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..passwords import is_password_valid

Architecture = Literal['x86_64', 'arm64']

DEFAULT_MEMORY_SIZE_MB = 3008
MIN_MEMORY_SIZE_MB = 128
MAX_MEMORY_SIZE_MB = 10240

_ARCH_ALIASES = {'x86': 'x86_64', 'x64': 'x86_64', 'amd64': 'x86_64', 'aarch64': 'arm64'}

_MEMORY_BOUNDS = {'ge': MIN_MEMORY_SIZE_MB, 'le': MAX_MEMORY_SIZE_MB}


class DeployConfig(BaseModel):
    """Desired state for a deployment.

    Immutable once built. For updates, only fields the caller set explicitly
    (``model_fields_set``) are submitted; the rest keep their previous value
    on the stack.
    """

    model_config = ConfigDict(frozen=True)

    stack_name: str = Field(min_length=1)
    arch: Architecture = 'x86_64'
    lambda_memory_size: int = Field(default=DEFAULT_MEMORY_SIZE_MB, **_MEMORY_BOUNDS)
    dispatcher_memory_size: int = Field(default=DEFAULT_MEMORY_SIZE_MB, **_MEMORY_BOUNDS)
    reducer_memory_size: int = Field(default=DEFAULT_MEMORY_SIZE_MB, **_MEMORY_BOUNDS)
    worker_memory_size: int = Field(default=DEFAULT_MEMORY_SIZE_MB, **_MEMORY_BOUNDS)
    enable_private_vpc: bool = False
    enable_private_endpoint: bool = False
    enable_logging: bool = False
    clapdb_version: str | None = None
    artifacts_bucket: str | None = None
    template_body: str | None = None
    update_builtin_template: bool = False

    @field_validator('arch', mode='before')
    @classmethod
    def _normalize_arch(cls, value: object) -> object:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _ARCH_ALIASES.get(lowered, lowered)
        return value

    @model_validator(mode='after')
    def _private_endpoint_requires_vpc(self) -> DeployConfig:
        if self.enable_private_endpoint and not self.enable_private_vpc:
            raise ValueError('private endpoint must be used with private-vpc=true')
        return self

    def is_explicit(self, field_name: str) -> bool:
        """Whether the caller supplied ``field_name`` rather than the default."""
        return field_name in self.model_fields_set


class UserPayload(BaseModel):
    """Database user created through the stack's init function."""

    name: str = Field(min_length=1)
    password: str = Field(min_length=8)
    tenant: str = Field(min_length=1)
    database: str = Field(min_length=1)

    @field_validator('password')
    @classmethod
    def _password_strength(cls, value: str) -> str:
        if not is_password_valid(value):
            raise ValueError(
                'Password must contain at least one lowercase, uppercase, '
                'digit, and special character (!@#$%^&*)'
            )
        return value


@dataclass(frozen=True, slots=True)
class StackInfo:
    """Observed state of one deployment."""

    name: str
    status: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ResourceStatus:
    """Status of one resource inside a deployment."""

    logical_id: str
    resource_type: str
    status: str


@dataclass(frozen=True, slots=True)
class ArtifactInfo:
    """Artifact markers and existence for a version/arch pair."""

    latest_tag: str
    latest_hash: str
    exists: bool


@dataclass(frozen=True, slots=True)
class QuotaRequestResult:
    request_id: str
    requested_value: float
    current_value: float | None = None
