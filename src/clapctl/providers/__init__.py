"""Cloud provider registry and vendor implementations."""

from __future__ import annotations

from ..settings import ClapctlSettings
from .registry import ProviderFactory, ProviderRegistry


def build_registry(settings: ClapctlSettings | None = None) -> ProviderRegistry:
    """Registry with every bundled vendor registered once."""
    from . import aws

    registry = ProviderRegistry()
    aws.register(registry, settings)
    return registry


__all__ = [
    'ProviderFactory',
    'ProviderRegistry',
    'build_registry',
]
