"""Name-keyed registry of cloud provider factories.

The registry is an explicit value built once at startup and passed to
whatever constructs providers. Keys are lower-cased on the way in and on
lookup; registering an existing name replaces its factory.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from ..errors import UnknownProviderError
from ..protocols import CloudProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], Awaitable[CloudProvider]]


class ProviderRegistry:
    """Map vendor names to async provider factories."""

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        key = name.lower()
        if key in self._factories:
            logger.debug('Replacing provider factory: %s', key)
        self._factories[key] = factory

    async def create(self, name: str, profile: str) -> CloudProvider:
        """Construct a provider for ``profile``.

        Raises:
            UnknownProviderError: No factory registered under ``name``.
        """
        factory = self._factories.get(name.lower())
        if factory is None:
            raise UnknownProviderError(name, self.names())
        return await factory(profile)

    def names(self) -> list[str]:
        return list(self._factories)

    list_providers = names

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories

    def __len__(self) -> int:
        return len(self._factories)
