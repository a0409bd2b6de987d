"""
Tool: Store & Dashboard Providers
Purpose: Async facade over app-store search and dashboard registration detection

Usage:
    from onboarding.providers.base import SimulatedProvider

    provider = SimulatedProvider(search_delay=2.0, detection_delay=5.0)
    results = await provider.search("shopapp", platform="ios")
    registered = await provider.detect_registration("shopapp")

The flow controller only sees StoreProvider. A real implementation would
call the store search and dashboard APIs; the simulated one answers after a
configurable delay, and with zero delays resolves on the next loop turn.
Failures must surface as ProviderError so the controller can turn them into
a retry prompt.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from abc import ABC, abstractmethod
from typing import Optional

from onboarding.config_models import ProvidersConfig
from onboarding.errors import ProviderError
from onboarding.protocol.payloads import AppSearchResult
from onboarding.protocol.vocabulary import ANDROID, IOS, MOBILE_PLATFORMS

logger = logging.getLogger(__name__)


class StoreProvider(ABC):
    """
    Abstract base class for external store/dashboard lookups.

    Both operations are coroutines; the caller decides when their result is
    applied and discards it if the conversation has moved on.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def search(self, query: str, platform: Optional[str] = None) -> list[AppSearchResult]:
        """
        Search the app stores.

        Args:
            query: App name to look for
            platform: 'ios' or 'android' to search one store, None for both

        Returns:
            Matching listings, possibly empty

        Raises:
            ProviderError: If the store could not be reached
        """
        ...

    @abstractmethod
    async def detect_registration(self, app_key: str) -> bool:
        """
        Check whether the app has been registered in the dashboard.

        Raises:
            ProviderError: If the dashboard could not be reached
        """
        ...


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


class SimulatedProvider(StoreProvider):
    """Answers with mock listings after a delay, as the demo dashboard does."""

    def __init__(
        self,
        search_delay: float = 2.0,
        detection_delay: float = 5.0,
        jitter: float = 0.0,
        seed: Optional[int] = None,
    ):
        self.search_delay = search_delay
        self.detection_delay = detection_delay
        self.jitter = jitter
        self._rng = random.Random(seed)
        self.detect_calls = 0

    @classmethod
    def from_config(cls, config: ProvidersConfig) -> "SimulatedProvider":
        return cls(
            search_delay=config.search_delay_seconds,
            detection_delay=config.detection_delay_seconds,
            jitter=config.jitter_seconds,
        )

    @property
    def name(self) -> str:
        return "simulated"

    async def _wait(self, base: float) -> None:
        delay = base + (self._rng.uniform(0, self.jitter) if self.jitter else 0.0)
        await asyncio.sleep(delay)

    async def search(self, query: str, platform: Optional[str] = None) -> list[AppSearchResult]:
        query = query.strip()
        if not query:
            raise ProviderError("Search query is empty")
        if platform is not None and platform not in MOBILE_PLATFORMS:
            raise ProviderError(f"No app store for platform '{platform}'")

        await self._wait(self.search_delay)

        slug = _slug(query)
        stores = [platform] if platform else list(MOBILE_PLATFORMS)
        results = []
        for store in stores:
            results.append(AppSearchResult(
                id=f"{store}-1",
                name=query,
                developer="Your Company Inc.",
                icon=f"https://placehold.co/120x120/3b82f6/ffffff?text={query[0].upper()}",
                store=store,
                bundle_id=f"com.yourcompany.{slug}" if store == IOS else None,
                package_name=f"com.yourcompany.{slug}" if store == ANDROID else None,
            ))
            results.append(AppSearchResult(
                id=f"{store}-2",
                name=f"{query} Pro",
                developer="Another Developer",
                icon=f"https://placehold.co/120x120/10b981/ffffff?text={query[0].upper()}",
                store=store,
                bundle_id=f"com.another.{slug}pro" if store == IOS else None,
                package_name=f"com.another.{slug}lite" if store == ANDROID else None,
            ))
        logger.debug(f"Simulated search '{query}' ({platform or 'all'}): {len(results)} results")
        return results

    async def detect_registration(self, app_key: str) -> bool:
        self.detect_calls += 1
        await self._wait(self.detection_delay)
        logger.debug(f"Simulated detection for '{app_key}': registered")
        return True
