"""Tests for onboarding/providers/base.py

Tests the SimulatedProvider class:
- Mock search listings per store
- Provider errors for unsearchable input
- Registration detection
"""

import asyncio

import pytest

from onboarding.config_models import ProvidersConfig
from onboarding.errors import ProviderError
from onboarding.providers.base import SimulatedProvider, StoreProvider


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_one_store(self, provider):
        results = await provider.search("Shop App", "ios")

        assert [r.id for r in results] == ["ios-1", "ios-2"]
        assert results[0].bundle_id == "com.yourcompany.shopapp"
        assert results[0].package_name is None
        assert results[1].name == "Shop App Pro"

    @pytest.mark.asyncio
    async def test_search_android_uses_package_names(self, provider):
        results = await provider.search("Shop", "android")

        assert results[0].package_name == "com.yourcompany.shop"
        assert results[1].package_name == "com.another.shoplite"

    @pytest.mark.asyncio
    async def test_search_both_stores(self, provider):
        results = await provider.search("Shop")

        assert {r.store for r in results} == {"ios", "android"}
        assert len(results) == 4

    @pytest.mark.asyncio
    async def test_empty_query_fails(self, provider):
        with pytest.raises(ProviderError):
            await provider.search("   ", "ios")

    @pytest.mark.asyncio
    async def test_web_has_no_store(self, provider):
        with pytest.raises(ProviderError):
            await provider.search("Shop", "web")

    @pytest.mark.asyncio
    async def test_search_waits_for_delay(self):
        provider = SimulatedProvider(search_delay=0.5)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(provider.search("Shop", "ios"), timeout=0.05)


class TestDetection:
    @pytest.mark.asyncio
    async def test_detection_reports_registered(self, provider):
        assert await provider.detect_registration("shopapp") is True
        assert provider.detect_calls == 1


class TestConstruction:
    def test_from_config(self):
        provider = SimulatedProvider.from_config(ProvidersConfig(search_delay_seconds=1.5, jitter_seconds=0.2))

        assert provider.search_delay == 1.5
        assert provider.detection_delay == 5.0
        assert provider.jitter == 0.2
        assert provider.name == "simulated"

    def test_is_a_store_provider(self, provider):
        assert isinstance(provider, StoreProvider)
