"""Shared test fixtures for onboarding tests.

This module provides common fixtures used across all test modules:
- Zero-latency configuration and providers
- A flow controller plus a Driver that answers prompts and drains turns
- Session stores seeded with survey answers

Usage:
    @pytest.mark.asyncio
    async def test_something(driver):
        await driver.start()
        await driver.answer("environment-select", "dev")
"""

from typing import Any, Optional

import pytest

from onboarding.config_models import OnboardingConfig
from onboarding.errors import ProviderError
from onboarding.flow.controller import FlowController, UserAction
from onboarding.persistence import InMemoryStore, SessionSeed
from onboarding.protocol.payloads import AppSearchResult
from onboarding.providers.base import SimulatedProvider, StoreProvider
from onboarding.registry.apps import AppRegistry, RegisteredApp


# ─────────────────────────────────────────────────────────────────────────────
# Providers
# ─────────────────────────────────────────────────────────────────────────────


class StubProvider(StoreProvider):
    """Provider with scripted answers; ``fail`` makes every call raise."""

    def __init__(self, results: list[AppSearchResult] | None = None, registered: bool = True, fail: bool = False):
        self.results = results or []
        self.registered = registered
        self.fail = fail
        self.searches: list[tuple[str, Optional[str]]] = []
        self.detections: list[str] = []

    @property
    def name(self) -> str:
        return "stub"

    async def search(self, query, platform=None):
        self.searches.append((query, platform))
        if self.fail:
            raise ProviderError("store unreachable")
        return list(self.results)

    async def detect_registration(self, app_key):
        self.detections.append(app_key)
        if self.fail:
            raise ProviderError("dashboard unreachable")
        return self.registered


@pytest.fixture
def instant_config() -> OnboardingConfig:
    """Config with every delay set to zero."""
    return OnboardingConfig.instant()


@pytest.fixture
def provider() -> SimulatedProvider:
    return SimulatedProvider(search_delay=0, detection_delay=0)


@pytest.fixture
def failing_provider() -> StubProvider:
    return StubProvider(fail=True)


@pytest.fixture
def registry(instant_config) -> AppRegistry:
    return AppRegistry(instant_config.tokens)


# ─────────────────────────────────────────────────────────────────────────────
# Flow Controller
# ─────────────────────────────────────────────────────────────────────────────


class Driver:
    """Plays the user's side of the conversation in tests."""

    def __init__(self, flow: FlowController):
        self.flow = flow

    async def start(self) -> None:
        await self.flow.start()
        await self.flow.settle()

    async def act(self, action: UserAction) -> dict[str, Any]:
        result = await self.flow.dispatch(action)
        await self.flow.settle()
        return result

    async def answer(self, prompt: str, value: Any = None, app_id: Optional[str] = None) -> dict[str, Any]:
        """Answer the pending prompt; fails the test if the answer is rejected."""
        result = await self.act(UserAction.answer(prompt, value, app_id=app_id))
        assert result["success"], result
        return result

    def pending(self, context: str = "session") -> Optional[str]:
        return self.flow.transcript(context).pending_kind

    async def register_dev(self, key: str = "shopapp", platforms=("web",)) -> RegisteredApp:
        await self.answer("environment-select", "dev")
        await self.answer("app-name-input-dev", key)
        await self.answer("platform-multi-select", list(platforms))
        await self.answer("timezone-currency-confirm", "confirm")
        return self.flow.registry.apps[-1]

    async def register_production(self, platforms=("ios",), query: str = "Shop App") -> RegisteredApp:
        await self.answer("environment-select", "production")
        await self.answer("platform-multi-select", list(platforms))
        for platform in platforms:
            if platform == "web":
                await self.answer("platform-registration", {"mode": "url", "url": "https://shop.example.com"})
            else:
                await self.answer("platform-registration", {"mode": "search", "query": query})
                await self.answer("app-search-results", f"{platform}-1")
        await self.answer("timezone-currency-confirm", "confirm")
        return self.flow.registry.apps[-1]


@pytest.fixture
def flow(registry, provider, instant_config) -> FlowController:
    return FlowController(registry=registry, provider=provider, config=instant_config)


@pytest.fixture
def driver(flow) -> Driver:
    return Driver(flow)


@pytest.fixture
def seeded_store() -> InMemoryStore:
    """Store holding the answers of a finished survey."""
    store = InMemoryStore()
    store.set_json("surveyAnswers", {"1": "Acme", "2": "no", "5": "attribution", "6": ["meta", "google", "other"]})
    store.set_json("termsAgreement", {"agreedAt": "2026-01-05T09:00:00", "marketingConsent": True})
    return store


@pytest.fixture
def seed(seeded_store) -> SessionSeed:
    return SessionSeed.from_store(seeded_store)


@pytest.fixture
def make_driver(registry, instant_config):
    """Driver around a controller using the given provider (and optional seed)."""

    def make(provider: StoreProvider, seed: SessionSeed | None = None) -> Driver:
        return Driver(FlowController(registry, provider, instant_config, seed=seed))

    return make


@pytest.fixture
def undetected_provider() -> StubProvider:
    """Provider whose dashboard never shows the app as registered."""
    return StubProvider(registered=False)
