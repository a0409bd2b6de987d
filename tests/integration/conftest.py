"""
Integration test fixtures for the onboarding API.

Provides:
- A TestClient around an app built with zero delays and an in-memory store
- The same client with a store that already holds survey answers
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from onboarding.api.main import create_app
from onboarding.config_models import OnboardingConfig
from onboarding.persistence import InMemoryStore


# ─────────────────────────────────────────────────────────────────────────────
# API Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def api_client() -> Generator[TestClient, None, None]:
    """Client for a fresh conversation; the lifespan greets the user."""
    app = create_app(config=OnboardingConfig.instant(), store=InMemoryStore())
    with TestClient(app) as client:
        yield client


@pytest.fixture
def seeded_api_client(seeded_store) -> Generator[TestClient, None, None]:
    app = create_app(config=OnboardingConfig.instant(), store=seeded_store)
    with TestClient(app) as client:
        yield client
