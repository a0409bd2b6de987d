"""
Onboarding API - FastAPI Application

Serves the conversation engine to a chat front end. The front end renders
each payload and posts the user's actions back.

Usage:
    uvicorn onboarding.api.main:app --host 127.0.0.1 --port 8080

    Or:
    onboarding serve
"""

import logging
from contextlib import asynccontextmanager

# Load .env file before anything else
from dotenv import load_dotenv
load_dotenv()

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from onboarding import __version__
from onboarding.api.routes import router as onboarding_router
from onboarding.config_models import OnboardingConfig, load_onboarding_config
from onboarding.flow.controller import FlowController
from onboarding.logging_config import setup_logging
from onboarding.persistence import KeyValueStore, SessionSeed, open_store
from onboarding.providers.base import SimulatedProvider, StoreProvider
from onboarding.registry.apps import AppRegistry

logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def create_app(
    config: OnboardingConfig | None = None,
    provider: StoreProvider | None = None,
    store: KeyValueStore | None = None,
) -> FastAPI:
    """Build the API around a fresh conversation."""
    setup_logging()
    config = config or load_onboarding_config()
    store = store if store is not None else open_store(config.persistence.store_path)

    flow = FlowController(
        registry=AppRegistry(config.tokens),
        provider=provider or SimulatedProvider.from_config(config.providers),
        config=config,
        seed=SessionSeed.from_store(store),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting onboarding API...")
        await flow.start()
        if config.api.settle_actions:
            await flow.settle()
        yield
        logger.info("Shutting down onboarding API...")

    app = FastAPI(
        title="SDK Onboarding API",
        description="Conversational setup wizard for measurement SDK onboarding",
        version=__version__,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_router = APIRouter(prefix="/api")
    api_router.include_router(onboarding_router, prefix="/onboarding", tags=["onboarding"])
    app.include_router(api_router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "version": __version__, "apps": len(flow.registry)}

    app.state.flow = flow
    app.state.store = store
    return app


app = create_app()
