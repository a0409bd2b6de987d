from __future__ import annotations

import logging
import os

import yaml
from pydantic import BaseModel, ConfigDict, Field

from onboarding import ARGS_DIR

logger = logging.getLogger(__name__)


# =============================================================================
# OnboardingConfig (args/onboarding.yaml)
# =============================================================================

class LatencyConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    typing_seconds: float = Field(default=0.6, ge=0)
    step_transition_seconds: float = Field(default=0.3, ge=0)
    welcome_pause_seconds: float = Field(default=0.9, ge=0)


class ProvidersConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    search_delay_seconds: float = Field(default=2.0, ge=0)
    detection_delay_seconds: float = Field(default=5.0, ge=0)
    jitter_seconds: float = Field(default=0.0, ge=0)
    timeout_seconds: float = Field(default=30.0, gt=0)


class TokensConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    alphabet: str = Field(default="abcdefghijklmnopqrstuvwxyz0123456789", min_length=2)
    length: int = Field(default=32, ge=8)


class RegionalConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    default_timezone: str = Field(default="Asia/Seoul (KST, UTC+9)", min_length=1)
    default_currency: str = Field(default="KRW (Korean Won)", min_length=1)


class ApiConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1, le=65535)
    settle_actions: bool = Field(default=True)


class PersistenceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    store_path: str = Field(default="data/session_store.json")


class OnboardingConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    latency: LatencyConfig = Field(default_factory=LatencyConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    tokens: TokensConfig = Field(default_factory=TokensConfig)
    regional: RegionalConfig = Field(default_factory=RegionalConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)

    @classmethod
    def instant(cls) -> "OnboardingConfig":
        """Config with every simulated delay set to zero (scripted runs, tests)."""
        return cls(
            latency={"typing_seconds": 0, "step_transition_seconds": 0, "welcome_pause_seconds": 0},
            providers={"search_delay_seconds": 0, "detection_delay_seconds": 0, "jitter_seconds": 0},
        )


# =============================================================================
# Loader
# =============================================================================

_CONFIG_MAP: dict[str, type[BaseModel]] = {
    "onboarding": OnboardingConfig,
}


def load_and_validate(config_name: str, model_class: type[BaseModel] | None = None) -> BaseModel:
    if model_class is None:
        model_class = _CONFIG_MAP.get(config_name)
        if model_class is None:
            raise ValueError(f"Unknown config: {config_name}. Available: {list(_CONFIG_MAP.keys())}")

    yaml_path = ARGS_DIR / f"{config_name}.yaml"

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        return model_class.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {config_name}: {e}, using defaults")
        return model_class()


def load_onboarding_config() -> OnboardingConfig:
    """Load args/onboarding.yaml and apply environment overrides."""
    config = load_and_validate("onboarding")
    store_path = os.environ.get("ONBOARDING_STORE_PATH")
    if store_path:
        config.persistence.store_path = store_path
    return config
