"""Pluggable async providers for store search and dashboard detection."""

from onboarding.providers.base import SimulatedProvider, StoreProvider

__all__ = ["SimulatedProvider", "StoreProvider"]
