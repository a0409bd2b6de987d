"""Registered apps and the draft session for the app being registered."""

from onboarding.registry.apps import (
    NO_PROGRESS,
    AppInfo,
    AppRegistry,
    AppTokens,
    ChannelState,
    PlatformInfo,
    RegisteredApp,
)
from onboarding.registry.session import SetupSession

__all__ = [
    "AppInfo",
    "AppRegistry",
    "AppTokens",
    "ChannelState",
    "NO_PROGRESS",
    "PlatformInfo",
    "RegisteredApp",
    "SetupSession",
]
