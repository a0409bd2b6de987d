"""
Tool: App Registry
Purpose: Track every registered app and its independent setup progress

Usage:
    from onboarding.registry.apps import AppInfo, AppRegistry

    registry = AppRegistry()
    app = registry.register(AppInfo(app_name="shopapp"), ["ios"], "production", None)
    registry.update_step_status(app.id, "sdk-install", StepStatus.IN_PROGRESS)
    registry.progress(app.id)          # 0.0
    registry.overall_progress()

Each app owns its steps and transcript exclusively. Apps are never removed.
Exactly one app is expanded at any time once at least one app exists.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional

from onboarding.config_models import TokensConfig
from onboarding.errors import UnknownAppError
from onboarding.protocol.messages import Transcript
from onboarding.protocol.payloads import TrackingLink, EventConfig
from onboarding.protocol.vocabulary import CHANNEL_LABELS, DEV, FRAMEWORK_LABELS, IOS
from onboarding.steps.graph import (
    STATUS_RANK,
    Step,
    StepStatus,
    build_steps,
    can_start_step,
    step_index,
)

logger = logging.getLogger(__name__)

# Progress of an app or registry with no steps
NO_PROGRESS = 0.0


@dataclass
class AppInfo:
    app_name: str
    store_url: str = ""
    bundle_id: str = ""
    package_name: str = ""
    web_url: str = ""
    timezone: str = ""
    currency: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PlatformInfo:
    """Store identity of one platform, collected during registration."""
    platform: str
    app_name: str = ""
    bundle_id: str = ""
    package_name: str = ""
    web_url: str = ""
    store_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AppTokens:
    app_sdk_token: str
    web_sdk_token: str
    api_token: str

    @classmethod
    def generate(cls, config: TokensConfig | None = None) -> "AppTokens":
        """Three random opaque tokens, pairwise distinct."""
        config = config or TokensConfig()

        def token() -> str:
            return "".join(secrets.choice(config.alphabet) for _ in range(config.length))

        values: list[str] = []
        while len(values) < 3:
            candidate = token()
            if candidate not in values:
                values.append(candidate)
        return cls(*values)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class ChannelState:
    """Integration progress of one ad channel for one app."""
    channel: str
    stages: dict[str, str]       # stage -> 'pending' | 'in_progress' | 'completed' | 'skipped'
    version_checked: bool = False

    def current_stage(self) -> Optional[str]:
        for stage, status in self.stages.items():
            if status in ("pending", "in_progress"):
                return stage
        return None

    @property
    def finished(self) -> bool:
        return self.current_stage() is None


@dataclass
class RegisteredApp:
    """One app going through onboarding.

    Attributes:
        id: Stable UUID
        app_info: Name, store identity, timezone and currency
        platforms: Platforms the app ships on
        environment: 'dev' or 'production'
        steps: Setup steps in canonical order
        current_phase: Highest phase started so far
        framework: Chosen framework, None until selected
        channels: Selected ad channels
        tokens: Generated once at registration
        transcript: This app's chat history
        is_expanded: Whether this app's panel is the open one
    """
    app_info: AppInfo
    platforms: list[str]
    environment: str
    steps: list[Step]
    current_phase: int
    tokens: AppTokens
    framework: Optional[str] = None
    channels: list[str] = field(default_factory=list)
    transcript: Transcript = field(default_factory=Transcript)
    is_expanded: bool = False
    platform_infos: list[PlatformInfo] = field(default_factory=list)
    channel_states: dict[str, ChannelState] = field(default_factory=dict)
    tracking_links: list[TrackingLink] = field(default_factory=list)
    events: list[EventConfig] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def name(self) -> str:
        return self.app_info.app_name

    @property
    def has_ios(self) -> bool:
        return IOS in self.platforms

    def step(self, step_id: str) -> Step:
        return self.steps[step_index(self.steps, step_id)]

    def has_step(self, step_id: str) -> bool:
        return any(s.id == step_id for s in self.steps)

    def to_dict(self, include_messages: bool = False) -> dict[str, Any]:
        d = {
            "id": self.id,
            "app_info": self.app_info.to_dict(),
            "platforms": list(self.platforms),
            "environment": self.environment,
            "steps": [s.to_dict() for s in self.steps],
            "current_phase": self.current_phase,
            "framework": self.framework,
            "channels": list(self.channels),
            "tokens": self.tokens.to_dict(),
            "is_expanded": self.is_expanded,
            "pending": self.transcript.pending_kind,
        }
        if include_messages:
            d["messages"] = self.transcript.to_list()
        return d


class AppRegistry:
    """All registered apps, in registration order."""

    def __init__(self, tokens: TokensConfig | None = None):
        self._apps: dict[str, RegisteredApp] = {}
        self._tokens = tokens or TokensConfig()

    def __len__(self) -> int:
        return len(self._apps)

    def __iter__(self):
        return iter(self._apps.values())

    def __contains__(self, app_id: str) -> bool:
        return app_id in self._apps

    @property
    def apps(self) -> list[RegisteredApp]:
        return list(self._apps.values())

    @property
    def expanded(self) -> Optional[RegisteredApp]:
        for app in self._apps.values():
            if app.is_expanded:
                return app
        return None

    def get(self, app_id: str) -> RegisteredApp:
        try:
            return self._apps[app_id]
        except KeyError:
            raise UnknownAppError(f"No app with id {app_id}") from None

    def register(
        self,
        app_info: AppInfo,
        platforms: Iterable[str],
        environment: str,
        framework: Optional[str] = None,
        transcript: Transcript | None = None,
        platform_infos: Iterable[PlatformInfo] = (),
    ) -> RegisteredApp:
        """Create an app with fresh steps and tokens, and expand it.

        Raises:
            ValueError: On an unknown platform, framework or environment
        """
        platforms = list(platforms)
        steps = build_steps(platforms, framework, environment)
        app = RegisteredApp(
            app_info=app_info,
            platforms=platforms,
            environment=environment,
            steps=steps,
            current_phase=1 if environment == DEV else 2,
            tokens=AppTokens.generate(self._tokens),
            framework=framework,
            transcript=transcript if transcript is not None else Transcript(),
            platform_infos=list(platform_infos),
        )
        self._apps[app.id] = app
        self.expand(app.id)
        logger.info(
            f"Registered app {app.name} ({app.id}): {environment}, "
            f"platforms={platforms}, {len(steps)} steps"
        )
        return app

    def expand(self, app_id: str) -> RegisteredApp:
        """Expand one app and collapse every other."""
        target = self.get(app_id)
        for app in self._apps.values():
            app.is_expanded = app is target
        return target

    def update_step_status(self, app_id: str, step_id: str, status: StepStatus) -> bool:
        """Move a step forward.

        Returns True when the step now has ``status`` (including when it
        already had it). Returns False, changing nothing, for an unknown step,
        a backwards move, or a start whose earlier steps are not completed.
        """
        app = self.get(app_id)
        if not app.has_step(step_id):
            logger.info(f"Refused status change: {app.name} has no step '{step_id}'")
            return False

        step = app.step(step_id)
        status = StepStatus(status)
        if step.status is status:
            return True
        if STATUS_RANK[status] < STATUS_RANK[step.status]:
            logger.info(f"Refused demotion of {step_id} from {step.status.value} to {status.value}")
            return False
        if not can_start_step(app.steps, step_id):
            logger.info(f"Refused {step_id} -> {status.value}: earlier steps not completed")
            return False

        step.status = status
        self.advance_phase(app_id, step.phase)
        logger.debug(f"{app.name}: {step_id} -> {status.value}")
        return True

    def advance_phase(self, app_id: str, phase: int) -> int:
        """Raise the app's current phase; it never goes down."""
        app = self.get(app_id)
        app.current_phase = max(app.current_phase, phase)
        return app.current_phase

    def set_framework(self, app_id: str, framework: Optional[str]) -> None:
        if framework is not None and framework not in FRAMEWORK_LABELS:
            raise ValueError(f"Unknown framework: {framework}")
        self.get(app_id).framework = framework

    def set_channels(self, app_id: str, channels: Iterable[str]) -> None:
        channels = list(dict.fromkeys(channels))
        unknown = [c for c in channels if c not in CHANNEL_LABELS]
        if unknown:
            raise ValueError(f"Unknown channels: {unknown}")
        self.get(app_id).channels = channels

    def progress(self, app_id: str) -> float:
        steps = self.get(app_id).steps
        if not steps:
            return NO_PROGRESS
        return sum(1 for s in steps if s.completed) / len(steps)

    def overall_progress(self) -> float:
        total = sum(len(app.steps) for app in self._apps.values())
        if total == 0:
            return NO_PROGRESS
        completed = sum(1 for app in self._apps.values() for s in app.steps if s.completed)
        return completed / total

    def to_list(self) -> list[dict[str, Any]]:
        return [app.to_dict() for app in self._apps.values()]
