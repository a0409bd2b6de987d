"""
Tool: Step Graph Builder
Purpose: Materialize an app's ordered setup steps from its platform, framework and environment

Usage:
    from onboarding.steps.graph import build_steps, can_start_step

    steps = build_steps(["ios", "android"], "flutter", "production")
    [s.id for s in steps][:4]   # ['sdk-install', 'sdk-init', 'deeplink', 'sdk-test']
    can_start_step(steps, "sdk-init")   # False until sdk-install is completed

The catalogue below is declarative: each template carries a predicate over
the build inputs, evaluated once when the list is materialized. The order of
the catalogue is the canonical order, and the canonical order is the only
prerequisite structure: a step may start once every step before it in the
app's list is completed.

Phases:
    1 Registration (no steps, the new-app session)
    2 SDK setup, tracking links and deep link testing
    3 Event design
    4 Ad channel integration
    5 Verification
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from onboarding.protocol import vocabulary as v


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Only forward moves are allowed; setting the current status again is a no-op
STATUS_RANK = {
    StepStatus.PENDING: 0,
    StepStatus.IN_PROGRESS: 1,
    StepStatus.COMPLETED: 2,
}


@dataclass
class Step:
    """One unit of onboarding work owned by a single app."""
    id: str
    phase: int
    title: str
    description: str
    category: str                # 'sdk' | 'deeplink' | 'event-taxonomy' | 'integration' | platform
    status: StepStatus = StepStatus.PENDING

    @property
    def completed(self) -> bool:
        return self.status is StepStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["status"] = self.status.value
        return d


@dataclass(frozen=True)
class StepInputs:
    platforms: frozenset[str]
    framework: Optional[str]
    environment: str

    @property
    def has_mobile(self) -> bool:
        return any(p in self.platforms for p in v.MOBILE_PLATFORMS)

    @property
    def native(self) -> bool:
        return v.is_native_framework(self.framework)

    @property
    def production(self) -> bool:
        return self.environment == v.PRODUCTION


@dataclass(frozen=True)
class StepTemplate:
    id: str
    phase: int
    title: str
    description: str
    category: str
    applies: Callable[[StepInputs], bool]

    def materialize(self) -> Step:
        return Step(
            id=self.id,
            phase=self.phase,
            title=self.title,
            description=self.description,
            category=self.category,
        )


def _has(platform: str) -> Callable[[StepInputs], bool]:
    return lambda i: platform in i.platforms


def _unified(i: StepInputs) -> bool:
    return i.has_mobile and not i.native


def _native_on(platform: str) -> Callable[[StepInputs], bool]:
    return lambda i: i.native and platform in i.platforms


def _production(i: StepInputs) -> bool:
    return i.production


def _native_templates(platform: str) -> list[StepTemplate]:
    label = v.PLATFORM_LABELS[platform]
    return [
        StepTemplate(v.platform_step_id(platform, "install"), 2, f"{label} SDK Installation",
                     f"Install the {label} SDK package", platform, _native_on(platform)),
        StepTemplate(v.platform_step_id(platform, "init"), 2, f"{label} SDK Initialization",
                     f"Add SDK code to your {label} app", platform, _native_on(platform)),
        StepTemplate(v.platform_step_id(platform, "deeplink"), 2, f"{label} Deep Link Setup",
                     f"Configure {label} deep links", platform, _native_on(platform)),
    ]


STEP_CATALOGUE: tuple[StepTemplate, ...] = (
    StepTemplate(v.WEB_SDK_INSTALL, 2, "Web SDK Installation", "Install Web SDK", "sdk", _has(v.WEB)),
    StepTemplate(v.WEB_SDK_INIT, 2, "Web SDK Initialization", "Add SDK code to your site", "sdk", _has(v.WEB)),
    StepTemplate(v.SDK_INSTALL, 2, "SDK Installation", "Install SDK packages", "sdk", _unified),
    StepTemplate(v.SDK_INIT, 2, "SDK Initialization", "Add SDK code to your app", "sdk", _unified),
    StepTemplate(v.DEEPLINK, 2, "Deep Link Setup", "Configure deep links", "deeplink", _unified),
    *_native_templates(v.IOS),
    *_native_templates(v.ANDROID),
    StepTemplate(v.SDK_TEST, 2, "SDK Test", "Test SDK integration", "sdk",
                 lambda i: bool(i.platforms)),
    StepTemplate(v.TRACKING_LINK, 2, "Tracking Link", "Create tracking links", "deeplink", _production),
    StepTemplate(v.DEEPLINK_TEST, 2, "Deep Link Test", "Test deep link functionality", "deeplink", _production),
    StepTemplate(v.EVENT_TAXONOMY, 3, "Event Taxonomy", "Define events to track", "event-taxonomy", _production),
    StepTemplate(v.CHANNEL_SELECT, 4, "Channel Selection", "Select ad platforms", "integration", _production),
    StepTemplate(v.CHANNEL_INTEGRATION, 4, "Channel Integration", "Connect to ad platforms", "integration",
                 _production),
    StepTemplate(v.COST_INTEGRATION, 4, "Cost Integration", "Enable cost data import", "integration",
                 _production),
    StepTemplate(v.SKAN_INTEGRATION, 4, "SKAN Integration", "iOS attribution setup", "integration",
                 lambda i: i.production and v.IOS in i.platforms),
    StepTemplate(v.ATTRIBUTION_TEST, 5, "Attribution Test", "Verify attribution setup", "integration",
                 _production),
    StepTemplate(v.DATA_VERIFY, 5, "Data Verification", "Confirm data collection", "integration", _production),
)


def build_steps(platforms: Iterable[str], framework: Optional[str], environment: str) -> list[Step]:
    """Build a fresh step list, all pending, in canonical order.

    Args:
        platforms: Any of 'ios', 'android', 'web'
        framework: A framework id, or None when not chosen yet (builds the
            unified install/init/deeplink steps)
        environment: 'dev' or 'production'

    Raises:
        ValueError: On an unknown platform, framework or environment
    """
    platforms = frozenset(platforms)
    unknown = platforms - set(v.PLATFORMS)
    if unknown:
        raise ValueError(f"Unknown platforms: {sorted(unknown)}")
    if framework is not None and framework not in v.FRAMEWORK_LABELS:
        raise ValueError(f"Unknown framework: {framework}")
    if environment not in v.ENVIRONMENTS:
        raise ValueError(f"Unknown environment: {environment}")

    inputs = StepInputs(platforms=platforms, framework=framework, environment=environment)
    return [t.materialize() for t in STEP_CATALOGUE if t.applies(inputs)]


def step_index(steps: list[Step], step_id: str) -> int:
    for index, step in enumerate(steps):
        if step.id == step_id:
            return index
    raise KeyError(f"Step '{step_id}' is not part of this app")


def can_start_step(steps: list[Step], step_id: str) -> bool:
    """True iff every step before ``step_id`` in canonical order is completed."""
    index = step_index(steps, step_id)
    return all(s.completed for s in steps[:index])


def next_open_step(steps: list[Step]) -> Optional[Step]:
    """The first step in canonical order that is not completed."""
    for step in steps:
        if not step.completed:
            return step
    return None
