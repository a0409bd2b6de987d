"""
Tool: Chat Payloads
Purpose: The closed set of typed payloads carried by bot and user turns

Usage:
    from onboarding.protocol.payloads import PlatformRegistration, Text

    turn = [
        Text("Let's register your iOS app."),
        PlatformRegistration(platform="ios", platform_index=0, total_platforms=2),
    ]

Each variant is a frozen dataclass registered under its wire ``type``. A
variant carries exactly the data its interactive control needs and nothing
about layout. Variants flagged ``decision`` wait for a user answer; the
others only narrate.

Invalid field combinations raise PayloadError at construction, so a payload
that exists is always renderable.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar

from onboarding.errors import PayloadError
from onboarding.protocol.vocabulary import (
    CHANNEL_LABELS,
    CHANNEL_STAGES,
    ENVIRONMENTS,
    MOBILE_PLATFORMS,
    PLATFORMS,
)

# Wire type -> payload class. Filled by @payload.
PAYLOAD_TYPES: dict[str, type["Payload"]] = {}


def payload(kind: str, *, decision: bool = False):
    """Register a payload dataclass under its wire type."""

    def register(cls: type[Payload]) -> type[Payload]:
        if kind in PAYLOAD_TYPES:
            raise PayloadError(f"Duplicate payload type: {kind}")
        cls.kind = kind
        cls.decision = decision
        PAYLOAD_TYPES[kind] = cls
        return cls

    return register


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise PayloadError(message)


@dataclass(frozen=True)
class Payload:
    kind: ClassVar[str] = ""
    decision: ClassVar[bool] = False

    @property
    def type(self) -> str:
        return self.kind

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict, tagged with ``type``."""
        data = asdict(self)
        data["type"] = self.type
        return data


# =============================================================================
# Payload data records
# =============================================================================


@dataclass(frozen=True)
class Option:
    label: str
    value: str
    description: str = ""


@dataclass(frozen=True)
class AppSearchResult:
    """One store listing returned by an app search."""
    id: str
    name: str
    developer: str
    icon: str
    store: str                   # 'ios' | 'android'
    bundle_id: str | None = None
    package_name: str | None = None


@dataclass(frozen=True)
class InitSnippet:
    platform: str                # platform or framework the snippet targets
    language: str
    code: str


@dataclass(frozen=True)
class ChannelStage:
    id: str                      # 'channel' | 'cost' | 'skan'
    label: str
    status: str                  # 'pending' | 'in_progress' | 'completed' | 'skipped'
    required: bool


@dataclass(frozen=True)
class StandardEvent:
    id: str
    name: str
    description: str
    category: str                # 'lifecycle' | 'engagement' | 'ecommerce'
    is_automatic: bool = False


@dataclass(frozen=True)
class EventConfig:
    event_id: str
    event_name: str
    is_standard: bool


@dataclass(frozen=True)
class TrackingLink:
    id: str
    name: str
    channel: str
    url: str
    short_url: str


@dataclass(frozen=True)
class DeeplinkTestScenario:
    id: str
    name: str
    description: str
    status: str                  # 'pending' | 'testing' | 'passed' | 'failed'


@dataclass(frozen=True)
class DataVerifyMetrics:
    events_received: int
    attribution_verified: bool
    deeplink_verified: bool


@dataclass(frozen=True)
class CompletionData:
    app_name: str
    platforms: tuple[str, ...]
    framework: str | None
    channels: tuple[str, ...]


STANDARD_EVENTS = (
    StandardEvent("install", "Install", "First app open after install", "lifecycle", True),
    StandardEvent("open", "Open", "App opened", "lifecycle", True),
    StandardEvent("signup", "Sign Up", "User created an account", "lifecycle"),
    StandardEvent("signin", "Sign In", "User logged in", "lifecycle"),
    StandardEvent("view_content", "View Content", "User viewed a content page", "engagement"),
    StandardEvent("search", "Search", "User ran a search", "engagement"),
    StandardEvent("share", "Share", "User shared content", "engagement"),
    StandardEvent("view_product", "View Product", "User viewed a product", "ecommerce"),
    StandardEvent("add_to_cart", "Add to Cart", "User added a product to the cart", "ecommerce"),
    StandardEvent("purchase", "Purchase", "User completed an order", "ecommerce"),
)


# =============================================================================
# Narration (no user decision)
# =============================================================================


@payload("text")
@dataclass(frozen=True)
class Text(Payload):
    text: str

    def __post_init__(self) -> None:
        _require(bool(self.text), "text payload needs text")


@payload("code-block")
@dataclass(frozen=True)
class CodeBlock(Payload):
    title: str
    code: str
    language: str = "bash"


@payload("app-search-loading")
@dataclass(frozen=True)
class AppSearchLoading(Payload):
    query: str
    platform: str | None = None

    def __post_init__(self) -> None:
        _require(bool(self.query.strip()), "search query must not be empty")
        _require(self.platform in (None, *MOBILE_PLATFORMS), f"cannot search store for {self.platform}")


@payload("channel-progress")
@dataclass(frozen=True)
class ChannelProgress(Payload):
    channel: str
    stages: tuple[ChannelStage, ...]
    has_ios: bool


@payload("deeplink-complete")
@dataclass(frozen=True)
class DeeplinkComplete(Payload):
    pass


@payload("sdk-test-result")
@dataclass(frozen=True)
class SdkTestResult(Payload):
    passed: bool
    install: bool
    init: bool
    events: bool


@payload("deeplink-test-result")
@dataclass(frozen=True)
class DeeplinkTestResult(Payload):
    scenarios: tuple[DeeplinkTestScenario, ...]


@payload("attribution-test-result")
@dataclass(frozen=True)
class AttributionTestResult(Payload):
    passed: bool


@payload("data-verify-result")
@dataclass(frozen=True)
class DataVerifyResult(Payload):
    metrics: DataVerifyMetrics


# =============================================================================
# Registration prompts
# =============================================================================


@payload("environment-select", decision=True)
@dataclass(frozen=True)
class EnvironmentSelect(Payload):
    pass


@payload("app-name-input-dev", decision=True)
@dataclass(frozen=True)
class AppNameInputDev(Payload):
    pass


@payload("platform-multi-select", decision=True)
@dataclass(frozen=True)
class PlatformMultiSelect(Payload):
    environment: str

    def __post_init__(self) -> None:
        _require(self.environment in ENVIRONMENTS, f"unknown environment: {self.environment}")


@payload("platform-registration", decision=True)
@dataclass(frozen=True)
class PlatformRegistration(Payload):
    platform: str
    platform_index: int
    total_platforms: int

    def __post_init__(self) -> None:
        _require(self.platform in PLATFORMS, f"unknown platform: {self.platform}")
        _require(self.total_platforms >= 1, "total_platforms must be at least 1")
        _require(
            0 <= self.platform_index < self.total_platforms,
            f"platform_index {self.platform_index} outside 0..{self.total_platforms - 1}",
        )


@payload("app-search-results", decision=True)
@dataclass(frozen=True)
class AppSearchResults(Payload):
    results: tuple[AppSearchResult, ...]
    query: str
    platform: str | None = None


@payload("app-info-form", decision=True)
@dataclass(frozen=True)
class AppInfoForm(Payload):
    platform: str

    def __post_init__(self) -> None:
        _require(self.platform in PLATFORMS, f"unknown platform: {self.platform}")


@payload("dashboard-action", decision=True)
@dataclass(frozen=True)
class DashboardAction(Payload):
    app_name: str
    bundle_id: str = ""
    package_name: str = ""

    def __post_init__(self) -> None:
        _require(bool(self.app_name), "dashboard action needs an app name")


@payload("timezone-currency-confirm", decision=True)
@dataclass(frozen=True)
class TimezoneCurrencyConfirm(Payload):
    timezone: str
    currency: str

    def __post_init__(self) -> None:
        _require(bool(self.timezone and self.currency), "timezone and currency are required")


@payload("timezone-currency-input", decision=True)
@dataclass(frozen=True)
class TimezoneCurrencyInput(Payload):
    pass


@payload("token-display", decision=True)
@dataclass(frozen=True)
class TokenDisplay(Payload):
    app_sdk_token: str
    web_sdk_token: str
    api_token: str

    def __post_init__(self) -> None:
        tokens = (self.app_sdk_token, self.web_sdk_token, self.api_token)
        _require(all(tokens), "tokens must not be empty")
        _require(len(set(tokens)) == 3, "tokens must be distinct")


# =============================================================================
# SDK setup prompts
# =============================================================================


@payload("sdk-install-choice", decision=True)
@dataclass(frozen=True)
class SdkInstallChoice(Payload):
    pass


@payload("sdk-guide-share", decision=True)
@dataclass(frozen=True)
class SdkGuideShare(Payload):
    app_name: str
    platforms: tuple[str, ...]
    framework: str | None = None


@payload("confirm-select", decision=True)
@dataclass(frozen=True)
class ConfirmSelect(Payload):
    options: tuple[Option, ...]

    def __post_init__(self) -> None:
        _require(len(self.options) > 0, "confirm-select needs options")


@payload("single-select", decision=True)
@dataclass(frozen=True)
class SingleSelect(Payload):
    options: tuple[Option, ...]

    def __post_init__(self) -> None:
        _require(len(self.options) > 0, "single-select needs options")


@payload("framework-select", decision=True)
@dataclass(frozen=True)
class FrameworkSelect(Payload):
    pass


@payload("sdk-init-code", decision=True)
@dataclass(frozen=True)
class SdkInitCode(Payload):
    app_name: str
    app_token: str
    framework: str | None = None
    snippets: tuple[InitSnippet, ...] = ()

    def __post_init__(self) -> None:
        _require(bool(self.app_name and self.app_token), "sdk-init-code needs app name and token")


@payload("deeplink-choice", decision=True)
@dataclass(frozen=True)
class DeeplinkChoice(Payload):
    pass


@payload("web-sdk-method-select", decision=True)
@dataclass(frozen=True)
class WebSdkMethodSelect(Payload):
    app_name: str
    web_token: str


@payload("web-sdk-install-code", decision=True)
@dataclass(frozen=True)
class WebSdkInstallCode(Payload):
    method: str
    app_name: str
    web_token: str
    code: str

    def __post_init__(self) -> None:
        _require(self.method in ("script", "package"), f"unknown web install method: {self.method}")


@payload("web-sdk-init-options", decision=True)
@dataclass(frozen=True)
class WebSdkInitOptions(Payload):
    app_name: str
    web_token: str
    code: str


@payload("sdk-test", decision=True)
@dataclass(frozen=True)
class SdkTest(Payload):
    pass


@payload("sdk-verify", decision=True)
@dataclass(frozen=True)
class SdkVerify(Payload):
    pass


@payload("dev-completion-summary", decision=True)
@dataclass(frozen=True)
class DevCompletionSummary(Payload):
    app_name: str


# =============================================================================
# Deep link, event and verification prompts
# =============================================================================


@payload("tracking-link-form", decision=True)
@dataclass(frozen=True)
class TrackingLinkForm(Payload):
    channel: str


@payload("tracking-link-complete", decision=True)
@dataclass(frozen=True)
class TrackingLinkComplete(Payload):
    links: tuple[TrackingLink, ...]

    def __post_init__(self) -> None:
        _require(len(self.links) > 0, "tracking-link-complete needs at least one link")


@payload("deeplink-test", decision=True)
@dataclass(frozen=True)
class DeeplinkTest(Payload):
    pass


@payload("standard-event-select", decision=True)
@dataclass(frozen=True)
class StandardEventSelect(Payload):
    events: tuple[StandardEvent, ...] = STANDARD_EVENTS


@payload("custom-event-input", decision=True)
@dataclass(frozen=True)
class CustomEventInput(Payload):
    pass


@payload("event-verify", decision=True)
@dataclass(frozen=True)
class EventVerify(Payload):
    pass


@payload("event-taxonomy-summary", decision=True)
@dataclass(frozen=True)
class EventTaxonomySummary(Payload):
    events: tuple[EventConfig, ...]


@payload("attribution-test", decision=True)
@dataclass(frozen=True)
class AttributionTest(Payload):
    pass


@payload("data-verify", decision=True)
@dataclass(frozen=True)
class DataVerify(Payload):
    pass


@payload("onboarding-complete", decision=True)
@dataclass(frozen=True)
class OnboardingComplete(Payload):
    app_name: str


# =============================================================================
# Ad channel prompts
# =============================================================================


@payload("channel-select", decision=True)
@dataclass(frozen=True)
class ChannelSelect(Payload):
    preselected: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        unknown = [c for c in self.preselected if c not in CHANNEL_LABELS]
        _require(not unknown, f"unknown channels: {unknown}")


@payload("completion-summary", decision=True)
@dataclass(frozen=True)
class CompletionSummary(Payload):
    data: CompletionData


@payload("channel-integration-overview", decision=True)
@dataclass(frozen=True)
class ChannelIntegrationOverview(Payload):
    selected_channels: tuple[str, ...]

    def __post_init__(self) -> None:
        _require(len(self.selected_channels) > 0, "overview needs at least one channel")


@payload("apple-version-check", decision=True)
@dataclass(frozen=True)
class AppleVersionCheck(Payload):
    pass


@payload("channel-completion", decision=True)
@dataclass(frozen=True)
class ChannelCompletion(Payload):
    channel: str


@dataclass(frozen=True)
class ChannelStagePrompt(Payload):
    """Integration guide for one stage of one ad channel.

    Serialized as ``<channel>-<stage>-integration`` (e.g.
    ``meta-cost-integration``); each combination is its own wire type.
    """
    channel: str
    stage: str

    decision: ClassVar[bool] = True

    def __post_init__(self) -> None:
        _require(self.channel in CHANNEL_LABELS, f"unknown channel: {self.channel}")
        _require(self.stage in CHANNEL_STAGES, f"unknown stage: {self.stage}")
        _require(
            not (self.channel == "apple" and self.stage == "skan"),
            "Apple Search Ads has no SKAN stage",
        )

    @property
    def type(self) -> str:
        return f"{self.channel}-{self.stage}-integration"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "channel": self.channel, "stage": self.stage}


for _channel in CHANNEL_LABELS:
    for _stage in CHANNEL_STAGES:
        if not (_channel == "apple" and _stage == "skan"):
            PAYLOAD_TYPES[f"{_channel}-{_stage}-integration"] = ChannelStagePrompt


def decision_payloads(payloads) -> list[Payload]:
    """The payloads in a turn that wait for a user answer."""
    return [p for p in payloads if p.decision]
