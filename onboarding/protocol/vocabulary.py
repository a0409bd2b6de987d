"""
Fixed vocabularies shared by payloads, the step graph and the flow controller.

Every identifier that crosses the render boundary (platforms, frameworks, ad
channels, step ids) is declared here once, with the label a renderer shows
for it.
"""

# Platforms
IOS = "ios"
ANDROID = "android"
WEB = "web"

PLATFORMS = (IOS, ANDROID, WEB)
MOBILE_PLATFORMS = (IOS, ANDROID)

PLATFORM_LABELS = {
    IOS: "iOS",
    ANDROID: "Android",
    WEB: "Web",
}

# Environments
DEV = "dev"
PRODUCTION = "production"

ENVIRONMENTS = (DEV, PRODUCTION)

ENVIRONMENT_LABELS = {
    DEV: "Development",
    PRODUCTION: "Production",
}

# Frameworks
FRAMEWORK_LABELS = {
    "react-native": "React Native",
    "flutter": "Flutter",
    "expo": "Expo",
    "unity": "Unity",
    "ios-native": "iOS Native",
    "android-native": "Android Native",
}

FRAMEWORKS = tuple(FRAMEWORK_LABELS)

# One SDK package serves every mobile platform for these
CROSS_PLATFORM_FRAMEWORKS = frozenset({"react-native", "flutter", "expo", "unity"})


def is_native_framework(framework: str | None) -> bool:
    """True for a chosen framework that needs a separate SDK per platform.

    ``None`` means no framework has been chosen yet, which is not native.
    """
    return framework is not None and framework not in CROSS_PLATFORM_FRAMEWORKS


# Ad channels
CHANNEL_LABELS = {
    "meta": "Meta Ads",
    "google": "Google Ads",
    "apple": "Apple Search Ads",
    "tiktok": "TikTok For Business",
}

CHANNELS = tuple(CHANNEL_LABELS)

# Integration stages per ad channel, in order. Apple Search Ads has no SKAN stage.
CHANNEL_STAGES = ("channel", "cost", "skan")

CHANNEL_STAGE_LABELS = {
    "channel": "Channel Integration",
    "cost": "Cost Integration",
    "skan": "SKAN Integration",
}


def channel_stages(channel: str, has_ios: bool) -> tuple[str, ...]:
    """Stages a channel goes through for an app."""
    if has_ios and channel != "apple":
        return CHANNEL_STAGES
    return CHANNEL_STAGES[:2]


# Step identifiers
WEB_SDK_INSTALL = "web-sdk-install"
WEB_SDK_INIT = "web-sdk-init"
SDK_INSTALL = "sdk-install"
SDK_INIT = "sdk-init"
DEEPLINK = "deeplink"
SDK_TEST = "sdk-test"
TRACKING_LINK = "tracking-link"
DEEPLINK_TEST = "deeplink-test"
EVENT_TAXONOMY = "event-taxonomy"
CHANNEL_SELECT = "channel-select"
CHANNEL_INTEGRATION = "channel-integration"
COST_INTEGRATION = "cost-integration"
SKAN_INTEGRATION = "skan-integration"
ATTRIBUTION_TEST = "attribution-test"
DATA_VERIFY = "data-verify"


def platform_step_id(platform: str, role: str) -> str:
    """Per-platform step id for native frameworks, e.g. ``ios-deeplink-setup``."""
    suffix = {"install": "sdk-install", "init": "sdk-init", "deeplink": "deeplink-setup"}[role]
    return f"{platform}-{suffix}"


STEP_IDS = (
    WEB_SDK_INSTALL,
    WEB_SDK_INIT,
    SDK_INSTALL,
    SDK_INIT,
    DEEPLINK,
    *(platform_step_id(p, r) for p in MOBILE_PLATFORMS for r in ("install", "init", "deeplink")),
    SDK_TEST,
    TRACKING_LINK,
    DEEPLINK_TEST,
    EVENT_TAXONOMY,
    CHANNEL_SELECT,
    CHANNEL_INTEGRATION,
    COST_INTEGRATION,
    SKAN_INTEGRATION,
    ATTRIBUTION_TEST,
    DATA_VERIFY,
)

# What kind of work a step is, independent of platform
STEP_ROLES = {
    WEB_SDK_INSTALL: "web-install",
    WEB_SDK_INIT: "web-init",
    SDK_INSTALL: "install",
    SDK_INIT: "init",
    DEEPLINK: "deeplink",
    **{platform_step_id(p, r): r for p in MOBILE_PLATFORMS for r in ("install", "init", "deeplink")},
    SDK_TEST: SDK_TEST,
    TRACKING_LINK: TRACKING_LINK,
    DEEPLINK_TEST: DEEPLINK_TEST,
    EVENT_TAXONOMY: EVENT_TAXONOMY,
    CHANNEL_SELECT: CHANNEL_SELECT,
    CHANNEL_INTEGRATION: CHANNEL_INTEGRATION,
    COST_INTEGRATION: CHANNEL_INTEGRATION,
    SKAN_INTEGRATION: CHANNEL_INTEGRATION,
    ATTRIBUTION_TEST: ATTRIBUTION_TEST,
    DATA_VERIFY: DATA_VERIFY,
}


def step_platform(step_id: str) -> str | None:
    """Platform a per-platform step belongs to, or None for shared steps."""
    for platform in MOBILE_PLATFORMS:
        if step_id.startswith(f"{platform}-"):
            return platform
    if step_id in (WEB_SDK_INSTALL, WEB_SDK_INIT):
        return WEB
    return None
