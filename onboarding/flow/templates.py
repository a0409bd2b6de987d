"""
Static SDK code templates shown during setup.

Snippets are plain string templates filled with the app's name and tokens;
nothing here generates or validates real code.
"""

from __future__ import annotations

import re
from typing import Optional

from onboarding.protocol.payloads import InitSnippet, TrackingLink
from onboarding.protocol.vocabulary import ANDROID, FRAMEWORK_LABELS, IOS, PLATFORM_LABELS

DOCS_URL = "https://developers.airbridge.io/docs/sdk-installation"
DASHBOARD_URL = "https://dashboard.airbridge.io"
TRACKING_LINK_HOST = "https://abr.ge"

INSTALL_COMMANDS = {
    "react-native": "npm install airbridge-react-native-sdk\ncd ios && pod install",
    "expo": "npx expo install airbridge-expo-plugin airbridge-react-native-sdk",
    "flutter": "flutter pub add airbridge_flutter_sdk",
    "unity": "Assets > Import Package > Custom Package > airbridge-unity-sdk.unitypackage",
    "ios-native": "pod 'airbridge-ios-sdk'",
    "android-native": "implementation \"io.airbridge:sdk-android:2.+\"",
}

# Platform key -> (language, template)
_INIT_TEMPLATES = {
    "react-native": ("javascript", "import Airbridge from 'airbridge-react-native-sdk';\n\n"
                     "Airbridge.init({{\n  appName: '{app_name}',\n  appToken: '{app_token}',\n}});"),
    "expo": ("javascript", "import Airbridge from 'airbridge-react-native-sdk';\n\n"
             "Airbridge.init({{\n  appName: '{app_name}',\n  appToken: '{app_token}',\n}});"),
    "flutter": ("dart", "import 'package:airbridge_flutter_sdk/airbridge_flutter_sdk.dart';\n\n"
                "Airbridge.init(appName: '{app_name}', appToken: '{app_token}');"),
    "unity": ("csharp", "AirbridgeUnity.Init(\"{app_name}\", \"{app_token}\");"),
    IOS: ("swift", "import Airbridge\n\n"
          "let option = AirbridgeOptionBuilder(name: \"{app_name}\", token: \"{app_token}\").build()\n"
          "Airbridge.initializeSDK(option: option)"),
    ANDROID: ("kotlin", "import co.ab180.airbridge.Airbridge\n\n"
              "val option = AirbridgeOptionBuilder(\"{app_name}\", \"{app_token}\").build()\n"
              "Airbridge.initializeSDK(this, option)"),
}

WEB_INSTALL = {
    "script": "<script src=\"https://static.airbridge.io/sdk/latest/airbridge.min.js\"></script>",
    "package": "npm install airbridge-web-sdk-loader",
}

WEB_INIT = """airbridge.init({{
  app: '{app_name}',
  webToken: '{web_token}',
}});"""


def install_command(framework: Optional[str]) -> str:
    return INSTALL_COMMANDS.get(framework or "react-native", INSTALL_COMMANDS["react-native"])


def init_snippets(app_name: str, app_token: str, framework: Optional[str], platforms) -> tuple[InitSnippet, ...]:
    """One snippet per mobile platform for native frameworks, otherwise one shared snippet."""
    if framework in ("ios-native", "android-native"):
        keys = [p for p in (IOS, ANDROID) if p in platforms]
    else:
        keys = [framework or "react-native"]
    snippets = []
    for key in keys:
        language, template = _INIT_TEMPLATES[key]
        snippets.append(InitSnippet(
            platform=key,
            language=language,
            code=template.format(app_name=app_name, app_token=app_token),
        ))
    return tuple(snippets)


def web_install_code(method: str) -> str:
    return WEB_INSTALL[method]


def web_init_code(app_name: str, web_token: str) -> str:
    return WEB_INIT.format(app_name=app_name, web_token=web_token)


def guide_text(app_name: str, platforms, framework: Optional[str]) -> str:
    """Setup guide a user can forward to their developer."""
    lines = [
        f'SDK Setup Guide for "{app_name}"',
        "",
        f"App: {app_name}",
        f"Platforms: {', '.join(PLATFORM_LABELS.get(p, p) for p in platforms)}",
    ]
    if framework:
        lines.append(f"Framework: {FRAMEWORK_LABELS[framework]}")
    lines += [
        "",
        "Setup Steps:",
        "1. Install the SDK package",
        "2. Initialize the SDK in your app entry point",
        "3. Configure deep links (optional)",
        "4. Verify SDK integration",
        "",
        f"Documentation: {DOCS_URL}",
        f"Dashboard: {DASHBOARD_URL}/app/{app_slug(app_name)}/setup",
    ]
    return "\n".join(lines)


def app_slug(name: str) -> str:
    return re.sub(r"\s", "", name.lower())


def tracking_link(link_id: str, name: str, channel: str) -> TrackingLink:
    slug = re.sub(r"\s", "-", name.strip().lower())
    return TrackingLink(
        id=link_id,
        name=name.strip(),
        channel=channel,
        url=f"{TRACKING_LINK_HOST}/{slug}",
        short_url=f"{TRACKING_LINK_HOST}/{link_id[:6]}",
    )
