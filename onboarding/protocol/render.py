"""
Tool: Plain-Text Renderer
Purpose: Render every payload kind as terminal text

Usage:
    from onboarding.protocol.render import render_message
    print(render_message(message))

The dispatch table is keyed by payload class and must cover every registered
kind; ``render_payload`` raises for a class without a renderer instead of
falling back to a default.
"""

from __future__ import annotations

from typing import Callable

from onboarding.protocol import payloads as p
from onboarding.protocol.messages import Message
from onboarding.protocol.vocabulary import (
    CHANNEL_LABELS,
    CHANNEL_STAGE_LABELS,
    ENVIRONMENT_LABELS,
    FRAMEWORK_LABELS,
    PLATFORM_LABELS,
)


def _options(options) -> str:
    return "\n".join(f"  [{o.value}] {o.label}" for o in options)


def _labels(values, labels) -> str:
    return ", ".join(labels.get(v, v) for v in values)


def _code(title: str, code: str) -> str:
    return f"{title}\n```\n{code}\n```"


def _search_results(payload: p.AppSearchResults) -> str:
    if not payload.results:
        return f"No apps found for '{payload.query}'. Try another name or paste the store URL."
    lines = [f"Results for '{payload.query}':"]
    for result in payload.results:
        key = result.bundle_id or result.package_name or ""
        lines.append(f"  [{result.id}] {result.name} by {result.developer} ({key})")
    return "\n".join(lines)


def _init_code(payload: p.SdkInitCode) -> str:
    framework = FRAMEWORK_LABELS.get(payload.framework, "your app") if payload.framework else "your app"
    parts = [f"Initialize the SDK for {payload.app_name} ({framework}), token {payload.app_token}:"]
    for snippet in payload.snippets:
        parts.append(_code(PLATFORM_LABELS.get(snippet.platform, snippet.platform), snippet.code))
    parts.append("  [done] Done  [help] I need help")
    return "\n".join(parts)


def _channel_progress(payload: p.ChannelProgress) -> str:
    stages = ", ".join(f"{s.label}: {s.status}" for s in payload.stages)
    return f"{CHANNEL_LABELS[payload.channel]} progress: {stages}"


def _stage_prompt(payload: p.ChannelStagePrompt) -> str:
    return (
        f"{CHANNEL_LABELS[payload.channel]} {CHANNEL_STAGE_LABELS[payload.stage]}\n"
        "  [done] Done  [skip-step] Skip for now  [help] I need help"
    )


def _completion(payload: p.CompletionSummary) -> str:
    data = payload.data
    return (
        f"{data.app_name} is set up on {_labels(data.platforms, PLATFORM_LABELS)}"
        f" with channels {_labels(data.channels, CHANNEL_LABELS) or 'none'}.\n"
        "  [continue] Continue with channel integration  [add-another-app] Add another app"
    )


TEXT_RENDERERS: dict[type[p.Payload], Callable] = {
    p.Text: lambda x: x.text,
    p.CodeBlock: lambda x: _code(x.title, x.code),
    p.AppSearchLoading: lambda x: f"Searching the store for '{x.query}'...",
    p.ChannelProgress: _channel_progress,
    p.DeeplinkComplete: lambda x: "Deep link setup complete.",
    p.SdkTestResult: lambda x: (
        f"SDK test {'passed' if x.passed else 'failed'}: "
        f"install={x.install} init={x.init} events={x.events}"
    ),
    p.DeeplinkTestResult: lambda x: "\n".join(f"  {s.name}: {s.status}" for s in x.scenarios),
    p.AttributionTestResult: lambda x: f"Attribution test {'passed' if x.passed else 'failed'}.",
    p.DataVerifyResult: lambda x: (
        f"Events received: {x.metrics.events_received}, "
        f"attribution verified: {x.metrics.attribution_verified}, "
        f"deep link verified: {x.metrics.deeplink_verified}"
    ),
    p.EnvironmentSelect: lambda x: "Choose an environment:\n" + "\n".join(
        f"  [{k}] {v}" for k, v in ENVIRONMENT_LABELS.items()
    ),
    p.AppNameInputDev: lambda x: "Enter an app key (lowercase letters and digits):",
    p.PlatformMultiSelect: lambda x: "Select platforms: " + ", ".join(PLATFORM_LABELS.values()),
    p.PlatformRegistration: lambda x: (
        f"Register your {PLATFORM_LABELS[x.platform]} app "
        f"({x.platform_index + 1}/{x.total_platforms}): search, paste a URL, or choose not-listed"
    ),
    p.AppSearchResults: _search_results,
    p.AppInfoForm: lambda x: f"Enter your {PLATFORM_LABELS[x.platform]} app name and identifier:",
    p.DashboardAction: lambda x: f"Register {x.app_name} in the dashboard, then press [check-again].",
    p.TimezoneCurrencyConfirm: lambda x: (
        f"Timezone {x.timezone}, currency {x.currency}.\n  [confirm] Confirm  [edit] Change"
    ),
    p.TimezoneCurrencyInput: lambda x: "Enter timezone and currency:",
    p.TokenDisplay: lambda x: (
        f"App SDK token: {x.app_sdk_token}\nWeb SDK token: {x.web_sdk_token}\n"
        f"API token: {x.api_token}\n  [continue] Continue"
    ),
    p.SdkInstallChoice: lambda x: "  [self] I'll install it  [share] Share with my developer",
    p.SdkGuideShare: lambda x: f"Share the {x.app_name} setup guide with your developer.",
    p.ConfirmSelect: lambda x: _options(x.options),
    p.SingleSelect: lambda x: _options(x.options),
    p.FrameworkSelect: lambda x: "Select your framework:\n" + "\n".join(
        f"  [{k}] {v}" for k, v in FRAMEWORK_LABELS.items()
    ),
    p.SdkInitCode: _init_code,
    p.DeeplinkChoice: lambda x: "  [now] Set up deep links now  [later] Later",
    p.WebSdkMethodSelect: lambda x: "  [script] Script tag  [package] npm package",
    p.WebSdkInstallCode: lambda x: _code(f"Install ({x.method})", x.code) + "\n  [done] Done",
    p.WebSdkInitOptions: lambda x: _code("Initialize", x.code) + "\n  [done] Done",
    p.SdkTest: lambda x: "  [run] Run the SDK test",
    p.SdkVerify: lambda x: "Did the test event arrive?\n  [yes] Yes  [no] No  [unsure] Not sure",
    p.DevCompletionSummary: lambda x: f"{x.app_name} development setup is complete.",
    p.TrackingLinkForm: lambda x: f"Create a tracking link for {x.channel or 'a channel'}:",
    p.TrackingLinkComplete: lambda x: "\n".join(f"  {link.name}: {link.short_url}" for link in x.links)
    + "\n  [create-another] Create another  [continue] Continue",
    p.DeeplinkTest: lambda x: "  [run] Run the deep link test",
    p.StandardEventSelect: lambda x: "Select standard events:\n" + "\n".join(
        f"  [{e.id}] {e.name}" for e in x.events
    ),
    p.CustomEventInput: lambda x: "Add custom event names (comma separated), or leave empty:",
    p.EventVerify: lambda x: "  [verified] Events arrived  [skip] Skip",
    p.EventTaxonomySummary: lambda x: "Tracked events: " + ", ".join(e.event_name for e in x.events),
    p.AttributionTest: lambda x: "  [run] Run the attribution test",
    p.DataVerify: lambda x: "  [run] Verify incoming data",
    p.OnboardingComplete: lambda x: f"{x.app_name} onboarding is complete.",
    p.ChannelSelect: lambda x: "Select ad channels: " + ", ".join(CHANNEL_LABELS.values()),
    p.CompletionSummary: _completion,
    p.ChannelIntegrationOverview: lambda x: "Channels to integrate: "
    + _labels(x.selected_channels, CHANNEL_LABELS) + "\n  [start] Start",
    p.AppleVersionCheck: lambda x: "  [advanced] Advanced  [basic] Basic  [unsure] Not sure",
    p.ChannelCompletion: lambda x: f"{CHANNEL_LABELS[x.channel]} is connected.\n  [next] Next",
    p.ChannelStagePrompt: _stage_prompt,
}


def render_payload(payload: p.Payload) -> str:
    renderer = TEXT_RENDERERS.get(type(payload))
    if renderer is None:
        raise KeyError(f"No text renderer for payload type '{payload.type}'")
    return renderer(payload)


def render_message(message: Message) -> str:
    prefix = "bot>" if message.role.value == "bot" else "you>"
    body = "\n".join(render_payload(x) for x in message.content)
    return f"{prefix} {body}"
