"""
Tool: Registration Flow
Purpose: Session-context dialogue that collects a new app and commits it

Transitions (pending prompt -> answer -> next prompt):
    environment-select          dev                     app-name-input-dev
                                production              platform-multi-select
    app-name-input-dev          app key [a-z0-9]+       platform-multi-select
    platform-multi-select       [platforms]             dev: timezone-currency-confirm
                                                        production: platform-registration(0, n)
    platform-registration       {"mode": "search"}      app-search-loading -> app-search-results
                                {"mode": "url"}         next platform
                                {"mode": "not-listed"}  app-info-form
    app-search-results          result id               next platform
                                "search-again"          platform-registration
    app-info-form               {"app_name", ...}       dashboard-action
    dashboard-action            "check-again"           detection -> next platform
    timezone-currency-confirm   confirm                 commit -> token-display
                                edit                    timezone-currency-input
    timezone-currency-input     {timezone, currency}    commit -> token-display

"Next platform" is platform-registration for the following platform, or
timezone-currency-confirm after the last one.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import parse_qs, urlparse

from onboarding.errors import ValidationError
from onboarding.flow.handlers import (
    SESSION,
    FlowPart,
    require_choice,
    require_list,
    require_mapping,
    require_text,
)
from onboarding.flow.scheduler import Job
from onboarding.protocol import payloads as p
from onboarding.protocol.vocabulary import (
    ANDROID,
    DEV,
    ENVIRONMENT_LABELS,
    ENVIRONMENTS,
    IOS,
    MOBILE_PLATFORMS,
    PLATFORM_LABELS,
    PLATFORMS,
    PRODUCTION,
    WEB,
)
from onboarding.registry.apps import AppInfo, PlatformInfo, RegisteredApp

logger = logging.getLogger(__name__)

APP_KEY_PATTERN = re.compile(r"^[a-z0-9]+$")

REGISTRATION_MODES = ("search", "url", "not-listed")


def parse_store_url(url: str, platform: str) -> PlatformInfo:
    """Best-effort app identity from an App Store, Play Store or website URL.

    Raises:
        ValidationError: If the URL is not an absolute http(s) URL
    """
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Not a valid http(s) URL: {url!r}")

    host = parsed.netloc.lower().removeprefix("www.")
    segments = [s for s in parsed.path.split("/") if s]

    if platform == WEB:
        return PlatformInfo(platform=WEB, app_name=host, web_url=url)

    info = PlatformInfo(platform=platform, store_url=url, app_name=host)
    if platform == IOS and "app" in segments:
        index = segments.index("app")
        if index + 1 < len(segments) and not segments[index + 1].startswith("id"):
            info.app_name = segments[index + 1].replace("-", " ").title()
    elif platform == ANDROID:
        package = parse_qs(parsed.query).get("id", [""])[0]
        if package:
            info.package_name = package
            info.app_name = package.rsplit(".", 1)[-1].title()
    return info


class RegistrationFlow(FlowPart):
    """Handlers for prompts asked while the new app is still a draft."""

    def __init__(self, flow):
        super().__init__(flow)
        self.handlers = {
            p.EnvironmentSelect.kind: self.on_environment,
            p.AppNameInputDev.kind: self.on_app_name,
            p.PlatformMultiSelect.kind: self.on_platforms,
            p.PlatformRegistration.kind: self.on_platform_registration,
            p.AppSearchResults.kind: self.on_search_result,
            p.AppInfoForm.kind: self.on_app_info,
            p.DashboardAction.kind: self.on_dashboard_action,
            p.TimezoneCurrencyConfirm.kind: self.on_timezone_confirm,
            p.TimezoneCurrencyInput.kind: self.on_timezone_input,
        }

    @property
    def session(self):
        return self.flow.session

    def handle(self, pending: p.Payload, value: Any) -> None:
        self.handler_for(pending)(pending, value)

    def _answered(self, text: str) -> None:
        self.session.transcript.resolve()
        self.flow.hear(SESSION, text)

    def resume(self) -> None:
        """Ask the draft's open question again after its turn was discarded.

        The prompt is appended right away, so the action that brought the
        user back to the session can answer it.
        """
        session = self.session
        if not session.in_progress or session.transcript.pending is not None:
            return
        if not self.flow.queue(SESSION).idle:
            return
        prompt = self._open_question()
        session.transcript.append_bot_turn([p.Text("Let's pick up where we left off."), prompt])
        logger.info(f"Resumed registration at {prompt.type}")

    def _open_question(self) -> p.Payload:
        session = self.session
        if session.environment is None:
            return p.EnvironmentSelect()
        if session.environment == DEV and session.app_info is None:
            return p.AppNameInputDev()
        if not session.platforms:
            return p.PlatformMultiSelect(environment=session.environment)
        draft = session.platform_draft
        if draft is not None:
            return p.DashboardAction(
                app_name=draft.app_name, bundle_id=draft.bundle_id, package_name=draft.package_name
            )
        if session.current_platform is not None:
            return p.PlatformRegistration(
                platform=session.current_platform,
                platform_index=session.current_platform_index,
                total_platforms=len(session.platforms),
            )
        regional = self.config.regional
        return p.TimezoneCurrencyConfirm(timezone=regional.default_timezone, currency=regional.default_currency)

    # =========================================================================
    # Environment, app key, platforms
    # =========================================================================

    def on_environment(self, pending: p.EnvironmentSelect, value: Any) -> None:
        environment = require_choice(value, ENVIRONMENTS, "environment")
        self._answered(ENVIRONMENT_LABELS[environment])
        self.session.environment = environment

        if environment == DEV:
            self.flow.say(SESSION, [
                p.Text("Let's create a development app. Choose an app key for it."),
                p.AppNameInputDev(),
            ])
        else:
            self.flow.say(SESSION, [
                p.Text("Which platforms does your app run on?"),
                p.PlatformMultiSelect(environment=PRODUCTION),
            ])

    def on_app_name(self, pending: p.AppNameInputDev, value: Any) -> None:
        key = require_text(value, "App key")
        if not APP_KEY_PATTERN.match(key):
            raise ValidationError("App key may only contain lowercase letters and digits")
        self._answered(key)
        self.session.app_info = AppInfo(app_name=key)
        self.flow.say(SESSION, [
            p.Text(f"Great, '{key}' it is. Which platforms will you test on?"),
            p.PlatformMultiSelect(environment=DEV),
        ])

    def on_platforms(self, pending: p.PlatformMultiSelect, value: Any) -> None:
        platforms = require_list(value, PLATFORMS, "platform")
        self._answered(", ".join(PLATFORM_LABELS[x] for x in platforms))
        self.session.platforms = platforms
        self.session.current_platform_index = 0
        self.session.platform_infos = []

        if pending.environment == DEV:
            self._ask_timezone()
        else:
            self._ask_platform()

    # =========================================================================
    # Per-platform registration
    # =========================================================================

    def _ask_platform(self, intro: str | None = None) -> None:
        session = self.session
        platform = session.current_platform
        label = PLATFORM_LABELS[platform]
        self.flow.say(SESSION, [
            p.Text(intro or f"Let's find your {label} app."),
            p.PlatformRegistration(
                platform=platform,
                platform_index=session.current_platform_index,
                total_platforms=len(session.platforms),
            ),
        ])

    def _next_platform(self, info: PlatformInfo) -> None:
        done = self.session.record_platform(info)
        logger.debug(f"Registered {info.platform} as '{info.app_name}'")
        if done:
            self._ask_timezone()
        else:
            self._ask_platform()

    def on_platform_registration(self, pending: p.PlatformRegistration, value: Any) -> None:
        answer = require_mapping(value, "Registration answer")
        mode = require_choice(answer.get("mode"), REGISTRATION_MODES, "mode")
        platform = pending.platform

        if mode == "search":
            if platform not in MOBILE_PLATFORMS:
                raise ValidationError(f"{PLATFORM_LABELS[platform]} apps are not listed in a store")
            query = require_text(answer.get("query"), "Search query")
            self._answered(f"Search: {query}")
            self._search(query, pending)
        elif mode == "url":
            info = parse_store_url(require_text(answer.get("url"), "URL"), platform)
            self._answered(info.web_url or info.store_url)
            self._next_platform(info)
        else:
            self._answered("My app isn't listed")
            self.flow.say(SESSION, [
                p.Text("No problem. Tell me about the app and I'll help you register it."),
                p.AppInfoForm(platform=platform),
            ])

    def _search(self, query: str, retry: p.PlatformRegistration) -> None:
        transcript = self.session.transcript
        queue = self.flow.queue(SESSION)
        platform = retry.platform

        queue.schedule(Job(
            delay=self.config.latency.typing_seconds,
            apply=lambda _: transcript.append_bot_turn([p.AppSearchLoading(query=query, platform=platform)]),
            label="app-search-loading",
        ))

        def show_results(results) -> None:
            transcript.replace_last_bot_turn([
                p.Text(f'Found some results for "{query}":'),
                p.AppSearchResults(results=tuple(results), query=query, platform=platform),
            ])

        def offer_retry(error: Exception) -> None:
            transcript.replace_last_bot_turn([
                p.Text("I couldn't reach the store just now. Let's try that again."),
                retry,
            ])

        queue.schedule(Job(
            produce=lambda: self.flow.provider.search(query, platform),
            apply=show_results,
            on_error=offer_retry,
            composing=False,
            label="app-search",
        ))

    def on_search_result(self, pending: p.AppSearchResults, value: Any) -> None:
        if value == "search-again":
            self._answered("Search again")
            self._ask_platform(intro="Sure, let's search again.")
            return

        by_id = {r.id: r for r in pending.results}
        result_id = require_choice(value, list(by_id), "result")
        result = by_id[result_id]
        self._answered(f"Selected: {result.name}")
        self._next_platform(PlatformInfo(
            platform=result.store,
            app_name=result.name,
            bundle_id=result.bundle_id or "",
            package_name=result.package_name or "",
        ))

    def on_app_info(self, pending: p.AppInfoForm, value: Any) -> None:
        answer = require_mapping(value, "App info")
        name = require_text(answer.get("app_name"), "App name")
        info = PlatformInfo(
            platform=pending.platform,
            app_name=name,
            bundle_id=str(answer.get("bundle_id") or "").strip(),
            package_name=str(answer.get("package_name") or "").strip(),
            web_url=str(answer.get("web_url") or "").strip(),
        )
        self._answered(name)
        self.session.platform_draft = info
        self.flow.say(SESSION, [
            p.Text("Register the app in the dashboard, then let me know and I'll check for it."),
            p.DashboardAction(app_name=name, bundle_id=info.bundle_id, package_name=info.package_name),
        ])

    def on_dashboard_action(self, pending: p.DashboardAction, value: Any) -> None:
        require_choice(value, ("check-again",), "dashboard action")
        draft = self.session.platform_draft
        if draft is None:
            raise ValidationError("No app info to look for")
        self._answered("I've registered it")
        transcript = self.session.transcript

        def detected(registered: bool) -> None:
            if registered:
                self.session.platform_draft = None
                transcript.append_bot_turn([p.Text(f"Found {draft.app_name} in the dashboard.")])
                self._next_platform(draft)
            else:
                transcript.append_bot_turn([
                    p.Text("I can't see it in the dashboard yet. Check again once it's saved."),
                    pending,
                ])

        def failed(error: Exception) -> None:
            transcript.append_bot_turn([
                p.Text("I couldn't reach the dashboard. Try checking again in a moment."),
                pending,
            ])

        self.flow.queue(SESSION).schedule(Job(
            delay=self.config.latency.typing_seconds,
            produce=lambda: self.flow.provider.detect_registration(draft.app_name),
            apply=detected,
            on_error=failed,
            label="detect-registration",
        ))

    # =========================================================================
    # Timezone, currency and commit
    # =========================================================================

    def _ask_timezone(self) -> None:
        regional = self.config.regional
        self.flow.say(SESSION, [
            p.Text("Almost done. Please confirm the reporting timezone and currency."),
            p.TimezoneCurrencyConfirm(timezone=regional.default_timezone, currency=regional.default_currency),
        ])

    def on_timezone_confirm(self, pending: p.TimezoneCurrencyConfirm, value: Any) -> None:
        choice = require_choice(value, ("confirm", "edit"), "choice")
        if choice == "edit":
            self._answered("Change")
            self.flow.say(SESSION, [p.TimezoneCurrencyInput()])
            return
        self._answered("Confirm")
        self._commit(pending.timezone, pending.currency)

    def on_timezone_input(self, pending: p.TimezoneCurrencyInput, value: Any) -> None:
        answer = require_mapping(value, "Timezone and currency")
        timezone = require_text(answer.get("timezone"), "Timezone")
        currency = require_text(answer.get("currency"), "Currency")
        self._answered(f"{timezone}, {currency}")
        self._commit(timezone, currency)

    def _commit(self, timezone: str, currency: str) -> RegisteredApp:
        info = self.session.draft_app_info()
        info.timezone = timezone
        info.currency = currency
        if not info.app_name:
            info.app_name = "Untitled App"
        return self.flow.commit()

    def commit_partial(self) -> RegisteredApp:
        """Commit what the draft has so far, filling regional defaults."""
        regional = self.config.regional
        return self._commit(regional.default_timezone, regional.default_currency)
