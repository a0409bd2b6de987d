"""
Tool: Setup Flow
Purpose: App-context dialogue that walks a registered app through its steps

The walk is canonical: whenever a step is finished the flow completes it and
opens the first step that is still not completed. Each step role has an
opener (the prompt that starts it) and one or more answer handlers.

Step role        Opener                        Finished by
web-install      web-sdk-method-select         web-sdk-install-code "done"
web-init         web-sdk-init-options          "done"
install          sdk-install-choice            framework-select / confirm-select
init             sdk-init-code                 "done" / single-select "found"
                 (framework-select if unset)
deeplink         deeplink-choice               "now" / "later"
sdk-test         sdk-test                      sdk-verify "yes"
tracking-link    tracking-link-form            tracking-link-complete "continue"
deeplink-test    deeplink-test                 "run"
event-taxonomy   standard-event-select         event-taxonomy-summary "continue"
channel-select   channel-select                channels chosen -> completion-summary
channel-integ.   channel-integration-overview  last channel-completion "next"
attribution-test attribution-test              "run"
data-verify      data-verify                   "run" -> onboarding-complete
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Callable, Optional

from onboarding.errors import ValidationError
from onboarding.flow import templates
from onboarding.flow.handlers import (
    FlowPart,
    option_label,
    option_values,
    require_choice,
    require_list,
    require_mapping,
    require_text,
)
from onboarding.flow.scheduler import Job
from onboarding.protocol import payloads as p
from onboarding.protocol import vocabulary as v
from onboarding.registry.apps import ChannelState, RegisteredApp
from onboarding.steps.graph import Step, StepStatus, next_open_step

logger = logging.getLogger(__name__)

EVENT_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

INSTALLED = p.Option("I've installed the SDK", "installed")
DEVELOPER_DONE = p.Option("My developer is done", "developer-done")
WAIT = p.Option("Still waiting", "wait")
FOUND = p.Option("Found it, it's done", "found")
STILL_LOST = p.Option("Still stuck", "still-lost")
CRASH = p.Option("The app crashes", "crash", "The app crashes after adding the SDK")
NO_EVENT = p.Option("No event arrives", "no-event", "The app runs but nothing shows up")
RETRY = p.Option("Run the test again", "retry")
SKIP_APPLE = p.Option("Skip Apple Search Ads", "skip_apple")
UPGRADE_APPLE = p.Option("I'll upgrade my plan", "upgrade_apple")

TROUBLESHOOTING = {
    "crash": "Make sure the SDK is initialized once, in your app entry point, before any tracking call.",
    "no-event": "Check that the app token matches the one above and that the device has network access.",
    "retry": "Let's run it again.",
}


class SetupFlow(FlowPart):
    """Openers and answer handlers for registered apps."""

    def __init__(self, flow):
        super().__init__(flow)
        self.openers: dict[str, Callable[[RegisteredApp, Step], None]] = {
            "web-install": self._open_web_install,
            "web-init": self._open_web_init,
            "install": self._open_install,
            "init": self._open_init,
            "deeplink": self._open_deeplink,
            v.SDK_TEST: self._open_sdk_test,
            v.TRACKING_LINK: self._open_tracking_link,
            v.DEEPLINK_TEST: self._open_deeplink_test,
            v.EVENT_TAXONOMY: self._open_event_taxonomy,
            v.CHANNEL_SELECT: self._open_channel_select,
            v.CHANNEL_INTEGRATION: self._open_channel_integration,
            v.ATTRIBUTION_TEST: self._open_attribution_test,
            v.DATA_VERIFY: self._open_data_verify,
        }
        self.handlers = {
            p.TokenDisplay.kind: self.on_tokens,
            p.SdkInstallChoice.kind: self.on_install_choice,
            p.SdkGuideShare.kind: self.on_guide_shared,
            p.ConfirmSelect.kind: self.on_confirm,
            p.SingleSelect.kind: self.on_single_select,
            p.FrameworkSelect.kind: self.on_framework,
            p.SdkInitCode.kind: self.on_init_code,
            p.DeeplinkChoice.kind: self.on_deeplink_choice,
            p.WebSdkMethodSelect.kind: self.on_web_method,
            p.WebSdkInstallCode.kind: self.on_web_install_code,
            p.WebSdkInitOptions.kind: self.on_web_init,
            p.SdkTest.kind: self.on_sdk_test,
            p.SdkVerify.kind: self.on_sdk_verify,
            p.DevCompletionSummary.kind: self.on_finished,
            p.TrackingLinkForm.kind: self.on_tracking_link_form,
            p.TrackingLinkComplete.kind: self.on_tracking_link_complete,
            p.DeeplinkTest.kind: self.on_deeplink_test,
            p.StandardEventSelect.kind: self.on_standard_events,
            p.CustomEventInput.kind: self.on_custom_events,
            p.EventVerify.kind: self.on_event_verify,
            p.EventTaxonomySummary.kind: self.on_event_summary,
            p.ChannelSelect.kind: self.on_channel_select,
            p.CompletionSummary.kind: self.on_completion_summary,
            p.ChannelIntegrationOverview.kind: self.on_channel_overview,
            p.AppleVersionCheck.kind: self.on_apple_version,
            p.ChannelCompletion.kind: self.on_channel_completion,
            p.AttributionTest.kind: self.on_attribution_test,
            p.DataVerify.kind: self.on_data_verify,
            p.OnboardingComplete.kind: self.on_finished,
        }

    def handler_for(self, pending: p.Payload) -> Callable:
        if isinstance(pending, p.ChannelStagePrompt):
            return self.on_channel_stage
        return super().handler_for(pending)

    def handle(self, app: RegisteredApp, pending: p.Payload, value: Any) -> None:
        self.handler_for(pending)(app, pending, value)

    # =========================================================================
    # Walk helpers
    # =========================================================================

    def _say(self, app: RegisteredApp, *payloads: p.Payload) -> None:
        self.flow.say(app.id, payloads)

    def _answered(self, app: RegisteredApp, text: str) -> None:
        app.transcript.resolve()
        self.flow.hear(app.id, text)

    def _complete(self, app: RegisteredApp, step_id: str) -> None:
        if not self.flow.registry.update_step_status(app.id, step_id, StepStatus.COMPLETED):
            logger.warning(f"{app.name}: could not complete {step_id}")

    def _complete_active(self, app: RegisteredApp) -> Optional[Step]:
        step = next_open_step(app.steps)
        if step is not None:
            self._complete(app, step.id)
        return step

    def _active_role(self, app: RegisteredApp) -> Optional[str]:
        step = next_open_step(app.steps)
        return v.STEP_ROLES[step.id] if step else None

    def start_next(self, app: RegisteredApp) -> Optional[Step]:
        """Open the first step that is not completed yet."""
        step = next_open_step(app.steps)
        if step is None:
            return None
        self.flow.registry.update_step_status(app.id, step.id, StepStatus.IN_PROGRESS)
        self.flow.queue(app.id).schedule(Job(
            delay=self.config.latency.step_transition_seconds,
            apply=lambda _: None,
            composing=False,
            label="step-transition",
        ))
        self.open_step(app, step)
        return step

    def open_step(self, app: RegisteredApp, step: Step) -> None:
        logger.debug(f"{app.name}: opening {step.id}")
        self.openers[v.STEP_ROLES[step.id]](app, step)

    def present_tokens(self, app: RegisteredApp) -> None:
        tokens = app.tokens
        self._say(
            app,
            p.Text(f"{app.name} is registered! Here are your tokens. Keep them somewhere safe."),
            p.TokenDisplay(
                app_sdk_token=tokens.app_sdk_token,
                web_sdk_token=tokens.web_sdk_token,
                api_token=tokens.api_token,
            ),
        )

    def resume(self, app: RegisteredApp) -> None:
        """Re-ask the current question of an app whose last turn was discarded."""
        if app.transcript.pending is not None or not self.flow.queue(app.id).idle:
            return
        step = next_open_step(app.steps)
        if step is None:
            return
        if all(s.status is StepStatus.PENDING for s in app.steps):
            self.present_tokens(app)
        elif step.status is StepStatus.IN_PROGRESS:
            self.open_step(app, step)

    # =========================================================================
    # Openers
    # =========================================================================

    def _open_web_install(self, app: RegisteredApp, step: Step) -> None:
        self._say(
            app,
            p.Text("Let's add the Web SDK to your site. How would you like to install it?"),
            p.WebSdkMethodSelect(app_name=app.name, web_token=app.tokens.web_sdk_token),
        )

    def _open_web_init(self, app: RegisteredApp, step: Step) -> None:
        self._say(
            app,
            p.Text("Now initialize the Web SDK on every page."),
            p.WebSdkInitOptions(
                app_name=app.name,
                web_token=app.tokens.web_sdk_token,
                code=templates.web_init_code(app.name, app.tokens.web_sdk_token),
            ),
        )

    def _open_install(self, app: RegisteredApp, step: Step) -> None:
        self._say(app, p.Text(f"Next up: {step.title}. Who will install the SDK?"), p.SdkInstallChoice())

    def _open_init(self, app: RegisteredApp, step: Step) -> None:
        if app.framework is None:
            self._say(app, p.Text("Which framework is your app built with?"), p.FrameworkSelect())
            return
        platform = v.step_platform(step.id)
        platforms = [platform] if platform else app.platforms
        self._say(
            app,
            p.Text("Add this code to your app's entry point."),
            p.SdkInitCode(
                app_name=app.name,
                app_token=app.tokens.app_sdk_token,
                framework=app.framework,
                snippets=templates.init_snippets(
                    app.name, app.tokens.app_sdk_token, app.framework, platforms
                ),
            ),
        )

    def _open_deeplink(self, app: RegisteredApp, step: Step) -> None:
        self._say(
            app,
            p.Text("Deep links take users straight to content inside your app. Set them up now?"),
            p.DeeplinkChoice(),
        )

    def _open_sdk_test(self, app: RegisteredApp, step: Step) -> None:
        self._say(app, p.Text("Let's make sure the SDK is sending events."), p.SdkTest())

    def _open_tracking_link(self, app: RegisteredApp, step: Step) -> None:
        channel = app.channels[0] if app.channels else ""
        self._say(app, p.Text("Create a tracking link for your first campaign."), p.TrackingLinkForm(channel=channel))

    def _open_deeplink_test(self, app: RegisteredApp, step: Step) -> None:
        self._say(app, p.Text("Let's check that your deep links open the app."), p.DeeplinkTest())

    def _open_event_taxonomy(self, app: RegisteredApp, step: Step) -> None:
        self._say(app, p.Text("Which events do you want to track?"), p.StandardEventSelect())

    def _open_channel_select(self, app: RegisteredApp, step: Step) -> None:
        preselected = tuple(app.channels) or self.flow.seed.channels
        self._say(app, p.Text("Which ad channels do you run campaigns on?"), p.ChannelSelect(preselected=preselected))

    def _open_channel_integration(self, app: RegisteredApp, step: Step) -> None:
        if not app.channel_states:
            self._say(
                app,
                p.Text("Let's connect your ad channels one by one."),
                p.ChannelIntegrationOverview(selected_channels=tuple(app.channels)),
            )
            return
        self._channel_turn(app)

    def _open_attribution_test(self, app: RegisteredApp, step: Step) -> None:
        self._say(app, p.Text("Click your tracking link on a test device, then run the check."), p.AttributionTest())

    def _open_data_verify(self, app: RegisteredApp, step: Step) -> None:
        self._say(app, p.Text("Last step: let's confirm data is coming in."), p.DataVerify())

    # =========================================================================
    # Tokens and SDK installation
    # =========================================================================

    def on_tokens(self, app: RegisteredApp, pending: p.TokenDisplay, value: Any) -> None:
        require_choice(value, ("continue",))
        self._answered(app, "Continue")
        self.flow.registry.advance_phase(app.id, 2)
        if self.start_next(app) is None:
            self._say(app, p.Text(f"{app.name} has no setup steps yet. Add another app whenever you're ready."))

    def on_install_choice(self, app: RegisteredApp, pending: p.SdkInstallChoice, value: Any) -> None:
        choice = require_choice(value, ("self", "share"))
        if choice == "share":
            self._answered(app, "Share with my developer")
            self._say(
                app,
                p.Text("Here's a guide you can send to your developer."),
                p.CodeBlock(
                    title="Setup guide",
                    code=templates.guide_text(app.name, app.platforms, app.framework),
                    language="text",
                ),
                p.SdkGuideShare(app_name=app.name, platforms=tuple(app.platforms), framework=app.framework),
            )
            return

        self._answered(app, "I'll install it")
        if app.framework is None:
            self._say(app, p.Text("Which framework is your app built with?"), p.FrameworkSelect())
        else:
            self._say(
                app,
                p.CodeBlock(title="Install the SDK", code=templates.install_command(app.framework)),
                p.ConfirmSelect(options=(INSTALLED,)),
            )

    def on_guide_shared(self, app: RegisteredApp, pending: p.SdkGuideShare, value: Any) -> None:
        require_choice(value, ("shared",))
        self._answered(app, "Shared")
        self._say(
            app,
            p.Text("Let me know when your developer has finished the installation."),
            p.ConfirmSelect(options=(DEVELOPER_DONE, WAIT)),
        )

    def on_confirm(self, app: RegisteredApp, pending: p.ConfirmSelect, value: Any) -> None:
        choice = require_choice(value, option_values(pending.options))
        self._answered(app, option_label(pending.options, choice))
        if choice == "wait":
            self._say(app, p.Text("No rush. I'll be here when they're done."), pending)
            return
        self._complete_active(app)
        self.start_next(app)

    def on_framework(self, app: RegisteredApp, pending: p.FrameworkSelect, value: Any) -> None:
        framework = require_choice(value, v.FRAMEWORKS, "framework")
        self._answered(app, v.FRAMEWORK_LABELS[framework])
        self.flow.registry.set_framework(app.id, framework)
        if self._active_role(app) == "install":
            self._complete_active(app)
        self.start_next(app)

    def on_init_code(self, app: RegisteredApp, pending: p.SdkInitCode, value: Any) -> None:
        choice = require_choice(value, ("done", "help"))
        if choice == "help":
            self._answered(app, "I need help")
            self._say(
                app,
                p.Text("The code goes in the file that runs first when your app starts. Did that help?"),
                p.SingleSelect(options=(FOUND, STILL_LOST)),
            )
            return
        self._answered(app, "Done")
        self._complete_active(app)
        self.start_next(app)

    def on_single_select(self, app: RegisteredApp, pending: p.SingleSelect, value: Any) -> None:
        choice = require_choice(value, option_values(pending.options))
        self._answered(app, option_label(pending.options, choice))

        if choice == "found":
            self._complete_active(app)
            self.start_next(app)
        elif choice == "still-lost":
            self._say(app, p.Text(f"The installation guide walks through every framework: {templates.DOCS_URL}"))
            self.open_step(app, next_open_step(app.steps))
        elif choice in TROUBLESHOOTING:
            self._say(app, p.Text(TROUBLESHOOTING[choice]), p.SdkTest())
        elif choice == "skip_apple":
            state = app.channel_states["apple"]
            for stage in state.stages:
                if state.stages[stage] != "completed":
                    state.stages[stage] = "skipped"
            self._say(app, p.Text("Skipping Apple Search Ads for now."))
            self._channel_turn(app)
        elif choice == "upgrade_apple":
            self._say(
                app,
                p.Text("Once your Apple Search Ads plan is upgraded, connect it here."),
                p.ChannelStagePrompt(channel="apple", stage="channel"),
            )

    def on_deeplink_choice(self, app: RegisteredApp, pending: p.DeeplinkChoice, value: Any) -> None:
        choice = require_choice(value, ("now", "later"))
        if choice == "now":
            self._answered(app, "Set up now")
            self._say(
                app,
                p.Text("Register your URI scheme in the dashboard and add the intent filter / associated domains."),
                p.DeeplinkComplete(),
            )
        else:
            self._answered(app, "Later")
            self._say(app, p.Text("You can configure deep links from the dashboard any time."))
        self._complete_active(app)
        self.start_next(app)

    # =========================================================================
    # Web SDK
    # =========================================================================

    def on_web_method(self, app: RegisteredApp, pending: p.WebSdkMethodSelect, value: Any) -> None:
        method = require_choice(value, tuple(templates.WEB_INSTALL), "method")
        self._answered(app, "Script tag" if method == "script" else "npm package")
        self._say(
            app,
            p.Text("Add this to your site."),
            p.WebSdkInstallCode(
                method=method,
                app_name=app.name,
                web_token=app.tokens.web_sdk_token,
                code=templates.web_install_code(method),
            ),
        )

    def on_web_install_code(self, app: RegisteredApp, pending: p.WebSdkInstallCode, value: Any) -> None:
        require_choice(value, ("done",))
        self._answered(app, "Done")
        self._complete(app, v.WEB_SDK_INSTALL)
        self.start_next(app)

    def on_web_init(self, app: RegisteredApp, pending: p.WebSdkInitOptions, value: Any) -> None:
        require_choice(value, ("done",))
        self._answered(app, "Done")
        self._complete(app, v.WEB_SDK_INIT)
        self.start_next(app)

    # =========================================================================
    # SDK test
    # =========================================================================

    def on_sdk_test(self, app: RegisteredApp, pending: p.SdkTest, value: Any) -> None:
        require_choice(value, ("run",))
        self._answered(app, "Run test")
        self._say(
            app,
            p.SdkTestResult(passed=True, install=True, init=True, events=True),
            p.Text("Do you see the test event in the dashboard's real-time log?"),
            p.SdkVerify(),
        )

    def on_sdk_verify(self, app: RegisteredApp, pending: p.SdkVerify, value: Any) -> None:
        choice = require_choice(value, ("yes", "no", "unsure"))
        if choice != "yes":
            self._answered(app, "No" if choice == "no" else "Not sure")
            self._say(app, p.Text("Let's figure it out. What's happening?"), p.SingleSelect(options=(CRASH, NO_EVENT, RETRY)))
            return

        self._answered(app, "Yes")
        self._complete(app, v.SDK_TEST)
        if app.environment == v.DEV:
            self._say(app, p.Text("Your development setup works."), p.DevCompletionSummary(app_name=app.name))
        else:
            self.start_next(app)

    def on_finished(self, app: RegisteredApp, pending: p.Payload, value: Any) -> None:
        choice = require_choice(value, ("add-another-app", "done"))
        if choice == "add-another-app":
            self._answered(app, "Add another app")
            self.flow.add_app()
        else:
            self._answered(app, "Done")
            self._say(app, p.Text(f"All set. {app.name} is ready to measure."))

    # =========================================================================
    # Tracking links and deep link test
    # =========================================================================

    def on_tracking_link_form(self, app: RegisteredApp, pending: p.TrackingLinkForm, value: Any) -> None:
        answer = require_mapping(value, "Tracking link")
        name = require_text(answer.get("name"), "Link name")
        channel = require_text(answer.get("channel") or pending.channel, "Channel")
        link = templates.tracking_link(uuid.uuid4().hex, name, channel)
        self._answered(app, f"{name} ({channel})")
        app.tracking_links.append(link)
        self._say(app, p.Text("Your tracking link is ready."), p.TrackingLinkComplete(links=tuple(app.tracking_links)))

    def on_tracking_link_complete(self, app: RegisteredApp, pending: p.TrackingLinkComplete, value: Any) -> None:
        choice = require_choice(value, ("create-another", "continue"))
        if choice == "create-another":
            self._answered(app, "Create another")
            self._say(app, p.TrackingLinkForm(channel=""))
            return
        self._answered(app, "Continue")
        self._complete(app, v.TRACKING_LINK)
        self.start_next(app)

    def on_deeplink_test(self, app: RegisteredApp, pending: p.DeeplinkTest, value: Any) -> None:
        require_choice(value, ("run",))
        self._answered(app, "Run test")
        scenarios = (
            p.DeeplinkTestScenario("installed", "App installed", "Link opens the app directly", "passed"),
            p.DeeplinkTestScenario("deferred", "App not installed", "Link opens the store, then the content", "passed"),
        )
        self._say(app, p.DeeplinkTestResult(scenarios=scenarios))
        self._complete(app, v.DEEPLINK_TEST)
        self.start_next(app)

    # =========================================================================
    # Event taxonomy
    # =========================================================================

    def on_standard_events(self, app: RegisteredApp, pending: p.StandardEventSelect, value: Any) -> None:
        by_id = {e.id: e for e in pending.events}
        selected = require_list(value, by_id, "event")
        self._answered(app, ", ".join(by_id[e].name for e in selected))
        app.events = [p.EventConfig(event_id=e, event_name=by_id[e].name, is_standard=True) for e in selected]
        self._say(app, p.Text("Any custom events of your own?"), p.CustomEventInput())

    def on_custom_events(self, app: RegisteredApp, pending: p.CustomEventInput, value: Any) -> None:
        if value is None:
            value = []
        if isinstance(value, str):
            value = [n for n in (part.strip() for part in value.split(",")) if n]
        if not isinstance(value, (list, tuple)):
            raise ValidationError("Custom events must be a list of names")
        names = list(dict.fromkeys(n.strip() for n in value if isinstance(n, str)))
        bad = [n for n in names if not EVENT_NAME_PATTERN.match(n)]
        if bad:
            raise ValidationError(f"Event names must be snake_case: {bad}")

        self._answered(app, ", ".join(names) if names else "No custom events")
        known = {e.event_id for e in app.events}
        app.events += [p.EventConfig(event_id=n, event_name=n, is_standard=False) for n in names if n not in known]
        self._say(app, p.Text("Send each event once from a test device, then verify."), p.EventVerify())

    def on_event_verify(self, app: RegisteredApp, pending: p.EventVerify, value: Any) -> None:
        choice = require_choice(value, ("verified", "skip"))
        self._answered(app, "Events arrived" if choice == "verified" else "Skip")
        self._say(app, p.Text("Here's your event plan."), p.EventTaxonomySummary(events=tuple(app.events)))

    def on_event_summary(self, app: RegisteredApp, pending: p.EventTaxonomySummary, value: Any) -> None:
        require_choice(value, ("continue",))
        self._answered(app, "Continue")
        self._complete(app, v.EVENT_TAXONOMY)
        self.start_next(app)

    # =========================================================================
    # Ad channels
    # =========================================================================

    def on_channel_select(self, app: RegisteredApp, pending: p.ChannelSelect, value: Any) -> None:
        channels = require_list(value, v.CHANNELS, "channel")
        self._answered(app, ", ".join(v.CHANNEL_LABELS[c] for c in channels))
        self.flow.registry.set_channels(app.id, channels)
        self._complete(app, v.CHANNEL_SELECT)
        self._say(
            app,
            p.Text("Here's where things stand."),
            p.CompletionSummary(data=p.CompletionData(
                app_name=app.name,
                platforms=tuple(app.platforms),
                framework=app.framework,
                channels=tuple(app.channels),
            )),
        )

    def on_completion_summary(self, app: RegisteredApp, pending: p.CompletionSummary, value: Any) -> None:
        choice = require_choice(value, ("continue", "add-another-app"))
        if choice == "add-another-app":
            self._answered(app, "Add another app")
            self.flow.add_app()
            return
        self._answered(app, "Continue")
        self.start_next(app)

    def on_channel_overview(self, app: RegisteredApp, pending: p.ChannelIntegrationOverview, value: Any) -> None:
        require_choice(value, ("start",))
        self._answered(app, "Start")
        app.channel_states = {
            channel: ChannelState(
                channel=channel,
                stages={stage: "pending" for stage in v.channel_stages(channel, app.has_ios)},
            )
            for channel in pending.selected_channels
        }
        self._channel_turn(app)

    def _current_channel(self, app: RegisteredApp) -> Optional[ChannelState]:
        for state in app.channel_states.values():
            if not state.finished:
                return state
        return None

    def _progress(self, app: RegisteredApp, state: ChannelState) -> p.ChannelProgress:
        return p.ChannelProgress(
            channel=state.channel,
            stages=tuple(
                p.ChannelStage(id=stage, label=v.CHANNEL_STAGE_LABELS[stage], status=status,
                               required=stage == "channel")
                for stage, status in state.stages.items()
            ),
            has_ios=app.has_ios,
        )

    def _channel_turn(self, app: RegisteredApp) -> None:
        state = self._current_channel(app)
        if state is None:
            self._finish_channels(app)
            return
        stage = state.current_stage()
        state.stages[stage] = "in_progress"
        if state.channel == "apple" and not state.version_checked:
            self._say(
                app,
                self._progress(app, state),
                p.Text("Which Apple Search Ads plan are you on?"),
                p.AppleVersionCheck(),
            )
            return
        self._say(app, self._progress(app, state), p.ChannelStagePrompt(channel=state.channel, stage=stage))

    def _finish_channels(self, app: RegisteredApp) -> None:
        for step_id in (v.CHANNEL_INTEGRATION, v.COST_INTEGRATION, v.SKAN_INTEGRATION):
            if app.has_step(step_id):
                self._complete(app, step_id)
        self.start_next(app)

    def on_apple_version(self, app: RegisteredApp, pending: p.AppleVersionCheck, value: Any) -> None:
        choice = require_choice(value, ("advanced", "basic", "unsure"))
        self._answered(app, {"advanced": "Advanced", "basic": "Basic", "unsure": "Not sure"}[choice])
        app.channel_states["apple"].version_checked = True
        if choice == "advanced":
            self._say(app, p.ChannelStagePrompt(channel="apple", stage="channel"))
        else:
            self._say(
                app,
                p.Text("Attribution integration needs Apple Search Ads Advanced."),
                p.SingleSelect(options=(SKIP_APPLE, UPGRADE_APPLE)),
            )

    def on_channel_stage(self, app: RegisteredApp, pending: p.ChannelStagePrompt, value: Any) -> None:
        choice = require_choice(value, ("done", "skip-step", "help"))
        state = app.channel_states.get(pending.channel)
        if state is None:
            raise ValidationError(f"{pending.channel} is not being integrated")
        label = f"{v.CHANNEL_LABELS[pending.channel]} {v.CHANNEL_STAGE_LABELS[pending.stage]}"

        if choice == "help":
            self._answered(app, "I need help")
            self._say(
                app,
                p.Text(f"Open {templates.DASHBOARD_URL}/integrations/{pending.stage} and follow the {label} guide."),
                pending,
            )
            return

        self._answered(app, "Done" if choice == "done" else "Skip for now")
        state.stages[pending.stage] = "completed" if choice == "done" else "skipped"
        if state.finished:
            self._say(app, self._progress(app, state), p.ChannelCompletion(channel=state.channel))
        else:
            self._channel_turn(app)

    def on_channel_completion(self, app: RegisteredApp, pending: p.ChannelCompletion, value: Any) -> None:
        require_choice(value, ("next",))
        self._answered(app, "Next")
        self._channel_turn(app)

    # =========================================================================
    # Verification
    # =========================================================================

    def on_attribution_test(self, app: RegisteredApp, pending: p.AttributionTest, value: Any) -> None:
        require_choice(value, ("run",))
        self._answered(app, "Run test")
        self._say(app, p.AttributionTestResult(passed=True))
        self._complete(app, v.ATTRIBUTION_TEST)
        self.start_next(app)

    def on_data_verify(self, app: RegisteredApp, pending: p.DataVerify, value: Any) -> None:
        require_choice(value, ("run",))
        self._answered(app, "Verify")
        self._complete(app, v.DATA_VERIFY)
        metrics = p.DataVerifyMetrics(
            events_received=len(app.events) or 1,
            attribution_verified=app.has_step(v.ATTRIBUTION_TEST),
            deeplink_verified=app.has_step(v.DEEPLINK_TEST),
        )
        self._say(
            app,
            p.DataVerifyResult(metrics=metrics),
            p.Text("Data is flowing."),
            p.OnboardingComplete(app_name=app.name),
        )
        logger.info(f"{app.name} finished onboarding")
