"""
Tool: Flow Controller
Purpose: The dialogue state machine driving registration and per-app setup

Usage:
    from onboarding.flow.controller import FlowController, UserAction

    flow = FlowController(registry, provider, config)
    await flow.start()
    await flow.settle()
    await flow.dispatch(UserAction.answer("environment-select", "production"))

Conversation contexts:
    "session"   the app currently being registered (SetupSession)
    <app id>    a registered app, each with its own transcript

Every user action names the context it belongs to (no app id means the
session). The controller checks the action against that context's pending
prompt, applies the state change immediately, and schedules the bot's reply
on the context's TurnQueue so it appears after the simulated typing delay.
Acting on a different context than the last one cancels the turns still
scheduled for the one being left.

dispatch() never raises for user input; it returns:
    {"success": True, "context": ...}
    {"success": False, "code": "invalid_transition" | "validation_error", "error": ...}
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from onboarding.config_models import OnboardingConfig
from onboarding.errors import InvalidTransition, ValidationError
from onboarding.flow.handlers import SESSION
from onboarding.flow.registration import RegistrationFlow
from onboarding.flow.scheduler import Job, TurnQueue
from onboarding.flow.setup_steps import SetupFlow
from onboarding.logging_config import flow_context
from onboarding.persistence import SessionSeed
from onboarding.protocol.messages import Transcript
from onboarding.protocol.payloads import EnvironmentSelect, Payload, Text
from onboarding.providers.base import SimulatedProvider, StoreProvider
from onboarding.registry.apps import AppRegistry, RegisteredApp
from onboarding.registry.session import SetupSession
from onboarding.steps.graph import StepStatus, can_start_step

logger = logging.getLogger(__name__)

ACTION_KINDS = ("answer", "text", "skip", "add-app", "step-click", "expand")

ACKNOWLEDGEMENT = "I've noted your message. Would you like to continue with the current step?"


@dataclass
class UserAction:
    """
    One thing the user did in the chat.

    Attributes:
        kind: 'answer' | 'text' | 'skip' | 'add-app' | 'step-click' | 'expand'
        app_id: Context the action belongs to; None for the new-app session
        prompt: For answers, the payload kind being answered
        value: For answers, the answer itself (shape depends on the prompt)
        text: For free text, what the user typed
        step_id: For step clicks, the clicked step
    """
    kind: str
    app_id: Optional[str] = None
    prompt: Optional[str] = None
    value: Any = None
    text: Optional[str] = None
    step_id: Optional[str] = None

    @classmethod
    def answer(cls, prompt: str, value: Any = None, app_id: Optional[str] = None) -> "UserAction":
        return cls(kind="answer", prompt=prompt, value=value, app_id=app_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserAction":
        return cls(**{k: data.get(k) for k in ("kind", "app_id", "prompt", "value", "text", "step_id")})

    @property
    def context(self) -> str:
        return self.app_id or SESSION


def _rejected(code: str, error: str, context: str) -> dict[str, Any]:
    return {"success": False, "code": code, "error": error, "context": context}


class FlowController:
    """Owns the session, talks to the registry and provider, schedules bot turns."""

    def __init__(
        self,
        registry: AppRegistry | None = None,
        provider: StoreProvider | None = None,
        config: OnboardingConfig | None = None,
        seed: SessionSeed | None = None,
    ):
        self.config = config or OnboardingConfig()
        self.registry = registry or AppRegistry(self.config.tokens)
        self.provider = provider or SimulatedProvider.from_config(self.config.providers)
        self.seed = seed or SessionSeed()
        self.session = SetupSession()
        self.active = SESSION
        self.started = False
        self._queues: dict[str, TurnQueue] = {}
        self.registration = RegistrationFlow(self)
        self.setup = SetupFlow(self)

    # =========================================================================
    # Context plumbing
    # =========================================================================

    def transcript(self, context: str) -> Transcript:
        if context == SESSION:
            return self.session.transcript
        return self.registry.get(context).transcript

    def queue(self, context: str) -> TurnQueue:
        queue = self._queues.get(context)
        if queue is None or queue.transcript is not self.transcript(context):
            queue = TurnQueue(
                context, self.transcript(context), timeout=self.config.providers.timeout_seconds
            )
            self._queues[context] = queue
        return queue

    def app(self, context: str) -> RegisteredApp:
        return self.registry.get(context)

    def say(self, context: str, payloads: Iterable[Payload], delay: float | None = None) -> None:
        """Schedule a bot turn after the typing delay."""
        content = list(payloads)
        if delay is None:
            delay = self.config.latency.typing_seconds
        transcript = self.transcript(context)
        self.queue(context).schedule(Job(
            delay=delay,
            apply=lambda _: transcript.append_bot_turn(content),
            label=content[-1].type if content else "turn",
        ))

    def hear(self, context: str, text: str) -> None:
        """Record what the user answered, immediately."""
        self.transcript(context).append_user_turn([Text(text)])

    def switch_to(self, context: str) -> None:
        if context == self.active:
            return
        self._leave(self.active)
        self.active = context

    def _leave(self, context: str) -> None:
        leaving = self._queues.get(context)
        if leaving is not None:
            leaving.cancel()
        logger.info(f"Left conversation {context}")

    async def settle(self) -> None:
        """Wait until every context's scheduled turns have been delivered."""
        while any(not q.idle for q in self._queues.values()):
            await asyncio.gather(*(q.join() for q in list(self._queues.values())))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> dict[str, Any]:
        """Greet the user and ask for the first app's environment."""
        if self.started:
            return _rejected("invalid_transition", "Conversation already started", SESSION)
        self.started = True
        self.session.in_progress = True
        greeting = "Hi! I'm your setup assistant."
        if self.seed.organization:
            greeting = f"Hi {self.seed.organization}! I'm your setup assistant."
        with flow_context(SESSION):
            self.say(SESSION, [Text(greeting)])
            self.say(
                SESSION,
                [
                    Text("Let's register your first app. Which environment are you setting up?"),
                    EnvironmentSelect(),
                ],
                delay=self.config.latency.welcome_pause_seconds,
            )
            logger.info("Onboarding conversation started")
        return {"success": True, "context": SESSION}

    def add_app(self) -> None:
        """Discard any draft and start registering a new app."""
        self.switch_to(SESSION)
        stale = self._queues.pop(SESSION, None)
        if stale is not None:
            stale.cancel()
        self.session.reset()
        self.session.in_progress = True
        self.say(SESSION, [
            Text("Let's add another app. Which environment is it for?"),
            EnvironmentSelect(),
        ])
        logger.info("Started registration of another app")

    def commit(self) -> RegisteredApp:
        """Turn the session draft into a registered app and clear the draft."""
        session = self.session
        info = session.draft_app_info()
        stale = self._queues.pop(SESSION, None)
        if stale is not None:
            stale.cancel()
        app = self.registry.register(
            info,
            session.platforms,
            session.environment,
            transcript=session.transcript,
            platform_infos=session.platform_infos,
        )
        session.reset()
        self.switch_to(app.id)
        self.setup.present_tokens(app)
        return app

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def dispatch(self, action: UserAction) -> dict[str, Any]:
        context = action.context
        with flow_context(context):
            if action.kind not in ACTION_KINDS:
                return _rejected("validation_error", f"Unknown action kind: {action.kind}", context)
            if not isinstance(context, str):
                return _rejected("validation_error", f"App id must be text, got {context!r}", SESSION)
            if context != SESSION and context not in self.registry:
                return _rejected("invalid_transition", f"No app with id {context}", context)
            if not self.started and action.kind != "add-app":
                return _rejected("invalid_transition", "Conversation has not started", context)

            previous = self.active
            try:
                if action.kind == "add-app":
                    self.started = True
                    self.add_app()
                    return {"success": True, "context": SESSION}
                if action.kind == "expand":
                    return self._expand(action)

                self.active = context
                if context == SESSION:
                    self.registration.resume()
                if action.kind == "text":
                    self._free_text(context, action.text)
                elif action.kind == "skip":
                    self._skip(context)
                elif action.kind == "step-click":
                    self._step_click(context, action.step_id)
                else:
                    self._answer(context, action)
            except InvalidTransition as e:
                self.active = previous
                logger.info(f"Rejected {action.kind} ({action.prompt or action.step_id or ''}): {e}")
                return _rejected("invalid_transition", str(e), context)
            except ValidationError as e:
                self.active = previous
                logger.info(f"Invalid {action.prompt} answer: {e}")
                return _rejected("validation_error", str(e), context)

            if previous != self.active:
                self._leave(previous)

            return {"success": True, "context": self.active}

    def _answer(self, context: str, action: UserAction) -> None:
        transcript = self.transcript(context)
        pending = transcript.pending
        if pending is None:
            raise InvalidTransition("Nothing is waiting for an answer")
        if action.prompt != pending.type:
            raise InvalidTransition(f"'{pending.type}' is pending, not '{action.prompt}'")

        if context == SESSION:
            self.registration.handle(pending, action.value)
        else:
            self.setup.handle(self.app(context), pending, action.value)

    def _free_text(self, context: str, text: Optional[str]) -> None:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Message is empty")
        self.hear(context, text.strip())
        self.say(context, [Text(ACKNOWLEDGEMENT)])

    def _skip(self, context: str) -> None:
        """Keep whatever has been answered and stop the current flow."""
        queue = self._queues.get(context)
        if queue is not None:
            queue.cancel()
        self.transcript(context).withdraw()
        self.hear(context, "Skip")

        if context == SESSION:
            if self.session.environment:
                app = self.registration.commit_partial()
                logger.info(f"Skipped registration, committed partial app {app.id}")
            else:
                self.session.reset()
                self.say(SESSION, [Text("Setup skipped. Add an app whenever you're ready.")])
            return

        self.say(context, [Text("Okay, pausing here. Pick a step from the list whenever you're ready.")])
        logger.info(f"Skipped setup flow of {context}")

    def _step_click(self, context: str, step_id: Optional[str]) -> None:
        if context == SESSION:
            raise InvalidTransition("The draft app has no steps yet")
        app = self.app(context)
        if not step_id or not app.has_step(step_id):
            raise InvalidTransition(f"Unknown step: {step_id}")
        step = app.step(step_id)
        if step.completed:
            raise InvalidTransition(f"Step {step_id} is already completed")
        if not can_start_step(app.steps, step_id):
            raise InvalidTransition(f"Earlier steps must be completed before {step_id}")

        queue = self._queues.get(context)
        if queue is not None:
            queue.cancel()
        app.transcript.withdraw()
        self.registry.update_step_status(app.id, step_id, StepStatus.IN_PROGRESS)
        self.setup.open_step(app, step)

    def _expand(self, action: UserAction) -> dict[str, Any]:
        app_id = action.value or action.app_id
        if not isinstance(app_id, str) or app_id not in self.registry:
            return _rejected("invalid_transition", f"No app with id {app_id}", action.context)
        app = self.registry.expand(app_id)
        self.switch_to(app.id)
        self.setup.resume(app)
        return {"success": True, "context": app.id}

    # =========================================================================
    # Queries
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "started": self.started,
            "session": self.session.to_dict(),
            "seed": self.seed.to_dict(),
            "apps": self.registry.to_list(),
            "overall_progress": self.registry.overall_progress(),
            "composing": {c: q.transcript.composing for c, q in self._queues.items()},
        }
