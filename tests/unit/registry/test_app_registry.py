"""Tests for onboarding/registry/apps.py

Tests the AppRegistry class:
- Registration (steps, tokens, phase, expansion)
- Forward-only step status updates with prerequisite checks
- Progress
"""

import pytest

from onboarding.config_models import TokensConfig
from onboarding.errors import UnknownAppError
from onboarding.protocol.messages import Transcript
from onboarding.protocol.payloads import Text
from onboarding.registry.apps import NO_PROGRESS, AppInfo, AppRegistry, AppTokens
from onboarding.steps.graph import StepStatus


@pytest.fixture
def web_app(registry):
    return registry.register(AppInfo(app_name="shopapp"), ["web"], "dev")


class TestRegister:
    """Tests for register()."""

    def test_register_builds_steps(self, registry):
        app = registry.register(AppInfo(app_name="Shop"), ["ios", "android"], "production", "flutter")

        assert len(app.steps) == 13
        assert app.framework == "flutter"
        assert app in registry.apps
        assert registry.get(app.id) is app

    def test_phase_depends_on_environment(self, registry):
        dev = registry.register(AppInfo(app_name="a"), ["web"], "dev")
        prod = registry.register(AppInfo(app_name="b"), ["web"], "production")

        assert dev.current_phase == 1
        assert prod.current_phase == 2

    def test_newest_app_is_the_only_expanded_one(self, registry):
        first = registry.register(AppInfo(app_name="a"), ["web"], "dev")
        second = registry.register(AppInfo(app_name="b"), ["ios"], "dev")

        assert second.is_expanded
        assert not first.is_expanded
        assert registry.expanded is second

    def test_expand_collapses_others(self, registry):
        first = registry.register(AppInfo(app_name="a"), ["web"], "dev")
        registry.register(AppInfo(app_name="b"), ["ios"], "dev")

        registry.expand(first.id)

        assert [a.is_expanded for a in registry] == [True, False]

    def test_transcript_is_adopted(self, registry):
        transcript = Transcript()
        transcript.append_bot_turn([Text("Hi")])

        app = registry.register(AppInfo(app_name="a"), ["web"], "dev", transcript=transcript)

        assert app.transcript is transcript

    def test_unknown_platform_raises(self, registry):
        with pytest.raises(ValueError):
            registry.register(AppInfo(app_name="a"), ["blackberry"], "dev")
        assert len(registry) == 0

    def test_unknown_app(self, registry):
        with pytest.raises(UnknownAppError):
            registry.get("nope")
        with pytest.raises(LookupError):
            registry.expand("nope")


class TestTokens:
    def test_tokens_distinct_and_sized(self, web_app):
        tokens = web_app.tokens

        values = [tokens.app_sdk_token, tokens.web_sdk_token, tokens.api_token]
        assert len(set(values)) == 3
        assert all(len(v) == 32 for v in values)
        assert all(c in "abcdefghijklmnopqrstuvwxyz0123456789" for v in values for c in v)

    def test_tokens_follow_config(self):
        tokens = AppTokens.generate(TokensConfig(alphabet="ab", length=8))

        assert len(tokens.api_token) == 8
        assert set(tokens.api_token) <= {"a", "b"}

    def test_each_app_gets_its_own_tokens(self, registry):
        a = registry.register(AppInfo(app_name="a"), ["web"], "dev")
        b = registry.register(AppInfo(app_name="b"), ["web"], "dev")

        assert a.tokens != b.tokens


class TestUpdateStepStatus:
    """Tests for update_step_status()."""

    def test_first_step_can_start(self, registry, web_app):
        assert registry.update_step_status(web_app.id, "web-sdk-install", StepStatus.IN_PROGRESS)
        assert web_app.step("web-sdk-install").status is StepStatus.IN_PROGRESS

    def test_out_of_order_refused(self, registry, web_app):
        assert not registry.update_step_status(web_app.id, "sdk-test", StepStatus.IN_PROGRESS)
        assert web_app.step("sdk-test").status is StepStatus.PENDING

    def test_demotion_refused(self, registry, web_app):
        registry.update_step_status(web_app.id, "web-sdk-install", StepStatus.COMPLETED)

        assert not registry.update_step_status(web_app.id, "web-sdk-install", StepStatus.PENDING)
        assert web_app.step("web-sdk-install").status is StepStatus.COMPLETED

    def test_same_status_is_accepted(self, registry, web_app):
        registry.update_step_status(web_app.id, "web-sdk-install", StepStatus.IN_PROGRESS)

        assert registry.update_step_status(web_app.id, "web-sdk-install", "in_progress")

    def test_unknown_step_refused(self, registry, web_app):
        assert not registry.update_step_status(web_app.id, "skan-integration", StepStatus.COMPLETED)

    def test_unknown_app_raises(self, registry):
        with pytest.raises(UnknownAppError):
            registry.update_step_status("missing", "sdk-test", StepStatus.COMPLETED)

    def test_starting_a_step_raises_phase(self, registry):
        app = registry.register(AppInfo(app_name="a"), ["web"], "production")
        for step in app.steps[:-2]:
            registry.update_step_status(app.id, step.id, StepStatus.COMPLETED)

        registry.update_step_status(app.id, "attribution-test", StepStatus.IN_PROGRESS)

        assert app.current_phase == 5

    def test_phase_never_goes_down(self, registry, web_app):
        registry.advance_phase(web_app.id, 3)

        assert registry.advance_phase(web_app.id, 2) == 3


class TestProgress:
    def test_progress_counts_completed_steps(self, registry, web_app):
        assert registry.progress(web_app.id) == 0.0

        registry.update_step_status(web_app.id, "web-sdk-install", StepStatus.COMPLETED)

        assert registry.progress(web_app.id) == pytest.approx(1 / 3)

    def test_overall_progress_weights_by_steps(self, registry, web_app):
        other = registry.register(AppInfo(app_name="b"), ["ios"], "dev")
        registry.update_step_status(other.id, "sdk-install", StepStatus.COMPLETED)

        assert registry.overall_progress() == pytest.approx(1 / 7)

    def test_empty_registry_has_no_progress(self, registry):
        assert registry.overall_progress() == NO_PROGRESS

    def test_app_without_steps_has_no_progress(self, registry):
        app = registry.register(AppInfo(app_name="a"), [], "dev")

        assert app.steps == []
        assert registry.progress(app.id) == NO_PROGRESS


class TestSetters:
    def test_set_framework_validates(self, registry, web_app):
        registry.set_framework(web_app.id, "flutter")
        assert web_app.framework == "flutter"

        with pytest.raises(ValueError):
            registry.set_framework(web_app.id, "cobol")

    def test_set_channels_dedupes(self, registry, web_app):
        registry.set_channels(web_app.id, ["meta", "google", "meta"])

        assert web_app.channels == ["meta", "google"]

    def test_to_dict_includes_messages_on_request(self, web_app):
        assert "messages" not in web_app.to_dict()
        assert web_app.to_dict(include_messages=True)["messages"] == []
