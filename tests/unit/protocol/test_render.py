"""Tests for onboarding/protocol/render.py"""

import pytest

from onboarding.protocol import payloads as p
from onboarding.protocol.messages import Transcript
from onboarding.protocol.render import TEXT_RENDERERS, render_message, render_payload


class TestTextRenderers:
    def test_every_payload_class_has_a_renderer(self):
        missing = {cls.__name__ for cls in p.PAYLOAD_TYPES.values()} - {c.__name__ for c in TEXT_RENDERERS}

        assert missing == set()

    def test_unknown_class_raises(self):
        class Stray(p.Payload):
            pass

        with pytest.raises(KeyError):
            render_payload(Stray())

    def test_stage_prompt_lists_answers(self):
        text = render_payload(p.ChannelStagePrompt(channel="meta", stage="cost"))

        assert "[skip-step]" in text

    def test_render_message_prefixes_role(self):
        transcript = Transcript()
        bot = transcript.append_bot_turn([p.Text("Hi"), p.EnvironmentSelect()])
        user = transcript.append_user_turn([p.Text("Production")])

        assert render_message(bot).startswith("bot> Hi")
        assert "[production]" in render_message(bot)
        assert render_message(user) == "you> Production"
