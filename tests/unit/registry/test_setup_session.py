"""Tests for onboarding/registry/session.py"""

from onboarding.protocol.payloads import Text
from onboarding.registry.apps import AppInfo, PlatformInfo
from onboarding.registry.session import SetupSession


class TestSetupSession:
    def test_new_session_is_empty(self):
        assert SetupSession().is_empty

    def test_record_platform_walks_the_list(self):
        session = SetupSession(platforms=["ios", "android"])

        assert session.current_platform == "ios"
        assert not session.record_platform(PlatformInfo(platform="ios", app_name="Shop"))
        assert session.current_platform == "android"
        assert session.record_platform(PlatformInfo(platform="android", app_name="Shop"))
        assert session.current_platform is None

    def test_draft_app_info_merges_platforms(self):
        session = SetupSession(platforms=["ios", "android"])
        session.record_platform(PlatformInfo(platform="ios", app_name="Shop", bundle_id="com.acme.shop"))
        session.record_platform(PlatformInfo(platform="android", app_name="Shop Android", package_name="com.acme.shop"))

        info = session.draft_app_info()

        assert info.app_name == "Shop"
        assert info.bundle_id == "com.acme.shop"
        assert info.package_name == "com.acme.shop"

    def test_explicit_app_info_wins(self):
        session = SetupSession(app_info=AppInfo(app_name="devkey"))
        session.platform_infos.append(PlatformInfo(platform="web", app_name="other"))

        assert session.draft_app_info().app_name == "devkey"

    def test_reset_clears_everything(self):
        session = SetupSession(environment="production", platforms=["ios"])
        session.transcript.append_bot_turn([Text("Hi")])
        old = session.transcript

        returned = session.reset()

        assert returned is old
        assert session.is_empty
        assert len(session.transcript) == 0
