"""Tests for onboarding/persistence.py

Tests the key -> JSON stores and the SessionSeed read from them.
"""

import pytest

from onboarding import PROJECT_ROOT
from onboarding.persistence import (
    SURVEY_ANSWERS_KEY,
    TERMS_AGREEMENT_KEY,
    InMemoryStore,
    JsonFileStore,
    SessionSeed,
    open_store,
)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStore()
    return JsonFileStore(tmp_path / "data" / "session_store.json")


class TestStores:
    def test_missing_key(self, store):
        assert store.get("nothing") is None
        assert store.get_json("nothing", default={}) == {}

    def test_json_values(self, store):
        store.set_json(SURVEY_ANSWERS_KEY, {"1": "Acme", "6": ["meta"]})

        assert store.get_json(SURVEY_ANSWERS_KEY) == {"1": "Acme", "6": ["meta"]}
        assert store.get(SURVEY_ANSWERS_KEY) == '{"1": "Acme", "6": ["meta"]}'

    def test_malformed_json_returns_default(self, store):
        store.set(SURVEY_ANSWERS_KEY, "{not json")

        assert store.get_json(SURVEY_ANSWERS_KEY, default={}) == {}

    def test_overwrite(self, store):
        store.set("key", "one")
        store.set("key", "two")

        assert store.get("key") == "two"


class TestJsonFileStore:
    def test_survives_reopen(self, tmp_path):
        path = tmp_path / "store.json"
        JsonFileStore(path).set_json(TERMS_AGREEMENT_KEY, {"agreedAt": "2026-01-05T09:00:00"})

        assert JsonFileStore(path).get_json(TERMS_AGREEMENT_KEY) == {"agreedAt": "2026-01-05T09:00:00"}

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("garbage")

        store = JsonFileStore(path)

        assert store.get("key") is None
        store.set("key", "value")
        assert store.get("key") == "value"

    def test_non_object_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("[1, 2]")

        assert JsonFileStore(path).get("key") is None


class TestOpenStore:
    def test_relative_path_from_project_root(self):
        assert open_store("data/session_store.json").path == PROJECT_ROOT / "data" / "session_store.json"

    def test_absolute_path_kept(self, tmp_path):
        assert open_store(tmp_path / "s.json").path == tmp_path / "s.json"


class TestSessionSeed:
    def test_empty_store(self):
        assert SessionSeed.from_store(InMemoryStore()) == SessionSeed()

    def test_from_survey_and_terms(self, seeded_store):
        seed = SessionSeed.from_store(seeded_store)

        assert seed.organization == "Acme"
        assert seed.channels == ("meta", "google")
        assert seed.terms_agreed
        assert seed.marketing_consent

    def test_single_channel_string(self):
        store = InMemoryStore()
        store.set_json(SURVEY_ANSWERS_KEY, {"6": "tiktok"})

        assert SessionSeed.from_store(store).channels == ("tiktok",)

    def test_wrong_shapes_ignored(self):
        store = InMemoryStore()
        store.set_json(SURVEY_ANSWERS_KEY, ["not", "a", "dict"])
        store.set_json(TERMS_AGREEMENT_KEY, "yes")

        assert SessionSeed.from_store(store) == SessionSeed()

    def test_non_text_organization_ignored(self):
        store = InMemoryStore()
        store.set_json(SURVEY_ANSWERS_KEY, {"1": 42})

        assert SessionSeed.from_store(store).organization == ""

    def test_non_list_channels_ignored(self):
        store = InMemoryStore()
        store.set_json(SURVEY_ANSWERS_KEY, {"6": 5})

        assert SessionSeed.from_store(store).channels == ()

    def test_non_text_channels_skipped(self):
        store = InMemoryStore()
        store.set_json(SURVEY_ANSWERS_KEY, {"6": [{"id": "meta"}, ["google"], "tiktok"]})

        assert SessionSeed.from_store(store).channels == ("tiktok",)

    def test_to_dict(self, seed):
        assert seed.to_dict() == {
            "organization": "Acme",
            "channels": ["meta", "google"],
            "terms_agreed": True,
            "marketing_consent": True,
        }


class TestSeededGreeting:
    @pytest.mark.asyncio
    async def test_greeting_uses_organization(self, make_driver, provider, seed):
        driver = make_driver(provider, seed=seed)

        await driver.start()

        first = driver.flow.session.transcript.messages[0]
        assert first.content[0].text.startswith("Hi Acme!")
        assert driver.pending() == "environment-select"

    @pytest.mark.asyncio
    async def test_seed_in_snapshot(self, make_driver, provider, seed):
        driver = make_driver(provider, seed=seed)

        await driver.start()

        assert driver.flow.snapshot()["seed"]["terms_agreed"] is True
        assert driver.flow.snapshot()["seed"]["channels"] == ["meta", "google"]
