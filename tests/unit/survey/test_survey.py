"""Tests for onboarding/survey/questions.py

Tests the pre-setup survey:
- Conditional follow-up questions
- Answer validation per question type
- Skipping and completing, and what gets written to the store
"""

import pytest

from onboarding.errors import ValidationError
from onboarding.persistence import SURVEY_ANSWERS_KEY, InMemoryStore, SessionSeed
from onboarding.survey import QUESTIONS, SurveyRun, visible_questions


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def run(store):
    return SurveyRun(store)


def ids(questions):
    return [q.id for q in questions]


class TestVisibility:
    def test_follow_ups_hidden_by_default(self):
        assert ids(visible_questions({})) == ["1", "2", "5", "6"]

    def test_mmp_follow_up_shown_for_yes(self):
        assert ids(visible_questions({"2": "yes"})) == ["1", "2", "3", "5", "6"]

    def test_mmp_name_only_for_others(self):
        assert "4" not in ids(visible_questions({"2": "yes", "3": "adjust"}))
        assert "4" in ids(visible_questions({"2": "yes", "3": "others"}))

    def test_question_ids_are_unique(self):
        assert len(set(ids(QUESTIONS))) == len(QUESTIONS)


class TestSurveyRun:
    def test_first_question(self, run):
        assert run.current.question == "What is your organization name?"
        assert run.progress == (0, 4)

    def test_no_mmp_skips_follow_ups(self, run):
        run.answer("Acme")
        next_question = run.answer("no")

        assert next_question.id == "5"

    def test_mmp_others_asks_for_name(self, run):
        run.answer("Acme")
        run.answer("yes")
        assert run.current.id == "3"

        run.answer("others")
        assert run.current.id == "4"

        run.answer("Kochava")
        assert run.current.id == "5"
        assert run.answers["4"] == "Kochava"

    def test_full_run_writes_answers_once(self, run, store):
        for value in ("Acme", "no", "attribution"):
            run.answer(value)
        assert store.get(SURVEY_ANSWERS_KEY) is None

        assert run.answer(["meta", "google"]) is None

        assert run.finished
        assert store.get_json(SURVEY_ANSWERS_KEY) == {
            "1": "Acme", "2": "no", "5": "attribution", "6": ["meta", "google"],
        }

    def test_skip_keeps_partial_answers(self, run, store):
        run.answer("Acme")

        answers = run.skip()

        assert answers == {"1": "Acme"}
        assert store.get_json(SURVEY_ANSWERS_KEY) == {"1": "Acme"}
        assert run.current is None

    def test_answer_after_completion_rejected(self, run):
        run.skip()

        with pytest.raises(ValidationError):
            run.answer("Acme")

    def test_seed_reads_survey_output(self, run, store):
        for value in ("  Acme  ", "no", "deeplink", ["tiktok", "other"]):
            run.answer(value)

        seed = SessionSeed.from_store(store)

        assert seed.organization == "Acme"
        assert seed.channels == ("tiktok",)


class TestValidation:
    def test_blank_text_rejected(self, run):
        with pytest.raises(ValidationError):
            run.answer("   ")

    def test_unknown_choice_rejected(self, run):
        run.answer("Acme")

        with pytest.raises(ValidationError):
            run.answer("maybe")
        assert run.current.id == "2"

    def test_multi_select_needs_one_option(self, run):
        for value in ("Acme", "no", "attribution"):
            run.answer(value)

        with pytest.raises(ValidationError):
            run.answer([])

    def test_multi_select_dedupes(self, run):
        for value in ("Acme", "no", "attribution"):
            run.answer(value)

        run.answer(["meta", "meta"])

        assert run.answers["6"] == ["meta"]

    def test_multi_select_rejects_unknown(self, run):
        for value in ("Acme", "no", "attribution"):
            run.answer(value)

        with pytest.raises(ValidationError):
            run.answer(["myspace"])
