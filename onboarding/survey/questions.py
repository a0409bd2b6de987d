"""
Tool: Pre-Setup Survey
Purpose: Short questionnaire whose answers seed the setup session

Usage:
    from onboarding.persistence import InMemoryStore
    from onboarding.survey.questions import SurveyRun

    run = SurveyRun(InMemoryStore())
    run.current.question          # 'What is your organization name?'
    run.answer("Acme")
    run.answer("no")              # MMP follow-ups are hidden from here on
    run.skip()                    # keeps the two answers, writes surveyAnswers

Questions that depend on an earlier answer carry a ``show_if`` predicate over
the answers so far. Visibility is recomputed from the answers after each
answer, so a follow-up never appears unless its parent answer asks for it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from onboarding.errors import ValidationError
from onboarding.persistence import SURVEY_ANSWERS_KEY, KeyValueStore
from onboarding.protocol.payloads import Option

logger = logging.getLogger(__name__)

Answers = dict[str, Any]


@dataclass(frozen=True)
class Question:
    id: str
    question: str
    subtitle: str
    type: str                    # 'text' | 'choice' | 'multi-select'
    options: tuple[Option, ...] = ()
    show_if: Callable[[Answers], bool] = field(default=lambda answers: True, compare=False, repr=False)

    def validate(self, value: Any) -> Any:
        values = [o.value for o in self.options]
        if self.type == "text":
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"'{self.question}' needs an answer")
            return value.strip()
        if self.type == "choice":
            if value not in values:
                raise ValidationError(f"Choose one of {values}")
            return value
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)) or not value:
            raise ValidationError("Select at least one option")
        unknown = [x for x in value if x not in values]
        if unknown:
            raise ValidationError(f"Unknown options: {unknown}")
        return list(dict.fromkeys(value))


def _answered(question_id: str, *values: str) -> Callable[[Answers], bool]:
    return lambda answers: answers.get(question_id) in values


QUESTIONS: tuple[Question, ...] = (
    Question("1", "What is your organization name?", "Enter your company or team name", "text"),
    Question(
        "2", "Have you used an MMP before?", "Mobile Measurement Partner experience", "choice",
        options=(
            Option("Yes", "yes", "I have experience with an MMP"),
            Option("No", "no", "This is my first time using an MMP"),
        ),
    ),
    Question(
        "3", "Which MMP did you use?", "Select the MMP you have experience with", "choice",
        options=(
            Option("AppsFlyer", "appsflyer"),
            Option("Adjust", "adjust"),
            Option("Singular", "singular"),
            Option("Branch", "branch"),
            Option("Others", "others"),
        ),
        show_if=_answered("2", "yes"),
    ),
    Question(
        "4", "Which MMP did you use?", "Please specify the MMP name", "text",
        show_if=_answered("3", "others"),
    ),
    Question(
        "5", "What do you mainly want to measure?", "Select your primary goal", "choice",
        options=(
            Option("Deep Linking", "deeplink", "Seamless user routing across platforms"),
            Option("Accurate & Unbiased Attribution", "attribution", "Measure true ad performance"),
            Option("Granular Data Reports", "granular-reports", "Campaign to creative level insights"),
            Option("Automated Multichannel Reporting", "adops", "Unified AdOps across all channels"),
            Option("Unified Web & App Analytics", "unified-analytics", "Cross-platform data analysis"),
            Option("Ad Spend Optimization", "optimization", "Optimize spend by channel & campaign"),
        ),
    ),
    Question(
        "6", "Do you have any ad channels in use?", "Select channels to integrate (you can add more later)",
        "multi-select",
        options=(
            Option("Meta Ads (Facebook/Instagram)", "meta"),
            Option("Google Ads", "google"),
            Option("Apple Search Ads", "apple"),
            Option("TikTok For Business", "tiktok"),
            Option("Other / None yet", "other"),
        ),
    ),
)


def visible_questions(answers: Answers) -> list[Question]:
    return [q for q in QUESTIONS if q.show_if(answers)]


class SurveyRun:
    """One pass through the survey; answers are written to the store once, at the end."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.answers: Answers = {}
        self.finished = False

    @property
    def current(self) -> Optional[Question]:
        if self.finished:
            return None
        for question in visible_questions(self.answers):
            if question.id not in self.answers:
                return question
        return None

    @property
    def progress(self) -> tuple[int, int]:
        visible = visible_questions(self.answers)
        return sum(1 for q in visible if q.id in self.answers), len(visible)

    def answer(self, value: Any) -> Optional[Question]:
        """Record an answer to the current question and return the next one.

        Raises:
            ValidationError: If the answer doesn't fit the question
        """
        question = self.current
        if question is None:
            raise ValidationError("The survey is already complete")
        self.answers[question.id] = question.validate(value)

        # An answer can hide follow-ups answered earlier
        visible = {q.id for q in visible_questions(self.answers)}
        self.answers = {k: v for k, v in self.answers.items() if k in visible}

        if self.current is None:
            self.complete()
        return self.current

    def skip(self) -> Answers:
        """Stop here, keeping the answers given so far."""
        logger.info(f"Survey skipped after {len(self.answers)} answer(s)")
        return self.complete()

    def complete(self) -> Answers:
        if not self.finished:
            self.store.set_json(SURVEY_ANSWERS_KEY, self.answers)
            self.finished = True
        return dict(self.answers)
