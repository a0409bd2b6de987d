"""Pre-setup survey that seeds the onboarding session."""

from onboarding.survey.questions import QUESTIONS, Question, SurveyRun, visible_questions

__all__ = ["QUESTIONS", "Question", "SurveyRun", "visible_questions"]
