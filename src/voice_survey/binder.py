"""Form binder: finds the next unanswered question and commits utterances into it."""

import logging
from typing import Optional

from .form import SurveyForm
from .models import ControlKind, Option, Question, Region
from .normalizer import contains_phrase, extract_number, normalize, sanitize, tokens
from .regions import match_region

logger = logging.getLogger(__name__)

# Most constrained control first; the first kind present decides how to commit.
COMMIT_PRIORITY = (
    ControlKind.RADIO,
    ControlKind.SELECT,
    ControlKind.CHECKBOX,
    ControlKind.NUMBER,
    ControlKind.TEXT,
)

TRUE_WORDS = {"yes", "yeah", "yep", "true", "correct", "right"}
FALSE_WORDS = {"no", "nope", "false", "wrong", "incorrect"}
TRUE_VALUES = {"true", "yes", "1"}
FALSE_VALUES = {"false", "no", "0"}
STOP_WORDS = {"and", "or", "the", "a", "an", "also", "plus", "with", "i", "like", "choose", "option"}

DEFAULT_SCALE_MIN = 1
DEFAULT_SCALE_MAX = 10


class FormBinder:
    """Binds recognized utterances to the fields of a SurveyForm."""

    def __init__(self, form: SurveyForm):
        self.form = form

    def current_question(self) -> Optional[Question]:
        return self.form.current_question()

    def has_unanswered(self) -> bool:
        return self.form.has_unanswered()

    def current_question_text(self) -> str:
        """Text of the next unanswered question, read live from the form."""
        question = self.form.current_question()
        return question.text.strip() if question else ""

    def commit_name(self, utterance: str) -> bool:
        name = sanitize(utterance)
        if not name:
            return False
        self.form.set_name(name)
        return True

    def commit_region(self, utterance: str) -> Optional[Region]:
        region = match_region(utterance, self.form.regions)
        if region is None:
            logger.info("No region match for %r", normalize(utterance))
            return None
        self.form.set_region(region)
        return region

    def commit_answer(self, question: Question, utterance: str) -> bool:
        """Commit `utterance` to `question`; True when the question is now answered."""
        kind = next((k for k in COMMIT_PRIORITY if k in question.controls), None)
        if kind is None:
            logger.warning("Question %s has no controls", question.id)
            return False

        if kind in (ControlKind.RADIO, ControlKind.SELECT):
            committed = self._commit_single(question, utterance)
        elif kind == ControlKind.CHECKBOX:
            committed = self._commit_multiple(question, utterance)
        elif kind == ControlKind.NUMBER:
            committed = self._commit_number(question, utterance)
        else:
            committed = self._commit_text(question, utterance)

        if committed:
            self.form.mark_answered(question)
        else:
            logger.info("No match for question %s in %r", question.id, normalize(utterance))
        return committed

    def _commit_single(self, question: Question, utterance: str) -> bool:
        option = match_single_option(question.options, utterance)
        if option is None:
            return False
        self.form.check_option(question, option)
        return True

    def _commit_multiple(self, question: Question, utterance: str) -> bool:
        options = match_multiple_options(question.options, utterance)
        for option in options:
            self.form.check_option(question, option)
        return bool(options)

    def _commit_number(self, question: Question, utterance: str) -> bool:
        number = extract_number(utterance)
        if number is None:
            return False
        low = question.min_value if question.min_value is not None else DEFAULT_SCALE_MIN
        high = question.max_value if question.max_value is not None else DEFAULT_SCALE_MAX
        if not low <= number <= high:
            logger.info("Rating %d outside %d..%d for question %s", number, low, high, question.id)
            return False
        self.form.set_value(question, number)
        return True

    def _commit_text(self, question: Question, utterance: str) -> bool:
        text = sanitize(utterance)
        if not text:
            return False
        self.form.set_value(question, text)
        return True


def match_single_option(options: list[Option], utterance: str) -> Optional[Option]:
    """Pick one option for `utterance`.

    Passes, first hit wins: exact label or value, label phrase inside the
    utterance, utterance phrase inside a label, then yes/no and true/false
    synonyms against the option value. Phrases compare whole tokens, so an
    option labelled "noyes" never answers "yes".
    """
    spoken = tokens(utterance)
    if not spoken:
        return None
    labelled = [(option, tokens(option.label), tokens(option.value)) for option in options]

    for option, label, value in labelled:
        if spoken == label or spoken == value:
            return option

    for option, label, value in labelled:
        if contains_phrase(spoken, label) or contains_phrase(spoken, value):
            return option

    for option, label, _ in labelled:
        if contains_phrase(label, spoken):
            return option

    words = set(spoken)
    for option, _, value in labelled:
        joined = " ".join(value)
        if words & TRUE_WORDS and joined in TRUE_VALUES:
            return option
        if words & FALSE_WORDS and joined in FALSE_VALUES:
            return option
    return None


def match_multiple_options(options: list[Option], utterance: str) -> list[Option]:
    """Options named in `utterance`; partial word matches are accepted."""
    spoken = tokens(utterance)
    if not spoken:
        return []

    matched = [option for option in options if contains_phrase(spoken, tokens(option.label))]
    if matched:
        return matched

    words = [word for word in spoken if word not in STOP_WORDS]
    return [
        option for option in options
        if any(word in tokens(option.label) for word in words)
    ]
