"""Domain models for Voice Survey."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum, auto
from typing import Optional, Union


class FlowState(IntEnum):
    """Phases of the voice-guided survey flow."""
    COLLECTING_NAME = 0
    COLLECTING_STATE = 1
    ANSWERING_QUESTIONS = 2
    CONFIRM_OR_CONTINUE = 3
    FINAL_SUBMIT = 4


class QuestionType(Enum):
    """Declared semantic type of a survey question."""
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    DESCRIPTIVE = "descriptive"
    SCALE = "scale"
    LONG_TEXT = "long_text"
    RATING = "rating"
    DROPDOWN = "dropdown"


class ControlKind(Enum):
    """Kind of form control a question is rendered with."""
    RADIO = auto()
    CHECKBOX = auto()
    SELECT = auto()
    NUMBER = auto()
    TEXT = auto()


CONTROLS_BY_TYPE = {
    QuestionType.SINGLE_CHOICE: (ControlKind.RADIO,),
    QuestionType.TRUE_FALSE: (ControlKind.RADIO,),
    QuestionType.DROPDOWN: (ControlKind.SELECT,),
    QuestionType.MULTIPLE_CHOICE: (ControlKind.CHECKBOX,),
    QuestionType.SCALE: (ControlKind.NUMBER,),
    QuestionType.RATING: (ControlKind.NUMBER,),
    QuestionType.DESCRIPTIVE: (ControlKind.TEXT,),
    QuestionType.LONG_TEXT: (ControlKind.TEXT,),
}

AnswerValue = Union[str, int, None]


@dataclass
class Option:
    """A selectable option of a choice question."""
    label: str
    value: str
    checked: bool = False


@dataclass
class Question:
    """A question descriptor plus the answer state of its controls."""
    id: str
    text: str
    type: QuestionType
    options: list[Option] = field(default_factory=list)
    required: bool = False
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    value: AnswerValue = None
    answered: bool = False
    skipped: bool = False

    @property
    def controls(self) -> tuple[ControlKind, ...]:
        """Control kinds rendered for this question."""
        kinds = CONTROLS_BY_TYPE[self.type]
        if kinds[0] in (ControlKind.RADIO, ControlKind.CHECKBOX, ControlKind.SELECT) and not self.options:
            return ()
        return kinds

    @property
    def has_selection(self) -> bool:
        return any(option.checked for option in self.options)

    @property
    def resolved(self) -> bool:
        """True once the question needs no further voice input."""
        return self.answered or self.skipped or self.has_selection

    def selected_values(self) -> list[str]:
        return [option.value for option in self.options if option.checked]


@dataclass(frozen=True)
class Region:
    """A region (state or union territory) the user can report."""
    name: str
    code: str


@dataclass
class FieldChange:
    """Notification emitted whenever a form field is committed."""
    field_id: str
    value: AnswerValue
    event: str = "change"  # "input" for free text, "change" otherwise


@dataclass
class Survey:
    """A published survey definition."""
    id: str
    title: str
    questions: list[Question]
    created_at: datetime
    description: Optional[str] = None
    allowed_regions: Optional[list[str]] = None
    active: bool = True


@dataclass
class ResponseAnswer:
    """One question's answer inside a submitted response."""
    question_id: str
    answer_text: Optional[str] = None
    selected_values: list[str] = field(default_factory=list)
    scale_value: Optional[int] = None


@dataclass
class SurveyResponse:
    """A user's submitted answers to a survey."""
    id: str
    survey_id: str
    user_name: str
    region: str
    answers: list[ResponseAnswer]
    submitted_at: datetime
