"""Survey form model shared by the voice flow and the hosting page."""

import logging
import uuid
from datetime import datetime
from typing import Awaitable, Callable, Optional

from .models import (
    AnswerValue,
    ControlKind,
    FieldChange,
    Option,
    Question,
    Region,
    ResponseAnswer,
    Survey,
    SurveyResponse,
)
from .regions import regions_for

logger = logging.getLogger(__name__)

NAME_FIELD_ID = "userName"
REGION_FIELD_ID = "userState"

ChangeListener = Callable[[FieldChange], None]
SubmitAction = Callable[[SurveyResponse], Awaitable[None]]


class SurveyForm:
    """Ordered, typed questions plus the name and region fields of one page.

    The hosting side builds the form once and hands it to the voice flow.
    Every commit notifies the registered change listeners, mirroring the
    change/input events a rendered page would observe.
    """

    def __init__(
        self,
        questions: list[Question],
        regions: Optional[list[Region]] = None,
        survey_id: str = "",
        submit_action: Optional[SubmitAction] = None,
    ):
        self.survey_id = survey_id
        self.questions = questions
        self.regions = regions if regions is not None else regions_for(None)
        self.name: str = ""
        self.region: Optional[Region] = None
        self.submit_action = submit_action
        self._listeners: list[ChangeListener] = []

    @classmethod
    def from_survey(cls, survey: Survey, submit_action: Optional[SubmitAction] = None) -> "SurveyForm":
        """Build a fresh form for `survey` with no answers filled in."""
        questions = [
            Question(
                id=q.id,
                text=q.text,
                type=q.type,
                options=[Option(label=o.label, value=o.value) for o in q.options],
                required=q.required,
                min_value=q.min_value,
                max_value=q.max_value,
            )
            for q in survey.questions
        ]
        return cls(
            questions=questions,
            regions=regions_for(survey.allowed_regions),
            survey_id=survey.id,
            submit_action=submit_action,
        )

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _notify(self, change: FieldChange) -> None:
        for listener in self._listeners:
            listener(change)

    # Discovery

    def current_question(self) -> Optional[Question]:
        """First question with text and controls that is still unresolved."""
        for question in self.questions:
            if not question.text.strip() or not question.controls:
                continue
            if question.resolved:
                continue
            return question
        return None

    def has_unanswered(self) -> bool:
        return any(not question.resolved for question in self.questions)

    # Commits

    def set_name(self, name: str) -> None:
        self.name = name
        self._notify(FieldChange(NAME_FIELD_ID, name, event="input"))

    def set_region(self, region: Optional[Region]) -> None:
        self.region = region
        self._notify(FieldChange(REGION_FIELD_ID, region.name if region else None))

    def check_option(self, question: Question, option: Option) -> None:
        """Select `option`; radio and select questions keep a single selection."""
        if question.controls[0] in (ControlKind.RADIO, ControlKind.SELECT):
            for other in question.options:
                other.checked = False
        option.checked = True
        if question.controls[0] == ControlKind.CHECKBOX:
            question.value = ",".join(question.selected_values())
        else:
            question.value = option.value
        self._notify(FieldChange(question.id, option.value))

    def set_value(self, question: Question, value: AnswerValue) -> None:
        question.value = value
        event = "input" if ControlKind.TEXT in question.controls else "change"
        self._notify(FieldChange(question.id, value, event=event))

    def mark_answered(self, question: Question) -> None:
        question.answered = True

    def mark_skipped(self, question: Question) -> None:
        question.skipped = True
        logger.info("Question %s skipped", question.id)

    # Submission

    @property
    def can_submit(self) -> bool:
        return self.submit_action is not None

    def to_response(self) -> SurveyResponse:
        """Collect the committed answers into a submittable response."""
        answers = []
        for question in self.questions:
            if question.value is None and not question.has_selection:
                continue
            kind = question.controls[0] if question.controls else ControlKind.TEXT
            if kind == ControlKind.NUMBER:
                answers.append(ResponseAnswer(question_id=question.id, scale_value=int(question.value)))
            elif kind == ControlKind.TEXT:
                answers.append(ResponseAnswer(question_id=question.id, answer_text=str(question.value)))
            else:
                answers.append(ResponseAnswer(
                    question_id=question.id,
                    selected_values=question.selected_values(),
                ))
        return SurveyResponse(
            id=str(uuid.uuid4()),
            survey_id=self.survey_id,
            user_name=self.name,
            region=self.region.name if self.region else "",
            answers=answers,
            submitted_at=datetime.now(),
        )

    async def submit(self) -> SurveyResponse:
        """Trigger the submit action with the current answers."""
        if self.submit_action is None:
            raise RuntimeError("No submit action bound to this form")
        response = self.to_response()
        await self.submit_action(response)
        return response
