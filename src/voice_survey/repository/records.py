"""Conversion between stored records and domain models."""

from datetime import datetime
from typing import Any

from ..models import Option, Question, QuestionType, ResponseAnswer, Survey, SurveyResponse


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value


def question_from_record(data: dict) -> Question:
    return Question(
        id=str(data["id"]),
        text=data["text"],
        type=QuestionType(data["type"]),
        options=[
            Option(label=option["label"], value=str(option.get("value", option["label"])))
            for option in data.get("options", [])
        ],
        required=data.get("required", False),
        min_value=data.get("min_value"),
        max_value=data.get("max_value"),
    )


def survey_from_record(data: dict) -> Survey:
    return Survey(
        id=str(data["id"]),
        title=data["title"],
        description=data.get("description"),
        questions=[question_from_record(q) for q in data.get("questions", [])],
        allowed_regions=data.get("allowed_regions"),
        created_at=_parse_datetime(data["created_at"]),
        active=data.get("active", True),
    )


def response_from_record(data: dict) -> SurveyResponse:
    return SurveyResponse(
        id=data["id"],
        survey_id=data["survey_id"],
        user_name=data.get("user_name", ""),
        region=data.get("region", ""),
        answers=[
            ResponseAnswer(
                question_id=answer["question_id"],
                answer_text=answer.get("answer_text"),
                selected_values=answer.get("selected_values", []),
                scale_value=answer.get("scale_value"),
            )
            for answer in data.get("answers", [])
        ],
        submitted_at=_parse_datetime(data["submitted_at"]),
    )


def response_to_record(response: SurveyResponse) -> dict:
    return {
        "id": response.id,
        "survey_id": response.survey_id,
        "user_name": response.user_name,
        "region": response.region,
        "answers": [
            {
                "question_id": answer.question_id,
                "answer_text": answer.answer_text,
                "selected_values": answer.selected_values,
                "scale_value": answer.scale_value,
            }
            for answer in response.answers
        ],
        "submitted_at": response.submitted_at.isoformat(),
    }
