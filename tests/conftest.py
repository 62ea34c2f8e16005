"""Shared fixtures: a scripted speech provider and an in-memory response store."""

from datetime import datetime

import pytest

from voice_survey.config.settings import FlowSettings
from voice_survey.models import Option, Question, QuestionType, Survey
from voice_survey.repository.base import ResponseRepository
from voice_survey.speech.base import SpeechProvider


class FakeSpeechProvider(SpeechProvider):
    """Records spoken prompts; recognition results are injected with say()."""

    listens_after_speaking = True

    def __init__(self, supported=True, fail_speak=False):
        super().__init__()
        self.supported = supported
        self.fail_speak = fail_speak
        self.spoken = []
        self.listen_calls = 0
        self.stop_calls = 0

    def is_supported(self):
        return self.supported

    async def speak(self, text, also_listen=False):
        if self.fail_speak:
            raise RuntimeError("audio device busy")
        self.spoken.append(text)

    async def start_listening(self):
        self.listen_calls += 1

    async def stop_listening(self):
        self.stop_calls += 1

    async def say(self, text):
        """Deliver a recognition result as the engine would."""
        await self.on_result(text)

    async def fail(self, code):
        await self.on_error(code)


class InMemoryResponseRepository(ResponseRepository):
    def __init__(self):
        self.saved = []

    async def save(self, response):
        self.saved.append(response)

    async def get_by_survey(self, survey_id):
        return [r for r in self.saved if r.survey_id == survey_id]


class FailingResponseRepository(ResponseRepository):
    async def save(self, response):
        raise ConnectionError("storage offline")

    async def get_by_survey(self, survey_id):
        return []


def make_survey(*questions, allowed_regions=None):
    return Survey(
        id="survey-1",
        title="Community Health",
        questions=list(questions),
        created_at=datetime(2024, 1, 1),
        allowed_regions=allowed_regions,
    )


def yes_no_question(id="q1", text="Do you have a clinic nearby?"):
    return Question(
        id=id,
        text=text,
        type=QuestionType.TRUE_FALSE,
        options=[Option("Yes", "true"), Option("No", "false")],
    )


@pytest.fixture
def provider():
    return FakeSpeechProvider()


@pytest.fixture
def responses():
    return InMemoryResponseRepository()


@pytest.fixture
def fast_flow():
    return FlowSettings(
        settle_delay=0,
        transition_delay=0,
        queue_stagger=0,
        no_speech_retry_delay=0,
        error_retry_delay=0,
        max_retries=3,
    )
