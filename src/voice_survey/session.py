"""Assembly of one voice survey session."""

import logging
from typing import Awaitable, Callable, Optional

from .binder import FormBinder
from .config.settings import FlowSettings
from .controller import FlowController
from .form import SurveyForm
from .models import Survey, SurveyResponse
from .repository.base import ResponseRepository
from .speech.base import SpeechProvider
from .speech.gateway import SpeechGateway
from .status import StatusBoard

logger = logging.getLogger(__name__)

SubmittedCallback = Callable[[SurveyResponse], Awaitable[None]]


class VoiceSession:
    """Wires a survey form, a speech provider and the flow controller together.

    Submitting the form saves the response to the response repository.
    """

    def __init__(
        self,
        survey: Survey,
        provider: SpeechProvider,
        flow_settings: FlowSettings,
        response_repository: ResponseRepository,
        on_submitted: Optional[SubmittedCallback] = None,
    ):
        self.survey = survey
        self.response_repository = response_repository
        self.on_submitted = on_submitted
        self.response: Optional[SurveyResponse] = None

        self.status = StatusBoard()
        self.gateway = SpeechGateway(provider, self.status)
        self.form = SurveyForm.from_survey(survey, submit_action=self._submit)
        self.binder = FormBinder(self.form)
        self.controller = FlowController(self.binder, self.gateway, flow_settings)

    @property
    def submitted(self) -> bool:
        return self.response is not None

    async def _submit(self, response: SurveyResponse) -> None:
        await self.response_repository.save(response)
        self.response = response
        if self.on_submitted:
            await self.on_submitted(response)

    async def run_command(self, name: str) -> bool:
        """Apply a host UI command; False when the command is unknown."""
        match name:
            case "toggle":
                await self.controller.toggle()
            case "restart":
                await self.controller.restart()
            case "speak_question":
                await self.controller.speak_current_question()
            case _:
                logger.warning("Unknown command %r", name)
                return False
        return True

    async def close(self) -> None:
        await self.controller.close()
        await self.gateway.close()
