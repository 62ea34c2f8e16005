"""Abstract repository interfaces."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import Survey, SurveyResponse


class SurveyRepository(ABC):
    """Abstract interface for survey storage."""

    @abstractmethod
    async def get_active(self) -> Optional[Survey]:
        """Get the currently active survey."""
        pass

    @abstractmethod
    async def get_by_id(self, id: str) -> Optional[Survey]:
        """Get a survey by ID."""
        pass

    async def get_for_session(self, survey_id: str = "") -> Optional[Survey]:
        """The survey a new session should take: `survey_id` when set, else the active one."""
        if survey_id:
            return await self.get_by_id(survey_id)
        return await self.get_active()


class ResponseRepository(ABC):
    """Abstract interface for submitted response storage."""

    @abstractmethod
    async def save(self, response: SurveyResponse) -> None:
        """Save a submitted response."""
        pass

    @abstractmethod
    async def get_by_survey(self, survey_id: str) -> list[SurveyResponse]:
        """Get all responses submitted for a survey."""
        pass
