"""Local JSON file repository implementation."""

import json
import logging
from pathlib import Path
from typing import Optional

import aiofiles

from ..models import Survey, SurveyResponse
from .base import ResponseRepository, SurveyRepository
from .records import (
    response_from_record,
    response_to_record,
    survey_from_record,
)

logger = logging.getLogger(__name__)


class _JsonFile:
    """A JSON array stored in one file."""

    def __init__(self, file_path: Path):
        self.file_path = file_path

    async def read_all(self) -> list[dict]:
        if not self.file_path.exists():
            return []
        async with aiofiles.open(self.file_path, "r") as f:
            content = await f.read()
            return json.loads(content) if content else []

    async def write_all(self, data: list[dict]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.file_path, "w") as f:
            await f.write(json.dumps(data, indent=2, default=str))


class LocalSurveyRepository(SurveyRepository):
    """JSON file-based survey repository."""

    def __init__(self, data_path: str):
        self.store = _JsonFile(Path(data_path) / "surveys.json")

    async def get_active(self) -> Optional[Survey]:
        """Get the first active survey."""
        for item in await self.store.read_all():
            if item.get("active", False):
                return survey_from_record(item)
        return None

    async def get_by_id(self, id: str) -> Optional[Survey]:
        """Get a survey by ID."""
        for item in await self.store.read_all():
            if str(item["id"]) == id:
                return survey_from_record(item)
        return None


class LocalResponseRepository(ResponseRepository):
    """JSON file-based response repository."""

    def __init__(self, data_path: str):
        self.store = _JsonFile(Path(data_path) / "responses.json")

    async def save(self, response: SurveyResponse) -> None:
        """Append a submitted response."""
        data = await self.store.read_all()
        data.append(response_to_record(response))
        await self.store.write_all(data)
        logger.info(
            "Response %s recorded for survey %s (%d answers)",
            response.id, response.survey_id, len(response.answers),
        )

    async def get_by_survey(self, survey_id: str) -> list[SurveyResponse]:
        """Get all responses submitted for a survey."""
        return [
            response_from_record(item)
            for item in await self.store.read_all()
            if item["survey_id"] == survey_id
        ]
