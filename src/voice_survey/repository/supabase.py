"""Supabase repository implementation."""

import logging
from typing import Optional

from supabase import Client, create_client

from ..models import Survey, SurveyResponse
from .base import ResponseRepository, SurveyRepository
from .records import (
    response_from_record,
    response_to_record,
    survey_from_record,
)

logger = logging.getLogger(__name__)


class SupabaseClientManager:
    """Manages Supabase client lifecycle."""

    def __init__(self, url: str, key: str):
        self.url = url
        self.key = key
        self._client: Optional[Client] = None

    def get_client(self) -> Client:
        """Get or create Supabase client."""
        if self._client is None:
            self._client = create_client(self.url, self.key)
        return self._client


class SupabaseSurveyRepository(SurveyRepository):
    """Supabase-backed survey repository."""

    def __init__(self, client_manager: SupabaseClientManager):
        self.client_manager = client_manager

    async def get_active(self) -> Optional[Survey]:
        """Get the most recently created active survey."""
        client = self.client_manager.get_client()
        response = (
            client.table("surveys")
            .select("*")
            .eq("active", True)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if response.data:
            return survey_from_record(response.data[0])
        return None

    async def get_by_id(self, id: str) -> Optional[Survey]:
        """Get a survey by ID."""
        client = self.client_manager.get_client()
        response = client.table("surveys").select("*").eq("id", id).limit(1).execute()
        if response.data:
            return survey_from_record(response.data[0])
        return None


class SupabaseResponseRepository(ResponseRepository):
    """Supabase-backed response repository."""

    def __init__(self, client_manager: SupabaseClientManager):
        self.client_manager = client_manager

    async def save(self, response: SurveyResponse) -> None:
        """Save a submitted response."""
        client = self.client_manager.get_client()
        client.table("survey_responses").insert(response_to_record(response)).execute()
        logger.info("Response %s recorded in Supabase", response.id)

    async def get_by_survey(self, survey_id: str) -> list[SurveyResponse]:
        """Get all responses submitted for a survey."""
        client = self.client_manager.get_client()
        response = (
            client.table("survey_responses")
            .select("*")
            .eq("survey_id", survey_id)
            .execute()
        )
        return [response_from_record(item) for item in response.data]
