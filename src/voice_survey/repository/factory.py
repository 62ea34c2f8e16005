"""Repository factory."""

from typing import Tuple

from ..config.settings import Settings
from .base import ResponseRepository, SurveyRepository
from .local import LocalResponseRepository, LocalSurveyRepository
from .supabase import (
    SupabaseClientManager,
    SupabaseResponseRepository,
    SupabaseSurveyRepository,
)


def create_repositories(settings: Settings) -> Tuple[SurveyRepository, ResponseRepository]:
    """Create the configured repositories.

    Args:
        settings: Application settings

    Returns:
        Tuple of (survey_repo, response_repo)

    Raises:
        ValueError: If the backend is unknown, or Supabase is selected but not configured
    """
    match settings.storage.backend:
        case "local":
            data_path = settings.storage.data_path
            return LocalSurveyRepository(data_path), LocalResponseRepository(data_path)
        case "supabase":
            if not settings.supabase.is_configured:
                raise ValueError(
                    "SUPABASE_URL and SUPABASE_KEY must be set in environment"
                )
            client_manager = SupabaseClientManager(
                settings.supabase.url,
                settings.supabase.key,
            )
            return (
                SupabaseSurveyRepository(client_manager),
                SupabaseResponseRepository(client_manager),
            )
        case _:
            raise ValueError(f"Unknown storage backend: {settings.storage.backend!r}")
