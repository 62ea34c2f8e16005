"""Repository layer for data access."""

from .base import ResponseRepository, SurveyRepository
from .factory import create_repositories
from .local import LocalResponseRepository, LocalSurveyRepository

__all__ = [
    "SurveyRepository",
    "ResponseRepository",
    "LocalSurveyRepository",
    "LocalResponseRepository",
    "create_repositories",
]
