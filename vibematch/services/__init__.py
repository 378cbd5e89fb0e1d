"""Service layer - Business logic modules.

Each service module has a clear interface and can be developed/tested independently.
"""

from .storage import Storage
from .llm_service import LLMService
from .access_service import AccessService, AccessTier
from .profile_service import ProfileService
from .project_service import ProjectService
from .match_service import MatchService
from .suggestion_service import SuggestionService
from .analytics_service import AnalyticsService

__all__ = [
    "Storage",
    "LLMService",
    "AccessService",
    "AccessTier",
    "ProfileService",
    "ProjectService",
    "MatchService",
    "SuggestionService",
    "AnalyticsService",
]
