"""Data models - Pure data structures with no business logic."""

from .profile import Profile, User, ROLES, ROLE_BUILDER, ROLE_INVESTOR, ROLE_TECHNICAL
from .project import (
    CodeRepository,
    Contribution,
    Project,
    ProjectDocument,
    ProjectMember,
    Task,
)
from .match import Match, MatchSuggestion, MATCH_TYPES, MATCH_STATUSES

__all__ = [
    "User",
    "Profile",
    "ROLES",
    "ROLE_BUILDER",
    "ROLE_INVESTOR",
    "ROLE_TECHNICAL",
    "Project",
    "ProjectMember",
    "Task",
    "Contribution",
    "CodeRepository",
    "ProjectDocument",
    "Match",
    "MatchSuggestion",
    "MATCH_TYPES",
    "MATCH_STATUSES",
]
