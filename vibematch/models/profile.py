"""User and profile data models.

Pure data structures with no business logic.
These can be safely used by any module.
"""

from __future__ import annotations

from dataclasses import dataclass, field as dataclass_field
from datetime import datetime
from typing import Any

from .base import (
    format_datetime,
    new_id,
    optional_str,
    parse_datetime,
    require_choice,
    require_str,
    str_list,
    utc_now,
)

ROLE_BUILDER = "builder"
ROLE_INVESTOR = "investor"
ROLE_TECHNICAL = "technical"
ROLES = (ROLE_BUILDER, ROLE_INVESTOR, ROLE_TECHNICAL)

# Older clients still send the pre-rename value
ROLE_ALIASES = {"coder": ROLE_BUILDER}


def normalize_role(role: Any) -> Any:
    if isinstance(role, str):
        return ROLE_ALIASES.get(role, role)
    return role


@dataclass
class User:
    """Account record behind a profile."""
    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    created_at: datetime = dataclass_field(default_factory=utc_now)
    updated_at: datetime = dataclass_field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "profileImageUrl": self.profile_image_url,
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            email=data.get("email"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            profile_image_url=data.get("profileImageUrl"),
            created_at=parse_datetime(data.get("createdAt")) or utc_now(),
            updated_at=parse_datetime(data.get("updatedAt")) or utc_now(),
        )


@dataclass
class Profile:
    """Identity record for one user in exactly one role."""
    name: str
    role: str
    id: str = dataclass_field(default_factory=new_id)
    user_id: str | None = None
    avatar: str | None = None
    tagline: str | None = None
    location: str | None = None
    tags: list[str] = dataclass_field(default_factory=list)
    created_at: datetime = dataclass_field(default_factory=utc_now)

    UPDATABLE = ("name", "avatar", "tagline", "location", "tags")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "role": self.role,
            "avatar": self.avatar,
            "tagline": self.tagline,
            "location": self.location,
            "tags": list(self.tags),
            "createdAt": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Create from a stored dictionary."""
        return cls(
            id=data["id"],
            user_id=data.get("userId"),
            name=data.get("name", "Unknown"),
            role=normalize_role(data.get("role", ROLE_BUILDER)),
            avatar=data.get("avatar"),
            tagline=data.get("tagline"),
            location=data.get("location"),
            tags=data.get("tags") or [],
            created_at=parse_datetime(data.get("createdAt")) or utc_now(),
        )

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Profile":
        """Validate a client payload and build a new profile."""
        data = {**data, "role": normalize_role(data.get("role"))}
        return cls(
            name=require_str(data, "name"),
            role=require_choice(data, "role", ROLES),
            user_id=optional_str(data, "userId"),
            avatar=optional_str(data, "avatar"),
            tagline=optional_str(data, "tagline"),
            location=optional_str(data, "location"),
            tags=str_list(data, "tags"),
        )