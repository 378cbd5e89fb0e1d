"""Match data models.

Pure data structures for connection requests and AI suggestions.
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
    utc_now,
)
from .profile import Profile

MATCH_PENDING = "pending"
MATCH_ACCEPTED = "accepted"
MATCH_REJECTED = "rejected"
MATCH_STATUSES = (MATCH_PENDING, MATCH_ACCEPTED, MATCH_REJECTED)

MATCH_TYPES = ("collaboration", "investment", "technical", "mentorship")


@dataclass
class Match:
    """A directed connection request between two profiles."""
    initiator_id: str
    receiver_id: str
    match_type: str
    id: str = dataclass_field(default_factory=new_id)
    status: str = MATCH_PENDING
    match_reason: str | None = None
    message: str | None = None
    created_at: datetime = dataclass_field(default_factory=utc_now)
    responded_at: datetime | None = None

    @property
    def pair(self) -> frozenset[str]:
        """The unordered pair of profile ids."""
        return frozenset((self.initiator_id, self.receiver_id))

    def other_party(self, profile_id: str) -> str:
        return self.receiver_id if self.initiator_id == profile_id else self.initiator_id

    def involves(self, profile_id: str) -> bool:
        return profile_id in (self.initiator_id, self.receiver_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "initiatorId": self.initiator_id,
            "receiverId": self.receiver_id,
            "status": self.status,
            "matchType": self.match_type,
            "matchReason": self.match_reason,
            "message": self.message,
            "createdAt": format_datetime(self.created_at),
            "respondedAt": format_datetime(self.responded_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Match":
        return cls(
            id=data["id"],
            initiator_id=data["initiatorId"],
            receiver_id=data["receiverId"],
            status=data.get("status", MATCH_PENDING),
            match_type=data.get("matchType", "collaboration"),
            match_reason=data.get("matchReason"),
            message=data.get("message"),
            created_at=parse_datetime(data.get("createdAt")) or utc_now(),
            responded_at=parse_datetime(data.get("respondedAt")),
        )

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Match":
        """New matches always start pending; status in the payload is ignored."""
        return cls(
            initiator_id=require_str(data, "initiatorId"),
            receiver_id=require_str(data, "receiverId"),
            match_type=require_choice(data, "matchType", MATCH_TYPES),
            match_reason=optional_str(data, "matchReason"),
            message=optional_str(data, "message"),
        )


@dataclass
class MatchSuggestion:
    """A single scored suggestion from the matching model."""
    profile_id: str
    match_score: int
    match_reason: str = ""
    match_type: str = "collaboration"
    profile: Profile | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "profileId": self.profile_id,
            "matchScore": self.match_score,
            "matchReason": self.match_reason,
            "matchType": self.match_type,
            "profile": self.profile.to_dict() if self.profile else None,
        }
