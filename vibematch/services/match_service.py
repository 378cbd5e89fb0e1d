"""Match Service - connection requests between profiles.

Lifecycle: pending -> accepted | rejected. Only the receiver moves a match
out of pending, and ``responded_at`` is stamped exactly once, at that move.
"""

from __future__ import annotations

import logging
from typing import Any

from vibematch.errors import NotFoundError, PermissionDeniedError, ValidationError
from vibematch.models import Match, Profile
from vibematch.models.base import utc_now
from vibematch.models.match import MATCH_ACCEPTED, MATCH_PENDING, MATCH_REJECTED
from vibematch.services.storage import Storage

logger = logging.getLogger(__name__)

RESPONSE_STATUSES = (MATCH_ACCEPTED, MATCH_REJECTED)


class MatchService:
    """Creates and resolves match requests."""

    def __init__(self, storage: Storage):
        self._storage = storage

    def list_matches(self, profile_id: str) -> list[Match]:
        return self._storage.list_matches(profile_id)

    def request_match(self, initiator: Profile, payload: dict[str, Any]) -> Match:
        """Send a match request from ``initiator``.

        Raises:
            ValidationError: bad payload, unknown or self receiver
            ConflictError: a pending match already exists for the pair
        """
        match = Match.from_payload({**payload, "initiatorId": initiator.id})
        if match.receiver_id == initiator.id:
            raise ValidationError("receiverId", "cannot send a match request to yourself")
        if self._storage.get_profile(match.receiver_id) is None:
            raise ValidationError("receiverId", "profile does not exist")
        created = self._storage.create_match(match)
        logger.info(
            "[matches] request id=%s from=%s to=%s type=%s",
            created.id, created.initiator_id, created.receiver_id, created.match_type,
        )
        return created

    def respond(self, requester: Profile, match_id: str, status: Any) -> Match:
        """Accept or reject a pending match as its receiver."""
        if status not in RESPONSE_STATUSES:
            raise ValidationError("status", f"must be one of {', '.join(RESPONSE_STATUSES)}")
        match = self._storage.get_match(match_id)
        # Matches the requester is not part of are invisible to them
        if match is None or not match.involves(requester.id):
            raise NotFoundError("Match not found")
        if match.receiver_id != requester.id:
            raise PermissionDeniedError("Only the match receiver can accept or reject")
        updated = self._storage.transition_match(
            match_id, MATCH_PENDING, status=status, responded_at=utc_now()
        )
        logger.info("[matches] respond id=%s status=%s", match_id, status)
        return updated
