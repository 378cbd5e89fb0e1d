"""Profile Service - profile creation, lookup and self-editing.

Interface Contract:
- list_profiles(role) -> list[Profile]
- get_profile(profile_id) -> Profile
- create_profile(user_id, payload) -> Profile
- update_profile(requester, profile_id, payload) -> Profile
- Missing records raise NotFoundError; bad payloads raise ValidationError
"""

from __future__ import annotations

from typing import Any

from vibematch.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from vibematch.models import Profile, ROLES
from vibematch.models.base import apply_patch
from vibematch.models.profile import normalize_role
from vibematch.services.storage import Storage


class ProfileService:
    """Service for profile management."""

    def __init__(self, storage: Storage):
        self._storage = storage

    def list_profiles(self, role: str | None = None) -> list[Profile]:
        role = normalize_role(role) if role else None
        if role is not None and role not in ROLES:
            raise ValidationError("role", f"must be one of {', '.join(ROLES)}")
        return self._storage.list_profiles(role)

    def get_profile(self, profile_id: str) -> Profile:
        profile = self._storage.get_profile(profile_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    def create_profile(self, user_id: str | None, payload: dict[str, Any]) -> Profile:
        """Create the caller's profile. One profile per account."""
        data = dict(payload)
        if user_id:
            data["userId"] = user_id
        profile = Profile.from_payload(data)
        if profile.user_id and self._storage.get_profile_by_user_id(profile.user_id):
            raise ConflictError("A profile already exists for this user")
        return self._storage.create_profile(profile)

    def update_profile(self, requester: Profile, profile_id: str, payload: dict[str, Any]) -> Profile:
        profile = self.get_profile(profile_id)
        if profile.id != requester.id:
            raise PermissionDeniedError("You can only edit your own profile")
        if "role" in payload and normalize_role(payload["role"]) != profile.role:
            raise ValidationError("role", "cannot be changed")
        return self._storage.save_profile(apply_patch(profile, payload, Profile.UPDATABLE))
