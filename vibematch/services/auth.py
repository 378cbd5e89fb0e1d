"""Identity strategies.

A strategy turns an incoming request into an opaque user id. The strategy is
chosen once, when the app is built, and handlers only ever see the resolved
profile.

- SessionAuthStrategy: the verified login flow stores ``user_id`` in the
  Flask session; nothing is provisioned.
- HeaderAuthStrategy: test harness. Trusts ``X-User-Id`` and creates a user
  and a minimal profile on first sight. Refused in production.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from flask import Request, session

from vibematch.errors import ConflictError
from vibematch.models import Profile, User, ROLE_BUILDER, ROLE_INVESTOR, ROLE_TECHNICAL
from vibematch.services.storage import Storage

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
SESSION_KEY = "user_id"


class AuthStrategy(ABC):
    """Resolves the caller's user id."""

    provisions_profiles = False

    @abstractmethod
    def resolve_user_id(self, request: Request) -> str | None:
        pass

    def ensure_user(self, storage: Storage, user_id: str) -> User | None:
        """The account behind ``user_id``; only test strategies create one."""
        return storage.get_user(user_id)

    def provision(self, storage: Storage, user_id: str) -> Profile | None:
        """Create a profile for an unknown user, if this strategy may."""
        return None


class SessionAuthStrategy(AuthStrategy):
    """Verified session populated by the external login flow."""

    def resolve_user_id(self, request: Request) -> str | None:
        user_id = session.get(SESSION_KEY)
        return user_id or None


class HeaderAuthStrategy(AuthStrategy):
    """Caller-supplied identity header for development and tests."""

    provisions_profiles = True

    def resolve_user_id(self, request: Request) -> str | None:
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
        return user_id or None

    def ensure_user(self, storage: Storage, user_id: str) -> User:
        user = storage.get_user(user_id)
        if user is None:
            user = storage.upsert_user(User(
                id=user_id,
                email=f"{user_id}@test.com",
                first_name=user_id.split("-")[0] or "Test",
                last_name="User",
            ))
        return user

    def provision(self, storage: Storage, user_id: str) -> Profile:
        self.ensure_user(storage, user_id)
        logger.info("[auth] auto-creating test profile for user=%s", user_id)
        return storage.create_profile(Profile(
            user_id=user_id,
            name=user_id,
            role=infer_role(user_id),
            location="Test Location",
        ))


def infer_role(user_id: str) -> str:
    """Guess a test user's role from its id (``investor-1``, ``builder-2`` ...)."""
    lowered = user_id.lower()
    if "investor" in lowered:
        return ROLE_INVESTOR
    if "builder" in lowered or "vibe-coder" in lowered:
        return ROLE_BUILDER
    return ROLE_TECHNICAL


def build_auth_strategy(mode: str, app_env: str) -> AuthStrategy:
    """Pick the strategy for this deployment.

    Raises:
        RuntimeError: header mode requested while serving production traffic
        ValueError: unknown mode
    """
    if mode == "session":
        return SessionAuthStrategy()
    if mode == "header":
        if app_env == "production":
            raise RuntimeError("Header authentication cannot be enabled in production")
        return HeaderAuthStrategy()
    raise ValueError(f"Unknown AUTH_MODE: {mode}")


def resolve_current_profile(strategy: AuthStrategy, storage: Storage, request: Request) -> Profile | None:
    """Resolve the caller's profile, provisioning one if the strategy allows."""
    user_id = strategy.resolve_user_id(request)
    if not user_id:
        return None
    profile = storage.get_profile_by_user_id(user_id)
    if profile is None and strategy.provisions_profiles:
        try:
            profile = strategy.provision(storage, user_id)
        except ConflictError:
            # A concurrent first request provisioned it already
            profile = storage.get_profile_by_user_id(user_id)
    return profile
