"""Access Service - who may see and change what inside a project.

Tiers, highest first:

- OWNER: the project's builder. Full read/write, toggles member access.
- FULL_MEMBER: member with ``has_access``. Reads every sub-resource.
- LIMITED_MEMBER: member without ``has_access``. Sees tasks assigned to them
  and their own team row; nothing else.
- NON_MEMBER: denied outright.

All filtering is applied here, before records reach the HTTP layer. Denials
raise PermissionDeniedError instead of returning empty lists, so callers can
tell "no data" from "no permission".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from vibematch.errors import NotFoundError, PermissionDeniedError
from vibematch.models import Project, ProjectMember, Task
from vibematch.services.storage import Storage

logger = logging.getLogger(__name__)


class AccessTier(Enum):
    NON_MEMBER = 0
    LIMITED_MEMBER = 1
    FULL_MEMBER = 2
    OWNER = 3


def resolve_tier(profile_id: str | None, project: Project, members: list[ProjectMember]) -> AccessTier:
    """Map a requester onto a tier for ``project``."""
    if profile_id is None:
        return AccessTier.NON_MEMBER
    if project.owner_id == profile_id:
        return AccessTier.OWNER
    for member in members:
        if member.profile_id == profile_id:
            return AccessTier.FULL_MEMBER if member.has_access else AccessTier.LIMITED_MEMBER
    return AccessTier.NON_MEMBER


@dataclass
class ProjectAccess:
    """A requester's resolved view of one project."""
    project: Project
    profile_id: str | None
    tier: AccessTier
    member: ProjectMember | None = None

    @property
    def is_owner(self) -> bool:
        return self.tier is AccessTier.OWNER

    @property
    def has_full_access(self) -> bool:
        return self.tier in (AccessTier.OWNER, AccessTier.FULL_MEMBER)

    def require_member(self) -> None:
        if self.tier is AccessTier.NON_MEMBER:
            raise PermissionDeniedError("You are not a member of this project")

    def require_full_access(self) -> None:
        self.require_member()
        if not self.has_full_access:
            raise PermissionDeniedError("Dashboard access has not been granted for this project")

    def require_owner(self) -> None:
        if not self.is_owner:
            raise PermissionDeniedError("Only the project owner can perform this action")

    def visible_tasks(self, tasks: list[Task]) -> list[Task]:
        self.require_member()
        if self.has_full_access:
            return tasks
        return [t for t in tasks if t.assigned_to == self.profile_id]

    def visible_members(self, members: list[ProjectMember]) -> list[ProjectMember]:
        self.require_member()
        if self.has_full_access:
            return members
        return [m for m in members if m.profile_id == self.profile_id]

    def can_edit_task(self, task: Task) -> bool:
        if self.has_full_access:
            return True
        return self.tier is AccessTier.LIMITED_MEMBER and task.assigned_to == self.profile_id


class AccessService:
    """Resolves project access against storage."""

    def __init__(self, storage: Storage):
        self._storage = storage

    def get_project(self, project_id: str) -> Project:
        project = self._storage.get_project(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def resolve(self, profile_id: str | None, project_id: str) -> ProjectAccess:
        project = self.get_project(project_id)
        members = self._storage.list_members(project_id)
        tier = resolve_tier(profile_id, project, members)
        member = next((m for m in members if m.profile_id == profile_id), None)
        return ProjectAccess(project=project, profile_id=profile_id, tier=tier, member=member)

    def set_member_access(self, requester_id: str, member_id: str, has_access: bool) -> ProjectMember:
        """Toggle a member's dashboard access. Owner only; no side effects."""
        member = self._storage.get_member(member_id)
        if member is None:
            raise NotFoundError("Member not found")
        access = self.resolve(requester_id, member.project_id)
        if not access.is_owner:
            raise PermissionDeniedError("Only the project owner can update member access")
        updated = self._storage.update_member(member_id, has_access=has_access)
        if updated is None:
            raise NotFoundError("Member not found")
        logger.info(
            "[access] project=%s member=%s has_access=%s", member.project_id, member_id, has_access
        )
        return updated
