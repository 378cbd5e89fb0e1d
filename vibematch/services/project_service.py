"""Project Service - projects and their dashboard sub-resources.

This module handles:
- Project create/update (owner only) and public listing
- Team membership, tasks, code repositories, documents, contributions
- The contribution breakdown shown on the dashboard

Every sub-resource call resolves the requester's access tier first
(see access_service) and filters or denies before returning.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from vibematch.errors import NotFoundError, PermissionDeniedError, ValidationError
from vibematch.models import (
    CodeRepository,
    Contribution,
    Profile,
    Project,
    ProjectDocument,
    ProjectMember,
    Task,
    ROLE_BUILDER,
)
from vibematch.models.base import apply_patch, utc_now
from vibematch.services.access_service import AccessService, ProjectAccess
from vibematch.services.storage import Storage

logger = logging.getLogger(__name__)

# Limited members may only move their own tasks along
LIMITED_TASK_FIELDS = ("status",)


class ProjectService:
    """Service for projects and everything hanging off them."""

    def __init__(self, storage: Storage, access: AccessService | None = None):
        self._storage = storage
        self._access = access or AccessService(storage)

    @property
    def access(self) -> AccessService:
        return self._access

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self, owner_id: str | None = None) -> list[Project]:
        return self._storage.list_projects(owner_id)

    def get_project(self, project_id: str) -> Project:
        return self._access.get_project(project_id)

    def create_project(self, requester: Profile, payload: dict[str, Any]) -> Project:
        """Create a project owned by ``requester``, who must be a builder."""
        if requester.role != ROLE_BUILDER:
            raise PermissionDeniedError("Only builders can create projects")
        project = Project.from_payload({**payload, "ownerId": requester.id})
        logger.info("[projects] create name=%s owner=%s", project.name, requester.id)
        return self._storage.create_project(project)

    def update_project(self, requester: Profile, project_id: str, payload: dict[str, Any]) -> Project:
        access = self._access.resolve(requester.id, project_id)
        access.require_owner()
        updated = apply_patch(access.project, payload, Project.UPDATABLE)
        return self._storage.save_project(updated)

    # ------------------------------------------------------------------
    # Team
    # ------------------------------------------------------------------

    def list_members(self, requester: Profile, project_id: str) -> list[ProjectMember]:
        access = self._access.resolve(requester.id, project_id)
        return access.visible_members(self._storage.list_members(project_id))

    def add_member(self, requester: Profile, project_id: str, payload: dict[str, Any]) -> ProjectMember:
        access = self._access.resolve(requester.id, project_id)
        access.require_owner()
        member = ProjectMember.from_payload({**payload, "projectId": project_id})
        if member.profile_id == access.project.owner_id:
            raise ValidationError("profileId", "the owner cannot be added as a member")
        if self._storage.get_profile(member.profile_id) is None:
            raise ValidationError("profileId", "profile does not exist")
        return self._storage.add_member(member)

    def set_member_access(self, requester: Profile, member_id: str, has_access: Any) -> ProjectMember:
        if not isinstance(has_access, bool):
            raise ValidationError("hasAccess", "must be a boolean")
        return self._access.set_member_access(requester.id, member_id, has_access)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def list_tasks(self, requester: Profile, project_id: str) -> list[Task]:
        access = self._access.resolve(requester.id, project_id)
        return access.visible_tasks(self._storage.list_tasks(project_id))

    def get_task(self, requester: Profile, task_id: str) -> Task:
        task = self._require(self._storage.get_task(task_id), "Task")
        access = self._access.resolve(requester.id, task.project_id)
        if not access.visible_tasks([task]):
            raise PermissionDeniedError("This task is not assigned to you")
        return task

    def create_task(self, requester: Profile, project_id: str, payload: dict[str, Any]) -> Task:
        access = self._access.resolve(requester.id, project_id)
        access.require_full_access()
        task = Task.from_payload({**payload, "projectId": project_id, "createdBy": requester.id})
        self._check_assignee(access, task.assigned_to)
        if task.status == "completed":
            task.completed_at = utc_now()
        return self._storage.create_task(task)

    def update_task(self, requester: Profile, task_id: str, payload: dict[str, Any]) -> Task:
        task = self._require(self._storage.get_task(task_id), "Task")
        access = self._access.resolve(requester.id, task.project_id)
        access.require_member()
        if not access.can_edit_task(task):
            raise PermissionDeniedError("You can only update tasks assigned to you")

        fields = Task.UPDATABLE if access.has_full_access else LIMITED_TASK_FIELDS
        updated = apply_patch(task, payload, fields)
        if updated.assigned_to != task.assigned_to:
            self._check_assignee(access, updated.assigned_to)

        # completedAt follows the status, never the payload
        if updated.status == "completed" and task.status != "completed":
            updated.completed_at = utc_now()
        elif updated.status != "completed":
            updated.completed_at = None
        return self._storage.save_task(updated)

    def _check_assignee(self, access: ProjectAccess, assignee: str | None) -> None:
        if assignee is None or assignee == access.project.owner_id:
            return
        if self._storage.get_member_for_profile(access.project.id, assignee) is None:
            raise ValidationError("assignedTo", "assignee must be the owner or a project member")

    # ------------------------------------------------------------------
    # Code repositories
    # ------------------------------------------------------------------

    def list_repositories(self, requester: Profile, project_id: str) -> list[CodeRepository]:
        self._access.resolve(requester.id, project_id).require_full_access()
        return self._storage.list_repositories(project_id)

    def get_repository(self, requester: Profile, repo_id: str) -> CodeRepository:
        repo = self._require(self._storage.get_repository(repo_id), "Repository")
        self._access.resolve(requester.id, repo.project_id).require_full_access()
        return repo

    def create_repository(self, requester: Profile, project_id: str, payload: dict[str, Any]) -> CodeRepository:
        self._access.resolve(requester.id, project_id).require_full_access()
        repo = CodeRepository.from_payload({**payload, "projectId": project_id, "uploadedBy": requester.id})
        return self._storage.create_repository(repo)

    def update_repository(self, requester: Profile, repo_id: str, payload: dict[str, Any]) -> CodeRepository:
        repo = self._require(self._storage.get_repository(repo_id), "Repository")
        self._access.resolve(requester.id, repo.project_id).require_full_access()
        return self._storage.save_repository(apply_patch(repo, payload, CodeRepository.UPDATABLE))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def list_documents(self, requester: Profile, project_id: str) -> list[ProjectDocument]:
        self._access.resolve(requester.id, project_id).require_full_access()
        return self._storage.list_documents(project_id)

    def create_document(self, requester: Profile, project_id: str, payload: dict[str, Any]) -> ProjectDocument:
        self._access.resolve(requester.id, project_id).require_full_access()
        doc = ProjectDocument.from_payload({**payload, "projectId": project_id, "uploadedBy": requester.id})
        return self._storage.create_document(doc)

    def delete_document(self, requester: Profile, doc_id: str) -> None:
        doc = self._require(self._storage.get_document(doc_id), "Document")
        access = self._access.resolve(requester.id, doc.project_id)
        if not access.is_owner:
            raise PermissionDeniedError("Only project owner can delete documents")
        self._storage.delete_document(doc_id)
        logger.info("[projects] deleted document=%s project=%s", doc_id, doc.project_id)

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    def list_contributions(self, requester: Profile, project_id: str) -> list[Contribution]:
        self._access.resolve(requester.id, project_id).require_full_access()
        return self._storage.list_contributions(project_id)

    def create_contribution(self, requester: Profile, project_id: str, payload: dict[str, Any]) -> Contribution:
        access = self._access.resolve(requester.id, project_id)
        access.require_full_access()
        payload = {"contributorId": requester.id, **payload, "projectId": project_id}
        contribution = Contribution.from_payload(payload)
        # Only the owner may credit work to someone else
        if contribution.contributor_id != requester.id and not access.is_owner:
            raise PermissionDeniedError("You can only record your own contributions")
        if contribution.task_id:
            task = self._storage.get_task(contribution.task_id)
            if task is None or task.project_id != project_id:
                raise ValidationError("taskId", "task does not belong to this project")
        return self._storage.create_contribution(contribution)

    def contribution_breakdown(self, requester: Profile, project_id: str) -> list[dict[str, Any]]:
        """Share of total value score per contributor, largest first."""
        contributions = self.list_contributions(requester, project_id)
        return summarize_contributions(contributions)

    @staticmethod
    def _require(record, label: str):
        if record is None:
            raise NotFoundError(f"{label} not found")
        return record


def summarize_contributions(contributions: list[Contribution]) -> list[dict[str, Any]]:
    totals: dict[str, int] = defaultdict(int)
    counts: dict[str, int] = defaultdict(int)
    for c in contributions:
        totals[c.contributor_id] += c.value_score or 0
        counts[c.contributor_id] += 1
    total_value = sum(totals.values())
    rows = [
        {
            "contributorId": contributor_id,
            "valueScore": value,
            "contributions": counts[contributor_id],
            "percentage": (value / total_value) * 100 if total_value > 0 else 0.0,
        }
        for contributor_id, value in totals.items()
    ]
    rows.sort(key=lambda r: r["valueScore"], reverse=True)
    return rows
