"""Project data models.

A project is owned by one builder profile; everything else here is a child
record keyed by ``project_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field as dataclass_field
from datetime import datetime
from typing import Any

from .base import (
    choice,
    format_datetime,
    new_id,
    optional_bool,
    optional_int,
    optional_number,
    optional_str,
    parse_datetime,
    require_choice,
    require_str,
    str_list,
    utc_now,
)

PROJECT_STATUSES = ("active", "completed", "archived")
PROJECT_STAGES = ("idea", "prototype", "mvp", "launched")
EXPERIENCE_LEVELS = ("junior", "mid", "senior", "lead")

MEMBER_ROLES = ("technical", "investor")
COMPENSATION_TYPES = ("money", "ownership")

TASK_STATUSES = ("todo", "in-progress", "completed")
TASK_PRIORITIES = ("low", "medium", "high")

CONTRIBUTION_TYPES = ("code", "design", "idea", "funding", "management")
REPOSITORY_STATUSES = ("pending", "reviewed", "approved")


@dataclass
class Project:
    """A builder's project plus its investor and tech-lead targeting."""
    name: str
    owner_id: str
    id: str = dataclass_field(default_factory=new_id)
    description: str | None = None
    status: str = "active"
    vision: str | None = None
    tech_stack: list[str] = dataclass_field(default_factory=list)
    target_users: str | None = None
    current_stage: str | None = None
    looking_for: list[str] = dataclass_field(default_factory=list)
    funding_goal: float | None = None
    project_links: list[str] = dataclass_field(default_factory=list)
    platform: str | None = None

    # Investor targeting
    investor_preferences: str | None = None
    target_funding_stage: str | None = None
    target_investor_types: list[str] = dataclass_field(default_factory=list)
    min_investment_amount: float | None = None
    max_investment_amount: float | None = None

    # Technical lead requirements
    technical_requirements: str | None = None
    required_skills: list[str] = dataclass_field(default_factory=list)
    experience_level: str | None = None
    time_commitment: str | None = None
    technical_roles: list[str] = dataclass_field(default_factory=list)

    created_at: datetime = dataclass_field(default_factory=utc_now)
    updated_at: datetime = dataclass_field(default_factory=utc_now)

    UPDATABLE = (
        "name", "description", "status", "vision", "tech_stack", "target_users",
        "current_stage", "looking_for", "funding_goal", "project_links", "platform",
        "investor_preferences", "target_funding_stage", "target_investor_types",
        "min_investment_amount", "max_investment_amount", "technical_requirements",
        "required_skills", "experience_level", "time_commitment", "technical_roles",
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "ownerId": self.owner_id,
            "status": self.status,
            "vision": self.vision,
            "techStack": list(self.tech_stack),
            "targetUsers": self.target_users,
            "currentStage": self.current_stage,
            "lookingFor": list(self.looking_for),
            "fundingGoal": self.funding_goal,
            "projectLinks": list(self.project_links),
            "platform": self.platform,
            "investorPreferences": self.investor_preferences,
            "targetFundingStage": self.target_funding_stage,
            "targetInvestorTypes": list(self.target_investor_types),
            "minInvestmentAmount": self.min_investment_amount,
            "maxInvestmentAmount": self.max_investment_amount,
            "technicalRequirements": self.technical_requirements,
            "requiredSkills": list(self.required_skills),
            "experienceLevel": self.experience_level,
            "timeCommitment": self.time_commitment,
            "technicalRoles": list(self.technical_roles),
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        project = cls.from_payload(data)
        project.id = data["id"]
        project.created_at = parse_datetime(data.get("createdAt")) or project.created_at
        project.updated_at = parse_datetime(data.get("updatedAt")) or project.updated_at
        return project

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Project":
        return cls(
            name=require_str(data, "name"),
            owner_id=require_str(data, "ownerId"),
            description=optional_str(data, "description"),
            status=choice(data, "status", PROJECT_STATUSES, default="active"),
            vision=optional_str(data, "vision"),
            tech_stack=str_list(data, "techStack"),
            target_users=optional_str(data, "targetUsers"),
            current_stage=choice(data, "currentStage", PROJECT_STAGES),
            looking_for=str_list(data, "lookingFor"),
            funding_goal=optional_number(data, "fundingGoal"),
            project_links=str_list(data, "projectLinks"),
            platform=optional_str(data, "platform"),
            investor_preferences=optional_str(data, "investorPreferences"),
            target_funding_stage=optional_str(data, "targetFundingStage"),
            target_investor_types=str_list(data, "targetInvestorTypes"),
            min_investment_amount=optional_number(data, "minInvestmentAmount"),
            max_investment_amount=optional_number(data, "maxInvestmentAmount"),
            technical_requirements=optional_str(data, "technicalRequirements"),
            required_skills=str_list(data, "requiredSkills"),
            experience_level=choice(data, "experienceLevel", EXPERIENCE_LEVELS),
            time_commitment=optional_str(data, "timeCommitment"),
            technical_roles=str_list(data, "technicalRoles"),
        )


@dataclass
class ProjectMember:
    """Links a profile to a project with a compensation arrangement."""
    project_id: str
    profile_id: str
    role: str
    compensation_type: str
    id: str = dataclass_field(default_factory=new_id)
    compensation_amount: float | None = None
    ownership_percentage: float | None = None
    has_access: bool = False
    joined_at: datetime = dataclass_field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "profileId": self.profile_id,
            "role": self.role,
            "compensationType": self.compensation_type,
            "compensationAmount": self.compensation_amount,
            "ownershipPercentage": self.ownership_percentage,
            "hasAccess": self.has_access,
            "joinedAt": format_datetime(self.joined_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectMember":
        member = cls.from_payload(data)
        member.id = data["id"]
        member.joined_at = parse_datetime(data.get("joinedAt")) or member.joined_at
        return member

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ProjectMember":
        return cls(
            project_id=require_str(data, "projectId"),
            profile_id=require_str(data, "profileId"),
            role=require_choice(data, "role", MEMBER_ROLES),
            compensation_type=require_choice(data, "compensationType", COMPENSATION_TYPES),
            compensation_amount=optional_number(data, "compensationAmount"),
            ownership_percentage=optional_number(data, "ownershipPercentage"),
            has_access=optional_bool(data, "hasAccess"),
        )


@dataclass
class Task:
    project_id: str
    title: str
    created_by: str
    id: str = dataclass_field(default_factory=new_id)
    description: str | None = None
    assigned_to: str | None = None
    status: str = "todo"
    priority: str | None = "medium"
    estimated_hours: int | None = None
    due_date: datetime | None = None
    created_at: datetime = dataclass_field(default_factory=utc_now)
    completed_at: datetime | None = None

    UPDATABLE = (
        "title", "description", "assigned_to", "status", "priority",
        "estimated_hours", "due_date",
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "assignedTo": self.assigned_to,
            "createdBy": self.created_by,
            "status": self.status,
            "priority": self.priority,
            "estimatedHours": self.estimated_hours,
            "dueDate": format_datetime(self.due_date),
            "createdAt": format_datetime(self.created_at),
            "completedAt": format_datetime(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        task = cls.from_payload(data)
        task.id = data["id"]
        task.created_at = parse_datetime(data.get("createdAt")) or task.created_at
        task.completed_at = parse_datetime(data.get("completedAt"))
        return task

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Task":
        return cls(
            project_id=require_str(data, "projectId"),
            title=require_str(data, "title"),
            created_by=require_str(data, "createdBy"),
            description=optional_str(data, "description"),
            assigned_to=optional_str(data, "assignedTo"),
            status=choice(data, "status", TASK_STATUSES, default="todo"),
            priority=choice(data, "priority", TASK_PRIORITIES, default="medium"),
            estimated_hours=optional_int(data, "estimatedHours", minimum=0),
            due_date=parse_datetime(data.get("dueDate"), "dueDate"),
        )


@dataclass
class Contribution:
    """Work credited to a contributor; ``value_score`` feeds the IP breakdown."""
    project_id: str
    contributor_id: str
    type: str
    id: str = dataclass_field(default_factory=new_id)
    task_id: str | None = None
    description: str | None = None
    hours_spent: int | None = None
    value_score: int = 0
    created_at: datetime = dataclass_field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "contributorId": self.contributor_id,
            "taskId": self.task_id,
            "type": self.type,
            "description": self.description,
            "hoursSpent": self.hours_spent,
            "valueScore": self.value_score,
            "createdAt": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contribution":
        contribution = cls.from_payload(data)
        contribution.id = data["id"]
        contribution.created_at = parse_datetime(data.get("createdAt")) or contribution.created_at
        return contribution

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Contribution":
        return cls(
            project_id=require_str(data, "projectId"),
            contributor_id=require_str(data, "contributorId"),
            type=require_choice(data, "type", CONTRIBUTION_TYPES),
            task_id=optional_str(data, "taskId"),
            description=optional_str(data, "description"),
            hours_spent=optional_int(data, "hoursSpent", minimum=0),
            value_score=optional_int(data, "valueScore", minimum=0, maximum=100) or 0,
        )


@dataclass
class CodeRepository:
    """Uploaded code submitted for evaluation."""
    project_id: str
    uploaded_by: str
    name: str
    file_url: str
    id: str = dataclass_field(default_factory=new_id)
    description: str | None = None
    language: str | None = None
    lines_of_code: int | None = None
    estimated_hours: int | None = None
    estimated_cost: float | None = None
    status: str = "pending"
    uploaded_at: datetime = dataclass_field(default_factory=utc_now)

    UPDATABLE = (
        "name", "description", "file_url", "language", "lines_of_code",
        "estimated_hours", "estimated_cost", "status",
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "uploadedBy": self.uploaded_by,
            "name": self.name,
            "description": self.description,
            "fileUrl": self.file_url,
            "language": self.language,
            "linesOfCode": self.lines_of_code,
            "estimatedHours": self.estimated_hours,
            "estimatedCost": self.estimated_cost,
            "status": self.status,
            "uploadedAt": format_datetime(self.uploaded_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CodeRepository":
        repo = cls.from_payload(data)
        repo.id = data["id"]
        repo.uploaded_at = parse_datetime(data.get("uploadedAt")) or repo.uploaded_at
        return repo

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "CodeRepository":
        return cls(
            project_id=require_str(data, "projectId"),
            uploaded_by=require_str(data, "uploadedBy"),
            name=require_str(data, "name"),
            file_url=require_str(data, "fileUrl"),
            description=optional_str(data, "description"),
            language=optional_str(data, "language"),
            lines_of_code=optional_int(data, "linesOfCode", minimum=0),
            estimated_hours=optional_int(data, "estimatedHours", minimum=0),
            estimated_cost=optional_number(data, "estimatedCost"),
            status=choice(data, "status", REPOSITORY_STATUSES, default="pending"),
        )


@dataclass
class ProjectDocument:
    """Pitch deck, business plan, roadmap and the like."""
    project_id: str
    uploaded_by: str
    name: str
    file_url: str
    id: str = dataclass_field(default_factory=new_id)
    description: str | None = None
    file_type: str | None = None
    mime_type: str | None = None
    file_size: int | None = None
    uploaded_at: datetime = dataclass_field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "uploadedBy": self.uploaded_by,
            "name": self.name,
            "description": self.description,
            "fileUrl": self.file_url,
            "fileType": self.file_type,
            "mimeType": self.mime_type,
            "fileSize": self.file_size,
            "uploadedAt": format_datetime(self.uploaded_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectDocument":
        doc = cls.from_payload(data)
        doc.id = data["id"]
        doc.uploaded_at = parse_datetime(data.get("uploadedAt")) or doc.uploaded_at
        return doc

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ProjectDocument":
        return cls(
            project_id=require_str(data, "projectId"),
            uploaded_by=require_str(data, "uploadedBy"),
            name=require_str(data, "name"),
            file_url=require_str(data, "fileUrl"),
            description=optional_str(data, "description"),
            file_type=optional_str(data, "fileType"),
            mime_type=optional_str(data, "mimeType"),
            file_size=optional_int(data, "fileSize", minimum=0),
        )
