"""Storage Service - 线程安全的持久化层。

所有实体保存在进程内的字典里，每次写操作后整体落盘为一个 JSON 文件。
存储路径: {DATA_DIR}/vibematch.json (可由 VIBEMATCH_STORE_FILE 覆盖)

DATA_DIR 由环境变量配置：
  - Render 生产环境: /var/data (Persistent Disk)
  - 本地开发: ./data

path 为 None 时只存在内存中（测试使用）。
"""

from __future__ import annotations

import json
import logging
import os
from collections import Counter
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Iterable, TypeVar

from vibematch.errors import ConflictError, NotFoundError
from vibematch.models import (
    CodeRepository,
    Contribution,
    Match,
    Profile,
    Project,
    ProjectDocument,
    ProjectMember,
    Task,
    User,
)
from vibematch.models.base import utc_now
from vibematch.models.match import MATCH_PENDING

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 表名 -> 模型类
TABLES: dict[str, type] = {
    "users": User,
    "profiles": Profile,
    "projects": Project,
    "members": ProjectMember,
    "repositories": CodeRepository,
    "documents": ProjectDocument,
    "tasks": Task,
    "contributions": Contribution,
    "matches": Match,
}

LOCATION_HISTOGRAM_LIMIT = 20
TAG_HISTOGRAM_LIMIT = 30


class Storage:
    """Keyed store per entity, guarded by one lock."""

    def __init__(self, path: Path | str | None = None):
        self._lock = RLock()
        self._path = Path(path) if path else None
        self._tables: dict[str, dict[str, Any]] = {name: {} for name in TABLES}
        if self._path and self._path.exists():
            self._load()

    # ------------------------------------------------------------------
    # 落盘
    # ------------------------------------------------------------------

    def _load(self) -> None:
        """从 JSON 文件加载全部数据"""
        with open(self._path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        for name, model in TABLES.items():
            for item in raw.get(name, []):
                record = model.from_dict(item)
                self._tables[name][record.id] = record
        logger.info("[storage] loaded %s", {k: len(v) for k, v in self._tables.items()})

    def _save(self) -> None:
        """整体写入 JSON 文件（先写临时文件再替换）"""
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            name: [record.to_dict() for record in table.values()]
            for name, table in self._tables.items()
        }
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self._path)

    # ------------------------------------------------------------------
    # 通用操作
    # ------------------------------------------------------------------

    def _get(self, table: str, record_id: str):
        with self._lock:
            return self._tables[table].get(record_id)

    def _write(self, table: str, record_id: str, record) -> None:
        """在锁内写入（record 为 None 时删除）并落盘；落盘失败则回滚内存中的改动"""
        rows = self._tables[table]
        previous = rows.get(record_id)
        if record is None:
            rows.pop(record_id, None)
        else:
            rows[record_id] = record
        try:
            self._save()
        except Exception:
            if previous is None:
                rows.pop(record_id, None)
            else:
                rows[record_id] = previous
            raise

    def _insert(self, table: str, record: T) -> T:
        with self._lock:
            self._write(table, record.id, record)
        return record

    def _update(self, table: str, record_id: str, changes: dict[str, Any]):
        with self._lock:
            current = self._tables[table].get(record_id)
            if current is None:
                return None
            updated = replace(current, **changes)
            self._write(table, record_id, updated)
            return updated

    def _replace(self, table: str, record: T) -> T:
        with self._lock:
            if record.id not in self._tables[table]:
                raise NotFoundError(f"No {table} record with id {record.id}")
            self._write(table, record.id, record)
        return record

    def _select(
        self,
        table: str,
        predicate: Callable[[Any], bool] | None = None,
        *,
        newest_first: str | None = None,
    ) -> list:
        with self._lock:
            rows = list(self._tables[table].values())
        if predicate is not None:
            rows = [r for r in rows if predicate(r)]
        if newest_first:
            rows.sort(key=lambda r: getattr(r, newest_first), reverse=True)
        return rows

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        return self._get("users", user_id)

    def upsert_user(self, user: User) -> User:
        with self._lock:
            existing = self._tables["users"].get(user.id)
            if existing is not None:
                user = replace(user, created_at=existing.created_at, updated_at=utc_now())
            return self._insert("users", user)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_profile(self, profile_id: str) -> Profile | None:
        return self._get("profiles", profile_id)

    def get_profile_by_user_id(self, user_id: str) -> Profile | None:
        rows = self._select("profiles", lambda p: p.user_id == user_id, newest_first="created_at")
        return rows[0] if rows else None

    def list_profiles(self, role: str | None = None) -> list[Profile]:
        if role:
            return self._select("profiles", lambda p: p.role == role)
        return self._select("profiles")

    def create_profile(self, profile: Profile) -> Profile:
        with self._lock:
            if profile.user_id and self.get_profile_by_user_id(profile.user_id):
                raise ConflictError("A profile already exists for this user")
            return self._insert("profiles", profile)

    def save_profile(self, profile: Profile) -> Profile:
        return self._replace("profiles", profile)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def get_project(self, project_id: str) -> Project | None:
        return self._get("projects", project_id)

    def list_projects(self, owner_id: str | None = None) -> list[Project]:
        predicate = (lambda p: p.owner_id == owner_id) if owner_id else None
        return self._select("projects", predicate, newest_first="created_at")

    def create_project(self, project: Project) -> Project:
        return self._insert("projects", project)

    def save_project(self, project: Project) -> Project:
        return self._replace("projects", replace(project, updated_at=utc_now()))

    # ------------------------------------------------------------------
    # Project members
    # ------------------------------------------------------------------

    def list_members(self, project_id: str) -> list[ProjectMember]:
        return self._select("members", lambda m: m.project_id == project_id)

    def get_member(self, member_id: str) -> ProjectMember | None:
        return self._get("members", member_id)

    def get_member_for_profile(self, project_id: str, profile_id: str) -> ProjectMember | None:
        rows = self._select(
            "members", lambda m: m.project_id == project_id and m.profile_id == profile_id
        )
        return rows[0] if rows else None

    def add_member(self, member: ProjectMember) -> ProjectMember:
        with self._lock:
            if self.get_member_for_profile(member.project_id, member.profile_id):
                raise ConflictError("Profile is already a member of this project")
            return self._insert("members", member)

    def update_member(self, member_id: str, **changes) -> ProjectMember | None:
        return self._update("members", member_id, changes)

    # ------------------------------------------------------------------
    # Code repositories
    # ------------------------------------------------------------------

    def get_repository(self, repo_id: str) -> CodeRepository | None:
        return self._get("repositories", repo_id)

    def list_repositories(self, project_id: str) -> list[CodeRepository]:
        return self._select(
            "repositories", lambda r: r.project_id == project_id, newest_first="uploaded_at"
        )

    def create_repository(self, repo: CodeRepository) -> CodeRepository:
        return self._insert("repositories", repo)

    def save_repository(self, repo: CodeRepository) -> CodeRepository:
        return self._replace("repositories", repo)

    # ------------------------------------------------------------------
    # Project documents
    # ------------------------------------------------------------------

    def get_document(self, doc_id: str) -> ProjectDocument | None:
        return self._get("documents", doc_id)

    def list_documents(self, project_id: str) -> list[ProjectDocument]:
        return self._select(
            "documents", lambda d: d.project_id == project_id, newest_first="uploaded_at"
        )

    def create_document(self, doc: ProjectDocument) -> ProjectDocument:
        return self._insert("documents", doc)

    def delete_document(self, doc_id: str) -> None:
        with self._lock:
            self._write("documents", doc_id, None)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def get_task(self, task_id: str) -> Task | None:
        return self._get("tasks", task_id)

    def list_tasks(self, project_id: str) -> list[Task]:
        return self._select("tasks", lambda t: t.project_id == project_id, newest_first="created_at")

    def list_tasks_by_assignee(self, profile_id: str) -> list[Task]:
        return self._select("tasks", lambda t: t.assigned_to == profile_id, newest_first="created_at")

    def create_task(self, task: Task) -> Task:
        return self._insert("tasks", task)

    def save_task(self, task: Task) -> Task:
        return self._replace("tasks", task)

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    def list_contributions(self, project_id: str) -> list[Contribution]:
        return self._select(
            "contributions", lambda c: c.project_id == project_id, newest_first="created_at"
        )

    def list_contributions_by_contributor(self, profile_id: str) -> list[Contribution]:
        return self._select(
            "contributions", lambda c: c.contributor_id == profile_id, newest_first="created_at"
        )

    def create_contribution(self, contribution: Contribution) -> Contribution:
        return self._insert("contributions", contribution)

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def get_match(self, match_id: str) -> Match | None:
        return self._get("matches", match_id)

    def list_matches(self, profile_id: str) -> list[Match]:
        """All matches where the profile is initiator or receiver, newest first."""
        return self._select("matches", lambda m: m.involves(profile_id), newest_first="created_at")

    def create_match(self, match: Match) -> Match:
        """Insert a match unless the unordered pair already has a pending one.

        Check and insert run under the same lock, so two concurrent requests
        for the same pair cannot both succeed.
        """
        with self._lock:
            for existing in self._tables["matches"].values():
                if existing.status == MATCH_PENDING and existing.pair == match.pair:
                    raise ConflictError("A pending match request already exists between these users")
            return self._insert("matches", match)

    def transition_match(self, match_id: str, expected_status: str, **changes) -> Match:
        """Compare-and-set on ``status``; raises ConflictError if it moved."""
        with self._lock:
            current = self._tables["matches"].get(match_id)
            if current is None:
                raise NotFoundError("Match not found")
            if current.status != expected_status:
                raise ConflictError(f"Match is already {current.status}")
            return self._update("matches", match_id, changes)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def count_profiles_by_role(self) -> list[dict[str, Any]]:
        counts = Counter(p.role for p in self._select("profiles"))
        return [{"role": role, "count": count} for role, count in counts.items()]

    def count_projects(self) -> int:
        return len(self._select("projects"))

    def count_matches(self, status: str | None = None) -> int:
        if status:
            return len(self._select("matches", lambda m: m.status == status))
        return len(self._select("matches"))

    def location_histogram(self) -> list[dict[str, Any]]:
        counts = Counter(p.location for p in self._select("profiles") if p.location)
        return [
            {"location": location, "count": count}
            for location, count in counts.most_common(LOCATION_HISTOGRAM_LIMIT)
        ]

    def tag_histogram(self) -> list[dict[str, Any]]:
        counts = Counter(tag for p in self._select("profiles") for tag in p.tags)
        return [{"tag": tag, "count": count} for tag, count in counts.most_common(TAG_HISTOGRAM_LIMIT)]

    def count_created_between(self, start: datetime, end: datetime) -> dict[str, int]:
        def in_range(rows: Iterable[Any]) -> int:
            return sum(1 for r in rows if start <= r.created_at <= end)

        return {
            "newUsers": in_range(self._select("users")),
            "newProfiles": in_range(self._select("profiles")),
            "newProjects": in_range(self._select("projects")),
            "newMatches": in_range(self._select("matches")),
        }
