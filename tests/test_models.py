"""数据模型单元测试。"""

import pytest

from vibematch.errors import ValidationError
from vibematch.models import Match, MatchSuggestion, Profile, Project, ProjectMember, Task
from vibematch.models.base import apply_patch, parse_datetime


class TestProfile:
    """测试 Profile 数据类。"""

    def test_from_payload(self):
        """测试从请求体创建 Profile。"""
        profile = Profile.from_payload({
            "name": "Test User",
            "role": "investor",
            "location": "Shanghai",
            "tags": ["AI", "Fintech"],
        })

        assert profile.name == "Test User"
        assert profile.role == "investor"
        assert profile.tags == ["AI", "Fintech"]
        assert profile.id

    def test_legacy_coder_role_is_builder(self):
        """测试旧角色名 coder 会被映射为 builder。"""
        profile = Profile.from_payload({"name": "Old Client", "role": "coder"})

        assert profile.role == "builder"

    def test_missing_name_names_the_field(self):
        """测试缺少 name 时错误里带字段名。"""
        with pytest.raises(ValidationError) as exc:
            Profile.from_payload({"role": "builder"})

        assert exc.value.field == "name"

    def test_unknown_role_rejected(self):
        """测试未知角色被拒绝。"""
        with pytest.raises(ValidationError) as exc:
            Profile.from_payload({"name": "X", "role": "designer"})

        assert exc.value.field == "role"

    def test_tags_must_be_strings(self):
        with pytest.raises(ValidationError) as exc:
            Profile.from_payload({"name": "X", "role": "builder", "tags": ["ok", 3]})

        assert exc.value.field == "tags"

    def test_to_dict_uses_wire_names(self):
        """测试 to_dict 使用 camelCase 字段。"""
        data = Profile(name="A", role="builder", user_id="u-1").to_dict()

        assert data["userId"] == "u-1"
        assert "createdAt" in data


class TestProject:
    """测试 Project 及子实体。"""

    def test_defaults(self):
        project = Project.from_payload({"name": "P", "ownerId": "owner-1"})

        assert project.status == "active"
        assert project.looking_for == []
        assert project.funding_goal is None

    def test_funding_goal_accepts_decimal_string(self):
        """测试金额字段接受字符串形式的小数。"""
        project = Project.from_payload({"name": "P", "ownerId": "o", "fundingGoal": "125000.50"})

        assert project.funding_goal == 125000.5

    def test_invalid_stage(self):
        with pytest.raises(ValidationError) as exc:
            Project.from_payload({"name": "P", "ownerId": "o", "currentStage": "series-z"})

        assert exc.value.field == "currentStage"

    def test_member_requires_compensation_type(self):
        with pytest.raises(ValidationError) as exc:
            ProjectMember.from_payload({"projectId": "p", "profileId": "x", "role": "technical"})

        assert exc.value.field == "compensationType"

    def test_member_has_access_defaults_false(self):
        member = ProjectMember.from_payload({
            "projectId": "p", "profileId": "x", "role": "investor", "compensationType": "money",
        })

        assert member.has_access is False

    def test_task_due_date_parsed(self):
        task = Task.from_payload({
            "projectId": "p", "title": "Ship", "createdBy": "o", "dueDate": "2026-11-01T00:00:00Z",
        })

        assert task.due_date.year == 2026
        assert task.due_date.tzinfo is not None

    def test_task_bad_due_date(self):
        with pytest.raises(ValidationError) as exc:
            Task.from_payload({"projectId": "p", "title": "Ship", "createdBy": "o", "dueDate": "soon"})

        assert exc.value.field == "dueDate"


class TestApplyPatch:
    """测试 apply_patch 只更新允许的字段。"""

    def test_only_allowed_fields_change(self):
        project = Project(name="Old", owner_id="owner-1")

        patched = apply_patch(project, {"name": "New", "ownerId": "hijacker"}, Project.UPDATABLE)

        assert patched.name == "New"
        assert patched.owner_id == "owner-1"
        assert project.name == "Old"

    def test_invalid_value_rejected(self):
        project = Project(name="Old", owner_id="owner-1")

        with pytest.raises(ValidationError):
            apply_patch(project, {"status": "deleted"}, Project.UPDATABLE)

    def test_clearing_optional_field(self):
        project = Project(name="Old", owner_id="owner-1", vision="Big")

        patched = apply_patch(project, {"vision": None}, Project.UPDATABLE)

        assert patched.vision is None


class TestMatch:
    """测试 Match 数据类。"""

    def test_new_match_is_pending(self):
        """测试新建 match 永远是 pending，忽略传入的 status。"""
        match = Match.from_payload({
            "initiatorId": "a", "receiverId": "b", "matchType": "investment", "status": "accepted",
        })

        assert match.status == "pending"
        assert match.responded_at is None

    def test_pair_is_unordered(self):
        first = Match(initiator_id="a", receiver_id="b", match_type="technical")
        second = Match(initiator_id="b", receiver_id="a", match_type="technical")

        assert first.pair == second.pair

    def test_other_party(self):
        match = Match(initiator_id="a", receiver_id="b", match_type="technical")

        assert match.other_party("a") == "b"
        assert match.other_party("b") == "a"

    def test_invalid_match_type(self):
        with pytest.raises(ValidationError) as exc:
            Match.from_payload({"initiatorId": "a", "receiverId": "b", "matchType": "romance"})

        assert exc.value.field == "matchType"

    def test_suggestion_to_dict_without_profile(self):
        data = MatchSuggestion(profile_id="p", match_score=80).to_dict()

        assert data["profile"] is None
        assert data["matchScore"] == 80


def test_parse_datetime_naive_becomes_utc():
    """测试不带时区的时间被视为 UTC。"""
    dt = parse_datetime("2026-01-01T12:00:00")

    assert dt.utcoffset().total_seconds() == 0
