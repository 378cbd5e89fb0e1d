"""AccessService 单元测试。"""

import pytest

from vibematch.errors import NotFoundError, PermissionDeniedError
from vibematch.models import Task
from vibematch.services.access_service import AccessService, AccessTier, resolve_tier


@pytest.fixture
def access(storage) -> AccessService:
    return AccessService(storage)


class TestResolveTier:
    """测试访问等级的判定。"""

    def test_owner(self, access, project, builder):
        assert access.resolve(builder.id, project.id).tier is AccessTier.OWNER

    def test_full_member(self, access, project, tech_lead, full_member):
        assert access.resolve(tech_lead.id, project.id).tier is AccessTier.FULL_MEMBER

    def test_limited_member(self, access, project, investor, limited_member):
        assert access.resolve(investor.id, project.id).tier is AccessTier.LIMITED_MEMBER

    def test_non_member(self, access, project, outsider):
        assert access.resolve(outsider.id, project.id).tier is AccessTier.NON_MEMBER

    def test_anonymous(self, project):
        assert resolve_tier(None, project, []) is AccessTier.NON_MEMBER

    def test_unknown_project(self, access, builder):
        with pytest.raises(NotFoundError):
            access.resolve(builder.id, "missing")


class TestProjectAccess:
    """测试 ProjectAccess 的过滤和拒绝。"""

    def test_non_member_denied_not_empty(self, access, project, outsider):
        """测试非成员得到的是 403 而不是空列表。"""
        view = access.resolve(outsider.id, project.id)

        with pytest.raises(PermissionDeniedError):
            view.visible_tasks([])
        with pytest.raises(PermissionDeniedError):
            view.visible_members([])

    def test_limited_member_sees_only_assigned_tasks(self, access, project, builder, investor, limited_member):
        mine = Task(project_id=project.id, title="Intro call", created_by=builder.id, assigned_to=investor.id)
        other = Task(project_id=project.id, title="Build API", created_by=builder.id, assigned_to=builder.id)
        unassigned = Task(project_id=project.id, title="Backlog", created_by=builder.id)

        view = access.resolve(investor.id, project.id)

        assert view.visible_tasks([mine, other, unassigned]) == [mine]

    def test_full_member_sees_everything(self, access, project, builder, tech_lead, full_member, limited_member, storage):
        members = storage.list_members(project.id)

        view = access.resolve(tech_lead.id, project.id)

        assert len(view.visible_members(members)) == 2

    def test_limited_member_sees_own_row(self, access, project, investor, full_member, limited_member, storage):
        view = access.resolve(investor.id, project.id)

        rows = view.visible_members(storage.list_members(project.id))

        assert [m.id for m in rows] == [limited_member.id]

    def test_limited_member_needs_full_access(self, access, project, investor, limited_member):
        with pytest.raises(PermissionDeniedError):
            access.resolve(investor.id, project.id).require_full_access()

    def test_full_member_is_not_owner(self, access, project, tech_lead, full_member):
        view = access.resolve(tech_lead.id, project.id)

        view.require_full_access()
        with pytest.raises(PermissionDeniedError):
            view.require_owner()

    def test_can_edit_task(self, access, project, builder, investor, limited_member):
        mine = Task(project_id=project.id, title="Intro", created_by=builder.id, assigned_to=investor.id)
        other = Task(project_id=project.id, title="Other", created_by=builder.id)

        view = access.resolve(investor.id, project.id)

        assert view.can_edit_task(mine)
        assert not view.can_edit_task(other)


class TestSetMemberAccess:
    """测试 has_access 开关。"""

    def test_owner_grants_access(self, access, project, builder, investor, limited_member):
        updated = access.set_member_access(builder.id, limited_member.id, True)

        assert updated.has_access is True
        assert access.resolve(investor.id, project.id).tier is AccessTier.FULL_MEMBER

    def test_owner_revokes_access(self, access, project, builder, tech_lead, full_member):
        access.set_member_access(builder.id, full_member.id, False)

        assert access.resolve(tech_lead.id, project.id).tier is AccessTier.LIMITED_MEMBER

    def test_member_cannot_toggle(self, access, tech_lead, full_member, limited_member):
        with pytest.raises(PermissionDeniedError):
            access.set_member_access(tech_lead.id, limited_member.id, True)

    def test_toggle_changes_nothing_else(self, access, builder, limited_member):
        updated = access.set_member_access(builder.id, limited_member.id, True)

        assert updated.role == limited_member.role
        assert updated.compensation_amount == limited_member.compensation_amount
        assert updated.joined_at == limited_member.joined_at

    def test_unknown_member(self, access, builder):
        with pytest.raises(NotFoundError):
            access.set_member_access(builder.id, "missing", True)
