"""测试配置和共享 Fixtures。"""

import json

import pytest

from vibematch.models import Profile, Project, ProjectMember
from vibematch.services.auth import HeaderAuthStrategy, USER_ID_HEADER
from vibematch.services.llm_service import LLMServiceError
from vibematch.services.storage import Storage
from vibematch.web import create_app


# ============================================================================
# Mock Services
# ============================================================================

class MockLLMService:
    """测试用 Mock LLM 服务。

    可以通过设置 response 属性来控制返回值。
    可以通过设置 should_fail 来模拟失败。
    每次调用的 prompt / system 会被记录下来，方便断言。
    """

    def __init__(self):
        self.response = '{"matches": []}'
        self.should_fail = False
        self.call_count = 0
        self.prompts: list[str] = []
        self.systems: list[str | None] = []

    def call(self, prompt: str, *, system: str | None = None, json_mode: bool = False) -> str:
        self.call_count += 1
        self.prompts.append(prompt)
        self.systems.append(system)

        if self.should_fail:
            raise LLMServiceError("Mock LLM failure")

        return self.response

    def set_matches(self, matches: list[dict]) -> None:
        """设置返回的 matches 列表。"""
        self.response = json.dumps({"matches": matches})

    @property
    def last_prompt(self) -> str:
        return self.prompts[-1] if self.prompts else ""

    def reset(self):
        """重置状态。"""
        self.call_count = 0
        self.prompts.clear()
        self.systems.clear()


def suggestion(profile: Profile, score: int, match_type: str = "collaboration", reason: str = "Good fit.") -> dict:
    """构造一条 LLM 返回的 match 记录。"""
    return {
        "profileId": profile.id,
        "matchScore": score,
        "matchReason": reason,
        "matchType": match_type,
    }


def as_user(profile: Profile) -> dict[str, str]:
    """以该 profile 身份发请求的 headers。"""
    return {USER_ID_HEADER: profile.user_id}


# ============================================================================
# Storage & Profile Fixtures
# ============================================================================

@pytest.fixture
def storage() -> Storage:
    """纯内存存储。"""
    return Storage()


@pytest.fixture
def builder(storage) -> Profile:
    """Builder: tags=[React, AI]，位于 San Francisco。"""
    return storage.create_profile(Profile(
        name="Alice Zhang",
        role="builder",
        user_id="builder-alice",
        tagline="Shipping an AI tutor for kids",
        location="San Francisco",
        tags=["React", "AI"],
    ))


@pytest.fixture
def investor(storage) -> Profile:
    """Investor: tags=[AI, SaaS]，与 builder 同城。"""
    return storage.create_profile(Profile(
        name="Bob Li",
        role="investor",
        user_id="investor-bob",
        tagline="Pre-seed AI and SaaS",
        location="San Francisco",
        tags=["AI", "SaaS"],
    ))


@pytest.fixture
def far_investor(storage) -> Profile:
    """Investor: tags=[Mobile]，不同城市。"""
    return storage.create_profile(Profile(
        name="Carol Wang",
        role="investor",
        user_id="investor-carol",
        location="New York",
        tags=["Mobile"],
    ))


@pytest.fixture
def tech_lead(storage) -> Profile:
    """Technical lead。"""
    return storage.create_profile(Profile(
        name="Dave Chen",
        role="technical",
        user_id="tech-dave",
        location="Austin",
        tags=["Python", "AI"],
    ))


@pytest.fixture
def outsider(storage) -> Profile:
    """和项目没有任何关系的 technical 用户。"""
    return storage.create_profile(Profile(
        name="Eve Zhou",
        role="technical",
        user_id="tech-eve",
        location="Berlin",
        tags=["Go"],
    ))


# ============================================================================
# Project Fixtures
# ============================================================================

@pytest.fixture
def project(storage, builder) -> Project:
    """builder 拥有的项目。"""
    return storage.create_project(Project(
        name="VibeTutor",
        owner_id=builder.id,
        description="AI tutor for kids",
        current_stage="mvp",
        looking_for=["technical", "funding"],
        tech_stack=["React", "Node.js"],
        funding_goal=250000.0,
    ))


@pytest.fixture
def full_member(storage, project, tech_lead) -> ProjectMember:
    """has_access=True 的成员（tech_lead）。"""
    return storage.add_member(ProjectMember(
        project_id=project.id,
        profile_id=tech_lead.id,
        role="technical",
        compensation_type="ownership",
        ownership_percentage=10.0,
        has_access=True,
    ))


@pytest.fixture
def limited_member(storage, project, investor) -> ProjectMember:
    """has_access=False 的成员（investor）。"""
    return storage.add_member(ProjectMember(
        project_id=project.id,
        profile_id=investor.id,
        role="investor",
        compensation_type="money",
        compensation_amount=50000.0,
        has_access=False,
    ))


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def mock_llm() -> MockLLMService:
    """创建 Mock LLM 服务。"""
    return MockLLMService()


@pytest.fixture
def app(storage, mock_llm):
    """注入内存存储、Mock LLM 和 header 身份策略的 Flask app。"""
    app = create_app(storage=storage, llm_service=mock_llm, auth_strategy=HeaderAuthStrategy())
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
