"""Storage 单元测试。"""

import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from vibematch.errors import ConflictError, NotFoundError
from vibematch.models import Match, Profile, Project, ProjectDocument
from vibematch.services.storage import Storage


class TestPersistence:
    """测试 JSON 文件落盘和重新加载。"""

    def test_reload_from_file(self, tmp_path):
        path = tmp_path / "store.json"
        storage = Storage(path)
        profile = storage.create_profile(Profile(name="Alice", role="builder", user_id="u-1", tags=["AI"]))
        storage.create_project(Project(name="P", owner_id=profile.id, funding_goal=1000.0))

        reloaded = Storage(path)

        restored = reloaded.get_profile(profile.id)
        assert restored.name == "Alice"
        assert restored.tags == ["AI"]
        assert restored.created_at == profile.created_at
        assert reloaded.list_projects(profile.id)[0].funding_goal == 1000.0

    def test_file_is_json(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        Storage(path).create_profile(Profile(name="Alice", role="builder"))

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["profiles"][0]["name"] == "Alice"
        assert not (tmp_path / "nested" / "store.json.tmp").exists()

    def test_memory_only(self, storage, tmp_path):
        storage.create_profile(Profile(name="Alice", role="builder"))

        assert list(tmp_path.iterdir()) == []

    def test_failed_insert_rolls_back(self, tmp_path, monkeypatch):
        """测试落盘失败时内存里也不保留新记录。"""
        storage = Storage(tmp_path / "store.json")

        def disk_full():
            raise OSError("No space left on device")

        monkeypatch.setattr(storage, "_save", disk_full)

        with pytest.raises(OSError):
            storage.create_profile(Profile(id="p-1", name="Alice", role="builder"))

        assert storage.get_profile("p-1") is None

    def test_failed_update_restores_previous(self, tmp_path, monkeypatch):
        storage = Storage(tmp_path / "store.json")
        match = storage.create_match(Match(initiator_id="a", receiver_id="b", match_type="technical"))

        def disk_full():
            raise OSError("No space left on device")

        monkeypatch.setattr(storage, "_save", disk_full)

        with pytest.raises(OSError):
            storage.transition_match(match.id, "pending", status="accepted")

        assert storage.get_match(match.id).status == "pending"
        assert Storage(tmp_path / "store.json").get_match(match.id).status == "pending"

    def test_failed_delete_keeps_record(self, tmp_path, monkeypatch):
        storage = Storage(tmp_path / "store.json")
        doc = storage.create_document(ProjectDocument(
            project_id="proj", uploaded_by="owner", name="Deck", file_url="https://f/deck.pdf",
        ))

        def disk_full():
            raise OSError("No space left on device")

        monkeypatch.setattr(storage, "_save", disk_full)

        with pytest.raises(OSError):
            storage.delete_document(doc.id)

        assert storage.get_document(doc.id) is not None


class TestProfiles:

    def test_one_profile_per_user(self, storage, builder):
        with pytest.raises(ConflictError):
            storage.create_profile(Profile(name="Again", role="investor", user_id=builder.user_id))

    def test_lookup_by_user(self, storage, builder):
        assert storage.get_profile_by_user_id("builder-alice").id == builder.id
        assert storage.get_profile_by_user_id("nobody") is None

    def test_save_missing(self, storage):
        with pytest.raises(NotFoundError):
            storage.save_profile(Profile(name="Ghost", role="builder"))


class TestMatches:
    """测试 match 的原子创建和状态迁移。"""

    def test_pending_pair_conflict_either_direction(self, storage):
        storage.create_match(Match(initiator_id="a", receiver_id="b", match_type="technical"))

        with pytest.raises(ConflictError):
            storage.create_match(Match(initiator_id="b", receiver_id="a", match_type="technical"))

    def test_resolved_pair_allows_new(self, storage):
        storage.create_match(Match(initiator_id="a", receiver_id="b", match_type="technical", status="accepted"))

        created = storage.create_match(Match(initiator_id="a", receiver_id="b", match_type="technical"))

        assert created.status == "pending"

    def test_concurrent_requests_create_one(self, storage):
        """测试并发发起同一对用户的请求只会成功一个。"""
        results = []
        barrier = threading.Barrier(8)

        def attempt(i):
            barrier.wait()
            a, b = ("a", "b") if i % 2 else ("b", "a")
            try:
                storage.create_match(Match(initiator_id=a, receiver_id=b, match_type="collaboration"))
                results.append("ok")
            except ConflictError:
                results.append("conflict")

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 1
        assert storage.count_matches() == 1

    def test_transition_compare_and_set(self, storage):
        match = storage.create_match(Match(initiator_id="a", receiver_id="b", match_type="technical"))

        updated = storage.transition_match(match.id, "pending", status="accepted")
        assert updated.status == "accepted"

        with pytest.raises(ConflictError) as exc:
            storage.transition_match(match.id, "pending", status="rejected")
        assert "accepted" in exc.value.message

    def test_transition_missing(self, storage):
        with pytest.raises(NotFoundError):
            storage.transition_match("missing", "pending", status="accepted")


class TestAggregates:
    """测试统计查询。"""

    def test_histograms(self, storage, builder, investor, far_investor, tech_lead):
        locations = {row["location"]: row["count"] for row in storage.location_histogram()}
        tags = {row["tag"]: row["count"] for row in storage.tag_histogram()}

        assert locations["San Francisco"] == 2
        assert tags["AI"] == 3
        assert storage.tag_histogram()[0] == {"tag": "AI", "count": 3}

    def test_location_histogram_top_twenty(self, storage):
        for i in range(25):
            storage.create_profile(Profile(name=f"P{i}", role="technical", location=f"City {i}"))

        assert len(storage.location_histogram()) == 20

    def test_count_created_between(self, storage):
        now = datetime(2026, 6, 1, tzinfo=timezone.utc)
        storage.create_profile(Profile(name="Old", role="builder", created_at=now - timedelta(days=60)))
        storage.create_profile(Profile(name="New", role="builder", created_at=now - timedelta(days=2)))

        counts = storage.count_created_between(now - timedelta(days=7), now)

        assert counts["newProfiles"] == 1
        assert counts["newProjects"] == 0
