"""
test_sessions.py - 세션 레지스트리 / generation 카운터 테스트

검증 포인트:
1. view당 live 세션 최대 1개
2. start / reset → 이전 세션 retired (generation 비교)
3. 쓰기 메서드는 live가 아니면 아무것도 쓰지 않음
4. 스냅샷: 슬롯 상태 pending / ready / failed / skipped
"""

import pytest

from barista.core.sessions import SessionRegistry
from barista.domain.errors import ErrorCodes, PolicyRejectError
from barista.domain.schemas import (
    GeneratedImage,
    ImageStatus,
    Language,
    SessionStatus,
)


@pytest.fixture
def image() -> GeneratedImage:
    return GeneratedImage(url="data:image/jpeg;base64,AAAA", prompt="p")


# =============================================================================
# 생명주기
# =============================================================================


class TestLifecycle:

    def test_start_creates_pending_session(self, registry):
        session = registry.start("view-1", "latte", Language.EN)

        assert session.status is SessionStatus.PENDING
        assert not session.is_live
        assert session.session_id.startswith("SES-")
        assert registry.current("view-1") is session

    def test_activate_makes_live(self, registry, sample_recipe):
        session = registry.start("view-1", "latte", Language.EN)

        assert registry.activate(session, sample_recipe) is True
        assert session.is_live
        assert session.status is SessionStatus.LIVE
        assert session.step_statuses == {
            0: ImageStatus.PENDING,
            1: ImageStatus.PENDING,
            2: ImageStatus.PENDING,
        }

    def test_superseded_session_cannot_activate(self, registry, sample_recipe):
        """레시피 대기 중 새 세션이 시작되면 이전 세션은 live가 될 수 없음."""
        first = registry.start("view-1", "latte", Language.EN)
        second = registry.start("view-1", "mocha", Language.EN)

        assert registry.activate(first, sample_recipe) is False
        assert first.recipe is None
        assert first.status is SessionStatus.RETIRED
        assert registry.current("view-1") is second

    def test_reset_retires_current(self, live_session, registry):
        previous = registry.reset(live_session.view_id)

        assert previous is live_session
        assert not live_session.is_live
        assert live_session.status is SessionStatus.RETIRED
        assert registry.current(live_session.view_id) is None

    def test_reset_unknown_view(self, registry):
        assert registry.reset("nobody") is None

    def test_views_are_independent(self, registry, sample_recipe):
        a = registry.start("view-a", "latte", Language.EN)
        b = registry.start("view-b", "latte", Language.EN)
        registry.activate(a, sample_recipe)
        registry.activate(b, sample_recipe)

        registry.reset("view-a")

        assert not a.is_live
        assert b.is_live

    def test_only_one_live_session_per_view(self, registry, sample_recipe):
        sessions = []
        for _ in range(3):
            s = registry.start("view-1", "latte", Language.EN)
            registry.activate(s, sample_recipe)
            sessions.append(s)

        assert [s.is_live for s in sessions] == [False, False, True]

    def test_generation_increases(self, registry):
        first = registry.start("view-1", "a", Language.EN)
        registry.reset("view-1")
        second = registry.start("view-1", "b", Language.EN)

        assert second.generation > first.generation

    def test_fail_marks_session(self, registry):
        session = registry.start("view-1", "latte", Language.EN)

        registry.fail(session, ErrorCodes.RECIPE_PARSE_FAILED, "bad json")

        assert session.status is SessionStatus.FAILED
        assert session.error_code == ErrorCodes.RECIPE_PARSE_FAILED
        assert session.run_log.result == "failed"
        assert session.run_log.error_code == ErrorCodes.RECIPE_PARSE_FAILED


# =============================================================================
# 조회 / 정리
# =============================================================================


class TestLookup:

    def test_get_known(self, registry, live_session):
        assert registry.get(live_session.session_id) is live_session

    def test_get_unknown_raises(self, registry):
        with pytest.raises(PolicyRejectError) as exc_info:
            registry.get("SES-MISSING")

        assert exc_info.value.code == ErrorCodes.SESSION_NOT_FOUND

    def test_old_sessions_evicted(self):
        registry = SessionRegistry(max_retired_per_view=2)
        sessions = [registry.start("view-1", str(i), Language.EN) for i in range(5)]

        with pytest.raises(PolicyRejectError):
            registry.get(sessions[0].session_id)
        with pytest.raises(PolicyRejectError):
            registry.get(sessions[1].session_id)
        for s in sessions[2:]:
            assert registry.get(s.session_id) is s

    def test_reset_unknown_view_creates_nothing(self, registry):
        for i in range(50):
            registry.reset(f"ghost-{i}")

        assert registry._views == {}

    def test_views_bounded_across_many_page_views(self, sample_recipe):
        """view마다 start → activate → reset 반복해도 view/세션 수는 상한 이내."""
        registry = SessionRegistry(max_retired_per_view=5, max_views=50)

        for i in range(1000):
            session = registry.start(f"view-{i}", "latte", Language.EN)
            registry.activate(session, sample_recipe)
            registry.reset(f"view-{i}")
        for i in range(500):
            registry.reset(f"unknown-{i}")

        assert len(registry._views) <= 50
        assert len(registry._sessions) <= 50
        assert "view-999" in registry._views

    def test_busy_views_survive_eviction(self, sample_recipe):
        registry = SessionRegistry(max_views=2)
        live = registry.start("view-live", "latte", Language.EN)
        registry.activate(live, sample_recipe)
        idle = registry.start("view-idle", "latte", Language.EN)
        registry.reset("view-idle")

        registry.start("view-new", "mocha", Language.EN)

        assert registry.get(live.session_id) is live
        assert live.is_live
        with pytest.raises(PolicyRejectError):
            registry.get(idle.session_id)

    def test_recently_used_view_is_kept(self):
        registry = SessionRegistry(max_views=2)
        first = registry.start("view-a", "latte", Language.EN)
        registry.reset("view-a")
        second = registry.start("view-b", "latte", Language.EN)
        registry.reset("view-b")

        # view-a 재사용 → view-b가 가장 오래됨
        third = registry.start("view-a", "mocha", Language.EN)
        registry.reset("view-a")
        registry.start("view-c", "mocha", Language.EN)

        assert registry.get(third.session_id) is third
        assert registry.get(first.session_id) is first
        with pytest.raises(PolicyRejectError):
            registry.get(second.session_id)

    def test_running_tasks_empty_without_sequencer(self, registry, live_session):
        assert registry.running_tasks() == []


# =============================================================================
# Guarded writes
# =============================================================================


class TestGuardedWrites:

    def test_apply_when_live(self, live_session, image):
        assert live_session.apply_main_image(image) is True
        assert live_session.apply_step_image(1, image) is True

        assert live_session.main_image_status is ImageStatus.READY
        assert live_session.step_statuses[1] is ImageStatus.READY
        assert list(live_session.step_images) == [1]

    def test_apply_after_reset_writes_nothing(self, registry, live_session, image):
        registry.reset(live_session.view_id)

        assert live_session.apply_main_image(image) is False
        assert live_session.apply_step_image(0, image) is False
        assert live_session.main_image is None
        assert live_session.step_images == {}

    def test_apply_before_activation_writes_nothing(self, registry, image):
        session = registry.start("view-1", "latte", Language.EN)

        assert session.apply_main_image(image) is False
        assert session.main_image is None

    def test_mark_failed_when_live(self, live_session):
        assert live_session.mark_step_failed(2, ErrorCodes.IMAGE_FAILED, "boom") is True

        assert live_session.step_statuses[2] is ImageStatus.FAILED
        assert live_session.run_log.warnings[0].slot == "step:2"

    def test_mark_failed_after_reset_only_logs(self, registry, live_session):
        registry.reset(live_session.view_id)

        assert live_session.mark_main_failed(ErrorCodes.IMAGE_FAILED, "boom") is False
        assert live_session.main_image_status is ImageStatus.PENDING
        assert live_session.run_log.warnings[0].action_id == "main_image"


# =============================================================================
# finish / snapshot
# =============================================================================


class TestFinishAndSnapshot:

    def test_finish_success(self, live_session):
        live_session.finish()

        assert live_session.run_log.result == "success"
        assert live_session.status is SessionStatus.COMPLETED
        assert live_session.is_live

    def test_finish_partial_with_warnings(self, live_session):
        live_session.mark_step_failed(0, ErrorCodes.IMAGE_FAILED, "boom")

        live_session.finish()

        assert live_session.run_log.result == "partial"

    def test_finish_does_not_override_failure(self, registry):
        session = registry.start("view-1", "latte", Language.EN)
        registry.fail(session, ErrorCodes.RECIPE_FAILED, "down")

        session.finish()

        assert session.run_log.result == "failed"

    def test_snapshot_shape(self, live_session, image):
        live_session.apply_main_image(image)
        live_session.apply_step_image(0, image)
        live_session.mark_step_failed(1, ErrorCodes.IMAGE_FAILED, "boom")

        snapshot = live_session.snapshot()

        assert snapshot["session_id"] == live_session.session_id
        assert snapshot["status"] == "live"
        assert snapshot["live"] is True
        assert snapshot["recipe"]["title"] == "Classic Latte"
        assert snapshot["main_image"]["status"] == "ready"
        assert snapshot["main_image"]["image"]["url"] == image.url
        assert [s["status"] for s in snapshot["steps"]] == ["ready", "failed", "pending"]
        assert snapshot["steps"][1]["image"] is None
        assert snapshot["run_log"]["warnings"][0]["code"] == ErrorCodes.IMAGE_FAILED

    def test_snapshot_pending_becomes_skipped_when_retired(self, registry, live_session):
        registry.reset(live_session.view_id)

        snapshot = live_session.snapshot()

        assert snapshot["main_image"]["status"] == "skipped"
        assert {s["status"] for s in snapshot["steps"]} == {"skipped"}

    def test_snapshot_of_failed_session(self, registry):
        session = registry.start("view-1", "latte", Language.EN)
        registry.fail(session, ErrorCodes.RECIPE_EMPTY, "empty")

        snapshot = session.snapshot()

        assert snapshot["status"] == "failed"
        assert snapshot["recipe"] is None
        assert snapshot["steps"] == []
        assert snapshot["error_code"] == ErrorCodes.RECIPE_EMPTY
