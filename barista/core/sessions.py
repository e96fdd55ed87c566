"""
Generation sessions: view 단위 세션 레지스트리, 세대(generation) 카운터.

규칙:
- view(브라우저 화면)마다 live 세션은 최대 1개
- liveness = "활성화됨" AND "view의 현재 generation == 세션 generation"
  → 불리언 플래그가 아니라 카운터 비교라서 취소 후 재시작한 세션끼리 혼동 불가
- 새 세션 시작 / reset → view generation 증가 → 이전 세션은 즉시 retired
- 모든 결과 쓰기는 쓰기 직전에 liveness 재검증 (apply_* / mark_*)
- 단일 이벤트 루프 전제: 락 없음 (쓰기 경로는 await 없이 검증+쓰기)
"""

import asyncio
import logging
from collections import deque
from datetime import UTC, datetime
from typing import Any

from barista.core.ids import generate_session_id
from barista.core.logging import complete_run_log, create_run_log, emit_warning
from barista.domain.constants import MAX_RETIRED_SESSIONS_PER_VIEW, MAX_VIEWS
from barista.domain.errors import ErrorCodes, PolicyRejectError
from barista.domain.schemas import (
    GeneratedImage,
    ImageStatus,
    Language,
    Recipe,
    SessionStatus,
)

logger = logging.getLogger(__name__)


# =============================================================================
# View State
# =============================================================================


class ViewState:
    """브라우저 화면 하나의 세션 상태."""

    def __init__(self, view_id: str):
        self.view_id = view_id
        self.generation = 0
        self.current: "GenerationSession | None" = None
        self.session_ids: deque[str] = deque()


# =============================================================================
# Generation Session
# =============================================================================


class GenerationSession:
    """
    생성 세션 (레시피 1건 + 그 이미지들).

    상태는 직접 대입하지 말고 apply_* / mark_* 메서드로만 변경.
    각 메서드는 세션이 live가 아니면 아무것도 쓰지 않고 False 반환.
    """

    def __init__(
        self,
        view: ViewState,
        generation: int,
        request: str,
        language: Language,
    ):
        self.session_id = generate_session_id()
        self.view_id = view.view_id
        self.generation = generation
        self.request = request
        self.language = language
        self.created_at = datetime.now(UTC).isoformat()

        self.recipe: Recipe | None = None
        self.main_image: GeneratedImage | None = None
        self.main_image_status = ImageStatus.PENDING
        self.step_images: dict[int, GeneratedImage] = {}
        self.step_statuses: dict[int, ImageStatus] = {}

        self.error_code: str | None = None
        self.error_message: str | None = None
        self.run_log = create_run_log(self.session_id)

        # 백그라운드 시퀀서 태스크 (GC 방지용 참조)
        self.task: asyncio.Task[None] | None = None

        self._view = view
        self._activated = False
        self._finished = False
        self._failed = False

    # -------------------------------------------------------------------------
    # Liveness
    # -------------------------------------------------------------------------

    @property
    def is_current(self) -> bool:
        """view의 현재 generation인지."""
        return self._view.generation == self.generation

    @property
    def is_live(self) -> bool:
        """레시피 수신 후 아직 대체/리셋되지 않았는지."""
        return self._activated and not self._failed and self.is_current

    @property
    def status(self) -> SessionStatus:
        if self._failed:
            return SessionStatus.FAILED
        if not self.is_current:
            return SessionStatus.RETIRED
        if not self._activated:
            return SessionStatus.PENDING
        if self._finished:
            return SessionStatus.COMPLETED
        return SessionStatus.LIVE

    # -------------------------------------------------------------------------
    # Guarded writes
    # -------------------------------------------------------------------------

    def apply_main_image(self, image: GeneratedImage) -> bool:
        """메인 이미지 적용."""
        if not self.is_live:
            return False
        self.main_image = image
        self.main_image_status = ImageStatus.READY
        return True

    def mark_main_failed(self, code: str, message: str) -> bool:
        """메인 이미지 실패 기록 (재시도 없음)."""
        emit_warning(
            self.run_log,
            code=code,
            action_id="main_image",
            slot="main",
            message=message,
        )
        if not self.is_live:
            return False
        self.main_image_status = ImageStatus.FAILED
        return True

    def apply_step_image(self, index: int, image: GeneratedImage) -> bool:
        """단계 이미지 적용. 키는 원래 단계 인덱스."""
        if not self.is_live:
            return False
        self.step_images[index] = image
        self.step_statuses[index] = ImageStatus.READY
        return True

    def mark_step_failed(self, index: int, code: str, message: str) -> bool:
        """단계 이미지 실패 기록. 다음 단계 진행에는 영향 없음."""
        emit_warning(
            self.run_log,
            code=code,
            action_id=f"step_image_{index}",
            slot=f"step:{index}",
            message=message,
        )
        if not self.is_live:
            return False
        self.step_statuses[index] = ImageStatus.FAILED
        return True

    def finish(self) -> None:
        """시퀀서 종료 처리 (live 여부와 무관하게 run log 마감)."""
        if self._failed:
            return
        self._finished = True
        if not self.is_current:
            result = "cancelled"
        elif self.run_log.warnings:
            result = "partial"
        else:
            result = "success"
        complete_run_log(self.run_log, result)

    # -------------------------------------------------------------------------
    # Registry-only transitions
    # -------------------------------------------------------------------------

    def _activate(self, recipe: Recipe) -> None:
        self.recipe = recipe
        self.step_statuses = {i: ImageStatus.PENDING for i in range(len(recipe.steps))}
        self._activated = True

    def _fail(self, code: str, message: str) -> None:
        self._failed = True
        self.error_code = code
        self.error_message = message
        complete_run_log(
            self.run_log,
            "failed",
            error_code=code,
            error_context={"message": message},
        )

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def _visible_status(self, status: ImageStatus) -> ImageStatus:
        # 종료된 세션에서 아직 pending인 슬롯은 더 이상 채워지지 않음
        if status is ImageStatus.PENDING and self.status in (
            SessionStatus.RETIRED,
            SessionStatus.FAILED,
        ):
            return ImageStatus.SKIPPED
        return status

    def snapshot(self) -> dict[str, Any]:
        """폴링 응답용 JSON 직렬화."""
        steps: list[dict[str, Any]] = []
        if self.recipe is not None:
            for index, text in enumerate(self.recipe.steps):
                image = self.step_images.get(index)
                steps.append({
                    "index": index,
                    "text": text,
                    "status": self._visible_status(
                        self.step_statuses.get(index, ImageStatus.PENDING)
                    ).value,
                    "image": image.to_dict() if image else None,
                })

        return {
            "session_id": self.session_id,
            "view_id": self.view_id,
            "generation": self.generation,
            "status": self.status.value,
            "live": self.is_live,
            "request": self.request,
            "language": self.language.value,
            "created_at": self.created_at,
            "recipe": self.recipe.to_dict() if self.recipe else None,
            "main_image": {
                "status": self._visible_status(self.main_image_status).value,
                "image": self.main_image.to_dict() if self.main_image else None,
            },
            "steps": steps,
            "error_code": self.error_code,
            "error": self.error_message,
            "run_log": self.run_log.to_dict(),
        }


# =============================================================================
# Registry
# =============================================================================


class SessionRegistry:
    """
    세션 레지스트리 (in-memory).

    Usage:
        registry = SessionRegistry()
        session = registry.start(view_id, "iced latte", Language.EN)
        if registry.activate(session, recipe):
            ...  # 시퀀서 시작
        registry.reset(view_id)  # 진행 중 시퀀서는 다음 체크포인트에서 중단
    """

    def __init__(
        self,
        max_retired_per_view: int = MAX_RETIRED_SESSIONS_PER_VIEW,
        max_views: int = MAX_VIEWS,
    ):
        self.max_retired_per_view = max_retired_per_view
        self.max_views = max_views
        # 삽입 순서 = 최근 사용 순 (오래된 view가 앞)
        self._views: dict[str, ViewState] = {}
        self._sessions: dict[str, GenerationSession] = {}

    def _get_view(self, view_id: str) -> ViewState:
        view = self._views.pop(view_id, None)
        if view is None:
            view = ViewState(view_id)
        self._views[view_id] = view
        return view

    def start(
        self,
        view_id: str,
        request: str,
        language: Language,
    ) -> GenerationSession:
        """
        새 세션 생성 (pending).

        이전 세션은 generation 증가로 즉시 retired.
        """
        view = self._get_view(view_id)
        view.generation += 1

        previous = view.current
        session = GenerationSession(view, view.generation, request, language)
        view.current = session
        view.session_ids.append(session.session_id)
        self._sessions[session.session_id] = session

        if previous is not None:
            logger.info(
                f"Session {previous.session_id} superseded by {session.session_id} "
                f"(view={view_id}, generation={view.generation})"
            )

        self._evict(view)
        self._evict_views()
        return session

    def activate(self, session: GenerationSession, recipe: Recipe) -> bool:
        """
        레시피 수신 → live 전환.

        Returns:
            False면 이미 대체된 세션 (이미지 작업 시작 금지)
        """
        if not session.is_current:
            logger.info(
                f"Session {session.session_id} superseded before recipe arrived"
            )
            return False
        session._activate(recipe)
        return True

    def fail(self, session: GenerationSession, code: str, message: str) -> None:
        """레시피 텍스트 실패 기록 (세션 치명적)."""
        session._fail(code, message)
        logger.warning(f"Session {session.session_id} failed: [{code}] {message}")

    def reset(self, view_id: str) -> GenerationSession | None:
        """
        현재 세션 종료.

        진행 중 요청은 중단하지 않음 (협조적 취소).

        Returns:
            종료된 세션 (없으면 None)
        """
        view = self._views.get(view_id)
        if view is None:
            return None

        view.generation += 1
        previous = view.current
        view.current = None

        if previous is not None:
            logger.info(f"Session {previous.session_id} reset (view={view_id})")
        return previous

    def get(self, session_id: str) -> GenerationSession:
        """
        세션 조회.

        Raises:
            PolicyRejectError: SESSION_NOT_FOUND
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise PolicyRejectError(ErrorCodes.SESSION_NOT_FOUND, session_id=session_id)
        return session

    def current(self, view_id: str) -> GenerationSession | None:
        """view의 현재 세션."""
        view = self._views.get(view_id)
        return view.current if view else None

    def running_tasks(self) -> list[asyncio.Task[None]]:
        """아직 끝나지 않은 시퀀서 태스크 (종료 시 정리용)."""
        return [
            s.task for s in self._sessions.values()
            if s.task is not None and not s.task.done()
        ]

    def _evict(self, view: ViewState) -> None:
        """오래된 종료 세션 정리 (현재 세션 + 최근 N개 유지)."""
        while len(view.session_ids) > self.max_retired_per_view + 1:
            old_id = view.session_ids.popleft()
            self._sessions.pop(old_id, None)

    def _is_idle(self, view: ViewState) -> bool:
        """pending/live 세션도, 끝나지 않은 시퀀서 태스크도 없는 view."""
        current = view.current
        if current is not None and current.status in (
            SessionStatus.PENDING,
            SessionStatus.LIVE,
        ):
            return False
        for session_id in view.session_ids:
            session = self._sessions.get(session_id)
            task = session.task if session is not None else None
            if task is not None and not task.done():
                return False
        return True

    def _evict_views(self) -> None:
        """view 수가 상한을 넘으면 오래된 idle view부터 통째로 제거."""
        excess = len(self._views) - self.max_views
        if excess <= 0:
            return

        for view_id in [v.view_id for v in self._views.values() if self._is_idle(v)][:excess]:
            view = self._views.pop(view_id)
            for session_id in view.session_ids:
                self._sessions.pop(session_id, None)
            logger.info(f"View {view_id} evicted ({len(view.session_ids)} sessions)")
