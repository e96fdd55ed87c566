"""
Run logging: 생성 세션별 run log, 경고 이벤트

규칙:
- 경고 필수 컨텍스트: level, code, action_id, slot, message
- 이미지 실패는 사용자에게 노출하지 않고 여기에만 기록
- 메모리 전용 (파일 저장 없음)
"""

from datetime import UTC, datetime
from typing import Any

from barista.core.ids import generate_run_id
from barista.domain.schemas import RunLog, WarningLog

# =============================================================================
# Run Log Management
# =============================================================================


def create_run_log(session_id: str) -> RunLog:
    """
    새 RunLog 생성.

    Args:
        session_id: 생성 세션 ID

    Returns:
        초기화된 RunLog
    """
    now = datetime.now(UTC).isoformat()
    run_id = generate_run_id()

    return RunLog(
        run_id=run_id,
        session_id=session_id,
        started_at=now,
        result="pending",
    )


def emit_warning(
    run_log: RunLog,
    code: str,
    action_id: str,
    slot: str,
    message: str,
) -> None:
    """
    경고 이벤트 기록.

    Args:
        run_log: RunLog 인스턴스
        code: 경고 코드 (예: IMAGE_FAILED)
        action_id: 액션 ID (예: step_image_2)
        slot: 이미지 슬롯 (main, step:2)
        message: 경고 메시지
    """
    warning = WarningLog(
        level="warning",
        code=code,
        action_id=action_id,
        slot=slot,
        message=message,
        timestamp=datetime.now(UTC).isoformat(),
    )
    run_log.warnings.append(warning)


def count_image_request(run_log: RunLog) -> None:
    """이미지 요청 1건 기록."""
    run_log.image_requests += 1


def complete_run_log(
    run_log: RunLog,
    result: str,
    error_code: str | None = None,
    error_context: dict[str, Any] | None = None,
) -> None:
    """
    RunLog 완료 처리.

    Args:
        run_log: RunLog 인스턴스
        result: success | partial | cancelled | failed
        error_code: 에러 코드 (실패 시)
        error_context: 에러 컨텍스트 (실패 시)
    """
    now = datetime.now(UTC).isoformat()
    run_log.finished_at = now
    run_log.result = result

    if result == "failed":
        run_log.error_code = error_code
        run_log.error_context = error_context
