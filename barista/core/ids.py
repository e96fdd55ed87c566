"""
ID 생성: session_id, run_id, view_id, message_id

규칙:
- 모든 ID는 UUID v4 기반 (메모리 상태 키로만 사용)
- 세션 식별은 session_id + generation 조합 (core/sessions.py)
"""

import uuid
from datetime import UTC, datetime


def generate_session_id() -> str:
    """
    생성 세션 ID.

    포맷: SES-{uuid[:12]}
    """
    return f"SES-{uuid.uuid4().hex[:12].upper()}"


def generate_run_id() -> str:
    """
    Run ID 생성.

    고유성 보장: UUID v4
    포맷: RUN-{timestamp}-{uuid[:8]}

    Returns:
        run_id 문자열
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"RUN-{timestamp}-{unique}"


def generate_view_id() -> str:
    """브라우저 화면(view) ID."""
    return str(uuid.uuid4())


def generate_message_id() -> str:
    """채팅 메시지 ID."""
    return uuid.uuid4().hex
