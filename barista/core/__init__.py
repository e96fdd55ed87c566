"""
Core layer: 세션/취소 핵심 모듈.

이 모듈의 liveness 규칙이 깨지면 취소된 세션 결과가 화면에 섞임
→ 가장 보수적으로 관리

역할:
- 세션 레지스트리, generation 카운터, run log, ID
"""

from .ids import generate_message_id, generate_run_id, generate_session_id
from .logging import complete_run_log, create_run_log, emit_warning
from .sessions import GenerationSession, SessionRegistry, ViewState

__all__ = [
    # sessions
    "GenerationSession",
    "SessionRegistry",
    "ViewState",
    # ids
    "generate_session_id",
    "generate_run_id",
    "generate_message_id",
    # logging
    "create_run_log",
    "emit_warning",
    "complete_run_log",
]
