"""
Error definitions for the studio.

규칙:
- 조용한 실패 금지 → 요청 단위 치명적 오류는 PolicyRejectError로 명시적 실패
- 이미지 생성 실패는 best-effort → 예외 전파 없이 run log 경고로만 기록
"""

from typing import Any


class PolicyRejectError(Exception):
    """
    요청을 즉시 중단해야 할 때 발생하는 에러.

    사용자에게 현지화된 메시지로 노출되는 경우:
    - 빈 입력
    - 레시피 텍스트 생성 실패 / 빈 응답 / 파싱 실패
    - 채팅 응답 실패
    - 존재하지 않는 세션

    Usage:
        raise PolicyRejectError("RECIPE_PARSE_FAILED", field="steps", cause=e)
    """

    def __init__(self, code: str, **context: Any) -> None:
        self.code = code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            **{k: str(v) for k, v in self.context.items()},
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수. 새 코드 추가 시 domain/messages.py에도 문구 추가."""

    # === Input ===
    EMPTY_INPUT = "EMPTY_INPUT"

    # === Recipe (fatal-to-request) ===
    RECIPE_FAILED = "RECIPE_FAILED"
    RECIPE_EMPTY = "RECIPE_EMPTY"
    RECIPE_PARSE_FAILED = "RECIPE_PARSE_FAILED"
    RECIPE_TIMEOUT = "RECIPE_TIMEOUT"

    # === Image (best-effort, warning only) ===
    IMAGE_FAILED = "IMAGE_FAILED"
    IMAGE_EMPTY = "IMAGE_EMPTY"

    # === Chat (fatal-to-request) ===
    CHAT_FAILED = "CHAT_FAILED"

    # === Session ===
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_SUPERSEDED = "SESSION_SUPERSEDED"

    # === Provider ===
    API_KEY_MISSING = "API_KEY_MISSING"
    AUTH_FAILED = "AUTH_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    INVALID_REQUEST = "INVALID_REQUEST"
