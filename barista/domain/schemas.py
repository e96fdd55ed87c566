"""
Data schemas for the studio.

규칙:
- Recipe는 텍스트 생성 한 번으로 원자적으로 생성, 이후 불변
- 이미지 슬롯은 pending → ready | failed | skipped 로만 전이
- 모든 상태는 메모리 전용 (영속화 없음)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# =============================================================================
# Language
# =============================================================================

class Language(str, Enum):
    """UI/응답 언어."""
    EN = "en"
    ZH = "zh"

    @classmethod
    def parse(cls, value: str | None) -> "Language":
        """알 수 없는 값은 영어로."""
        if not value:
            return cls.EN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.EN


# =============================================================================
# Recipe Schemas
# =============================================================================

@dataclass(frozen=True)
class Recipe:
    """
    구조화된 커피 레시피.

    텍스트 모델 응답을 파싱한 결과. 생성 후 수정 금지.
    """
    title: str
    description: str
    ingredients: tuple[str, ...] = ()
    steps: tuple[str, ...] = ()
    tips: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "ingredients": list(self.ingredients),
            "steps": list(self.steps),
            "tips": self.tips,
        }


@dataclass(frozen=True)
class GeneratedImage:
    """생성된 이미지 (data URI 형태)."""
    url: str  # data:image/jpeg;base64,...
    prompt: str
    mime_type: str = "image/jpeg"
    model_used: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "prompt": self.prompt,
            "mime_type": self.mime_type,
            "model_used": self.model_used,
        }


class ImageStatus(str, Enum):
    """
    이미지 슬롯 상태.

    실패(failed)와 대기(pending)를 구분해서 노출.
    """
    PENDING = "pending"    # 아직 요청 전 또는 응답 대기
    READY = "ready"        # 이미지 적용됨
    FAILED = "failed"      # 요청 실패 (재시도 없음)
    SKIPPED = "skipped"    # 세션 종료로 요청하지 않음


class SessionStatus(str, Enum):
    """생성 세션 상태."""
    PENDING = "pending"      # 레시피 텍스트 대기
    LIVE = "live"            # 레시피 수신, 이미지 생성 중
    COMPLETED = "completed"  # 시퀀스 종료 (live 상태 유지)
    RETIRED = "retired"      # reset 또는 새 세션으로 대체됨
    FAILED = "failed"        # 레시피 텍스트 생성 실패


# =============================================================================
# Chat Schemas
# =============================================================================

class ChatRole(str, Enum):
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class Citation:
    """검색 grounding 출처."""
    uri: str
    title: str

    def to_dict(self) -> dict[str, str]:
        return {"uri": self.uri, "title": self.title}


@dataclass
class ChatMessage:
    """
    채팅 메시지.

    failed=True인 모델 메시지는 에러 안내용이며 히스토리로 전송하지 않음.
    """
    id: str
    role: ChatRole
    text: str
    sources: list[Citation] = field(default_factory=list)
    failed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "text": self.text,
            "sources": [s.to_dict() for s in self.sources],
            "failed": self.failed,
        }


# =============================================================================
# Logging Schemas
# =============================================================================

@dataclass
class WarningLog:
    """
    경고 로그.

    경고 필수 컨텍스트: level, code, action_id, slot, message
    """
    level: str = "warning"
    code: str = ""
    action_id: str = ""
    slot: str = ""
    message: str = ""
    timestamp: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "action_id": self.action_id,
            "slot": self.slot,
            "message": self.message,
            "timestamp": self.timestamp,
        }


@dataclass
class RunLog:
    """
    실행 로그.

    생성 세션 단위 실행 결과 및 메타데이터.
    """
    run_id: str
    session_id: str
    started_at: str  # ISO 8601
    finished_at: str | None = None
    result: str = "pending"  # pending, success, partial, cancelled, failed

    # Request counters
    image_requests: int = 0

    # Events
    warnings: list[WarningLog] = field(default_factory=list)

    # Error (if failed)
    error_code: str | None = None
    error_context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "session_id": self.session_id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "image_requests": self.image_requests,
            "warnings": [w.to_dict() for w in self.warnings],
            "error_code": self.error_code,
            "error_context": self.error_context,
        }
