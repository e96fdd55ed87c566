"""
AI Provider 추상 인터페이스.

- Provider 추상화로 모델 교체 가능 (레시피 텍스트: Gemini / Claude)
- model_requested + model_used 기록
- 재시도/fallback 없음: 실패는 호출자에게 그대로 전파 (사용자 재요청이 유일한 복구)

Capability 계약:
- RecipeProvider: 프롬프트 → 레시피 JSON 텍스트
- ImageProvider: 프롬프트 + 비율 → 이미지 1장
- ChatProvider: 히스토리 + 메시지 → 답변 + grounding 메타데이터
"""

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass
class TextResult:
    """
    텍스트 생성 결과 (파싱 전 원문).

    파싱/형태 검증은 services/recipe.py 담당.
    """
    text: str | None
    model_requested: str | None = None
    model_used: str | None = None
    provider: str | None = None
    prompt_hash: str | None = None


@dataclass
class ImageResult:
    """이미지 생성 결과."""
    image_bytes: bytes
    mime_type: str = "image/jpeg"
    model_used: str | None = None


@dataclass
class ChatTurn:
    """프로바이더로 보내는 대화 턴 (role: user | model)."""
    role: str
    text: str


@dataclass
class ChatReply:
    """
    채팅 응답.

    grounding_chunks: 프로바이더 grounding 메타데이터의 chunk 목록 원본.
    출처 정제는 services/chat.py의 extract_citations 담당.
    """
    text: str
    grounding_chunks: list[Any] = field(default_factory=list)
    model_used: str | None = None


def compute_hash(content: str) -> str:
    """SHA-256 해시 계산."""
    return f"sha256:{hashlib.sha256(content.encode()).hexdigest()[:16]}"


# =============================================================================
# Provider Exceptions
# =============================================================================


class ProviderError(Exception):
    """Provider 관련 에러."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class RecipeError(ProviderError):
    """레시피 텍스트 생성 에러."""
    pass


class ImageError(ProviderError):
    """이미지 생성 에러."""
    pass


class ChatError(ProviderError):
    """채팅 응답 에러."""
    pass


# =============================================================================
# Abstract Providers
# =============================================================================


class RecipeProvider(ABC):
    """
    레시피 텍스트 Provider.

    역할: 구조화된 JSON 텍스트 반환 (형태 검증 권한 없음)
    """

    model: str

    @abstractmethod
    async def generate_recipe_text(self, prompt: str) -> TextResult:
        """
        레시피 JSON 텍스트 생성.

        Args:
            prompt: 완성된 프롬프트 (언어 지시 포함)

        Returns:
            TextResult (text가 비어 있을 수 있음)

        Raises:
            RecipeError: 호출 실패
        """
        ...


class ImageProvider(ABC):
    """이미지 Provider."""

    model: str

    @abstractmethod
    async def generate_image(self, prompt: str, aspect_ratio: str) -> ImageResult:
        """
        이미지 1장 생성.

        Args:
            prompt: 이미지 설명 프롬프트
            aspect_ratio: "4:3" (메인), "1:1" (단계)

        Raises:
            ImageError: 호출 실패 또는 이미지 없음
        """
        ...


class ChatProvider(ABC):
    """검색 grounding 채팅 Provider."""

    model: str

    @abstractmethod
    async def chat(
        self,
        history: list[ChatTurn],
        message: str,
        system_instruction: str,
    ) -> ChatReply:
        """
        대화 응답 생성 (웹 검색 도구 활성화).

        Raises:
            ChatError: 호출 실패
        """
        ...
