"""
Anthropic (Claude) Recipe Provider.

- Gemini 대신 레시피 텍스트 생성에 사용 가능 (config: ai.recipe.provider=anthropic)
- Claude는 response schema가 없으므로 프롬프트에 JSON 형식 지시를 덧붙임
- 재시도 없음: 실패는 RecipeError로 즉시 전파
"""

import logging
import os
from typing import Any

import anthropic

from barista.domain.constants import DEFAULT_CLAUDE_MODEL
from barista.domain.errors import ErrorCodes

from .base import RecipeError, RecipeProvider, TextResult, compute_hash

logger = logging.getLogger(__name__)

JSON_FORMAT_INSTRUCTION = """

## 응답 형식 (JSON만, 설명 금지)
{
  "title": "...",
  "description": "...",
  "ingredients": ["..."],
  "steps": ["..."],
  "tips": "..."
}"""


def _first_text_block(content: Any) -> str | None:
    """응답 content 중 첫 text 블록 (thinking / tool_use 등은 건너뜀)."""
    for block in content or ():
        if getattr(block, "type", None) == "text":
            return block.text
    return None


class ClaudeRecipeProvider(RecipeProvider):
    """
    Claude API Provider.

    Usage:
        provider = ClaudeRecipeProvider(model="claude-sonnet-4-20250514")
        result = await provider.generate_recipe_text(prompt)
    """

    def __init__(
        self,
        model: str = DEFAULT_CLAUDE_MODEL,
        api_key: str | None = None,
        max_tokens: int = 2048,
        temperature: float | None = None,
    ):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 MY_ANTHROPIC_KEY 또는 ANTHROPIC_API_KEY 사용 가능)
            max_tokens: 최대 토큰 수
            temperature: 샘플링 온도 (None이면 API 기본값)

        Raises:
            RecipeError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        # API 키 결정: 인자 > MY_ANTHROPIC_KEY > ANTHROPIC_API_KEY
        self.api_key = (
            api_key
            or os.environ.get("MY_ANTHROPIC_KEY")
            or os.environ.get("ANTHROPIC_API_KEY")
        )

        # Fail-fast: 키가 없으면 즉시 에러
        if not self.api_key:
            raise RecipeError(
                ErrorCodes.API_KEY_MISSING,
                "Anthropic API key missing. "
                "Set MY_ANTHROPIC_KEY or ANTHROPIC_API_KEY.",
            )

        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client: Any = None

    def _get_client(self) -> Any:
        """Anthropic 클라이언트 (lazy init)."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def generate_recipe_text(self, prompt: str) -> TextResult:
        full_prompt = prompt + JSON_FORMAT_INSTRUCTION

        api_kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": full_prompt}],
        }
        if self.temperature is not None:
            api_kwargs["temperature"] = self.temperature

        try:
            response = await self._get_client().messages.create(**api_kwargs)
        except Exception as e:
            logger.error(f"Claude recipe generation failed: {e}", exc_info=True)
            raise RecipeError(
                self._classify_error(e),
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        text = _first_text_block(response.content)

        return TextResult(
            text=text,
            model_requested=self.model,
            model_used=getattr(response, "model", None) or self.model,
            provider="anthropic",
            prompt_hash=compute_hash(full_prompt),
        )

    def _classify_error(self, error: Exception) -> str:
        if isinstance(error, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
            return ErrorCodes.AUTH_FAILED
        if isinstance(error, anthropic.RateLimitError):
            return ErrorCodes.RATE_LIMITED
        if isinstance(error, anthropic.BadRequestError):
            return ErrorCodes.INVALID_REQUEST
        if isinstance(
            error,
            (
                anthropic.APIConnectionError,
                anthropic.APITimeoutError,
                anthropic.InternalServerError,
            ),
        ):
            return ErrorCodes.PROVIDER_UNAVAILABLE
        return ErrorCodes.RECIPE_FAILED

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """사용자 친화적인 에러 메시지 생성."""
        if isinstance(error, anthropic.APITimeoutError):
            return "Anthropic API timed out. Check the network or try again."
        if isinstance(error, anthropic.APIConnectionError):
            return "Cannot reach the Anthropic API. Check the internet connection."
        if isinstance(error, anthropic.RateLimitError):
            return "Anthropic API rate limit exceeded. Try again shortly."
        if isinstance(error, anthropic.AuthenticationError):
            return "Anthropic API authentication failed. Check MY_ANTHROPIC_KEY."
        if isinstance(error, anthropic.PermissionDeniedError):
            return "The API key is not permitted to perform this action."
        if isinstance(error, anthropic.BadRequestError):
            return "The request was rejected as malformed."

        return f"Claude call failed: {error}"
