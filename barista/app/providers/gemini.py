"""
Google Gemini Providers (google-genai SDK).

- 레시피: response_schema 지정 JSON 출력
- 이미지: Imagen generate_images (1장, 비율 지정)
- 채팅: Google Search 도구 grounding

재시도/fallback 없음. SDK 예외는 ProviderError 계열로 변환:
- 401/403 → AUTH_FAILED
- 429 → RATE_LIMITED
- 400/404 → INVALID_REQUEST
- 5xx → PROVIDER_UNAVAILABLE
"""

import logging
import os
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from barista.domain.constants import (
    DEFAULT_CHAT_MODEL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_RECIPE_MODEL,
    IMAGE_OUTPUT_MIME_TYPE,
)
from barista.domain.errors import ErrorCodes

from .base import (
    ChatError,
    ChatProvider,
    ChatReply,
    ChatTurn,
    ImageError,
    ImageProvider,
    ImageResult,
    ProviderError,
    RecipeError,
    RecipeProvider,
    TextResult,
    compute_hash,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Recipe Response Schema
# =============================================================================

RECIPE_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": types.Schema(type=types.Type.STRING),
        "description": types.Schema(type=types.Type.STRING),
        "ingredients": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
        "steps": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
        "tips": types.Schema(type=types.Type.STRING),
    },
    required=["title", "description", "ingredients", "steps", "tips"],
)


# =============================================================================
# Error Mapping
# =============================================================================


def classify_error(error: Exception) -> str:
    """SDK 예외 → ErrorCodes."""
    if isinstance(error, genai_errors.APIError):
        status = error.code or 0
        if status in (401, 403):
            return ErrorCodes.AUTH_FAILED
        if status == 429:
            return ErrorCodes.RATE_LIMITED
        if status in (400, 404):
            return ErrorCodes.INVALID_REQUEST
        if status >= 500:
            return ErrorCodes.PROVIDER_UNAVAILABLE
    if isinstance(error, TimeoutError):
        return ErrorCodes.PROVIDER_UNAVAILABLE
    return ""


def get_user_friendly_error_message(error: Exception) -> str:
    """사용자 친화적인 에러 메시지 생성 (로그/진단용)."""
    code = classify_error(error)
    if code == ErrorCodes.AUTH_FAILED:
        return "Gemini API authentication failed. Check GEMINI_API_KEY."
    if code == ErrorCodes.RATE_LIMITED:
        return "Gemini API quota or rate limit exceeded. Try again shortly."
    if code == ErrorCodes.INVALID_REQUEST:
        return "The request was rejected by Gemini (invalid input or model)."
    if code == ErrorCodes.PROVIDER_UNAVAILABLE:
        return "Gemini API is temporarily unavailable."

    # 기본 메시지
    error_str = str(error)
    if "api_key" in error_str.lower() or "api key" in error_str.lower():
        return "Check the API key configuration."
    elif "quota" in error_str.lower() or "limit" in error_str.lower():
        return "API quota exceeded. Try again shortly."
    elif "connection" in error_str.lower():
        return "Network connection error."
    elif "timeout" in error_str.lower():
        return "The request timed out."

    return f"Gemini call failed: {error_str}"


# =============================================================================
# Shared Client
# =============================================================================


class GeminiClientMixin:
    """API 키 해석 + 클라이언트 lazy init."""

    def __init__(self, model: str, api_key: str | None = None):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 GEMINI_API_KEY / GOOGLE_API_KEY 사용 가능)
        """
        self.model = model
        self.api_key = (
            api_key
            or os.environ.get("GEMINI_API_KEY")
            or os.environ.get("GOOGLE_API_KEY")
        )
        self._client: Any = None

    def _get_client(self) -> Any:
        """Gemini 클라이언트 (lazy init)."""
        if self._client is None:
            if not self.api_key:
                raise ProviderError(
                    ErrorCodes.API_KEY_MISSING,
                    "Gemini API key missing. Set GEMINI_API_KEY or GOOGLE_API_KEY.",
                )
            self._client = genai.Client(api_key=self.api_key)
        return self._client


# =============================================================================
# Recipe
# =============================================================================


class GeminiRecipeProvider(GeminiClientMixin, RecipeProvider):
    """
    Gemini 레시피 Provider.

    Usage:
        provider = GeminiRecipeProvider(model="gemini-2.5-flash")
        result = await provider.generate_recipe_text(prompt)
    """

    def __init__(self, model: str = DEFAULT_RECIPE_MODEL, api_key: str | None = None):
        super().__init__(model=model, api_key=api_key)

    async def generate_recipe_text(self, prompt: str) -> TextResult:
        try:
            client = self._get_client()
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=RECIPE_RESPONSE_SCHEMA,
                ),
            )
        except ProviderError as e:
            raise RecipeError(e.code, e.message, model=self.model) from e
        except Exception as e:
            logger.error(f"Recipe generation failed: {e}", exc_info=True)
            raise RecipeError(
                classify_error(e) or ErrorCodes.RECIPE_FAILED,
                get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        return TextResult(
            text=response.text,
            model_requested=self.model,
            model_used=getattr(response, "model_version", None) or self.model,
            provider="gemini",
            prompt_hash=compute_hash(prompt),
        )


# =============================================================================
# Image
# =============================================================================


class GeminiImageProvider(GeminiClientMixin, ImageProvider):
    """
    Imagen 이미지 Provider.

    요청당 이미지 1장. 응답에 이미지 바이트가 없으면 실패로 간주.
    """

    def __init__(self, model: str = DEFAULT_IMAGE_MODEL, api_key: str | None = None):
        super().__init__(model=model, api_key=api_key)

    async def generate_image(self, prompt: str, aspect_ratio: str) -> ImageResult:
        try:
            client = self._get_client()
            response = await client.aio.models.generate_images(
                model=self.model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=1,
                    aspect_ratio=aspect_ratio,
                    output_mime_type=IMAGE_OUTPUT_MIME_TYPE,
                ),
            )
        except ProviderError as e:
            raise ImageError(e.code, e.message, model=self.model) from e
        except Exception as e:
            raise ImageError(
                classify_error(e) or ErrorCodes.IMAGE_FAILED,
                get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        image_bytes = self._first_image_bytes(response)
        if not image_bytes:
            raise ImageError(
                ErrorCodes.IMAGE_EMPTY,
                "Image model returned no image",
                model=self.model,
            )

        return ImageResult(
            image_bytes=image_bytes,
            mime_type=IMAGE_OUTPUT_MIME_TYPE,
            model_used=self.model,
        )

    def _first_image_bytes(self, response: Any) -> bytes | None:
        generated = getattr(response, "generated_images", None) or []
        if not generated:
            return None
        image = getattr(generated[0], "image", None)
        return getattr(image, "image_bytes", None) if image is not None else None


# =============================================================================
# Chat
# =============================================================================


class GeminiChatProvider(GeminiClientMixin, ChatProvider):
    """
    Google Search grounding 채팅 Provider.

    grounding 메타데이터는 첫 번째 candidate에서 읽음.
    """

    def __init__(self, model: str = DEFAULT_CHAT_MODEL, api_key: str | None = None):
        super().__init__(model=model, api_key=api_key)

    async def chat(
        self,
        history: list[ChatTurn],
        message: str,
        system_instruction: str,
    ) -> ChatReply:
        contents = [
            types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
            for turn in history
        ]
        contents.append(types.Content(role="user", parts=[types.Part(text=message)]))

        try:
            client = self._get_client()
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                ),
            )
        except ProviderError as e:
            raise ChatError(e.code, e.message, model=self.model) from e
        except Exception as e:
            logger.error(f"Chat call failed: {e}", exc_info=True)
            raise ChatError(
                classify_error(e) or ErrorCodes.CHAT_FAILED,
                get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        return ChatReply(
            text=response.text or "",
            grounding_chunks=self._grounding_chunks(response),
            model_used=self.model,
        )

    def _grounding_chunks(self, response: Any) -> list[Any]:
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return []
        metadata = getattr(candidates[0], "grounding_metadata", None)
        if metadata is None:
            return []
        return list(getattr(metadata, "grounding_chunks", None) or [])
