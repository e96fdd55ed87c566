"""
Recipe Service: 자유 텍스트 요청 → 구조화된 Recipe.

- 프롬프트 구성 (언어 지시 포함)
- 응답 형태 강제: 파싱 불가/빈 응답은 요청 치명적 실패 (PolicyRejectError)
- LLM은 JSON 제안만, Recipe 형태 판정은 parse_recipe
"""

import json
import logging
from typing import Any

from barista.app.providers.anthropic import ClaudeRecipeProvider
from barista.app.providers.base import ProviderError, RecipeProvider
from barista.app.providers.gemini import GeminiRecipeProvider
from barista.domain.constants import DEFAULT_CLAUDE_MODEL, DEFAULT_RECIPE_MODEL
from barista.domain.errors import ErrorCodes, PolicyRejectError
from barista.domain.messages import translate
from barista.domain.schemas import Language, Recipe

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("title", "description", "ingredients", "steps", "tips")


def build_recipe_prompt(user_request: str, language: Language) -> str:
    """레시피 생성 프롬프트."""
    lang_instruction = translate(language, "recipe_language_instruction")
    return (
        f'You are a world-class coffee master. Create a detailed coffee recipe for: '
        f'"{user_request}". {lang_instruction}\n'
        "Include a catchy title, brief description, list of ingredients, "
        "detailed step-by-step instructions, and pro tips."
    )


def _extract_json_block(text: str) -> str:
    """```json 펜스 또는 최외곽 {...} 추출."""
    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        return text[start:end if end != -1 else None].strip()
    if "```" in text:
        start = text.find("```") + 3
        end = text.find("```", start)
        return text[start:end if end != -1 else None].strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ValueError("No JSON object found in response")
    return text[start:end + 1]


def _coerce_str_list(value: Any, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise PolicyRejectError(
            ErrorCodes.RECIPE_PARSE_FAILED,
            field=field,
            reason="expected a list",
        )
    items = [str(item).strip() for item in value if item is not None]
    return tuple(item for item in items if item)


def parse_recipe(text: str | None) -> Recipe:
    """
    모델 응답 → Recipe.

    Args:
        text: 모델 응답 원문

    Returns:
        Recipe

    Raises:
        PolicyRejectError: RECIPE_EMPTY (빈 응답), RECIPE_PARSE_FAILED (형태 불일치)
    """
    if not text or not text.strip():
        raise PolicyRejectError(ErrorCodes.RECIPE_EMPTY)

    try:
        data = json.loads(_extract_json_block(text))
    except (ValueError, json.JSONDecodeError) as e:
        raise PolicyRejectError(
            ErrorCodes.RECIPE_PARSE_FAILED,
            reason="invalid JSON",
            cause=e,
        ) from e

    if not isinstance(data, dict):
        raise PolicyRejectError(
            ErrorCodes.RECIPE_PARSE_FAILED,
            reason="expected a JSON object",
        )

    missing = [key for key in REQUIRED_KEYS if key not in data]
    if missing:
        raise PolicyRejectError(
            ErrorCodes.RECIPE_PARSE_FAILED,
            reason="missing keys",
            missing=missing,
        )

    title = str(data["title"] or "").strip()
    if not title:
        raise PolicyRejectError(
            ErrorCodes.RECIPE_PARSE_FAILED,
            field="title",
            reason="empty",
        )

    return Recipe(
        title=title,
        description=str(data["description"] or "").strip(),
        ingredients=_coerce_str_list(data["ingredients"], "ingredients"),
        steps=_coerce_str_list(data["steps"], "steps"),
        tips=str(data["tips"] or "").strip(),
    )


class RecipeService:
    """
    레시피 생성 서비스.

    Provider 호출 + 응답 형태 검증.
    """

    def __init__(
        self,
        config: dict,
        provider: RecipeProvider | None = None,
    ):
        """
        Args:
            config: 설정 (ai.recipe 포함)
            provider: 레시피 텍스트 Provider (None이면 config 기반 생성)
        """
        self.config = config

        if provider is not None:
            self.provider = provider
        else:
            recipe_config = config.get("ai", {}).get("recipe", {})
            if recipe_config.get("provider", "gemini") == "anthropic":
                self.provider = ClaudeRecipeProvider(
                    model=recipe_config.get("model", DEFAULT_CLAUDE_MODEL),
                )
            else:
                self.provider = GeminiRecipeProvider(
                    model=recipe_config.get("model", DEFAULT_RECIPE_MODEL),
                )

    async def generate(self, user_request: str, language: Language) -> Recipe:
        """
        레시피 생성.

        Raises:
            PolicyRejectError: EMPTY_INPUT, RECIPE_FAILED, RECIPE_EMPTY,
                RECIPE_PARSE_FAILED
        """
        if not user_request or not user_request.strip():
            raise PolicyRejectError(ErrorCodes.EMPTY_INPUT)

        prompt = build_recipe_prompt(user_request.strip(), language)

        try:
            result = await self.provider.generate_recipe_text(prompt)
        except ProviderError as e:
            raise PolicyRejectError(
                ErrorCodes.RECIPE_FAILED,
                provider_code=e.code,
                message=e.message,
            ) from e

        recipe = parse_recipe(result.text)
        logger.info(
            f"Recipe generated: title={recipe.title!r}, steps={len(recipe.steps)}, "
            f"model={result.model_used}"
        )
        return recipe
