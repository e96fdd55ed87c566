"""
test_recipe_service.py - Recipe Service 테스트

검증 포인트:
1. 프롬프트: 요청 인용 + 언어 지시
2. parse_recipe: 펜스 제거, 필수 키, 리스트 형태 강제
3. 빈/파싱 불가 응답 → PolicyRejectError (요청 치명적)
4. Provider 선택 (config ai.recipe.provider)
"""

import pytest

from barista.app.providers.anthropic import ClaudeRecipeProvider
from barista.app.providers.gemini import GeminiRecipeProvider
from barista.app.services.recipe import (
    RecipeService,
    build_recipe_prompt,
    parse_recipe,
)
from barista.domain.errors import ErrorCodes, PolicyRejectError
from barista.domain.schemas import Language

# =============================================================================
# build_recipe_prompt
# =============================================================================


class TestBuildRecipePrompt:

    def test_quotes_request(self):
        prompt = build_recipe_prompt("iced vanilla latte", Language.EN)

        assert '"iced vanilla latte"' in prompt
        assert "coffee master" in prompt

    def test_english_instruction(self):
        prompt = build_recipe_prompt("latte", Language.EN)

        assert "Respond in English." in prompt

    def test_chinese_instruction(self):
        prompt = build_recipe_prompt("拿铁", Language.ZH)

        assert "Simplified Chinese" in prompt


# =============================================================================
# parse_recipe
# =============================================================================


class TestParseRecipe:

    def test_plain_json(self):
        recipe = parse_recipe(
            '{"title": "Mocha", "description": "Chocolatey", '
            '"ingredients": ["espresso", "cocoa"], "steps": ["Mix", "Pour"], '
            '"tips": "Warm the cup"}'
        )

        assert recipe.title == "Mocha"
        assert recipe.ingredients == ("espresso", "cocoa")
        assert recipe.steps == ("Mix", "Pour")
        assert recipe.tips == "Warm the cup"

    def test_strips_json_fence(self):
        text = (
            "Here you go:\n```json\n"
            '{"title": "Cortado", "description": "", "ingredients": [], '
            '"steps": ["Pull shot"], "tips": ""}\n```'
        )

        recipe = parse_recipe(text)

        assert recipe.title == "Cortado"
        assert recipe.steps == ("Pull shot",)

    def test_extracts_outer_braces(self):
        text = (
            'Sure! {"title": "Flat White", "description": "d", "ingredients": ["a"], '
            '"steps": ["s"], "tips": "t"} Enjoy.'
        )

        assert parse_recipe(text).title == "Flat White"

    def test_zero_steps_allowed(self):
        recipe = parse_recipe(
            '{"title": "Espresso", "description": "", "ingredients": [], '
            '"steps": [], "tips": ""}'
        )

        assert recipe.steps == ()

    def test_blank_items_dropped_and_non_strings_stringified(self):
        recipe = parse_recipe(
            '{"title": "T", "description": "", "ingredients": [18, "  ", null], '
            '"steps": ["Grind", ""], "tips": ""}'
        )

        assert recipe.ingredients == ("18",)
        assert recipe.steps == ("Grind",)

    @pytest.mark.parametrize("text", [None, "", "   \n"])
    def test_empty_response(self, text):
        with pytest.raises(PolicyRejectError) as exc_info:
            parse_recipe(text)

        assert exc_info.value.code == ErrorCodes.RECIPE_EMPTY

    def test_invalid_json(self):
        with pytest.raises(PolicyRejectError) as exc_info:
            parse_recipe("{not json")

        assert exc_info.value.code == ErrorCodes.RECIPE_PARSE_FAILED

    def test_missing_keys(self):
        with pytest.raises(PolicyRejectError) as exc_info:
            parse_recipe('{"title": "Latte", "steps": []}')

        assert exc_info.value.code == ErrorCodes.RECIPE_PARSE_FAILED
        assert "ingredients" in exc_info.value.context["missing"]

    def test_steps_must_be_list(self):
        with pytest.raises(PolicyRejectError) as exc_info:
            parse_recipe(
                '{"title": "Latte", "description": "", "ingredients": [], '
                '"steps": "Pour milk", "tips": ""}'
            )

        assert exc_info.value.context["field"] == "steps"

    def test_empty_title_rejected(self):
        with pytest.raises(PolicyRejectError) as exc_info:
            parse_recipe(
                '{"title": "  ", "description": "", "ingredients": [], '
                '"steps": [], "tips": ""}'
            )

        assert exc_info.value.code == ErrorCodes.RECIPE_PARSE_FAILED

    def test_array_root_rejected(self):
        with pytest.raises(PolicyRejectError):
            parse_recipe("```json\n[1, 2]\n```")


# =============================================================================
# RecipeService
# =============================================================================


class TestRecipeService:

    @pytest.mark.asyncio
    async def test_generate_returns_recipe(self, fake_recipe_provider):
        service = RecipeService({}, provider=fake_recipe_provider)

        recipe = await service.generate("  latte  ", Language.EN)

        assert recipe.title == "Classic Latte"
        assert recipe.steps == ("Grind beans", "Pull shot", "Pour milk")
        assert '"latte"' in fake_recipe_provider.prompts[0]

    @pytest.mark.asyncio
    async def test_empty_request_skips_provider(self, fake_recipe_provider):
        service = RecipeService({}, provider=fake_recipe_provider)

        with pytest.raises(PolicyRejectError) as exc_info:
            await service.generate("   ", Language.EN)

        assert exc_info.value.code == ErrorCodes.EMPTY_INPUT
        assert fake_recipe_provider.prompts == []

    @pytest.mark.asyncio
    async def test_provider_failure_is_fatal(self, make_recipe_provider, recipe_error):
        provider = make_recipe_provider(error=recipe_error)
        service = RecipeService({}, provider=provider)

        with pytest.raises(PolicyRejectError) as exc_info:
            await service.generate("latte", Language.EN)

        assert exc_info.value.code == ErrorCodes.RECIPE_FAILED
        assert exc_info.value.context["provider_code"] == ErrorCodes.RATE_LIMITED
        assert len(provider.prompts) == 1  # 재시도 없음

    @pytest.mark.asyncio
    async def test_empty_model_text_is_fatal(self, make_recipe_provider):
        service = RecipeService({}, provider=make_recipe_provider(text=""))

        with pytest.raises(PolicyRejectError) as exc_info:
            await service.generate("latte", Language.EN)

        assert exc_info.value.code == ErrorCodes.RECIPE_EMPTY

    def test_default_provider_is_gemini(self):
        service = RecipeService({"ai": {"recipe": {"model": "gemini-test"}}})

        assert isinstance(service.provider, GeminiRecipeProvider)
        assert service.provider.model == "gemini-test"

    def test_anthropic_provider_from_config(self, monkeypatch):
        monkeypatch.setenv("MY_ANTHROPIC_KEY", "test-key")

        service = RecipeService(
            {"ai": {"recipe": {"provider": "anthropic", "model": "claude-test"}}}
        )

        assert isinstance(service.provider, ClaudeRecipeProvider)
        assert service.provider.model == "claude-test"
