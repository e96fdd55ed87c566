#!/usr/bin/env python
"""
API 연결 확인 스크립트 (수동 실행).

실행:
    python scripts/check_api_connection.py
    python scripts/check_api_connection.py --with-image   # Imagen 1장 요청 포함

레시피/채팅/이미지 Provider를 실제 키로 한 번씩 호출해 본다.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

# .env 파일 로드
from dotenv import load_dotenv

load_dotenv()

from barista.app.main import load_config  # noqa: E402
from barista.app.providers.base import ProviderError  # noqa: E402
from barista.domain.constants import (  # noqa: E402
    DEFAULT_CHAT_MODEL,
    DEFAULT_CLAUDE_MODEL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_RECIPE_MODEL,
    STEP_IMAGE_ASPECT_RATIO,
)


async def check_gemini_recipe(config: dict) -> bool:
    """Gemini 레시피 (JSON schema) 확인."""
    print("\n" + "=" * 60)
    print("🧪 Gemini 레시피 텍스트")
    print("=" * 60)

    from barista.app.providers.gemini import GeminiRecipeProvider
    from barista.app.services.recipe import parse_recipe

    model = config.get("ai", {}).get("recipe", {}).get("model", DEFAULT_RECIPE_MODEL)
    provider = GeminiRecipeProvider(model=model)

    try:
        print(f"📤 요청 전송 중 (model={model})...")
        result = await provider.generate_recipe_text(
            "Create a short coffee recipe for an iced latte as JSON."
        )
        recipe = parse_recipe(result.text)
        print(f"📥 레시피: {recipe.title} (steps={len(recipe.steps)})")
        print("✅ Gemini 레시피 연결 성공!")
        return True
    except ProviderError as e:
        print(f"❌ Gemini 오류: [{e.code}] {e.message}")
        return False


async def check_claude_recipe(config: dict) -> bool:
    """Claude 레시피 확인 (키가 있을 때만)."""
    print("\n" + "=" * 60)
    print("🧪 Anthropic Claude 레시피 텍스트")
    print("=" * 60)

    if not (os.environ.get("MY_ANTHROPIC_KEY") or os.environ.get("ANTHROPIC_API_KEY")):
        print("⏭️ MY_ANTHROPIC_KEY가 없어 스킵")
        return True

    from barista.app.providers.anthropic import ClaudeRecipeProvider

    recipe_config = config.get("ai", {}).get("recipe", {})
    model = (
        recipe_config.get("model", DEFAULT_CLAUDE_MODEL)
        if recipe_config.get("provider") == "anthropic"
        else DEFAULT_CLAUDE_MODEL
    )

    try:
        provider = ClaudeRecipeProvider(model=model)
        print(f"📤 요청 전송 중 (model={model})...")
        result = await provider.generate_recipe_text("Create a recipe for a flat white.")
        print(f"📥 응답 길이: {len(result.text or '')} 자")
        print("✅ Anthropic 연결 성공!")
        return True
    except ProviderError as e:
        print(f"❌ Anthropic 오류: [{e.code}] {e.message}")
        return False


async def check_gemini_chat(config: dict) -> bool:
    """검색 grounding 채팅 확인."""
    print("\n" + "=" * 60)
    print("🧪 Gemini 채팅 (Google Search grounding)")
    print("=" * 60)

    from barista.app.providers.gemini import GeminiChatProvider
    from barista.app.services.chat import extract_citations

    model = config.get("ai", {}).get("chat", {}).get("model", DEFAULT_CHAT_MODEL)
    provider = GeminiChatProvider(model=model)

    try:
        print(f"📤 요청 전송 중 (model={model})...")
        reply = await provider.chat(
            history=[],
            message="What is the ideal water temperature for a V60 pour over?",
            system_instruction="You are a professional coffee master.",
        )
        citations = extract_citations(reply.grounding_chunks)
        print(f"📥 답변: {reply.text[:100]}...")
        print(f"   출처: {len(citations)}개")
        print("✅ Gemini 채팅 연결 성공!")
        return True
    except ProviderError as e:
        print(f"❌ Gemini 채팅 오류: [{e.code}] {e.message}")
        return False


async def check_gemini_image(config: dict) -> bool:
    """Imagen 이미지 1장 확인 (과금 주의)."""
    print("\n" + "=" * 60)
    print("🧪 Imagen 이미지")
    print("=" * 60)

    from barista.app.providers.gemini import GeminiImageProvider

    model = config.get("ai", {}).get("image", {}).get("model", DEFAULT_IMAGE_MODEL)
    provider = GeminiImageProvider(model=model)

    try:
        print(f"📤 요청 전송 중 (model={model})...")
        result = await provider.generate_image(
            "A cup of espresso on a wooden table, photorealistic.",
            STEP_IMAGE_ASPECT_RATIO,
        )
        print(f"📥 이미지: {len(result.image_bytes)} bytes ({result.mime_type})")
        print("✅ Imagen 연결 성공!")
        return True
    except ProviderError as e:
        print(f"❌ Imagen 오류: [{e.code}] {e.message}")
        return False


async def main(with_image: bool) -> int:
    """전체 확인 실행."""
    print("🚀 API 연결 확인 시작")
    print("=" * 60)

    config = load_config()
    results = {
        "gemini_recipe": await check_gemini_recipe(config),
        "claude_recipe": await check_claude_recipe(config),
        "gemini_chat": await check_gemini_chat(config),
    }
    if with_image:
        results["gemini_image"] = await check_gemini_image(config)

    # 결과 요약
    print("\n" + "=" * 60)
    print("📊 결과 요약")
    print("=" * 60)

    all_passed = True
    for name, passed in results.items():
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"  {name}: {status}")
        if not passed:
            all_passed = False

    print("=" * 60)
    if all_passed:
        print("🎉 모든 API 연결 확인 통과!")
    else:
        print("⚠️ 일부 실패. .env 파일을 확인하세요.")

    return 0 if all_passed else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="AI provider connectivity check")
    parser.add_argument("--with-image", action="store_true", help="Imagen 요청 포함")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.with_image)))
