"""
Pytest fixtures for the studio tests.

테스트 구성:
- Fake Provider (레시피/이미지/채팅): 네트워크 없이 호출 기록 + 실패 주입
- 세션 레지스트리, 샘플 레시피
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
import yaml

from barista.app.providers.base import (
    ChatError,
    ChatProvider,
    ChatReply,
    ChatTurn,
    ImageError,
    ImageProvider,
    ImageResult,
    RecipeError,
    RecipeProvider,
    TextResult,
)
from barista.core.sessions import SessionRegistry
from barista.domain.errors import ErrorCodes
from barista.domain.schemas import Language, Recipe

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# Fake Providers
# =============================================================================


RECIPE_JSON = """{
  "title": "Classic Latte",
  "description": "Smooth espresso with steamed milk.",
  "ingredients": ["18g coffee beans", "200ml milk"],
  "steps": ["Grind beans", "Pull shot", "Pour milk"],
  "tips": "Use fresh beans."
}"""


class FakeRecipeProvider(RecipeProvider):
    """고정 텍스트를 돌려주는 레시피 Provider."""

    def __init__(self, text: str | None = RECIPE_JSON, error: Exception | None = None):
        self.model = "fake-recipe"
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    async def generate_recipe_text(self, prompt: str) -> TextResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return TextResult(
            text=self.text,
            model_requested=self.model,
            model_used=self.model,
            provider="fake",
        )


class FakeImageProvider(ImageProvider):
    """
    이미지 Provider.

    - calls: (prompt, aspect_ratio) 요청 순서 기록
    - fail_on: 실패시킬 호출 순번 (0 = 메인 이미지)
    - on_call: 호출 직후 실행할 훅 (요청 진행 중 reset 시뮬레이션)
    """

    def __init__(
        self,
        fail_on: set[int] | None = None,
        on_call: Callable[[int], Awaitable[None] | None] | None = None,
    ):
        self.model = "fake-image"
        self.fail_on = fail_on or set()
        self.on_call = on_call
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate_image(self, prompt: str, aspect_ratio: str) -> ImageResult:
        index = len(self.calls)
        self.calls.append((prompt, aspect_ratio))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_call is not None:
                result = self.on_call(index)
                if asyncio.iscoroutine(result):
                    await result
            await asyncio.sleep(0)
            if index in self.fail_on:
                raise ImageError(ErrorCodes.IMAGE_FAILED, f"boom {index}")
            return ImageResult(
                image_bytes=f"img{index}".encode(),
                mime_type="image/jpeg",
                model_used=self.model,
            )
        finally:
            self.in_flight -= 1


class FakeChatProvider(ChatProvider):
    """채팅 Provider (히스토리 기록 + grounding chunk 반환)."""

    def __init__(
        self,
        text: str = "Use 93°C water.",
        grounding_chunks: list | None = None,
        error: Exception | None = None,
    ):
        self.model = "fake-chat"
        self.text = text
        self.grounding_chunks = grounding_chunks or []
        self.error = error
        self.calls: list[tuple[list[ChatTurn], str, str]] = []

    async def chat(
        self,
        history: list[ChatTurn],
        message: str,
        system_instruction: str,
    ) -> ChatReply:
        self.calls.append((list(history), message, system_instruction))
        if self.error is not None:
            raise self.error
        return ChatReply(
            text=self.text,
            grounding_chunks=self.grounding_chunks,
            model_used=self.model,
        )


class RecordingSleep:
    """
    sleep 대체.

    - delays: 요청된 대기 시간 기록
    - on_sleep: 대기 중 실행할 훅 (대기 중 reset 시뮬레이션)
    """

    def __init__(self, on_sleep: Callable[[int], None] | None = None):
        self.delays: list[float] = []
        self.on_sleep = on_sleep

    async def __call__(self, delay: float) -> None:
        index = len(self.delays)
        self.delays.append(delay)
        if self.on_sleep is not None:
            self.on_sleep(index)
        await asyncio.sleep(0)


@pytest.fixture
def make_recipe_provider() -> type[FakeRecipeProvider]:
    return FakeRecipeProvider


@pytest.fixture
def make_image_provider() -> type[FakeImageProvider]:
    return FakeImageProvider


@pytest.fixture
def make_chat_provider() -> type[FakeChatProvider]:
    return FakeChatProvider


@pytest.fixture
def make_sleep() -> type[RecordingSleep]:
    return RecordingSleep


@pytest.fixture
def fake_recipe_provider() -> FakeRecipeProvider:
    return FakeRecipeProvider()


@pytest.fixture
def fake_image_provider() -> FakeImageProvider:
    return FakeImageProvider()


@pytest.fixture
def fake_chat_provider() -> FakeChatProvider:
    return FakeChatProvider()


@pytest.fixture
def recipe_error() -> RecipeError:
    return RecipeError(ErrorCodes.RATE_LIMITED, "quota exceeded")


@pytest.fixture
def chat_error() -> ChatError:
    return ChatError(ErrorCodes.PROVIDER_UNAVAILABLE, "unavailable")


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def sample_recipe() -> Recipe:
    """단계 3개짜리 레시피."""
    return Recipe(
        title="Classic Latte",
        description="Smooth espresso with steamed milk.",
        ingredients=("18g coffee beans", "200ml milk"),
        steps=("Grind beans", "Pull shot", "Pour milk"),
        tips="Use fresh beans.",
    )


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def live_session(registry: SessionRegistry, sample_recipe: Recipe):
    """레시피 수신이 끝난 live 세션."""
    session = registry.start("view-1", "latte", Language.EN)
    assert registry.activate(session, sample_recipe)
    return session
