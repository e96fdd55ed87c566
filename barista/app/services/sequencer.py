"""
Generation Sequencer: 레시피 1건의 메인/단계 이미지를 순차 생성.

레이트리밋 정책:
- 이미지 요청은 동시에 1개만 (이전 요청 완료 후 다음 요청)
- 단계 이미지 요청 전마다 고정 지연 (첫 단계 포함, 무조건)

취소 (협조적):
- 체크포인트: 메인 요청 전, 각 단계 대기 전/후
- 이미 보낸 요청은 중단하지 않음 → 결과 도착 시 세션 쓰기 메서드가 버림

실패 정책 (best-effort):
- 메인/단계 이미지 실패는 경고 기록 후 계속 진행, 재시도 없음
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from barista.app.providers.base import ImageProvider, ProviderError
from barista.app.providers.gemini import GeminiImageProvider
from barista.app.services.images import (
    build_main_image_prompt,
    build_step_image_prompt,
    to_generated_image,
)
from barista.core.logging import count_image_request
from barista.core.sessions import GenerationSession
from barista.domain.constants import (
    DEFAULT_IMAGE_MODEL,
    MAIN_IMAGE_ASPECT_RATIO,
    STEP_IMAGE_ASPECT_RATIO,
    STEP_IMAGE_DELAY_SECONDS,
)
from barista.domain.errors import ErrorCodes
from barista.domain.schemas import GeneratedImage, Recipe

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class GenerationSequencer:
    """
    순차 이미지 생성기.

    Usage:
        sequencer = GenerationSequencer(image_provider, step_delay=4.0)
        session.task = asyncio.create_task(sequencer.run(recipe, session))
    """

    def __init__(
        self,
        provider: ImageProvider,
        step_delay: float = STEP_IMAGE_DELAY_SECONDS,
        sleep: SleepFunc | None = None,
    ):
        """
        Args:
            provider: 이미지 Provider
            step_delay: 단계 이미지 요청 전 대기 (초)
            sleep: 대기 함수 (테스트에서 교체)
        """
        self.provider = provider
        self.step_delay = step_delay
        self._sleep: SleepFunc = sleep or asyncio.sleep

    @classmethod
    def from_config(
        cls,
        config: dict,
        provider: ImageProvider | None = None,
    ) -> "GenerationSequencer":
        """config(ai.image, sequencer) 기반 생성."""
        if provider is None:
            image_config = config.get("ai", {}).get("image", {})
            provider = GeminiImageProvider(
                model=image_config.get("model", DEFAULT_IMAGE_MODEL),
            )
        step_delay = config.get("sequencer", {}).get(
            "step_delay_seconds", STEP_IMAGE_DELAY_SECONDS
        )
        return cls(provider, step_delay=float(step_delay))

    async def run(self, recipe: Recipe, session: GenerationSession) -> None:
        """
        메인 이미지 1건 → 단계 이미지 N건 순차 요청.

        세션이 live가 아니면 아무 요청도 하지 않음.
        """
        try:
            if not session.is_live:
                return
            await self._generate_main(recipe, session)
            await self._generate_steps(recipe, session)
        finally:
            session.finish()
            logger.info(
                f"Sequence finished: session={session.session_id}, "
                f"result={session.run_log.result}, "
                f"requests={session.run_log.image_requests}"
            )

    async def _generate_main(self, recipe: Recipe, session: GenerationSession) -> None:
        prompt = build_main_image_prompt(recipe.title, recipe.description)
        image = await self._request(prompt, MAIN_IMAGE_ASPECT_RATIO, session, "main")

        if isinstance(image, GeneratedImage):
            if not session.apply_main_image(image):
                logger.info(f"Discarded main image for retired session {session.session_id}")
        else:
            session.mark_main_failed(*image)

    async def _generate_steps(self, recipe: Recipe, session: GenerationSession) -> None:
        for index, step_text in enumerate(recipe.steps):
            if not session.is_live:
                break

            await self._sleep(self.step_delay)

            if not session.is_live:
                break

            prompt = build_step_image_prompt(step_text, recipe.title)
            image = await self._request(
                prompt, STEP_IMAGE_ASPECT_RATIO, session, f"step {index}"
            )

            if isinstance(image, GeneratedImage):
                if not session.apply_step_image(index, image):
                    logger.info(
                        f"Discarded step {index} image for retired session "
                        f"{session.session_id}"
                    )
            else:
                session.mark_step_failed(index, *image)

    async def _request(
        self,
        prompt: str,
        aspect_ratio: str,
        session: GenerationSession,
        label: str,
    ) -> GeneratedImage | tuple[str, str]:
        """
        이미지 요청 1건.

        Returns:
            성공 시 GeneratedImage, 실패 시 (error_code, message)
        """
        count_image_request(session.run_log)
        try:
            result = await self.provider.generate_image(prompt, aspect_ratio)
        except ProviderError as e:
            logger.warning(
                f"Image failed ({label}) for session {session.session_id}: "
                f"[{e.code}] {e.message}"
            )
            return e.code or ErrorCodes.IMAGE_FAILED, e.message
        except Exception as e:
            logger.error(
                f"Image failed ({label}) for session {session.session_id}: {e}",
                exc_info=True,
            )
            return ErrorCodes.IMAGE_FAILED, str(e)

        return to_generated_image(result, prompt)
