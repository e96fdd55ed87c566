"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn barista.app.main:app --reload
- 프로덕션: uvicorn barista.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI

# Routes
from barista.app.routes import chat, recipe
from barista.app.services.chat import ChatService
from barista.app.services.recipe import RecipeService
from barista.app.services.sequencer import GenerationSequencer
from barista.core.sessions import SessionRegistry
from barista.domain.constants import MAX_RETIRED_SESSIONS_PER_VIEW, MAX_VIEWS

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = Path(__file__).parent.parent.parent / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: .env / 설정 로드, 세션 레지스트리 + 서비스 초기화
    종료 시: 진행 중 시퀀서 태스크 취소
    """
    # Startup
    load_dotenv()
    config = load_config()

    app.state.config = config
    sessions_config = config.get("sessions", {})
    app.state.sessions = SessionRegistry(
        max_retired_per_view=sessions_config.get(
            "max_per_view", MAX_RETIRED_SESSIONS_PER_VIEW
        ),
        max_views=sessions_config.get("max_views", MAX_VIEWS),
    )
    app.state.recipe_service = RecipeService(config)
    app.state.sequencer = GenerationSequencer.from_config(config)
    app.state.chat_service = ChatService(config)

    logger.info("Barista Studio started")

    yield

    # Shutdown
    for task in app.state.sessions.running_tasks():
        task.cancel()


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Barista Studio",
    description="커피 레시피 생성 + 단계별 이미지 + 커피 마스터 채팅",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Routes
# =============================================================================

# 페이지 라우트 (HTML)
app.include_router(recipe.router, prefix="", tags=["Studio"])
app.include_router(chat.router, prefix="", tags=["Chat"])

# API 라우트
app.include_router(recipe.api_router, prefix="/api/recipe", tags=["Recipe API"])
app.include_router(chat.api_router, prefix="/api/chat", tags=["Chat API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "barista.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
