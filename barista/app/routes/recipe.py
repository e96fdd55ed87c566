"""
Recipe Routes: 레시피 생성 스튜디오.

- GET / → 스튜디오 화면 (레시피 폼 + 채팅)
- POST /api/recipe/generate → 레시피 생성 + 이미지 시퀀서 시작 (백그라운드)
- GET /api/recipe/sessions/{session_id} → 세션 스냅샷 (폴링)
- GET /api/recipe/sessions/{session_id}/html → 스냅샷 HTML 조각 (escape 적용)
- POST /api/recipe/reset → 현재 세션 종료
- GET /api/recipe/presets → 빠른 선택 프리셋

레시피 텍스트 실패는 요청 치명적 → 현지화된 에러 JSON.
이미지 실패는 세션 스냅샷의 슬롯 상태와 run log로만 노출.
"""

import asyncio
import logging
from html import escape
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from barista.app.services.recipe import RecipeService
from barista.app.services.sequencer import GenerationSequencer
from barista.core.ids import generate_view_id
from barista.core.sessions import SessionRegistry
from barista.domain.constants import DEFAULT_RECIPE_TIMEOUT, get_presets
from barista.domain.errors import ErrorCodes, PolicyRejectError
from barista.domain.messages import error_message, translate
from barista.domain.schemas import Language

logger = logging.getLogger(__name__)

# Jinja2 템플릿 설정
_templates_dir = Path(__file__).parent.parent / "templates"
jinja_templates = (
    Jinja2Templates(directory=_templates_dir) if _templates_dir.exists() else None
)

# Routers
router = APIRouter()  # HTML pages
api_router = APIRouter()  # API endpoints


def _error_response(
    code: str,
    language: Language,
    view_id: str,
    session_id: str | None = None,
) -> dict[str, Any]:
    """요청 치명적 실패 응답."""
    return {
        "success": False,
        "error_code": code,
        "error": error_message(language, code),
        "view_id": view_id,
        "session_id": session_id,
    }


# =============================================================================
# HTML Generation Helpers
# =============================================================================


def _image_slot_html(slot: dict[str, Any]) -> str:
    image = slot.get("image")
    if image:
        return f'<img src="{escape(image["url"])}" alt="">'
    status = escape(slot["status"])
    return f'<span class="slot {status}">{status}</span>'


def build_snapshot_html(snapshot: dict[str, Any]) -> str:
    """
    세션 스냅샷 HTML 조각 생성.

    레시피/단계 텍스트는 모델 출력이므로 전부 escape.
    루트 div의 data-status로 클라이언트가 폴링 종료를 판단.
    """
    status = escape(snapshot["status"])
    recipe = snapshot.get("recipe")
    if recipe is None:
        return f'<div class="recipe" data-status="{status}"></div>'

    ingredients = "".join(f"<li>{escape(i)}</li>" for i in recipe["ingredients"])
    steps = "".join(
        f"<li>{escape(s['text'])}{_image_slot_html(s)}</li>"
        for s in snapshot["steps"]
    )
    return (
        f'<div class="recipe" data-status="{status}">'
        f"<h2>{escape(recipe['title'])}</h2>"
        f"<p>{escape(recipe['description'])}</p>"
        f"{_image_slot_html(snapshot['main_image'])}"
        f"<ul>{ingredients}</ul>"
        f"<ol>{steps}</ol>"
        f"<p>{escape(recipe['tips'])}</p>"
        f"</div>"
    )


# =============================================================================
# Page Routes (HTML)
# =============================================================================


@router.get("/", response_class=HTMLResponse)
async def studio_page(request: Request, language: str = "en") -> HTMLResponse:
    """
    스튜디오 화면.

    view_id는 화면마다 새로 발급 (세션 generation의 단위).
    """
    lang = Language.parse(language)
    view_id = generate_view_id()
    conversation_id = generate_view_id()

    if jinja_templates:
        return jinja_templates.TemplateResponse(
            request,
            "studio.html",
            {
                "view_id": view_id,
                "conversation_id": conversation_id,
                "language": lang.value,
                "presets": get_presets(lang.value),
                "welcome": translate(lang, "chat_welcome"),
            },
        )

    # Fallback: Jinja2 템플릿이 없는 경우 기본 HTML
    return HTMLResponse(
        content=f"""
<!DOCTYPE html>
<html lang="{lang.value}">
<head>
    <meta charset="UTF-8">
    <title>Barista Studio</title>
</head>
<body>
    <form id="recipe-form" method="post" action="/api/recipe/generate">
        <input type="text" name="prompt">
        <input type="hidden" name="language" value="{lang.value}">
        <input type="hidden" name="view_id" value="{view_id}">
        <button type="submit">Brew</button>
    </form>
    <input type="hidden" id="conversation-id" value="{conversation_id}">
</body>
</html>
    """
    )


# =============================================================================
# API Routes
# =============================================================================


@api_router.post("/generate")
async def generate_recipe(
    request: Request,
    prompt: str = Form(""),
    language: str = Form("en"),
    view_id: str | None = Form(None),
) -> dict[str, Any]:
    """
    레시피 생성.

    1. 새 세션 시작 (이전 세션은 즉시 retired)
    2. 레시피 텍스트 요청 (타임아웃 적용)
    3. 여전히 현재 세션이면 live 전환 + 이미지 시퀀서 백그라운드 시작

    Returns:
        성공: {success, session_id, view_id, recipe, status}
        실패: {success: False, error_code, error, view_id, session_id}
    """
    lang = Language.parse(language)
    if not view_id:
        view_id = generate_view_id()

    # 빈 입력: 세션을 만들지 않음 (현재 세션 유지)
    if not prompt or not prompt.strip():
        return _error_response(ErrorCodes.EMPTY_INPUT, lang, view_id)

    config: dict = request.app.state.config
    registry: SessionRegistry = request.app.state.sessions
    recipe_service: RecipeService = request.app.state.recipe_service
    sequencer: GenerationSequencer = request.app.state.sequencer

    session = registry.start(view_id, prompt.strip(), lang)
    timeout = config.get("ai", {}).get("recipe_timeout", DEFAULT_RECIPE_TIMEOUT)

    try:
        recipe = await asyncio.wait_for(
            recipe_service.generate(session.request, lang),
            timeout=timeout,
        )
    except TimeoutError:
        registry.fail(session, ErrorCodes.RECIPE_TIMEOUT, f"timeout after {timeout}s")
        return _error_response(
            ErrorCodes.RECIPE_TIMEOUT, lang, view_id, session.session_id
        )
    except PolicyRejectError as e:
        registry.fail(session, e.code, str(e))
        return _error_response(e.code, lang, view_id, session.session_id)
    except Exception as e:
        logger.error(f"Recipe generation error: {e}", exc_info=True)
        registry.fail(session, ErrorCodes.RECIPE_FAILED, str(e))
        return _error_response(
            ErrorCodes.RECIPE_FAILED, lang, view_id, session.session_id
        )

    if not registry.activate(session, recipe):
        session.finish()
        return _error_response(
            ErrorCodes.SESSION_SUPERSEDED, lang, view_id, session.session_id
        )

    session.task = asyncio.create_task(sequencer.run(recipe, session))

    return {
        "success": True,
        "session_id": session.session_id,
        "view_id": view_id,
        "recipe": recipe.to_dict(),
        "status": session.status.value,
    }


@api_router.get("/sessions/{session_id}")
async def get_session(request: Request, session_id: str) -> dict[str, Any]:
    """세션 스냅샷 (이미지 슬롯 상태 포함)."""
    registry: SessionRegistry = request.app.state.sessions

    try:
        session = registry.get(session_id)
    except PolicyRejectError:
        raise HTTPException(status_code=404, detail="Session not found") from None

    return session.snapshot()


@api_router.get("/sessions/{session_id}/html", response_class=HTMLResponse)
async def get_session_html(request: Request, session_id: str) -> HTMLResponse:
    """세션 스냅샷 HTML 조각 (스튜디오 화면 폴링용)."""
    registry: SessionRegistry = request.app.state.sessions

    try:
        session = registry.get(session_id)
    except PolicyRejectError:
        raise HTTPException(status_code=404, detail="Session not found") from None

    return HTMLResponse(content=build_snapshot_html(session.snapshot()))


@api_router.post("/reset")
async def reset_view(
    request: Request,
    view_id: str = Form(...),
) -> dict[str, Any]:
    """
    현재 세션 종료.

    진행 중인 이미지 요청은 중단하지 않고, 도착한 결과만 버려짐.
    """
    registry: SessionRegistry = request.app.state.sessions
    previous = registry.reset(view_id)

    return {
        "success": True,
        "view_id": view_id,
        "retired_session_id": previous.session_id if previous else None,
    }


@api_router.get("/presets")
async def list_presets(language: str = "en") -> dict[str, Any]:
    """빠른 선택 프리셋."""
    lang = Language.parse(language)
    return {"language": lang.value, "presets": get_presets(lang.value)}
