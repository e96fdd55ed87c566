"""
Chat Routes: 커피 마스터 대화 (웹 검색 grounding).

- GET /chat → 채팅 화면 (HTMX)
- POST /api/chat/message → 메시지 전송 → HTML 조각 (사용자 + 모델 메시지)
- GET /api/chat/{conversation_id}/messages → 대화 내역 JSON

응답 HTML의 출처 링크는 grounding chunk의 web.uri 그대로 사용.
"""

import asyncio
import html as html_escape_module
import logging
import uuid
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from barista.app.services.chat import ChatService
from barista.domain.constants import DEFAULT_CHAT_TIMEOUT
from barista.domain.errors import ErrorCodes, PolicyRejectError
from barista.domain.messages import translate
from barista.domain.schemas import ChatMessage, Citation, Language

logger = logging.getLogger(__name__)

# Jinja2 템플릿 설정
_templates_dir = Path(__file__).parent.parent / "templates"
jinja_templates = (
    Jinja2Templates(directory=_templates_dir) if _templates_dir.exists() else None
)

# Routers
router = APIRouter()  # HTML pages
api_router = APIRouter()  # API endpoints


# =============================================================================
# HTML Generation Helpers
# =============================================================================


def escape_html(text: str) -> str:
    """HTML 이스케이프."""
    return html_escape_module.escape(text)


def build_user_message_html(content: str) -> str:
    """사용자 메시지 HTML 생성."""
    return f'<div class="message user">{escape_html(content)}</div>'


def build_sources_html(sources: list[Citation], language: Language) -> str:
    """출처 링크 목록 (없으면 빈 문자열)."""
    if not sources:
        return ""

    links = "".join(
        f'<li><a href="{escape_html(s.uri)}" target="_blank" rel="noopener">'
        f"{escape_html(s.title)}</a></li>"
        for s in sources
    )
    return (
        f'<div class="sources"><small>{escape_html(translate(language, "sources"))}'
        f"</small><ul>{links}</ul></div>"
    )


def build_assistant_message_html(
    message: ChatMessage,
    language: Language,
) -> str:
    """
    모델 메시지 HTML 생성.

    Args:
        message: 모델 응답 (failed면 error 스타일)
        language: 출처 라벨 언어
    """
    css_class = "message assistant error" if message.failed else "message assistant"
    return f"""<div class="{css_class}">
        {escape_html(message.text)}{build_sources_html(message.sources, language)}
    </div>"""


def build_notice_html(text: str) -> str:
    """안내 메시지 HTML (대화 내역에 저장하지 않음)."""
    return f'<div class="message assistant">{escape_html(text)}</div>'


def build_oob_conversation_input(conversation_id: str) -> str:
    """HTMX OOB conversation_id hidden input 생성."""
    return f'''<input type="hidden" name="conversation_id" id="conversation-id"
           value="{escape_html(conversation_id)}" hx-swap-oob="true">'''


# =============================================================================
# Page Routes (HTML)
# =============================================================================


@router.get("/chat", response_class=HTMLResponse)
async def chat_page(request: Request, language: str = "en") -> HTMLResponse:
    """
    채팅 화면.

    대화 ID는 화면마다 새로 발급.
    """
    lang = Language.parse(language)
    conversation_id = str(uuid.uuid4())
    welcome = translate(lang, "chat_welcome")

    if jinja_templates:
        return jinja_templates.TemplateResponse(
            request,
            "chat.html",
            {
                "conversation_id": conversation_id,
                "language": lang.value,
                "welcome": welcome,
            },
        )

    # Fallback: Jinja2 템플릿이 없는 경우 기본 HTML
    return HTMLResponse(
        content=f"""
<!DOCTYPE html>
<html lang="{lang.value}">
<head>
    <meta charset="UTF-8">
    <title>Coffee Master</title>
    <script src="https://unpkg.com/htmx.org@1.9.10"></script>
</head>
<body>
    <div id="chat-messages" class="messages">
        {build_notice_html(welcome)}
    </div>
    <input type="hidden" id="conversation-id" name="conversation_id" value="{conversation_id}">
</body>
</html>
    """
    )


# =============================================================================
# API Routes
# =============================================================================


@api_router.post("/message")
async def send_message(
    request: Request,
    content: str = Form(...),  # 필수 필드: 없으면 422 (빈 문자열은 허용, 내부에서 처리)
    conversation_id: str | None = Form(None),
    language: str = Form("en"),
) -> HTMLResponse:
    """
    채팅 메시지 전송.

    Returns:
        사용자 메시지 + 모델 메시지 HTML (HTMX swap용) + conversation_id OOB 업데이트
    """
    lang = Language.parse(language)

    if not conversation_id:
        conversation_id = str(uuid.uuid4())
    oob_conversation = build_oob_conversation_input(conversation_id)

    # 빈 content 방어: 422 대신 안내 메시지 반환
    if not content or not content.strip():
        return HTMLResponse(
            content=build_notice_html(translate(lang, "chat_empty_input"))
            + oob_conversation
        )

    config: dict = request.app.state.config
    chat_service: ChatService = request.app.state.chat_service
    timeout = config.get("ai", {}).get("chat_timeout", DEFAULT_CHAT_TIMEOUT)

    user_html = build_user_message_html(content.strip())

    try:
        reply = await asyncio.wait_for(
            chat_service.send(conversation_id, content, lang),
            timeout=timeout,
        )
    except TimeoutError:
        logger.warning(f"Chat timeout after {timeout}s (conversation={conversation_id})")
        reply = chat_service.record_failure(conversation_id, lang)
    except PolicyRejectError as e:
        if e.code != ErrorCodes.CHAT_FAILED:
            raise
        # 실패 안내는 서비스가 이미 대화에 추가함
        reply = chat_service.store.get_or_create(conversation_id, lang)[-1]

    assistant_html = build_assistant_message_html(reply, lang)
    return HTMLResponse(content=user_html + assistant_html + oob_conversation)


@api_router.get("/{conversation_id}/messages")
async def get_messages(request: Request, conversation_id: str) -> dict[str, Any]:
    """대화 내역 (환영 메시지 포함)."""
    chat_service: ChatService = request.app.state.chat_service
    messages = chat_service.store.get(conversation_id)

    if messages is None:
        raise HTTPException(status_code=404, detail="Conversation not found")

    return {
        "conversation_id": conversation_id,
        "messages": [m.to_dict() for m in messages],
    }
