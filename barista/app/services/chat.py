"""
Chat Service: 커피 전문가 대화 (웹 검색 grounding).

- 대화 상태는 메모리에만 (conversation_id 단위)
- 환영 메시지(id=init)와 실패한 턴(질문 + 실패 안내)은 히스토리로 보내지 않음
- 출처: grounding chunk의 web.uri 없는 항목은 버림
"""

import logging
from collections.abc import Iterable
from typing import Any

from barista.app.providers.base import ChatProvider, ChatTurn, ProviderError
from barista.app.providers.gemini import GeminiChatProvider
from barista.core.ids import generate_message_id
from barista.domain.constants import DEFAULT_CHAT_MODEL, WELCOME_MESSAGE_ID
from barista.domain.errors import ErrorCodes, PolicyRejectError
from barista.domain.messages import translate
from barista.domain.schemas import ChatMessage, ChatRole, Citation, Language

logger = logging.getLogger(__name__)


def extract_citations(grounding_chunks: Iterable[Any] | None) -> list[Citation]:
    """
    grounding chunk 목록 → Citation 목록.

    chunk.web.uri가 없으면 제외. title이 없으면 uri로 대체.
    dict 형태 chunk({"web": {"uri": ..., "title": ...}})도 허용.
    """
    citations: list[Citation] = []
    for chunk in grounding_chunks or []:
        web = chunk.get("web") if isinstance(chunk, dict) else getattr(chunk, "web", None)
        if web is None:
            continue
        if isinstance(web, dict):
            uri, title = web.get("uri"), web.get("title")
        else:
            uri, title = getattr(web, "uri", None), getattr(web, "title", None)
        if not uri:
            continue
        citations.append(Citation(uri=str(uri), title=str(title or uri)))
    return citations


class ConversationStore:
    """대화 저장소 (in-memory)."""

    def __init__(self) -> None:
        self._conversations: dict[str, list[ChatMessage]] = {}

    def get_or_create(self, conversation_id: str, language: Language) -> list[ChatMessage]:
        """
        대화 조회. 없으면 환영 메시지로 시작.

        언어가 바뀌어도 환영 메시지만 있는 대화는 새 언어로 교체.
        """
        messages = self._conversations.get(conversation_id)
        if messages is None or (
            len(messages) == 1 and messages[0].id == WELCOME_MESSAGE_ID
        ):
            messages = [
                ChatMessage(
                    id=WELCOME_MESSAGE_ID,
                    role=ChatRole.MODEL,
                    text=translate(language, "chat_welcome"),
                )
            ]
            self._conversations[conversation_id] = messages
        return messages

    def get(self, conversation_id: str) -> list[ChatMessage] | None:
        return self._conversations.get(conversation_id)


def build_history(messages: list[ChatMessage]) -> list[ChatTurn]:
    """
    프로바이더 전송용 히스토리.

    환영 메시지 제외. 실패한 턴은 사용자 질문까지 통째로 제외하고,
    응답 없는 사용자 질문도 버려서 user/model이 번갈아 나오게 함.
    """
    history: list[ChatTurn] = []
    for m in messages:
        if m.id == WELCOME_MESSAGE_ID:
            continue
        if history and history[-1].role == ChatRole.USER.value and (
            m.failed or m.role is ChatRole.USER
        ):
            history.pop()
        if m.failed:
            continue
        history.append(ChatTurn(role=m.role.value, text=m.text))

    if history and history[-1].role == ChatRole.USER.value:
        history.pop()
    return history


class ChatService:
    """
    채팅 서비스.

    Usage:
        service = ChatService(config, provider=provider)
        reply = await service.send(conversation_id, "Best beans for V60?", Language.EN)
    """

    def __init__(
        self,
        config: dict,
        provider: ChatProvider | None = None,
        store: ConversationStore | None = None,
    ):
        """
        Args:
            config: 설정 (ai.chat 포함)
            provider: 채팅 Provider (None이면 config 기반 생성)
            store: 대화 저장소 (None이면 새로 생성)
        """
        self.config = config
        self.store = store or ConversationStore()

        if provider is not None:
            self.provider = provider
        else:
            chat_config = config.get("ai", {}).get("chat", {})
            self.provider = GeminiChatProvider(
                model=chat_config.get("model", DEFAULT_CHAT_MODEL),
            )

    async def send(
        self,
        conversation_id: str,
        text: str,
        language: Language,
    ) -> ChatMessage:
        """
        사용자 메시지 전송 → 모델 응답.

        Returns:
            모델 응답 ChatMessage (출처 포함)

        Raises:
            PolicyRejectError: EMPTY_INPUT, CHAT_FAILED
                (CHAT_FAILED 시 대화에는 현지화된 실패 안내가 추가됨)
        """
        if not text or not text.strip():
            raise PolicyRejectError(ErrorCodes.EMPTY_INPUT)

        messages = self.store.get_or_create(conversation_id, language)
        history = build_history(messages)

        user_message = ChatMessage(
            id=generate_message_id(),
            role=ChatRole.USER,
            text=text.strip(),
        )
        messages.append(user_message)

        try:
            reply = await self.provider.chat(
                history=history,
                message=user_message.text,
                system_instruction=translate(language, "chat_system_instruction"),
            )
        except ProviderError as e:
            logger.error(f"Chat failed (conversation={conversation_id}): [{e.code}] {e.message}")
            self.record_failure(conversation_id, language)
            raise PolicyRejectError(
                ErrorCodes.CHAT_FAILED,
                provider_code=e.code,
                message=e.message,
            ) from e

        bot_message = ChatMessage(
            id=generate_message_id(),
            role=ChatRole.MODEL,
            text=reply.text,
            sources=extract_citations(reply.grounding_chunks),
        )
        messages.append(bot_message)
        return bot_message

    def record_failure(self, conversation_id: str, language: Language) -> ChatMessage:
        """실패 안내 메시지 추가 (히스토리 전송 제외 대상)."""
        messages = self.store.get_or_create(conversation_id, language)
        failed = ChatMessage(
            id=generate_message_id(),
            role=ChatRole.MODEL,
            text=translate(language, "chat_error"),
            failed=True,
        )
        messages.append(failed)
        return failed
