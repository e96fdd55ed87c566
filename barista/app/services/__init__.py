"""
Application Services.

역할:
- recipe: 텍스트 요청 → Recipe (형태 검증)
- images: 이미지 프롬프트 / data URI 변환
- sequencer: 메인/단계 이미지 순차 생성 (레이트리밋, 협조적 취소)
- chat: 검색 grounding 대화
"""

from .chat import ChatService, ConversationStore, extract_citations
from .recipe import RecipeService, parse_recipe
from .sequencer import GenerationSequencer

__all__ = [
    "ChatService",
    "ConversationStore",
    "extract_citations",
    "RecipeService",
    "parse_recipe",
    "GenerationSequencer",
]
