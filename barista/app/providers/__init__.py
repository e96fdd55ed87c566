"""
AI Provider Abstraction.

모델 교체 가능하게 설계.
모델명은 config(default.yaml)만 SSOT.
"""

from .anthropic import ClaudeRecipeProvider
from .base import (
    ChatProvider,
    ChatReply,
    ChatTurn,
    ImageProvider,
    ImageResult,
    ProviderError,
    RecipeProvider,
    TextResult,
)
from .gemini import GeminiChatProvider, GeminiImageProvider, GeminiRecipeProvider

__all__ = [
    "RecipeProvider",
    "ImageProvider",
    "ChatProvider",
    "TextResult",
    "ImageResult",
    "ChatTurn",
    "ChatReply",
    "ProviderError",
    "ClaudeRecipeProvider",
    "GeminiRecipeProvider",
    "GeminiImageProvider",
    "GeminiChatProvider",
]
