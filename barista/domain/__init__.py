"""Domain layer: errors, schemas and messages."""

from .errors import ErrorCodes, PolicyRejectError
from .schemas import (
    ChatMessage,
    ChatRole,
    Citation,
    GeneratedImage,
    ImageStatus,
    Language,
    Recipe,
    RunLog,
    SessionStatus,
)

__all__ = [
    "ErrorCodes",
    "PolicyRejectError",
    "ChatMessage",
    "ChatRole",
    "Citation",
    "GeneratedImage",
    "ImageStatus",
    "Language",
    "Recipe",
    "RunLog",
    "SessionStatus",
]
