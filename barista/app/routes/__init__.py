"""
FastAPI Routes.

페이지 라우트 (HTML) + API 라우트 (JSON / HTMX 조각)
"""

from . import chat, recipe

__all__ = ["chat", "recipe"]
