"""
사용자 노출 문구 (en / zh).

에러 코드 → 현지화 메시지 매핑 포함.
"""

from .errors import ErrorCodes
from .schemas import Language

MESSAGES: dict[Language, dict[str, str]] = {
    Language.EN: {
        "recipe_error": "Failed to brew your recipe. Please try again.",
        "recipe_empty_input": "Please describe the coffee you would like.",
        "recipe_timeout": "The recipe is taking too long. Please try again.",
        "session_superseded": "A newer recipe request replaced this one.",
        "no_image": "No image generated",
        "chat_welcome": (
            "Hello! I'm your Coffee Master. Ask me anything about coffee beans, "
            "brewing methods, or finding the best cafes!"
        ),
        "chat_error": (
            "Sorry, I'm having trouble connecting to the coffee spirits right now. "
            "Please try again."
        ),
        "chat_empty_input": "Please type a message.",
        "chat_system_instruction": (
            "You are a professional coffee master. Answer questions about coffee "
            "beans, brewing methods, and coffee culture. Use the search tool for "
            "up-to-date information."
        ),
        "recipe_language_instruction": "Respond in English.",
        "sources": "Sources",
        "you": "You",
        "master": "Master",
    },
    Language.ZH: {
        "recipe_error": "配方生成失败，请重试。",
        "recipe_empty_input": "请描述您想喝的咖啡。",
        "recipe_timeout": "配方生成超时，请重试。",
        "session_superseded": "该请求已被新的配方请求取代。",
        "no_image": "未生成图片",
        "chat_welcome": (
            "你好！我是你的专属咖啡大师。关于咖啡豆、冲煮方法或寻找好喝的咖啡馆，尽管问我！"
        ),
        "chat_error": "抱歉，我现在连接咖啡之神有点困难，请稍后再试。",
        "chat_empty_input": "请输入消息。",
        "chat_system_instruction": (
            "你是一位专业的咖啡大师。请用中文回答关于咖啡豆、冲煮方法和咖啡文化的问题。"
            "使用提供的搜索工具来获取最新信息。"
        ),
        "recipe_language_instruction": (
            "Respond strictly in Simplified Chinese (简体中文)."
        ),
        "sources": "参考来源",
        "you": "你",
        "master": "大师",
    },
}

# 에러 코드 → 메시지 키
ERROR_MESSAGE_KEYS: dict[str, str] = {
    ErrorCodes.EMPTY_INPUT: "recipe_empty_input",
    ErrorCodes.RECIPE_FAILED: "recipe_error",
    ErrorCodes.RECIPE_EMPTY: "recipe_error",
    ErrorCodes.RECIPE_PARSE_FAILED: "recipe_error",
    ErrorCodes.RECIPE_TIMEOUT: "recipe_timeout",
    ErrorCodes.SESSION_SUPERSEDED: "session_superseded",
    ErrorCodes.CHAT_FAILED: "chat_error",
}


def translate(language: Language, key: str) -> str:
    """문구 조회. 없는 키는 영어 → 키 자체 순으로 폴백."""
    table = MESSAGES.get(language, MESSAGES[Language.EN])
    return table.get(key) or MESSAGES[Language.EN].get(key, key)


def error_message(language: Language, code: str) -> str:
    """에러 코드에 대응하는 현지화 메시지."""
    return translate(language, ERROR_MESSAGE_KEYS.get(code, "recipe_error"))
