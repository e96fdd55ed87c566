"""
Domain Constants: 스튜디오 전역 상수.

모델 ID 기본값, 이미지 규격, 레이트리밋 정책 등.
모델명은 default.yaml이 우선 (여기는 코드 기본값).
"""

# =============================================================================
# Rate Limit Policy (이미지 요청 간격)
# =============================================================================
# 이미지 모델의 분당 요청 한도를 넘지 않도록 단계 이미지 요청 전마다
# 고정 지연. 첫 단계 이미지 전에도 대기함.

STEP_IMAGE_DELAY_SECONDS = 4.0

# =============================================================================
# Image Shapes
# =============================================================================

MAIN_IMAGE_ASPECT_RATIO = "4:3"  # 완성 음료 (와이드)
STEP_IMAGE_ASPECT_RATIO = "1:1"  # 단계 아이콘 (정사각)
IMAGE_OUTPUT_MIME_TYPE = "image/jpeg"

# =============================================================================
# Default Models
# =============================================================================

DEFAULT_RECIPE_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
DEFAULT_CHAT_MODEL = "gemini-3-pro-preview"
DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-20250514"

# =============================================================================
# Timeouts (초) - 요청 단위. 시퀀서 자체는 타임아웃 없음
# =============================================================================

DEFAULT_RECIPE_TIMEOUT = 60.0
DEFAULT_CHAT_TIMEOUT = 90.0

# =============================================================================
# Sessions
# =============================================================================

# view별로 보관하는 종료 세션 수 (폴링용)
MAX_RETIRED_SESSIONS_PER_VIEW = 5

# 보관하는 view 수 상한 (초과 시 진행 중 작업 없는 오래된 view부터 정리)
MAX_VIEWS = 200

WELCOME_MESSAGE_ID = "init"

# =============================================================================
# Quick-select Presets
# =============================================================================

PRESETS = [
    {"id": "latte", "en": "Classic Latte", "zh": "经典拿铁"},
    {"id": "cappuccino", "en": "Cappuccino", "zh": "卡布奇诺"},
    {"id": "americano", "en": "Iced Americano", "zh": "冰美式"},
    {"id": "flatwhite", "en": "Flat White", "zh": "澳白"},
    {"id": "mocha", "en": "Mocha", "zh": "摩卡"},
    {"id": "pour", "en": "Pour Over", "zh": "手冲单品"},
    {"id": "espresso", "en": "Espresso", "zh": "意式浓缩"},
    {"id": "macchiato", "en": "Caramel Macchiato", "zh": "焦糖玛奇朵"},
    {"id": "coldbrew", "en": "Cold Brew", "zh": "冷萃咖啡"},
    {"id": "oat", "en": "Oatmeal Latte", "zh": "燕麦拿铁"},
    {"id": "coconut", "en": "Coconut Latte", "zh": "生椰拿铁"},
    {"id": "dirty", "en": "Dirty Coffee", "zh": "脏脏咖啡"},
]


def get_presets(language: str) -> list[dict[str, str]]:
    """
    언어별 프리셋 목록.

    Args:
        language: "en" 또는 "zh" (그 외는 en)

    Returns:
        [{"id": ..., "label": ...}, ...]
    """
    key = "zh" if language == "zh" else "en"
    return [{"id": p["id"], "label": p[key]} for p in PRESETS]
