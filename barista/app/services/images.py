"""
Image prompts: 메인/단계 이미지 프롬프트 + 결과 변환.

이미지 안의 텍스트는 영어로만 (비라틴 문자 깨짐 방지).
"""

import base64

from barista.app.providers.base import ImageResult
from barista.domain.schemas import GeneratedImage


def build_main_image_prompt(title: str, description: str) -> str:
    """완성 음료 인포그래픽 프롬프트 (단면도로 층/비율 표현)."""
    return (
        f'A professional coffee guide infographic for "{title}".\n'
        "The image should feature a high-quality, photorealistic cross-section view "
        "of the drink in a clear glass to demonstrate the distinct layers and ratios "
        "(e.g., espresso shot, steamed milk, foam, ice, water).\n"
        f"Context: {description}.\n"
        "Style: Clean, modern culinary diagram, 8k resolution, bright lighting, "
        "instructional but beautiful.\n"
        "CRITICAL: All text, labels, and annotations inside the image MUST be in "
        "ENGLISH. Do not use Chinese or non-English characters."
    )


def build_step_image_prompt(step_text: str, title: str) -> str:
    """단계 동작 클로즈업 프롬프트."""
    return (
        f'Close-up instructional photography of this step in making {title}: "{step_text}".\n'
        "Focus clearly on the hands, equipment, and action "
        "(e.g., pouring milk, tamping espresso, stirring).\n"
        "Style: Bright, clean, photorealistic, cinematic lighting, shallow depth of field.\n"
        "CRITICAL: Any text visible in the image (e.g. on labels, screens, or overlays) "
        "MUST be in ENGLISH. Do not use Chinese characters."
    )


def to_generated_image(result: ImageResult, prompt: str) -> GeneratedImage:
    """이미지 바이트 → data URI."""
    encoded = base64.b64encode(result.image_bytes).decode("ascii")
    return GeneratedImage(
        url=f"data:{result.mime_type};base64,{encoded}",
        prompt=prompt,
        mime_type=result.mime_type,
        model_used=result.model_used,
    )
