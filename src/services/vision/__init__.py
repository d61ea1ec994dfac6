"""Vision 모듈 (텍스트 탐지 + 번역)

사용법:
    from src.services.vision import get_vision

    provider = get_vision()
    detections = provider.analyze(image_bytes, "image/jpeg", "Traditional Chinese")

백엔드 선택 (.env VISION_PROVIDER):
    - "gemini": Google Gemini API (기본값)
"""

from src.config import get_settings
from src.services.vision.base import ProviderError, ProviderNotConfiguredError, VisionProvider
from src.services.vision.gemini import GeminiVision

__all__ = [
    "VisionProvider",
    "ProviderError",
    "ProviderNotConfiguredError",
    "get_vision",
    "set_vision",
]

_provider: VisionProvider | None = None


def get_vision() -> VisionProvider:
    """설정에 따라 vision 백엔드 반환"""
    global _provider
    if _provider is None:
        settings = get_settings()
        if settings.vision_provider == "gemini":
            _provider = GeminiVision(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
            )
        else:
            raise ValueError(f"Unknown vision provider: {settings.vision_provider!r}")
    return _provider


def set_vision(provider: VisionProvider | None) -> None:
    """vision 백엔드 설정 (테스트용)"""
    global _provider
    _provider = provider
