"""Vision Protocol

교체 가능한 탐지+번역 구현을 위한 인터페이스 정의.
모든 좌표는 0-1000 정규화 공간.
"""

from typing import Protocol

from src.schemas.overlay import Detection


class ProviderError(Exception):
    pass


class ProviderNotConfiguredError(ProviderError):
    pass


class VisionProvider(Protocol):
    """이미지 속 텍스트 탐지 + 번역 인터페이스

    구현체:
    - GeminiVision: Google Gemini API
    """

    def analyze(self, image_bytes: bytes, mime_type: str, target_language: str) -> list[Detection]:
        """이미지 한 장을 한 번의 요청으로 분석

        Args:
            image_bytes: 원본 이미지 바이트
            mime_type: 이미지 MIME 타입
            target_language: 번역 대상 언어 (예: "Traditional Chinese")

        Returns:
            list[Detection]: 탐지 순서 그대로의 결과 (텍스트가 없으면 빈 리스트)

        Raises:
            ProviderError: 호출 실패 또는 응답 파싱 실패 시
        """
        ...
