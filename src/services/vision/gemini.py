"""Gemini 기반 탐지+번역 구현체"""

# pyright: reportMissingTypeStubs=false

import json
import logging
from typing import Any, cast

from google import genai
from google.genai import types
from pydantic import BaseModel, Field, ValidationError

from src.schemas.overlay import Detection
from src.services.vision.base import ProviderError, ProviderNotConfiguredError

logger = logging.getLogger(__name__)

ANALYZE_PROMPT = """Detect all text blocks in this image. For each block, provide:
1. The original text ('text').
2. The translation of that text into {target_language} ('translatedText').
3. Its bounding box coordinates ('box_2d' as [ymin, xmin, ymax, xmax], normalized to 0-1000).
4. Whether the text is written horizontally or vertically ('orientation': 'horizontal' or 'vertical').

Return the result as a JSON array of objects. Keep translations concise for image overlays."""


class RawBlock(BaseModel):
    """Gemini 응답 항목 (box_2d = [ymin, xmin, ymax, xmax])"""

    text: str
    translated_text: str = Field(alias="translatedText")
    orientation: str | None = None
    box_2d: list[float]


def _response_schema() -> types.Schema:
    return types.Schema(
        type=types.Type.ARRAY,
        items=types.Schema(
            type=types.Type.OBJECT,
            properties={
                "text": types.Schema(type=types.Type.STRING),
                "translatedText": types.Schema(type=types.Type.STRING),
                "orientation": types.Schema(
                    type=types.Type.STRING,
                    description="The writing direction of the text: 'horizontal' or 'vertical'",
                ),
                "box_2d": types.Schema(
                    type=types.Type.ARRAY,
                    items=types.Schema(type=types.Type.NUMBER),
                ),
            },
            required=["text", "translatedText", "orientation", "box_2d"],
        ),
    )


class GeminiVision:
    """Google Gemini API로 텍스트 탐지와 번역을 한 번에 수행"""

    def __init__(self, api_key: str, model: str) -> None:
        self._api_key = api_key
        self._model = model

    def analyze(self, image_bytes: bytes, mime_type: str, target_language: str) -> list[Detection]:
        """단일 요청-응답 (재시도 없음)

        Raises:
            ProviderNotConfiguredError: API 키 누락
            ProviderError: API 호출 실패, 파싱 실패 등
        """
        if not self._api_key:
            raise ProviderNotConfiguredError("GEMINI_API_KEY가 설정되지 않았습니다")

        client = genai.Client(api_key=self._api_key)
        raw_blocks = self._call_gemini(client, image_bytes, mime_type, target_language)
        return self._map_blocks(raw_blocks)

    def _call_gemini(
        self,
        client: genai.Client,
        image_bytes: bytes,
        mime_type: str,
        target_language: str,
    ) -> list[dict[str, Any]]:
        try:
            response = client.models.generate_content(
                model=self._model,
                contents=[
                    ANALYZE_PROMPT.format(target_language=target_language),
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=_response_schema(),
                ),
            )
        except Exception as e:
            raise ProviderError(f"Gemini 호출 실패: {e}") from e

        # 빈 응답은 텍스트 없음으로 취급
        try:
            raw_blocks = json.loads(response.text or "[]")
        except json.JSONDecodeError as e:
            raise ProviderError(f"JSON 파싱 실패: {e}") from e

        if not isinstance(raw_blocks, list):
            raise ProviderError(f"응답이 리스트가 아님: {type(raw_blocks).__name__}")

        return cast(list[dict[str, Any]], raw_blocks)

    def _map_blocks(self, raw_blocks: list[dict[str, Any]]) -> list[Detection]:
        detections: list[Detection] = []

        for item in raw_blocks:
            try:
                block = RawBlock.model_validate(item)
                detections.append(
                    Detection.from_box_2d(
                        original_text=block.text,
                        translated_text=block.translated_text,
                        orientation=block.orientation,
                        box_2d=block.box_2d,
                    )
                )
            except (ValidationError, ValueError) as e:
                logger.warning(f"탐지 결과 파싱 실패: {item} - {e}")

        logger.info(f"Gemini 분석 완료: {len(detections)}/{len(raw_blocks)}개 영역")
        return detections
