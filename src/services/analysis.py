"""Analysis 서비스: 이미지 분석 결과 관리 + 오버레이 재계산

마지막으로 성공한 detection 목록만 Redis에 보관하고,
오버레이는 요청마다 현재 뷰포트 기준으로 새로 계산한다 (캐시하지 않음).

NOTE: 같은 이미지에 대한 중복 요청 방지는 프론트엔드(버튼 비활성화) 책임.
"""

import asyncio
import base64
import binascii
import io
import json
import logging
import time
import uuid
from datetime import UTC, datetime
from typing import cast

from PIL import Image
from pydantic import BaseModel, Field

from src.config import get_settings
from src.constants import TTL, AnalysisId, RedisPrefix
from src.infra.redis import get_redis
from src.infra.storage import get_storage
from src.schemas.base import BaseSchema
from src.schemas.overlay import Detection, OverlayDescriptor, Viewport
from src.services.compositor import compose
from src.services.rendering import RenderingError, render_overlays
from src.services.vision import ProviderError, ProviderNotConfiguredError, get_vision

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"


class AnalysisError(Exception):
    """Analysis 작업 관련 에러

    code로 구체적인 원인 구분:
    - INVALID_IMAGE: base64 디코딩 실패 (400)
    - INVALID_ANALYSIS_ID: ID 형식 오류 (400)
    - ANALYSIS_NOT_FOUND: 분석 결과 없음/만료 (404)
    - IMAGE_NOT_FOUND: 원본 이미지 파일 없음 (404)
    - PROVIDER_NOT_CONFIGURED: API 키 미설정 (500)
    - PROVIDER_ERROR: vision API 실패 (502)
    - RENDERING_FAILED: 결과 이미지 생성 실패 (500)
    """

    STATUS_MAP: dict[str, int] = {
        "INVALID_IMAGE": 400,
        "INVALID_ANALYSIS_ID": 400,
        "ANALYSIS_NOT_FOUND": 404,
        "IMAGE_NOT_FOUND": 404,
        "PROVIDER_NOT_CONFIGURED": 500,
        "PROVIDER_ERROR": 502,
        "RENDERING_FAILED": 500,
    }

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

    @property
    def status_code(self) -> int:
        return self.STATUS_MAP.get(self.code, 500)


class AnalysisMetadata(BaseModel):
    """Redis에 저장되는 분석 결과"""

    analysis_id: str
    target_language: str
    image_path: str
    image_width: int
    image_height: int
    detections: list[Detection]
    processing_time: float
    created_at: str


class AnalyzeRequest(BaseSchema):
    """분석 요청 (data URL 또는 base64)"""

    image: str = Field(min_length=1)
    target_language: str | None = None


class AnalysisResponse(BaseSchema):
    analysis_id: str
    target_language: str
    image_url: str
    image_width: int
    image_height: int
    detections: list[Detection]
    processing_time: float  # 초
    created_at: str


class OverlayListResponse(BaseSchema):
    analysis_id: str | None = None
    viewport: Viewport
    overlays: list[OverlayDescriptor]


def _generate_analysis_id() -> str:
    return f"{AnalysisId.PREFIX}{uuid.uuid4().hex[:8]}"


def _key(analysis_id: str) -> str:
    return f"{RedisPrefix.ANALYSIS}:{analysis_id}"


def decode_image(data: str) -> tuple[bytes, str]:
    """data URL / base64 → (바이트, MIME 타입)

    Raises:
        AnalysisError: base64 디코딩 실패
    """
    mime_type = DEFAULT_MIME_TYPE
    payload = data

    if "," in data:
        header, payload = data.split(",", 1)
        # data:image/png;base64
        if header.startswith("data:"):
            mime_type = header[len("data:") :].split(";")[0] or DEFAULT_MIME_TYPE
            if mime_type == "image/jpg":
                mime_type = DEFAULT_MIME_TYPE

    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AnalysisError("INVALID_IMAGE", "이미지 base64 디코딩 실패") from e

    if not content:
        raise AnalysisError("INVALID_IMAGE", "빈 이미지")

    return content, mime_type


def _validate_analysis_id(analysis_id: str) -> None:
    if not AnalysisId.PATTERN.match(analysis_id):
        raise AnalysisError("INVALID_ANALYSIS_ID", f"유효하지 않은 분석 ID: {analysis_id}")


def _load_metadata(analysis_id: str) -> AnalysisMetadata | None:
    data = get_redis().get(_key(analysis_id))
    if data is None:
        return None
    return AnalysisMetadata.model_validate(json.loads(cast(str, data)))


def _to_response(metadata: AnalysisMetadata) -> AnalysisResponse:
    return AnalysisResponse(
        analysis_id=metadata.analysis_id,
        target_language=metadata.target_language,
        image_url=get_storage().get_url(metadata.image_path),
        image_width=metadata.image_width,
        image_height=metadata.image_height,
        detections=metadata.detections,
        processing_time=metadata.processing_time,
        created_at=metadata.created_at,
    )


async def create_analysis(request: AnalyzeRequest) -> AnalysisResponse:
    """이미지 분석 (vision 호출 1회) 후 결과 저장

    Raises:
        AnalysisError: 디코딩 실패, provider 실패
        HTTPException(400): 저장소 이미지 검증 실패
    """
    content, mime_type = decode_image(request.image)
    target_language = request.target_language or get_settings().default_target_language

    storage = get_storage()
    analysis_id = _generate_analysis_id()
    image_path = storage.save(content, mime_type, subdir="original", filename=analysis_id)

    try:
        with Image.open(io.BytesIO(content)) as img:
            image_width, image_height = img.size

        started = time.perf_counter()
        detections = await asyncio.to_thread(
            get_vision().analyze, content, mime_type, target_language
        )
        processing_time = round(time.perf_counter() - started, 3)
    except ProviderNotConfiguredError as e:
        storage.delete(image_path)
        raise AnalysisError("PROVIDER_NOT_CONFIGURED", str(e)) from e
    except ProviderError as e:
        storage.delete(image_path)
        logger.error(f"Vision 분석 실패: {analysis_id} - {e}")
        raise AnalysisError("PROVIDER_ERROR", str(e)) from e
    except Exception:
        storage.delete(image_path)
        raise

    logger.info(f"분석 완료: {analysis_id} ({len(detections)}개 영역, {processing_time}s)")

    metadata = AnalysisMetadata(
        analysis_id=analysis_id,
        target_language=target_language,
        image_path=image_path,
        image_width=image_width,
        image_height=image_height,
        detections=detections,
        processing_time=processing_time,
        created_at=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
    )

    try:
        get_redis().set(_key(analysis_id), metadata.model_dump_json(), ex=TTL.DATA)
    except Exception:
        storage.delete(image_path)
        raise

    return _to_response(metadata)


async def get_analysis(analysis_id: str) -> AnalysisResponse | None:
    """분석 결과 조회

    Raises:
        AnalysisError: ID 형식 오류
    """
    _validate_analysis_id(analysis_id)
    metadata = _load_metadata(analysis_id)
    if metadata is None:
        return None
    return _to_response(metadata)


def _require_metadata(analysis_id: str) -> AnalysisMetadata:
    _validate_analysis_id(analysis_id)
    metadata = _load_metadata(analysis_id)
    if metadata is None:
        raise AnalysisError("ANALYSIS_NOT_FOUND", f"분석 결과를 찾을 수 없습니다: {analysis_id}")
    return metadata


async def get_overlays(analysis_id: str, viewport: Viewport | None = None) -> OverlayListResponse:
    """저장된 detection으로 현재 뷰포트 기준 오버레이 계산

    뷰포트를 생략하면 원본 이미지 크기를 사용한다.

    Raises:
        AnalysisError: ID 형식 오류, 분석 결과 없음
    """
    metadata = _require_metadata(analysis_id)
    if viewport is None:
        viewport = Viewport(width=metadata.image_width, height=metadata.image_height)

    return OverlayListResponse(
        analysis_id=analysis_id,
        viewport=viewport,
        overlays=compose(metadata.detections, viewport),
    )


def compose_overlays(detections: list[Detection], viewport: Viewport) -> OverlayListResponse:
    """저장 없이 주어진 detection으로 바로 오버레이 계산"""
    return OverlayListResponse(viewport=viewport, overlays=compose(detections, viewport))


def render_result(analysis_id: str) -> bytes:
    """원본 크기 기준으로 오버레이를 합성한 PNG

    Raises:
        AnalysisError: 분석 결과/이미지 없음, 렌더링 실패
    """
    metadata = _require_metadata(analysis_id)
    storage = get_storage()

    if not storage.exists(metadata.image_path):
        raise AnalysisError("IMAGE_NOT_FOUND", f"원본 이미지가 없습니다: {analysis_id}")

    viewport = Viewport(width=metadata.image_width, height=metadata.image_height)
    overlays = compose(metadata.detections, viewport)

    try:
        with Image.open(io.BytesIO(storage.read(metadata.image_path))) as image:
            result = render_overlays(image, overlays)
    except (RenderingError, OSError) as e:
        raise AnalysisError("RENDERING_FAILED", f"결과 이미지 생성 실패: {e}") from e

    buffer = io.BytesIO()
    result.save(buffer, format="PNG")
    return buffer.getvalue()
