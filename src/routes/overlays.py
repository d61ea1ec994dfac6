"""Overlay API 라우트

저장된 분석 없이 detection 목록 + 뷰포트로 바로 레이아웃을 계산.
"""

from fastapi import APIRouter

from src.schemas.base import BaseSchema
from src.schemas.overlay import Detection, Viewport
from src.services import analysis as analysis_service

router = APIRouter(prefix="/overlays", tags=["overlays"])


class ComposeRequest(BaseSchema):
    detections: list[Detection]
    viewport: Viewport


@router.post("", response_model=analysis_service.OverlayListResponse)
def compose_overlays(request: ComposeRequest) -> analysis_service.OverlayListResponse:
    return analysis_service.compose_overlays(request.detections, request.viewport)
