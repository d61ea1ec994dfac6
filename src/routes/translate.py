"""Translate API 라우트

이미지 분석(탐지+번역) 요청과, 저장된 결과 기반 오버레이/렌더링 조회.
리사이즈 시 프론트엔드는 /overlays만 다시 호출한다 (vision 재호출 없음).
"""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, Response, status

from src.schemas.overlay import Viewport
from src.services import analysis as analysis_service

router = APIRouter(prefix="/translate", tags=["translate"])


def _to_http(e: analysis_service.AnalysisError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={"code": e.code, "message": e.message},
    )


@router.post(
    "",
    response_model=analysis_service.AnalysisResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_translate(
    request: analysis_service.AnalyzeRequest,
) -> analysis_service.AnalysisResponse:
    """이미지 분석 + 번역 (단일 요청)"""
    try:
        return await analysis_service.create_analysis(request)
    except analysis_service.AnalysisError as e:
        raise _to_http(e) from None


@router.get("/{analysis_id}", response_model=analysis_service.AnalysisResponse)
async def get_translate(analysis_id: str) -> analysis_service.AnalysisResponse:
    """분석 결과 조회"""
    try:
        result = await analysis_service.get_analysis(analysis_id)
    except analysis_service.AnalysisError as e:
        raise _to_http(e) from None

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "ANALYSIS_NOT_FOUND",
                "message": f"분석 결과를 찾을 수 없습니다: {analysis_id}",
            },
        )

    return result


@router.get("/{analysis_id}/overlays", response_model=analysis_service.OverlayListResponse)
async def get_overlays(
    analysis_id: str,
    width: Annotated[float | None, Query(ge=0, allow_inf_nan=False)] = None,
    height: Annotated[float | None, Query(ge=0, allow_inf_nan=False)] = None,
) -> analysis_service.OverlayListResponse:
    """현재 표시 크기 기준 오버레이 (생략 시 원본 크기)"""
    viewport = None
    if width is not None and height is not None:
        viewport = Viewport(width=width, height=height)
    elif width is not None or height is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "INVALID_VIEWPORT", "message": "width와 height는 함께 지정해야 합니다"},
        )

    try:
        return await analysis_service.get_overlays(analysis_id, viewport)
    except analysis_service.AnalysisError as e:
        raise _to_http(e) from None


@router.get(
    "/{analysis_id}/result",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
def get_result_image(analysis_id: str) -> Response:
    """오버레이를 합성한 결과 이미지

    동기 엔드포인트 - FastAPI가 threadpool에서 실행.
    """
    try:
        content = analysis_service.render_result(analysis_id)
    except analysis_service.AnalysisError as e:
        raise _to_http(e) from None

    return Response(content=content, media_type="image/png")
