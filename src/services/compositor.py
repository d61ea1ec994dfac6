"""오버레이 합성

Detection 목록 + 현재 뷰포트 → 오버레이 목록.
리사이즈나 새 분석 결과가 올 때마다 전체를 다시 계산하며, 이전 결과를 수정하지 않는다.
"""

import logging
from collections.abc import Sequence

from src.constants import FitPolicy
from src.schemas.overlay import Detection, FitResult, OverlayDescriptor, Rect, Viewport
from src.services.fitting import solve
from src.services.geometry import MalformedDetectionError, map_to_display

logger = logging.getLogger(__name__)


def _describe(index: int, detection: Detection, rect: Rect, fit: FitResult) -> OverlayDescriptor:
    is_vertical = detection.orientation == "vertical"
    compact = rect.width < FitPolicy.COMPACT_THRESHOLD or rect.height < FitPolicy.COMPACT_THRESHOLD

    scroll_axis = None
    if fit.overflow:
        scroll_axis = "x" if is_vertical else "y"

    return OverlayDescriptor(
        index=index,
        rect=rect,
        font_size=fit.font_size,
        font_size_rem=fit.font_size / FitPolicy.ROOT_FONT_SIZE,
        overflow=fit.overflow,
        orientation=detection.orientation,
        writing_mode="vertical-rl" if is_vertical else "horizontal-tb",
        # 세로쓰기는 오른쪽 열부터 쌓인다
        stack_direction="row-reverse" if is_vertical else "column",
        justify="flex-start" if fit.overflow else "center",
        scroll_axis=scroll_axis,
        padding=0 if compact else 2,
        text=detection.translated_text,
        tooltip=detection.original_text,
    )


def compose(detections: Sequence[Detection], viewport: Viewport) -> list[OverlayDescriptor]:
    """입력 순서를 유지한 오버레이 목록 (꼭짓점이 부족한 detection은 조용히 제외)"""
    overlays: list[OverlayDescriptor] = []

    for index, detection in enumerate(detections):
        try:
            rect = map_to_display(detection.vertices, viewport)
        except MalformedDetectionError as e:
            logger.debug(f"detection {index} 건너뜀: {e}")
            continue

        fit = solve(rect, detection.char_count, detection.orientation)
        overlays.append(_describe(index, detection, rect, fit))

    return overlays
