"""정규화 사각형 → 화면 좌표 변환"""

from collections.abc import Sequence

from src.constants import Coordinates
from src.schemas.overlay import Point, Rect, Viewport

MIN_VERTICES = 4


class MalformedDetectionError(Exception):
    """꼭짓점이 4개 미만인 detection (호출 측에서 건너뜀)"""


def map_to_display(vertices: Sequence[Point], viewport: Viewport) -> Rect:
    """임의 사각형을 감싸는 축 정렬 박스를 화면 px 좌표로 반환

    꼭짓점 순서는 가정하지 않는다 (min/max만 사용).

    Raises:
        MalformedDetectionError: 꼭짓점이 4개 미만인 경우
    """
    if len(vertices) < MIN_VERTICES:
        raise MalformedDetectionError(f"Quad requires {MIN_VERTICES} vertices, got {len(vertices)}")

    xs = [v.x for v in vertices]
    ys = [v.y for v in vertices]
    w, h = viewport.width, viewport.height
    scale = Coordinates.NORMALIZED_MAX

    return Rect(
        x=min(xs) * w / scale,
        y=min(ys) * h / scale,
        width=(max(xs) - min(xs)) * w / scale,
        height=(max(ys) - min(ys)) * h / scale,
    )
