"""오버레이 레이아웃 데이터 모델

Vision 분석 → Geometry → Fit → Compositor 전체에서 사용하는 공통 스키마.
Detection 좌표는 0-1000 정규화 공간, Rect 이후는 화면(px) 공간.
"""

import math
from typing import Literal

from pydantic import ConfigDict, Field

from src.constants import Coordinates
from src.schemas.base import BaseSchema

Orientation = Literal["horizontal", "vertical"]
WritingMode = Literal["horizontal-tb", "vertical-rl"]
StackDirection = Literal["column", "row-reverse"]
ScrollAxis = Literal["x", "y"]
Justify = Literal["center", "flex-start"]


def normalize_orientation(value: str | None) -> Orientation:
    """vertical 이외의 값은 모두 가로쓰기로 취급"""
    return "vertical" if value == "vertical" else "horizontal"


class Point(BaseSchema):
    """정규화 좌표 (0-1000). 누락된 값은 0, 범위 밖이나 NaN/Inf는 거부"""

    model_config = ConfigDict(frozen=True)

    x: float = Field(default=0, ge=0, le=Coordinates.NORMALIZED_MAX, allow_inf_nan=False)
    y: float = Field(default=0, ge=0, le=Coordinates.NORMALIZED_MAX, allow_inf_nan=False)


class Detection(BaseSchema):
    """텍스트 영역 하나 (원문 + 번역 + 방향 + 사각형)

    vertices는 임의 순서의 꼭짓점 목록. 4개 미만이면 레이아웃에서 제외된다.
    """

    model_config = ConfigDict(frozen=True)

    original_text: str
    translated_text: str
    orientation: Orientation = "horizontal"
    vertices: list[Point] = Field(default_factory=list)

    @classmethod
    def from_box_2d(
        cls,
        original_text: str,
        translated_text: str,
        orientation: str | None,
        box_2d: list[float],
    ) -> "Detection":
        """Gemini box_2d [ymin, xmin, ymax, xmax] → 네 꼭짓점

        꼭짓점 순서: (xmin,ymin), (xmax,ymin), (xmax,ymax), (xmin,ymax)

        Raises:
            ValueError: 좌표 개수가 4개가 아니거나 숫자가 아닌 경우
        """
        if len(box_2d) != 4:
            raise ValueError(f"box_2d requires 4 coordinates, got {len(box_2d)}")

        for i, c in enumerate(box_2d):
            if math.isnan(c) or math.isinf(c):
                raise ValueError(f"Coordinate {i} is NaN or Inf")

        # 모델이 범위를 살짝 벗어난 좌표를 주는 경우가 있어 0-1000으로 자름
        ymin, xmin, ymax, xmax = (
            min(max(c, 0.0), Coordinates.NORMALIZED_MAX) for c in box_2d
        )
        return cls(
            original_text=original_text,
            translated_text=translated_text,
            orientation=normalize_orientation(orientation),
            vertices=[
                Point(x=xmin, y=ymin),
                Point(x=xmax, y=ymin),
                Point(x=xmax, y=ymax),
                Point(x=xmin, y=ymax),
            ],
        )

    @property
    def char_count(self) -> int:
        """Fit 계산용 글자 수 (빈 번역도 최소 1)"""
        return len(self.translated_text) or 1


class Viewport(BaseSchema):
    """현재 렌더링된 이미지 요소의 크기 (px)"""

    model_config = ConfigDict(frozen=True)

    width: float = Field(ge=0, allow_inf_nan=False)
    height: float = Field(ge=0, allow_inf_nan=False)


class Rect(BaseSchema):
    """화면 좌표계 사각형 (px). 파생 값이며 저장하지 않는다"""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float


class FitResult(BaseSchema):
    model_config = ConfigDict(frozen=True)

    font_size: float
    overflow: bool


class OverlayDescriptor(BaseSchema):
    """프론트엔드가 그대로 그릴 수 있는 오버레이 한 개"""

    model_config = ConfigDict(frozen=True)

    index: int  # 원본 detection 순서 (애니메이션/디버깅 키)
    rect: Rect
    font_size: float
    font_size_rem: float
    overflow: bool
    orientation: Orientation
    writing_mode: WritingMode
    stack_direction: StackDirection
    justify: Justify
    scroll_axis: ScrollAxis | None = None
    padding: int
    text: str
    tooltip: str
