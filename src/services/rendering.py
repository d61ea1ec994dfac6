"""오버레이 렌더링 서비스

Compositor가 만든 오버레이 목록을 원본 이미지 위에 직접 그린다.
줄바꿈은 fit 계산과 같은 글자 셀 근사를 사용하므로, 프론트엔드 표시와 같은 줄 수가 나온다.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import cast

from PIL import Image, ImageDraw, ImageFont

from src.constants import FitPolicy
from src.schemas.overlay import OverlayDescriptor
from src.services.fitting import chars_per_line, target_area

logger = logging.getLogger(__name__)

FONT_PATHS = [
    "/System/Library/Fonts/PingFang.ttc",
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "C:/Windows/Fonts/msjh.ttc",
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "C:/Windows/Fonts/arial.ttf",
]

BOX_FILL = (255, 255, 255, 250)
BOX_BORDER = (79, 70, 229, 77)
TEXT_FILL = (0, 0, 0, 255)


class RenderingError(Exception):
    pass


@lru_cache(maxsize=64)
def _get_font(size: int) -> ImageFont.FreeTypeFont:
    for font_path in FONT_PATHS:
        if Path(font_path).exists():
            try:
                return ImageFont.truetype(font_path, size)
            except OSError:
                continue
    return cast(ImageFont.FreeTypeFont, ImageFont.load_default(size))


def _split_lines(overlay: OverlayDescriptor) -> list[str]:
    """글자 단위 줄바꿈 (break-all). 세로쓰기는 열 단위"""
    target_w, target_h = target_area(overlay.rect)
    extent = target_h if overlay.orientation == "vertical" else target_w
    per_line = chars_per_line(overlay.font_size, extent)
    text = overlay.text
    return [text[i : i + per_line] for i in range(0, len(text), per_line)]


def _draw_horizontal(
    draw: ImageDraw.ImageDraw,
    lines: list[str],
    overlay: OverlayDescriptor,
    width: int,
    height: int,
    font: ImageFont.FreeTypeFont,
) -> None:
    line_height = overlay.font_size * FitPolicy.LINE_HEIGHT
    total_height = len(lines) * line_height
    # overflow면 위에서부터 (넘치는 부분은 박스 밖으로 잘림)
    start_y = overlay.padding if overlay.overflow else (height - total_height) / 2

    for i, line in enumerate(lines):
        line_bbox = draw.textbbox((0, 0), line, font=font)
        line_width = line_bbox[2] - line_bbox[0]
        x = (width - line_width) / 2
        draw.text((x, start_y + i * line_height), line, font=font, fill=TEXT_FILL)


def _draw_vertical(
    draw: ImageDraw.ImageDraw,
    columns: list[str],
    overlay: OverlayDescriptor,
    width: int,
    height: int,
    font: ImageFont.FreeTypeFont,
) -> None:
    column_width = overlay.font_size * FitPolicy.LINE_HEIGHT
    total_width = len(columns) * column_width
    # 첫 열이 가장 오른쪽 (vertical-rl)
    right = width - overlay.padding if overlay.overflow else width - (width - total_width) / 2

    for i, column in enumerate(columns):
        center_x = right - (i + 0.5) * column_width
        column_height = len(column) * overlay.font_size
        start_y = overlay.padding if overlay.overflow else (height - column_height) / 2

        for j, char in enumerate(column):
            char_bbox = draw.textbbox((0, 0), char, font=font)
            char_width = char_bbox[2] - char_bbox[0]
            y = start_y + j * overlay.font_size
            draw.text((center_x - char_width / 2, y), char, font=font, fill=TEXT_FILL)


def _render_box(overlay: OverlayDescriptor) -> Image.Image | None:
    width, height = round(overlay.rect.width), round(overlay.rect.height)
    if width < 1 or height < 1:
        return None

    box = Image.new("RGBA", (width, height), BOX_FILL)
    draw = ImageDraw.Draw(box)
    draw.rectangle((0, 0, width - 1, height - 1), outline=BOX_BORDER)

    lines = _split_lines(overlay)
    if not lines:
        return box

    font = _get_font(max(1, round(overlay.font_size)))
    if overlay.orientation == "vertical":
        _draw_vertical(draw, lines, overlay, width, height, font)
    else:
        _draw_horizontal(draw, lines, overlay, width, height, font)

    return box


def render_overlays(image: Image.Image, overlays: list[OverlayDescriptor]) -> Image.Image:
    """오버레이를 이미지에 합성 (각 박스 밖으로 나가는 텍스트는 잘림)

    Raises:
        RenderingError: 크기가 0인 이미지
    """
    if image.width == 0 or image.height == 0:
        raise RenderingError("유효하지 않은 이미지입니다")

    canvas = image.convert("RGBA")

    for overlay in overlays:
        box = _render_box(overlay)
        if box is None:
            continue
        x, y = round(overlay.rect.x), round(overlay.rect.y)
        # 이미지 왼쪽/위로 벗어난 부분은 잘라내고 제자리에 붙인다
        left, top = max(0, -x), max(0, -y)
        if left >= box.width or top >= box.height:
            continue
        if left or top:
            box = box.crop((left, top, box.width, box.height))
        canvas.alpha_composite(box, dest=(max(0, x), max(0, y)))

    logger.info(f"렌더링 완료: {len(overlays)}개 오버레이")
    return canvas.convert("RGB")
