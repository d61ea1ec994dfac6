"""오버레이 폰트 크기 계산

실제 텍스트 측정 대신 고정폭 셀 근사로 줄 수를 추정하고,
[MIN_FONT_SIZE, 상한] 구간을 0.5px 단위 이분 탐색한다.
"""

import math

from src.constants import FitPolicy
from src.schemas.overlay import FitResult, Orientation, Rect


def target_area(rect: Rect) -> tuple[float, float]:
    """패딩을 뺀 유효 영역 (0 나누기 방지를 위해 최소 1px)"""
    target_w = max(rect.width - FitPolicy.PADDING, 1)
    target_h = max(rect.height - FitPolicy.PADDING, 1)
    return target_w, target_h


def chars_per_line(size: float, extent: float) -> int:
    """쓰기 방향 길이(extent)에 들어가는 글자 수 (최소 1)"""
    return max(math.floor(extent / (size * FitPolicy.CHAR_SAFETY)), 1)


def fits(
    size: float,
    target_w: float,
    target_h: float,
    char_count: int,
    orientation: Orientation,
) -> bool:
    """주어진 폰트 크기로 텍스트가 영역 안에 들어가는지 (순수 함수, 테스트 용이)

    가로쓰기는 너비 방향으로 줄바꿈 후 총 높이를,
    세로쓰기는 높이 방향으로 줄바꿈 후 총 너비를 비교한다.
    """
    if orientation == "vertical":
        per_column = chars_per_line(size, target_h)
        columns = math.ceil(char_count / per_column)
        return columns * size * FitPolicy.LINE_HEIGHT <= target_w

    per_line = chars_per_line(size, target_w)
    lines = math.ceil(char_count / per_line)
    return lines * size * FitPolicy.LINE_HEIGHT <= target_h


def max_font_size(target_w: float, target_h: float, orientation: Orientation) -> float:
    """쓰기 방향 길이와 절대 상한 중 작은 값"""
    extent = target_h if orientation == "vertical" else target_w
    return min(FitPolicy.MAX_FONT_SIZE, extent)


def search_font_size(
    target_w: float,
    target_h: float,
    char_count: int,
    orientation: Orientation,
) -> tuple[float, int]:
    """맞는 크기 중 가장 큰 값을 이분 탐색 (best_size, 반복 횟수)

    부동소수점 오차와 무관하게 low > high 에서 종료한다.
    한 번도 맞지 않으면 best_size는 MIN_FONT_SIZE 그대로 남는다.
    """
    low = FitPolicy.MIN_FONT_SIZE
    high = max_font_size(target_w, target_h, orientation)
    best_size = FitPolicy.MIN_FONT_SIZE
    steps = 0

    while low <= high:
        steps += 1
        mid = (low + high) / 2
        if fits(mid, target_w, target_h, char_count, orientation):
            best_size = mid
            low = mid + FitPolicy.PRECISION
        else:
            high = mid - FitPolicy.PRECISION

    return best_size, steps


def solve(rect: Rect, char_count: int, orientation: Orientation) -> FitResult:
    """사각형에 맞는 폰트 크기와 overflow 여부

    최소 크기에서도 맞지 않으면 MIN_FONT_SIZE + overflow=True
    (프론트엔드는 가운데 정렬 대신 스크롤 렌더링으로 전환).
    """
    target_w, target_h = target_area(rect)
    best_size, _ = search_font_size(target_w, target_h, char_count, orientation)

    if fits(best_size, target_w, target_h, char_count, orientation):
        return FitResult(font_size=best_size, overflow=False)

    return FitResult(font_size=FitPolicy.MIN_FONT_SIZE, overflow=True)
