import re


class AnalysisId:
    PREFIX = "an_"
    PATTERN = re.compile(r"^an_[a-f0-9]{8}$")


class TTL:
    DATA = 60 * 60 * 2  # 2시간 (분석 결과 + 원본 이미지 메타데이터)


class RedisPrefix:
    ANALYSIS = "analysis"


class Coordinates:
    NORMALIZED_MAX = 1000  # Gemini box_2d 정규화 범위 (0-1000)


class FitPolicy:
    MIN_FONT_SIZE = 12.0
    MAX_FONT_SIZE = 40.0
    PADDING = 4  # 축별 합계 (px)
    LINE_HEIGHT = 1.2
    CHAR_SAFETY = 1.05  # 글자당 5% 여유 (비례 폰트 폭 편차)
    PRECISION = 0.5
    ROOT_FONT_SIZE = 16  # rem 변환 기준
    COMPACT_THRESHOLD = 20  # 이보다 작은 박스는 내부 여백 0


class Limits:
    MAX_IMAGE_BYTES = 20 * 1024 * 1024  # 20MB (디코딩 후)
