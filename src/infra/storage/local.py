import uuid
from io import BytesIO
from pathlib import Path

from fastapi import HTTPException
from PIL import Image

from src.constants import Limits

ALLOWED_TYPES = {"image/jpeg", "image/png", "image/webp"}
MAX_SIZE = Limits.MAX_IMAGE_BYTES

MAGIC_BYTES = {
    b"\xff\xd8\xff": "image/jpeg",
    b"\x89PNG": "image/png",
}
EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class LocalStorage:
    """로컬 파일 시스템 저장소 구현체. S3Storage로 교체 가능."""

    def __init__(self, base_dir: Path, base_url: str = "/static"):
        self.base_dir = base_dir
        self.base_url = base_url

    def save(
        self, content: bytes, content_type: str, subdir: str = "original", filename: str | None = None
    ) -> str:
        """
        Raises:
            HTTPException(400): 파일 형식, 크기, 이미지 디코딩 실패 시
        """
        self._validate_content_type(content_type)
        self._validate_size(len(content))

        detected_type = self._detect_image_type(content)
        self._validate_content_type_match(detected_type, content_type)
        self._validate_decodable(content)

        name = filename or uuid.uuid4().hex
        relative_path = f"{subdir}/{name}{EXTENSIONS[detected_type]}"
        save_path = self.base_dir / relative_path
        save_path.parent.mkdir(parents=True, exist_ok=True)

        save_path.write_bytes(content)
        return relative_path

    def read(self, relative_path: str) -> bytes:
        return (self.base_dir / relative_path).read_bytes()

    def get_url(self, relative_path: str) -> str:
        return f"{self.base_url}/{relative_path}"

    def get_absolute_path(self, relative_path: str) -> str:
        return str(self.base_dir / relative_path)

    def exists(self, relative_path: str) -> bool:
        return (self.base_dir / relative_path).exists()

    def delete(self, relative_path: str) -> bool:
        file_path = self.base_dir / relative_path
        if file_path.exists():
            file_path.unlink()
            return True
        return False

    def _validate_content_type(self, content_type: str | None) -> None:
        if not content_type or content_type not in ALLOWED_TYPES:
            raise HTTPException(
                status_code=400,
                detail=f"지원하지 않는 파일 형식: {content_type or '알 수 없음'}",
            )

    def _validate_size(self, size: int) -> None:
        if size > MAX_SIZE:
            raise HTTPException(
                status_code=400,
                detail=f"파일 크기 초과: {size} bytes (최대 {MAX_SIZE} bytes)",
            )

    def _detect_image_type(self, content: bytes) -> str:
        for magic, mime in MAGIC_BYTES.items():
            if content.startswith(magic):
                return mime
        # WebP: RIFF....WEBP
        if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
            return "image/webp"
        raise HTTPException(status_code=400, detail="유효하지 않은 이미지 파일")

    def _validate_content_type_match(self, detected: str, declared: str | None) -> None:
        if declared and detected != declared:
            raise HTTPException(
                status_code=400,
                detail=f"파일 형식 불일치: 헤더 {declared}, 실제 {detected}",
            )

    def _validate_decodable(self, content: bytes) -> None:
        try:
            with Image.open(BytesIO(content)) as img:
                img.verify()
        except Exception as e:
            raise HTTPException(status_code=400, detail="이미지 디코딩 실패") from e
