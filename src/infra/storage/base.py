from typing import Protocol


class StorageBackend(Protocol):
    """이미지 저장소 인터페이스. LocalStorage, S3Storage 등 구현체로 교체 가능."""

    def save(
        self, content: bytes, content_type: str, subdir: str = "original", filename: str | None = None
    ) -> str: ...
    def read(self, relative_path: str) -> bytes: ...
    def get_url(self, relative_path: str) -> str: ...
    def exists(self, relative_path: str) -> bool: ...
    def delete(self, relative_path: str) -> bool: ...
