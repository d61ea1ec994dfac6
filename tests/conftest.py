import base64
import tempfile
from collections.abc import Generator
from io import BytesIO
from pathlib import Path

import fakeredis
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from src.infra.redis import set_redis
from src.infra.storage import set_storage
from src.infra.storage.local import LocalStorage
from src.main import app
from src.schemas.overlay import Detection
from src.services.vision import set_vision


def make_test_image(width: int = 800, height: int = 600, fmt: str = "JPEG") -> BytesIO:
    """테스트용 실제 이미지 바이트 생성"""
    img = Image.new("RGB", (width, height), color="red")
    buf = BytesIO()
    img.save(buf, format=fmt)
    buf.seek(0)
    return buf


def make_data_url(width: int = 800, height: int = 600, fmt: str = "JPEG") -> str:
    mime = "image/jpeg" if fmt == "JPEG" else f"image/{fmt.lower()}"
    encoded = base64.b64encode(make_test_image(width, height, fmt).getvalue()).decode()
    return f"data:{mime};base64,{encoded}"


SAMPLE_DETECTIONS = [
    Detection.from_box_2d("こんにちは", "你好", "horizontal", [100, 100, 300, 400]),
    Detection.from_box_2d("縦書き", "直書文字", "vertical", [50, 800, 600, 900]),
]


class FakeVision:
    def __init__(self, detections: list[Detection] | None = None) -> None:
        self.detections = SAMPLE_DETECTIONS if detections is None else detections
        self.calls: list[tuple[str, str]] = []

    def analyze(self, image_bytes: bytes, mime_type: str, target_language: str) -> list[Detection]:
        self.calls.append((mime_type, target_language))
        return self.detections


@pytest.fixture
def temp_upload_dir() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def local_storage(temp_upload_dir: Path) -> LocalStorage:
    return LocalStorage(base_dir=temp_upload_dir, base_url="/static")


@pytest.fixture
def fake_redis() -> Generator[fakeredis.FakeRedis, None, None]:
    r = fakeredis.FakeRedis(decode_responses=True)
    set_redis(r)
    yield r
    set_redis(None)


@pytest.fixture
def fake_vision() -> Generator[FakeVision, None, None]:
    vision = FakeVision()
    set_vision(vision)
    yield vision
    set_vision(None)


@pytest.fixture
def storage(temp_upload_dir: Path) -> Generator[LocalStorage, None, None]:
    local = LocalStorage(base_dir=temp_upload_dir, base_url="http://localhost:8000/static")
    set_storage(local)
    yield local
    set_storage(None)


@pytest.fixture
def client(
    storage: LocalStorage, fake_redis: fakeredis.FakeRedis, fake_vision: FakeVision
) -> Generator[TestClient, None, None]:
    yield TestClient(app)


@pytest.fixture
def analysis_id(client: TestClient) -> str:
    response = client.post("/translate", json={"image": make_data_url()})
    return response.json()["analysisId"]
