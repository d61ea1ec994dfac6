import base64
from io import BytesIO

from fastapi.testclient import TestClient
from PIL import Image

from src.services.vision import ProviderError, set_vision
from tests.conftest import FakeVision, make_data_url


class FailingVision:
    def analyze(self, image_bytes: bytes, mime_type: str, target_language: str) -> list[object]:
        raise ProviderError("quota exhausted")


class TestTranslatePost:
    def test_create(self, client: TestClient, fake_vision: FakeVision) -> None:
        response = client.post(
            "/translate", json={"image": make_data_url(), "targetLanguage": "English"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["analysisId"].startswith("an_")
        assert len(data["analysisId"]) == 11  # "an_" + 8 chars
        assert data["targetLanguage"] == "English"
        assert data["imageWidth"] == 800
        assert data["imageHeight"] == 600
        assert data["detections"][0]["originalText"] == "こんにちは"
        assert data["detections"][0]["translatedText"] == "你好"
        assert len(data["detections"][0]["vertices"]) == 4
        assert "processingTime" in data
        assert "createdAt" in data

    def test_default_target_language(self, client: TestClient) -> None:
        response = client.post("/translate", json={"image": make_data_url()})

        assert response.json()["targetLanguage"] == "Traditional Chinese"

    def test_reject_invalid_base64(self, client: TestClient) -> None:
        response = client.post("/translate", json={"image": "data:image/png;base64,%%%"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_IMAGE"

    def test_reject_non_image(self, client: TestClient) -> None:
        payload = base64.b64encode(b"plain text").decode()
        response = client.post("/translate", json={"image": f"data:image/png;base64,{payload}"})

        assert response.status_code == 400

    def test_reject_missing_image(self, client: TestClient) -> None:
        response = client.post("/translate", json={})

        assert response.status_code == 422

    def test_provider_error(self, client: TestClient) -> None:
        set_vision(FailingVision())  # type: ignore[arg-type]

        response = client.post("/translate", json={"image": make_data_url()})

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "PROVIDER_ERROR"


class TestTranslateGet:
    def test_get(self, client: TestClient, analysis_id: str) -> None:
        response = client.get(f"/translate/{analysis_id}")

        assert response.status_code == 200
        assert response.json()["analysisId"] == analysis_id

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/translate/an_00000000")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "ANALYSIS_NOT_FOUND"

    def test_invalid_id(self, client: TestClient) -> None:
        response = client.get("/translate/not-an-id")

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_ANALYSIS_ID"


class TestTranslateOverlays:
    def test_natural_size(self, client: TestClient, analysis_id: str) -> None:
        response = client.get(f"/translate/{analysis_id}/overlays")

        assert response.status_code == 200
        data = response.json()
        assert data["viewport"] == {"width": 800, "height": 600}
        assert [o["index"] for o in data["overlays"]] == [0, 1]

    def test_viewport(self, client: TestClient, analysis_id: str) -> None:
        response = client.get(
            f"/translate/{analysis_id}/overlays", params={"width": 400, "height": 300}
        )

        data = response.json()
        first, second = data["overlays"]
        assert first["rect"] == {"x": 40, "y": 30, "width": 120, "height": 60}
        assert first["writingMode"] == "horizontal-tb"
        assert second["writingMode"] == "vertical-rl"
        assert second["stackDirection"] == "row-reverse"
        assert 12 <= first["fontSize"] <= 40
        assert first["fontSizeRem"] == first["fontSize"] / 16
        assert first["tooltip"] == "こんにちは"

    def test_partial_viewport(self, client: TestClient, analysis_id: str) -> None:
        response = client.get(f"/translate/{analysis_id}/overlays", params={"width": 400})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_VIEWPORT"

    def test_zero_viewport(self, client: TestClient, analysis_id: str) -> None:
        # 이미지가 아직 레이아웃되지 않은 상태 (0px)
        response = client.get(
            f"/translate/{analysis_id}/overlays", params={"width": 0, "height": 300}
        )

        assert response.status_code == 200
        overlays = response.json()["overlays"]
        assert len(overlays) == 2
        assert all(o["rect"]["width"] == 0 for o in overlays)
        assert overlays[1]["overflow"]

    def test_negative_viewport_rejected(self, client: TestClient, analysis_id: str) -> None:
        response = client.get(
            f"/translate/{analysis_id}/overlays", params={"width": -1, "height": 300}
        )

        assert response.status_code == 422

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/translate/an_00000000/overlays")

        assert response.status_code == 404


class TestTranslateResult:
    def test_png(self, client: TestClient, analysis_id: str) -> None:
        response = client.get(f"/translate/{analysis_id}/result")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        with Image.open(BytesIO(response.content)) as img:
            assert img.size == (800, 600)

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/translate/an_00000000/result")

        assert response.status_code == 404
