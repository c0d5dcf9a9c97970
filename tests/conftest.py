import os

# Settings are read when app.main is imported
os.environ["ESTIMATION_PROVIDER"] = "gemini"
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from app.deps import get_client
from app.previews import PreviewStore
from app.schemas import EstimationResult, ImageUpload
from app.sessions import SessionRegistry

OFFICE_CHAIR = {
    "itemName": "Office Chair",
    "estimatedPrice": 45,
    "priceRange": "$30 - $60",
    "confidence": "Medium",
    "reasoning": "Mesh back in good condition; plenty of supply in this area keeps prices modest.",
}


def make_upload(size: int = 2 * 1024 * 1024, content_type: str = "image/jpeg", filename: str = "chair.jpg", fill: bytes = b"\0") -> ImageUpload:
    header = b"\xff\xd8\xff\xe0"
    data = (header + fill * size)[:size]
    return ImageUpload(data=data, content_type=content_type, filename=filename)


class FakeEstimationClient:
    """Stands in for a provider; returns ``result`` or raises ``error``."""

    def __init__(self, result: EstimationResult | None = None, error: Exception | None = None):
        self.result = result or EstimationResult.model_validate(OFFICE_CHAIR)
        self.error = error
        self.calls: list[tuple[ImageUpload, str]] = []

    async def estimate(self, image: ImageUpload, postal_code: str) -> EstimationResult:
        self.calls.append((image, postal_code))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def office_chair() -> EstimationResult:
    return EstimationResult.model_validate(OFFICE_CHAIR)


@pytest.fixture
def jpeg_upload() -> ImageUpload:
    return make_upload()


@pytest.fixture
def previews() -> PreviewStore:
    return PreviewStore()


@pytest.fixture
def fake_client() -> FakeEstimationClient:
    return FakeEstimationClient()


@pytest.fixture
def app_client(fake_client):
    from app.main import app

    app.state.sessions = SessionRegistry(PreviewStore())
    app.dependency_overrides[get_client] = lambda: fake_client
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    app.dependency_overrides.clear()


