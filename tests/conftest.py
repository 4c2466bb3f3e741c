import pytest

from vision_orders.config import ProcessingConfig
from vision_orders.models import GeneratedLabel
from vision_orders.vision.service import reset_vision_services


class FakeVision:
    """Returns canned text per image (or one text for every image); optionally fails."""

    def __init__(self, text="", pages=None, error=None):
        self.text = text
        self.pages = pages or {}
        self.error = error
        self.calls = []

    def recognize_text(self, image):
        self.calls.append(image)
        if self.error is not None:
            raise self.error
        if image in self.pages:
            page = self.pages[image]
            if isinstance(page, Exception):
                raise page
            return page
        return self.text


class FakeRenderer:
    def __init__(self, fail_on=(), artifacts=1, mime_type="application/pdf", empty_for=()):
        self.fail_on = set(fail_on)
        self.empty_for = set(empty_for)
        self.artifacts = artifacts
        self.mime_type = mime_type
        self.requests = []

    def render(self, request):
        self.requests.append(request)
        if request.product_name in self.fail_on:
            raise RuntimeError(f"boom rendering {request.product_name}")
        if request.product_name in self.empty_for:
            return []
        return [
            GeneratedLabel(file_name=f"render-{k}.pdf", mime_type=self.mime_type,
                           buffer=f"{request.product_name}:{k}".encode("utf-8"))
            for k in range(self.artifacts)
        ]


@pytest.fixture(autouse=True)
def _fresh_vision_cache():
    reset_vision_services()
    yield
    reset_vision_services()


@pytest.fixture
def config(tmp_path):
    cfg = ProcessingConfig()
    cfg.output_dir = str(tmp_path / "outputs")
    return cfg


@pytest.fixture
def fake_vision():
    return FakeVision


@pytest.fixture
def fake_renderer():
    return FakeRenderer
