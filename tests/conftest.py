# tests/conftest.py
import httpx
import pytest

from imgsrc.config import Settings
from imgsrc.di import build_container
from tests.helpers import Recorder


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        IMG_SRC_API_KEY="imgsrc_test_key",
        IMG_SRC_API_URL="https://api.test",
        API_TIMEOUT_SEC=2.0,
        MAX_IMAGE_SIZE=1024,
        MCP_HTTP_BEARER_TOKEN="s3cret",
    )


@pytest.fixture
def make_container(settings):
    def _make(handler, **overrides):
        s = settings.model_copy(update=overrides) if overrides else settings
        rec = Recorder(handler)
        return build_container(s, transport=httpx.MockTransport(rec)), rec
    return _make
