"""Unit tests for ImageResult."""

import base64
import io
from unittest.mock import patch

import pytest
from PIL import Image

from imgrelay.core.image_result import ImageResult, make_data_uri
from imgrelay.utils.exceptions import MalformedUpstreamResponseError

_PNG_BUF = io.BytesIO()
Image.new("RGB", (2, 2), color=(255, 0, 0)).save(_PNG_BUF, format="PNG")
MINIMAL_PNG = _PNG_BUF.getvalue()
MINIMAL_PNG_B64 = base64.b64encode(MINIMAL_PNG).decode("ascii")


@pytest.mark.unit
class TestConstruction:
    def test_make_data_uri(self):
        assert make_data_uri("QUJD", "image/jpeg") == "data:image/jpeg;base64,QUJD"

    def test_from_base64(self):
        r = ImageResult.from_base64(MINIMAL_PNG_B64)
        assert r.image_url == f"data:image/png;base64,{MINIMAL_PNG_B64}"
        assert r.is_data_uri is True
        assert r.mime_type == "image/png"

    def test_from_bytes(self):
        r = ImageResult.from_bytes(MINIMAL_PNG, "image/jpeg")
        assert r.image_url.startswith("data:image/jpeg;base64,")
        assert r.to_bytes() == MINIMAL_PNG

    def test_remote_url(self):
        r = ImageResult(image_url="https://cdn.example/out/abc.gif")
        assert r.is_data_uri is False
        assert r.mime_type == "image/gif"
        assert r.suggested_extension() == "gif"


@pytest.mark.unit
class TestExtension:
    @pytest.mark.parametrize(
        "url,ext",
        [
            ("data:image/png;base64,AAAA", "png"),
            ("data:image/jpeg;base64,AAAA", "jpg"),
            ("https://cdn.example/img.jpg", "jpg"),
            ("https://cdn.example/no-extension", "png"),
        ],
    )
    def test_suggested_extension(self, url, ext):
        assert ImageResult(image_url=url).suggested_extension() == ext


@pytest.mark.unit
class TestToBytes:
    def test_invalid_base64_is_malformed(self):
        r = ImageResult(image_url="data:image/png;base64,@@not-base64@@", provider="craiyon")
        with pytest.raises(MalformedUpstreamResponseError):
            r.to_bytes()

    def test_remote_url_downloaded(self, response_factory):
        resp = response_factory(200, content=MINIMAL_PNG, content_type="image/png")
        with patch("imgrelay.core.http.requests.request", return_value=resp) as mock_request:
            data = ImageResult(image_url="https://cdn.example/a.png").to_bytes(timeout=5)
        assert data == MINIMAL_PNG
        args, kwargs = mock_request.call_args
        assert args == ("GET", "https://cdn.example/a.png")
        assert kwargs["timeout"] == 5

    def test_to_pil(self):
        img = ImageResult.from_base64(MINIMAL_PNG_B64).to_pil()
        assert img.size == (2, 2)

    def test_save(self, tmp_path):
        out = ImageResult.from_base64(MINIMAL_PNG_B64).save(tmp_path / "x.png")
        assert out.read_bytes() == MINIMAL_PNG
