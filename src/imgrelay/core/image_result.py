"""
Normalized image reference returned by every provider adapter.

A result is either a self-contained ``data:`` URI (provider returned bytes or
base64) or a remote URL (provider returned a link). The core never writes it
anywhere; the helpers here exist for the CLI and UI, which save or display it.
"""

import base64
import binascii
import io
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from PIL import Image

from imgrelay.core.http import send_request
from imgrelay.utils.exceptions import MalformedUpstreamResponseError

DEFAULT_FETCH_TIMEOUT = 60


def make_data_uri(b64: str, mime_type: str = "image/png") -> str:
    """Wrap a base64 payload as a data URI."""
    return f"data:{mime_type};base64,{b64}"


@dataclass(frozen=True)
class ImageResult:
    """An image reference plus the metadata of the request that produced it."""

    image_url: str
    model_used: str = ""
    provider: str = ""
    prompt_used: str = ""
    generation_time: float = 0.0

    @classmethod
    def from_base64(cls, b64: str, mime_type: str = "image/png") -> "ImageResult":
        return cls(image_url=make_data_uri(b64, mime_type))

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str = "image/png") -> "ImageResult":
        b64 = base64.b64encode(data).decode("ascii")
        return cls(image_url=make_data_uri(b64, mime_type))

    @property
    def is_data_uri(self) -> bool:
        return self.image_url.startswith("data:")

    @property
    def mime_type(self) -> str | None:
        """MIME type from the data URI header, or guessed from the URL path."""
        if self.is_data_uri:
            header = self.image_url[5:].split(",", 1)[0]
            return header.split(";", 1)[0] or None
        guessed, _ = mimetypes.guess_type(urlparse(self.image_url).path)
        return guessed

    def to_bytes(self, timeout: int = DEFAULT_FETCH_TIMEOUT) -> bytes:
        """
        Return the raw image bytes.

        Data URIs are decoded locally; remote URLs are downloaded.

        Raises:
            MalformedUpstreamResponseError: If the data URI payload is not valid base64.
            UpstreamError: If downloading a remote image fails.
        """
        if self.is_data_uri:
            try:
                _, payload = self.image_url.split(",", 1)
                return base64.b64decode(payload, validate=True)
            except (ValueError, binascii.Error) as e:
                raise MalformedUpstreamResponseError(
                    f"Invalid base64 image data: {e}",
                    provider=self.provider,
                ) from e
        response = send_request(
            "GET", self.image_url, timeout=timeout, provider=self.provider or "image host"
        )
        return response.content

    def to_pil(self, timeout: int = DEFAULT_FETCH_TIMEOUT) -> Image.Image:
        """Decode the image into a PIL Image (fetching it first if remote)."""
        return Image.open(io.BytesIO(self.to_bytes(timeout=timeout))).copy()

    def suggested_extension(self) -> str:
        """File extension for saving, e.g. 'png' or 'jpg'."""
        mime = self.mime_type or ""
        if mime.startswith("image/"):
            subtype = mime.split("/", 1)[1].lower()
            return "jpg" if subtype in ("jpeg", "jpg") else subtype
        return "png"

    def save(self, path: Path, timeout: int = DEFAULT_FETCH_TIMEOUT) -> Path:
        """Write the image bytes to path and return it."""
        path = Path(path)
        path.write_bytes(self.to_bytes(timeout=timeout))
        return path
