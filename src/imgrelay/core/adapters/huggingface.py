"""
Hugging Face Inference API adapter (free, synchronous, raw image bytes).

The body of a successful call is the image itself; it is base64-encoded into a
data URI. A 2xx JSON body means the model answered with something other than an
image and is treated as malformed.
"""

from typing import Any

import requests

from imgrelay.core.adapters.base import HTTPAdapter
from imgrelay.core.http import response_details
from imgrelay.core.image_result import ImageResult
from imgrelay.core.registry import Model
from imgrelay.utils.exceptions import MalformedUpstreamResponseError

DEFAULT_MIME_TYPE = "image/jpeg"


def _mime_from_content_type(content_type: str) -> str:
    """Image MIME type from a Content-Type header (e.g. 'image/png; q=1' -> 'image/png')."""
    value = (content_type or "").split(";")[0].strip().lower()
    return value if value.startswith("image/") else DEFAULT_MIME_TYPE


class HuggingFaceAdapter(HTTPAdapter):
    label = "Hugging Face"
    timeout = 120

    def build_payload(self, model: Model, prompt: str) -> dict[str, Any]:
        return {"inputs": prompt, "options": {"wait_for_model": True}}

    def extract_image(self, payload: Any, content_type: str = DEFAULT_MIME_TYPE) -> ImageResult:
        if not isinstance(payload, (bytes, bytearray)) or not payload:
            raise MalformedUpstreamResponseError(
                "Hugging Face returned an empty image body.",
                details=str(payload)[:200],
                provider=self.label,
            )
        return ImageResult.from_bytes(bytes(payload), _mime_from_content_type(content_type))

    def parse_response(self, response: requests.Response) -> ImageResult:
        content_type = response.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            raise MalformedUpstreamResponseError(
                "Hugging Face returned JSON instead of an image.",
                status_code=response.status_code,
                details=response_details(response),
                provider=self.label,
            )
        return self.extract_image(response.content, content_type)
