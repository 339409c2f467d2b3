"""OpenAI DALL-E adapter (paid, synchronous, image URL)."""

from typing import Any

from imgrelay.core.adapters.base import HTTPAdapter, first_item
from imgrelay.core.image_result import ImageResult
from imgrelay.core.registry import Model
from imgrelay.utils.exceptions import MalformedUpstreamResponseError


class OpenAIAdapter(HTTPAdapter):
    label = "OpenAI"
    timeout = 60

    def build_payload(self, model: Model, prompt: str) -> dict[str, Any]:
        return {
            "model": "dall-e-3",
            "prompt": prompt,
            "n": 1,
            "size": "1024x1024",
            "quality": "standard",
            "response_format": "url",
            "style": "vivid",
        }

    def extract_image(self, payload: Any) -> ImageResult:
        record = first_item(payload, "data", self.label)
        url = record.get("url") if isinstance(record, dict) else None
        if not url:
            raise MalformedUpstreamResponseError(
                "Invalid response from OpenAI API. "
                "The API response did not contain the expected image URL.",
                details=payload,
                provider=self.label,
            )
        return ImageResult(image_url=url)
