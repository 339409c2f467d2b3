"""Craiyon adapter (free, no credential, base64 images array)."""

from typing import Any

from imgrelay.core.adapters.base import HTTPAdapter, first_item
from imgrelay.core.image_result import ImageResult
from imgrelay.core.registry import Model

CRAIYON_VERSION = "c4ue22fb7kb0"


class CraiyonAdapter(HTTPAdapter):
    label = "Craiyon"
    timeout = 120
    auth_scheme = None

    def build_payload(self, model: Model, prompt: str) -> dict[str, Any]:
        return {
            "prompt": prompt,
            "negative_prompt": "low quality, bad quality, blurry",
            "version": CRAIYON_VERSION,
        }

    def extract_image(self, payload: Any) -> ImageResult:
        # Several images come back; only the first is used
        first = first_item(payload, "images", self.label)
        return ImageResult.from_base64(str(first), "image/jpeg")
