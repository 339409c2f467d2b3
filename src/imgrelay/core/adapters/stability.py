"""Stability AI adapter (paid, synchronous, base64 artifacts)."""

from typing import Any

from imgrelay.core.adapters.base import HTTPAdapter, first_item
from imgrelay.core.image_result import ImageResult
from imgrelay.core.registry import Model
from imgrelay.utils.exceptions import MalformedUpstreamResponseError


class StabilityAdapter(HTTPAdapter):
    """Text-to-image through the Stability v1 generation endpoints."""

    label = "Stability AI"
    timeout = 60

    def auth_headers(self, credential: str | None) -> dict[str, str]:
        headers = super().auth_headers(credential)
        headers["Accept"] = "application/json"
        return headers

    def build_payload(self, model: Model, prompt: str) -> dict[str, Any]:
        return {
            "text_prompts": [{"text": prompt}],
            "cfg_scale": 7,
            "height": 1024,
            "width": 1024,
            "samples": 1,
            "steps": 30,
        }

    def extract_image(self, payload: Any) -> ImageResult:
        artifact = first_item(payload, "artifacts", self.label)
        b64 = artifact.get("base64") if isinstance(artifact, dict) else None
        if not b64:
            raise MalformedUpstreamResponseError(
                "Stability AI artifact has no base64 image data.",
                details=payload,
                provider=self.label,
            )
        return ImageResult.from_base64(b64, "image/png")
