"""DeepInfra adapter (free, synchronous, output array)."""

from typing import Any

from imgrelay.core.adapters.base import HTTPAdapter, first_item
from imgrelay.core.image_result import ImageResult
from imgrelay.core.registry import Model


class DeepInfraAdapter(HTTPAdapter):
    label = "DeepInfra"
    timeout = 60

    def build_payload(self, model: Model, prompt: str) -> dict[str, Any]:
        return {
            "input": {
                "prompt": prompt,
                "negative_prompt": "low quality, bad quality, blurry",
                "num_inference_steps": 30,
                "guidance_scale": 7.5,
            }
        }

    def extract_image(self, payload: Any) -> ImageResult:
        return ImageResult(image_url=str(first_item(payload, "output", self.label)))
