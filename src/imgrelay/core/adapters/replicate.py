"""
Replicate adapter (free, asynchronous prediction jobs).

A POST creates a prediction; its status is then polled with GET until it
reaches a terminal state or the polling budget runs out:

    starting -> processing -> succeeded | failed | canceled

The loop waits ``poll_interval`` seconds before each poll and polls at most
``max_attempts`` times. Running out of attempts raises AsyncJobTimeoutError;
the remote job is left running. ``sleep`` is injectable so tests can drive the
state machine without real delays.
"""

import time
from collections.abc import Callable
from typing import Any

from imgrelay.core.adapters.base import HTTPAdapter
from imgrelay.core.http import parse_json, send_request
from imgrelay.core.image_result import ImageResult
from imgrelay.core.registry import Model, Provider
from imgrelay.logging_config import get_logger
from imgrelay.utils.exceptions import (
    AsyncJobFailedError,
    AsyncJobTimeoutError,
    MalformedUpstreamResponseError,
)

logger = get_logger(__name__)

STATUS_STARTING = "starting"
STATUS_SUCCEEDED = "succeeded"
FAILED_STATUSES = frozenset({"failed", "canceled"})
TERMINAL_STATUSES = FAILED_STATUSES | {STATUS_SUCCEEDED}

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_ATTEMPTS = 30


class ReplicateAdapter(HTTPAdapter):
    """Creates a Replicate prediction and polls it to completion."""

    label = "Replicate"
    timeout = 30  # create request and each status request
    auth_scheme = "Token"

    def __init__(
        self,
        debug: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(debug=debug)
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    def build_payload(self, model: Model, prompt: str) -> dict[str, Any]:
        return {
            "version": model.model_version,
            "input": {
                "prompt": prompt,
                "negative_prompt": "low quality, bad quality",
                "width": 768,
                "height": 768,
            },
        }

    def extract_image(self, payload: Any) -> ImageResult:
        output = payload.get("output") if isinstance(payload, dict) else None
        # Some models return a single URL instead of a list
        if isinstance(output, str) and output:
            return ImageResult(image_url=output)
        if isinstance(output, list) and output and output[0]:
            return ImageResult(image_url=str(output[0]))
        raise MalformedUpstreamResponseError(
            "No image generated by Replicate.", details=payload, provider=self.label
        )

    def _read_job(self, response: Any) -> dict[str, Any]:
        job = parse_json(response, self.label)
        if not isinstance(job, dict):
            raise MalformedUpstreamResponseError(
                "Replicate returned an unexpected prediction record.",
                details=job,
                provider=self.label,
            )
        return job

    def create_prediction(
        self, model: Model, provider: Provider, prompt: str, credential: str | None
    ) -> str:
        """POST the prediction and return its id."""
        response = send_request(
            "POST",
            provider.url_for(model.api_path),
            headers=self.auth_headers(credential),
            json_body=self.build_payload(model, prompt),
            timeout=self.timeout,
            provider=self.label,
            debug=self.debug,
        )
        job = self._read_job(response)
        job_id = job.get("id")
        if not job_id:
            raise MalformedUpstreamResponseError(
                "Replicate did not return a prediction id.", details=job, provider=self.label
            )
        logger.info("Replicate prediction created id=%s", job_id)
        return str(job_id)

    def wait_for_prediction(
        self, provider: Provider, job_id: str, credential: str | None
    ) -> dict[str, Any]:
        """Poll the prediction until terminal; return the succeeded record."""
        url = provider.url_for(f"/predictions/{job_id}")
        headers = self.auth_headers(credential)
        status = STATUS_STARTING
        job: dict[str, Any] = {}
        attempts = 0
        while status not in TERMINAL_STATUSES and attempts < self.max_attempts:
            self._sleep(self.poll_interval)
            response = send_request(
                "GET", url, headers=headers, timeout=self.timeout, provider=self.label
            )
            job = self._read_job(response)
            status = str(job.get("status", ""))
            attempts += 1
            logger.debug("Replicate prediction status (attempt %d): %s", attempts, status)

        if status == STATUS_SUCCEEDED:
            return job
        if status in FAILED_STATUSES:
            raise AsyncJobFailedError(
                f"Replicate prediction {status}: {job.get('error') or 'no error reported'}",
                details=job,
                provider=self.label,
            )
        raise AsyncJobTimeoutError(
            f"Replicate prediction timed out after {attempts} status checks. Status: {status}",
            attempts=attempts,
            last_status=status,
            job_id=job_id,
            provider=self.label,
        )

    def generate(
        self,
        model: Model,
        provider: Provider,
        prompt: str,
        credential: str | None,
    ) -> ImageResult:
        self._log_start(model, prompt)
        job_id = self.create_prediction(model, provider, prompt, credential)
        job = self.wait_for_prediction(provider, job_id, credential)
        return self.extract_image(job)
