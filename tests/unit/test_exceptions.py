"""Unit tests for custom exceptions."""

import pytest

from imgrelay.utils.exceptions import (
    AsyncJobFailedError,
    AsyncJobTimeoutError,
    AuthenticationError,
    BillingLimitError,
    ConfigurationError,
    ImgrelayError,
    InternalConfigurationError,
    InvalidRequestError,
    MalformedUpstreamResponseError,
    MissingCredentialError,
    ModelDisabledError,
    PermissionDeniedError,
    RateLimitError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_cls",
        [
            InvalidRequestError,
            ModelDisabledError,
            MissingCredentialError,
            ConfigurationError,
            InternalConfigurationError,
            UpstreamError,
        ],
    )
    def test_all_derive_from_base(self, exc_cls):
        assert issubclass(exc_cls, ImgrelayError)

    @pytest.mark.parametrize(
        "exc_cls",
        [
            AuthenticationError,
            PermissionDeniedError,
            RateLimitError,
            BillingLimitError,
            UpstreamConnectionError,
            UpstreamTimeoutError,
            MalformedUpstreamResponseError,
            AsyncJobFailedError,
            AsyncJobTimeoutError,
        ],
    )
    def test_upstream_variants(self, exc_cls):
        assert issubclass(exc_cls, UpstreamError)

    def test_async_timeout_is_a_timeout(self):
        assert issubclass(AsyncJobTimeoutError, UpstreamTimeoutError)

    def test_internal_configuration_is_configuration(self):
        assert issubclass(InternalConfigurationError, ConfigurationError)


@pytest.mark.unit
class TestValidationErrors:
    def test_invalid_request_field(self):
        e = InvalidRequestError("Prompt is required", field="prompt")
        assert str(e) == "Prompt is required"
        assert e.field == "prompt"

    def test_invalid_request_field_defaults_empty(self):
        assert InvalidRequestError("x").field == ""

    def test_model_disabled_fix_names_flag(self):
        e = ModelDisabledError("off", model_id="dalle", flag_var="ENABLE_OPENAI")
        assert e.model_id == "dalle"
        assert e.fix == "Enable it by setting ENABLE_OPENAI=true in your environment variables"

    def test_missing_credential_fix_names_variable(self):
        e = MissingCredentialError("missing", provider_id="openai", credential_var="OPENAI_API_KEY")
        assert e.provider_id == "openai"
        assert e.fix == "Add OPENAI_API_KEY to your environment variables"


@pytest.mark.unit
class TestUpstreamErrors:
    def test_defaults(self):
        e = UpstreamError("boom")
        assert e.status_code == 0
        assert e.details is None
        assert e.provider == ""

    def test_carries_status_and_details(self):
        e = AuthenticationError("bad key", status_code=401, details={"error": "x"}, provider="OpenAI")
        assert e.status_code == 401
        assert e.details == {"error": "x"}
        assert e.provider == "OpenAI"

    def test_connection_error_details_from_original(self):
        original = OSError("connection refused")
        e = UpstreamConnectionError("no route", original_error=original, provider="DeepInfra")
        assert e.original_error is original
        assert e.details == "connection refused"
        assert e.status_code == 0

    def test_timeout_error_details_fall_back_to_message(self):
        e = UpstreamTimeoutError("timed out after 60 seconds")
        assert e.details == "timed out after 60 seconds"

    def test_async_job_timeout_details(self):
        e = AsyncJobTimeoutError(
            "gave up", attempts=30, last_status="processing", job_id="abc", provider="Replicate"
        )
        assert e.attempts == 30
        assert e.last_status == "processing"
        assert e.job_id == "abc"
        assert e.details == {"id": "abc", "status": "processing", "attempts": 30}
