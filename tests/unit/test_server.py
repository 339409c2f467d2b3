"""Unit tests for the Flask HTTP surface."""

from unittest.mock import MagicMock, patch

import pytest

from imgrelay.core.adapters import AdapterRegistry
from imgrelay.core.config import Config
from imgrelay.core.image_result import ImageResult
from imgrelay.core.registry import load_registry
from imgrelay.server.app import create_app, log_provider_status


def _client(env=None, config=None, **kwargs):
    app = create_app(config=config or Config(), env={} if env is None else env, **kwargs)
    return app.test_client()


@pytest.mark.unit
class TestBasicRoutes:
    def test_liveness(self):
        resp = _client().get("/")
        assert resp.status_code == 200
        assert resp.get_data(as_text=True) == "Text-to-Image Generator API is running"

    def test_cors_check_echoes_origin(self):
        resp = _client().get("/test-cors", headers={"Origin": "https://ui.example"})
        body = resp.get_json()
        assert body["message"] == "CORS is working correctly!"
        assert body["origin"] == "https://ui.example"
        assert "timestamp" in body
        assert resp.headers["Access-Control-Allow-Origin"] == "*"

    def test_cors_preflight(self):
        resp = _client().options(
            "/api/generate",
            headers={
                "Origin": "https://ui.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert resp.status_code == 200
        assert "POST" in resp.headers["Access-Control-Allow-Methods"]

    def test_restricted_origins(self):
        client = _client(config=Config(cors_origins="https://ok.example"))
        allowed = client.get("/test-cors", headers={"Origin": "https://ok.example"})
        denied = client.get("/test-cors", headers={"Origin": "https://evil.example"})
        assert allowed.headers["Access-Control-Allow-Origin"] == "https://ok.example"
        assert "Access-Control-Allow-Origin" not in denied.headers


@pytest.mark.unit
class TestModelsRoute:
    def test_lists_all_models_with_live_state(self):
        env = {"OPENAI_API_KEY": "sk-1", "ENABLE_CRAIYON": "false"}
        body = _client(env).get("/api/models").get_json()
        by_id = {m["id"]: m for m in body["models"]}
        assert len(by_id) == 10
        assert by_id["dalle"]["available"] is True
        assert by_id["dalle"]["name"] == "OpenAI (DALL-E 3)"
        assert by_id["stable-diffusion-xl"]["available"] is False
        assert by_id["craiyon"]["enabled"] is False
        assert by_id["craiyon"]["requires_key"] is False
        assert "sk-1" not in str(body)

    def test_env_changes_visible_without_restart(self):
        env: dict[str, str] = {}
        client = _client(env)
        first = {m["id"]: m for m in client.get("/api/models").get_json()["models"]}
        env["STABILITY_API_KEY"] = "sk-stab"
        second = {m["id"]: m for m in client.get("/api/models").get_json()["models"]}
        assert first["stable-diffusion-xl"]["available"] is False
        assert second["stable-diffusion-xl"]["available"] is True


@pytest.mark.unit
class TestVerifyKeys:
    def test_reports_presence_and_length_only(self):
        env = {"OPENAI_API_KEY": "sk-123", "ENABLE_REPLICATE": "false"}
        body = _client(env, config=Config(environment="staging")).get("/api/verify-keys").get_json()
        assert body["openaiKeyPresent"] is True
        assert body["openaiKeyLength"] == 6
        assert body["openaiEnabled"] is True
        assert body["stabilityKeyPresent"] is False
        assert body["stabilityKeyLength"] == 0
        assert body["replicateEnabled"] is False
        assert "craiyonKeyPresent" not in body
        assert body["environment"] == "staging"
        assert "sk-123" not in str(body)


@pytest.mark.unit
class TestTestProviderRoute:
    def test_unknown_provider(self):
        resp = _client().get("/api/test-provider/nope")
        assert resp.status_code == 400
        assert resp.get_json() == {
            "error": "Invalid provider: nope",
            "details": "Provider not found in configuration",
        }

    def test_keyless_provider(self):
        resp = _client().get("/api/test-provider/craiyon")
        assert resp.status_code == 200
        assert resp.get_json() == {
            "success": True,
            "message": "Craiyon does not require an API key",
        }

    def test_missing_key(self):
        resp = _client().get("/api/test-provider/stability")
        assert resp.status_code == 500
        body = resp.get_json()
        assert body["error"] == "Failed to connect to provider API"
        assert body["message"] == "Stability AI API key is missing"

    def test_upstream_failure(self, response_factory):
        with patch(
            "imgrelay.core.http.requests.request",
            return_value=response_factory(401, {"message": "invalid"}),
        ):
            resp = _client({"OPENAI_API_KEY": "sk-bad"}).get("/api/test-provider/openai")
        assert resp.status_code == 500
        assert resp.get_json()["details"] == {"message": "invalid"}

    def test_success(self, response_factory):
        with patch(
            "imgrelay.core.http.requests.request",
            return_value=response_factory(200, {"object": "list"}),
        ):
            resp = _client({"OPENAI_API_KEY": "sk-ok"}).get("/api/test-provider/openai")
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "OpenAI API connection successful"


@pytest.mark.unit
class TestGenerateRoute:
    def test_success(self, response_factory):
        resp_mock = response_factory(200, {"images": ["QUJD"]})
        with patch("imgrelay.core.http.requests.request", return_value=resp_mock):
            resp = _client().post("/api/generate", json={"prompt": "a cat", "model": "craiyon"})
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "imageUrl": "data:image/jpeg;base64,QUJD"}

    def test_default_model_applied(self):
        adapter = MagicMock()
        adapter.generate.return_value = ImageResult(image_url="https://x/1.png")
        adapters = AdapterRegistry()
        adapters.register("craiyon", adapter)
        client = _client(config=Config(default_model="craiyon"), adapters=adapters)
        resp = client.post("/api/generate", json={"prompt": "a cat"})
        assert resp.status_code == 200
        assert adapter.generate.call_args.args[0].id == "craiyon"

    @pytest.mark.parametrize("model", ["", None])
    def test_explicit_empty_model_is_invalid(self, model):
        adapter = MagicMock()
        adapters = AdapterRegistry()
        adapters.register("craiyon", adapter)
        client = _client(config=Config(default_model="craiyon"), adapters=adapters)
        resp = client.post("/api/generate", json={"prompt": "a cat", "model": model})
        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"field": "model"}
        adapter.generate.assert_not_called()

    def test_non_string_model_is_unknown(self):
        resp = _client().post("/api/generate", json={"prompt": "a cat", "model": ["craiyon"]})
        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"field": "model"}

    @pytest.mark.parametrize(
        "payload",
        [{}, {"prompt": ""}, {"prompt": "   "}, {"model": "craiyon"}],
    )
    def test_missing_prompt(self, payload):
        with patch("imgrelay.core.http.requests.request") as mock_request:
            resp = _client().post("/api/generate", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Prompt is required"
        mock_request.assert_not_called()

    def test_non_json_body(self):
        resp = _client().post("/api/generate", data="prompt=a cat")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Prompt is required"

    def test_non_string_prompt(self):
        resp = _client().post("/api/generate", json={"prompt": 42, "model": "craiyon"})
        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"field": "prompt"}

    def test_unknown_model(self):
        resp = _client().post("/api/generate", json={"prompt": "a cat", "model": "nope"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid model specified: nope"

    def test_disabled_model(self):
        env = {"ENABLE_CRAIYON": "false"}
        resp = _client(env).post("/api/generate", json={"prompt": "a cat", "model": "craiyon"})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "The model craiyon is currently disabled"
        assert "ENABLE_CRAIYON=true" in body["fix"]

    def test_missing_key(self):
        resp = _client().post("/api/generate", json={"prompt": "a cat", "model": "dalle"})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "OpenAI (DALL-E 3) API key is missing"
        assert body["fix"] == "Add OPENAI_API_KEY to your environment variables"

    def test_upstream_error(self, response_factory):
        upstream = response_factory(
            429, {"error": {"message": "Rate limit reached", "type": "requests"}}
        )
        with patch("imgrelay.core.http.requests.request", return_value=upstream):
            resp = _client({"OPENAI_API_KEY": "sk-1"}).post(
                "/api/generate", json={"prompt": "a cat", "model": "dalle"}
            )
        assert resp.status_code == 500
        body = resp.get_json()
        assert body["error"] == "Rate limit exceeded. Please try again later."
        assert body["status"] == 429
        assert body["details"]["error"]["message"] == "Rate limit reached"

    def test_unexpected_exception(self):
        adapter = MagicMock()
        adapter.generate.side_effect = RuntimeError("kaboom")
        adapters = AdapterRegistry()
        adapters.register("craiyon", adapter)
        resp = _client(adapters=adapters).post(
            "/api/generate", json={"prompt": "a cat", "model": "craiyon"}
        )
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Something went wrong!", "message": "kaboom"}


@pytest.mark.unit
class TestRateLimiting:
    def test_api_routes_limited(self):
        client = _client(config=Config(rate_limit_max=2))
        assert client.get("/api/models").status_code == 200
        second = client.get("/api/models")
        assert second.headers["RateLimit-Remaining"] == "0"
        blocked = client.get("/api/models")
        assert blocked.status_code == 429
        assert blocked.get_data(as_text=True) == (
            "Too many requests from this IP, please try again later."
        )
        assert "Retry-After" in blocked.headers

    def test_preflight_requests_not_counted(self):
        client = _client(config=Config(rate_limit_max=2))
        preflight = {
            "Origin": "https://ui.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        }
        for _ in range(2):
            assert client.options("/api/generate", headers=preflight).status_code == 200
        with patch("imgrelay.core.http.requests.request") as mock_request:
            resp = client.post("/api/generate", json={"prompt": "", "model": "craiyon"})
        assert resp.status_code == 400
        assert resp.headers["RateLimit-Remaining"] == "1"
        mock_request.assert_not_called()

    def test_non_api_routes_not_limited(self):
        client = _client(config=Config(rate_limit_max=1))
        for _ in range(3):
            assert client.get("/").status_code == 200

    def test_forwarded_client_addresses_counted_separately(self):
        client = _client(config=Config(rate_limit_max=1))
        a = {"X-Forwarded-For": "203.0.113.1"}
        b = {"X-Forwarded-For": "203.0.113.2"}
        assert client.get("/api/models", headers=a).status_code == 200
        assert client.get("/api/models", headers=b).status_code == 200
        assert client.get("/api/models", headers=a).status_code == 429


@pytest.mark.unit
class TestStartupLogging:
    def test_provider_status_never_logs_keys(self, caplog):
        env = {"OPENAI_API_KEY": "sk-supersecret"}
        with caplog.at_level("INFO", logger="imgrelay"):
            log_provider_status(load_registry(), env)
        assert "sk-supersecret" not in caplog.text
        assert "OpenAI: API key <set, 14 chars>" in caplog.text
        assert "Craiyon: no key required" in caplog.text
