"""
Flask application exposing the relay over HTTP.

Routes:
    GET  /                              liveness text
    GET  /test-cors                     CORS check
    GET  /api/models                    resolved model views
    GET  /api/verify-keys               credential presence per provider
    GET  /api/test-provider/<id>        provider health probe
    POST /api/generate                  {"prompt", "model"?} -> {"success", "imageUrl"}

/api routes are rate limited per client address. Client addresses honour
X-Forwarded-For (one proxy hop) so the limit works behind a reverse proxy.
"""

import json
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from flask import Blueprint, Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from imgrelay.core.adapters import AdapterRegistry, build_adapters
from imgrelay.core.availability import get_credential, is_enabled, list_models
from imgrelay.core.config import Config, get_config
from imgrelay.core.dispatcher import Dispatcher
from imgrelay.core.probe import probe_provider
from imgrelay.core.registry import ProviderRegistry, load_registry
from imgrelay.logging_config import get_logger, log_prompts, mask_secret, truncate_for_log
from imgrelay.server.errors import error_response
from imgrelay.server.rate_limit import FixedWindowRateLimiter
from imgrelay.utils.exceptions import ImgrelayError, InvalidRequestError

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
LIVENESS_TEXT = "Text-to-Image Generator API is running"


def create_api_blueprint(
    config: Config,
    registry: ProviderRegistry,
    adapters: AdapterRegistry,
    env: Mapping[str, str] | None = None,
) -> Blueprint:
    """Create the /api blueprint over an explicit registry and adapter set."""
    bp = Blueprint("api", __name__, url_prefix="/api")
    dispatcher = Dispatcher(registry, adapters, env)

    @bp.route("/models", methods=["GET"])
    def models():
        return jsonify({"models": [m.to_dict() for m in list_models(registry, env)]})

    @bp.route("/verify-keys", methods=["GET"])
    def verify_keys():
        result: dict[str, Any] = {}
        for provider in registry.list_providers():
            if not provider.requires_key:
                continue
            key = get_credential(provider, env)
            result[f"{provider.id}KeyPresent"] = bool(key)
            result[f"{provider.id}KeyLength"] = len(key) if key else 0
            result[f"{provider.id}Enabled"] = is_enabled(provider, env)
        result["environment"] = config.environment
        return jsonify(result)

    @bp.route("/test-provider/<provider_id>", methods=["GET"])
    def test_provider(provider_id: str):
        if registry.get_provider(provider_id) is None:
            return jsonify(
                {
                    "error": f"Invalid provider: {provider_id}",
                    "details": "Provider not found in configuration",
                }
            ), 400
        try:
            result = probe_provider(
                provider_id, registry, adapters, env, timeout=config.probe_timeout
            )
        except ImgrelayError as e:
            logger.error("Error testing provider %s: %s", provider_id, e)
            return jsonify(
                {
                    "error": "Failed to connect to provider API",
                    "message": str(e),
                    "details": getattr(e, "details", None)
                    or "No additional details available",
                }
            ), 500
        return jsonify(result.to_dict())

    @bp.route("/generate", methods=["POST"])
    def generate():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            body = {}
        prompt = body.get("prompt")
        # The default applies only when "model" is absent; "" and null are invalid
        model_id = body["model"] if "model" in body else config.default_model
        logger.info("Generate image request received model=%s", model_id)
        if log_prompts():
            logger.info("Prompt: %s", prompt)
        try:
            if prompt is not None and not isinstance(prompt, str):
                raise InvalidRequestError("Prompt must be a string", field="prompt")
            if model_id is not None and not isinstance(model_id, str):
                # Never a registry id; the dispatcher reports it as an unknown model
                model_id = json.dumps(model_id)
            result = dispatcher.generate(model_id, prompt)
        except ImgrelayError as e:
            payload, status = error_response(e)
            if status >= 500:
                logger.error(
                    "Error generating image: %s (status=%s)", e, payload.get("status")
                )
            else:
                logger.info("Rejected generate request: %s", e)
            return jsonify(payload), status
        logger.info("Sending successful response with image URL")
        return jsonify({"success": True, "imageUrl": result.image_url})

    return bp


def _install_rate_limit(app: Flask, limiter: FixedWindowRateLimiter) -> None:
    @app.before_request
    def _limit():
        # CORS preflights are answered by flask-cors and not counted
        if request.method == "OPTIONS" or not request.path.startswith("/api"):
            return None
        decision = limiter.hit(request.remote_addr or "unknown")
        g.rate_limit = decision
        if not decision.allowed:
            response = app.response_class(RATE_LIMIT_MESSAGE, status=429, mimetype="text/plain")
            response.headers["Retry-After"] = str(int(decision.reset_in) + 1)
            _set_rate_limit_headers(response, decision)
            return response
        return None

    @app.after_request
    def _headers(response):
        decision = g.get("rate_limit")
        if decision is not None:
            _set_rate_limit_headers(response, decision)
        return response


def _set_rate_limit_headers(response, decision) -> None:
    response.headers["RateLimit-Limit"] = str(decision.limit)
    response.headers["RateLimit-Remaining"] = str(decision.remaining)
    response.headers["RateLimit-Reset"] = str(int(decision.reset_in))


def _install_request_logging(app: Flask, config: Config) -> None:
    @app.before_request
    def _start_timer():
        g.request_started = time.time()
        if not config.is_production:
            body = request.get_json(silent=True)
            logger.debug(
                "%s %s body=%s",
                request.method,
                request.full_path.rstrip("?"),
                truncate_for_log(body) if body else None,
            )

    @app.after_request
    def _log_request(response):
        started = g.get("request_started")
        elapsed_ms = (time.time() - started) * 1000 if started else 0.0
        logger.info(
            "%s %s %s %.1f ms",
            request.method,
            request.path,
            response.status_code,
            elapsed_ms,
        )
        return response


def create_app(
    config: Config | None = None,
    registry: ProviderRegistry | None = None,
    adapters: AdapterRegistry | None = None,
    env: Mapping[str, str] | None = None,
    limiter: FixedWindowRateLimiter | None = None,
) -> Flask:
    """
    Build the Flask app.

    Args:
        config: Server configuration (defaults to the shared config)
        registry: Provider registry (defaults to the bundled providers.yaml)
        adapters: Adapter registry (defaults to the built-in adapters)
        env: Environment mapping for credentials/flags (defaults to os.environ, read live)
        limiter: Rate limiter for /api routes (defaults to one built from config)
    """
    config = config or get_config()
    registry = registry or load_registry()
    adapters = adapters or build_adapters(config)
    limiter = limiter or FixedWindowRateLimiter(config.rate_limit_max, config.rate_limit_window)

    app = Flask(__name__)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)  # type: ignore[method-assign]
    CORS(
        app,
        origins=config.cors_origin_list(),
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    _install_request_logging(app, config)
    _install_rate_limit(app, limiter)
    app.register_blueprint(create_api_blueprint(config, registry, adapters, env))

    @app.route("/", methods=["GET"])
    def index():
        return LIVENESS_TEXT

    @app.route("/test-cors", methods=["GET"])
    def test_cors():
        return jsonify(
            {
                "message": "CORS is working correctly!",
                "origin": request.headers.get("Origin", "Unknown origin"),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error")
        return jsonify({"error": "Something went wrong!", "message": str(e)}), 500

    return app


def log_provider_status(
    registry: ProviderRegistry, env: Mapping[str, str] | None = None
) -> None:
    """Log each provider's key/enable status and its models."""
    logger.info("API providers status:")
    for provider in registry.list_providers():
        key_state = (
            "no key required"
            if not provider.requires_key
            else f"API key {mask_secret(get_credential(provider, env))}"
        )
        logger.info(
            "- %s: %s (enabled: %s)",
            provider.name,
            key_state,
            "yes" if is_enabled(provider, env) else "no",
        )
        for model in provider.models:
            logger.info("  - %s", model.name)


def run(config: Config | None = None, host: str | None = None, port: int | None = None) -> None:
    """Validate config, build the app and serve it with the Flask server."""
    config = config or get_config()
    config.validate()
    app = create_app(config)
    bind_host = host or config.host
    bind_port = port or config.port
    logger.info("Server running on port %s", bind_port)
    logger.info("Environment: %s", config.environment)
    log_provider_status(load_registry())
    app.run(host=bind_host, port=bind_port, debug=False)
