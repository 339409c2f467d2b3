"""
Configuration management for imgrelay.

This module handles server, rate-limit and polling settings. Provider API keys
and enable flags are not held here; they are read from the live
environment on every request by imgrelay.core.availability.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from imgrelay.logging_config import get_logger
from imgrelay.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

# Load environment variables from .env file
load_dotenv()

# Default configuration constants
DEFAULT_MODEL = "stable-diffusion-xl"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000
DEFAULT_ENVIRONMENT = "development"
DEFAULT_RATE_LIMIT_MAX = 50
DEFAULT_RATE_LIMIT_WINDOW = 15 * 60
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_POLL_MAX_ATTEMPTS = 30
DEFAULT_PROBE_TIMEOUT = 10


@dataclass
class Config:
    """Configuration for the imgrelay server, CLI and UI."""

    # HTTP server
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    environment: str = DEFAULT_ENVIRONMENT
    cors_origins: str = "*"

    # Generation
    default_model: str = DEFAULT_MODEL

    # Rate limiting (/api routes, per client address)
    rate_limit_max: int = DEFAULT_RATE_LIMIT_MAX
    rate_limit_window: int = DEFAULT_RATE_LIMIT_WINDOW  # seconds

    # Asynchronous job polling (Replicate)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS

    # Health probe timeout (seconds)
    probe_timeout: int = DEFAULT_PROBE_TIMEOUT

    # Debug: log raw request payloads and responses with image data truncated
    debug_api: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create a Config instance from environment variables.

        Environment variables:
            PORT: HTTP port (default 5000)
            IMGRELAY_HOST: Bind address (default 0.0.0.0)
            IMGRELAY_ENV: Environment name reported by /api/verify-keys (default development)
            IMGRELAY_DEFAULT_MODEL: Model used when a request names none
            IMGRELAY_RATE_LIMIT_MAX / IMGRELAY_RATE_LIMIT_WINDOW: Requests per window (seconds)
            IMGRELAY_CORS_ORIGINS: Comma-separated allowed origins or "*"
            IMGRELAY_DEBUG_API: 1/true/yes to log truncated request/response payloads

        Returns:
            Config instance populated from environment

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """

        def _int_env(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None or val.strip() == "":
                return default
            try:
                return int(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be an integer, got {val!r}.") from e

        debug_api = os.getenv("IMGRELAY_DEBUG_API", "").strip().lower() in ("1", "true", "yes")

        return cls(
            host=os.getenv("IMGRELAY_HOST", DEFAULT_HOST),
            port=_int_env("PORT", DEFAULT_PORT),
            environment=os.getenv("IMGRELAY_ENV", DEFAULT_ENVIRONMENT),
            cors_origins=os.getenv("IMGRELAY_CORS_ORIGINS", "*"),
            default_model=os.getenv("IMGRELAY_DEFAULT_MODEL", DEFAULT_MODEL),
            rate_limit_max=_int_env("IMGRELAY_RATE_LIMIT_MAX", DEFAULT_RATE_LIMIT_MAX),
            rate_limit_window=_int_env("IMGRELAY_RATE_LIMIT_WINDOW", DEFAULT_RATE_LIMIT_WINDOW),
            debug_api=debug_api,
        )

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        logger.debug("Validating config")

        if not 0 < self.port < 65536:
            raise ConfigurationError(f"port must be between 1 and 65535, got {self.port}.")
        if self.rate_limit_max <= 0:
            raise ConfigurationError(
                f"rate_limit_max must be positive, got {self.rate_limit_max}."
            )
        if self.rate_limit_window <= 0:
            raise ConfigurationError(
                f"rate_limit_window must be positive, got {self.rate_limit_window}."
            )
        if self.poll_interval < 0:
            raise ConfigurationError(
                f"poll_interval must not be negative, got {self.poll_interval}."
            )
        if self.poll_max_attempts <= 0:
            raise ConfigurationError(
                f"poll_max_attempts must be positive, got {self.poll_max_attempts}."
            )
        if self.probe_timeout <= 0:
            raise ConfigurationError(
                f"probe_timeout must be positive, got {self.probe_timeout}."
            )
        if not self.default_model:
            raise ConfigurationError("default_model cannot be empty.")

    def cors_origin_list(self) -> str | list[str]:
        """Return "*" or the list of configured origins for flask-cors."""
        raw = self.cors_origins.strip()
        if not raw or raw == "*":
            return "*"
        return [o.strip() for o in raw.split(",") if o.strip()]


# Global configuration instance
_global_config: Config | None = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        The global Config instance
    """
    global _global_config
    if _global_config is None:
        _global_config = Config.from_env()
    return _global_config


def set_config(config: Config) -> None:
    """
    Set the global configuration instance.

    Args:
        config: The Config instance to use globally
    """
    global _global_config
    _global_config = config
