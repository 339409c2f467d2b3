"""
Pytest configuration: default runs most tests; use --run-slow to include slow tests.

Live provider tests additionally require IMGRELAY_LIVE_TEST=1.
"""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from imgrelay.core import registry as registry_module


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (live provider calls). Default: skip them.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-slow", False):
        return
    skip_slow = pytest.mark.skip(reason="Slow test; run with --run-slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


PROVIDER_ENV_VARS = [
    "STABILITY_API_KEY",
    "OPENAI_API_KEY",
    "HUGGINGFACE_API_KEY",
    "REPLICATE_API_KEY",
    "DEEPINFRA_API_KEY",
    "ENABLE_STABILITY_AI",
    "ENABLE_OPENAI",
    "ENABLE_HUGGINGFACE",
    "ENABLE_REPLICATE",
    "ENABLE_DEEPINFRA",
    "ENABLE_CRAIYON",
    "IMGRELAY_DEFAULT_MODEL",
    "IMGRELAY_ENV",
    "IMGRELAY_DEBUG_API",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every provider key/flag from os.environ for the test."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture(autouse=True)
def _reset_registry_cache():
    registry_module._registry = None
    yield
    registry_module._registry = None


def make_response(
    status: int = 200,
    json_body: Any = None,
    content: bytes = b"",
    content_type: str = "application/json",
    text: str | None = None,
) -> MagicMock:
    """Stand-in for requests.Response with the attributes the adapters read."""
    resp = MagicMock()
    resp.status_code = status
    resp.headers = {"content-type": content_type}
    resp.content = content
    if json_body is not None:
        resp.json.return_value = json_body
        resp.text = json.dumps(json_body)
    else:
        resp.json.side_effect = ValueError("Expecting value")
        resp.text = text if text is not None else content.decode("latin-1")
    return resp


@pytest.fixture
def response_factory() -> Callable[..., MagicMock]:
    return make_response
