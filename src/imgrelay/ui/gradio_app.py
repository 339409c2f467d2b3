"""
Gradio web UI for imgrelay.

Single page: pick one of the usable models, enter a prompt, generate, view and
download the result. A table shows every model's enabled/available state, a
health check probes one provider, and a gallery keeps this session's images.
"""

import argparse
import atexit
import contextlib
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, cast

import gradio as gr

from imgrelay import __version__
from imgrelay.core.adapters import build_adapters
from imgrelay.core.availability import list_models
from imgrelay.core.config import Config
from imgrelay.core.dispatcher import Dispatcher
from imgrelay.core.probe import probe_provider
from imgrelay.core.registry import load_registry
from imgrelay.logging_config import get_logger, log_prompts
from imgrelay.server.errors import describe_upstream_failure
from imgrelay.utils.exceptions import (
    ConfigurationError,
    ImgrelayError,
    InvalidRequestError,
    MissingCredentialError,
    ModelDisabledError,
    UpstreamError,
)

logger = get_logger(__name__)

# Default server port; overridable via IMGRELAY_UI_PORT
DEFAULT_UI_PORT = 7860
DEFAULT_UI_HOST = "127.0.0.1"

PAGE_TITLE = "imgrelay – text-to-image"

MODEL_TABLE_HEADERS = ["ID", "Name", "Provider", "Enabled", "Available", "Free"]

# Generated images written for display/download; cleaned on process exit
_temp_paths: set[str] = set()


def _register_temp_path(path: str) -> None:
    _temp_paths.add(path)


def _remove_temp_path(path: str) -> None:
    _temp_paths.discard(path)
    with contextlib.suppress(OSError):
        Path(path).unlink(missing_ok=True)


def _cleanup_temp_paths() -> None:
    for path in list(_temp_paths):
        _remove_temp_path(path)


atexit.register(_cleanup_temp_paths)


def _exception_to_message(exc: BaseException) -> str:
    """Map library and known exceptions to a short user-facing message."""
    if isinstance(exc, InvalidRequestError):
        return exc.args[0] if exc.args else "Invalid request."
    if isinstance(exc, (ModelDisabledError, MissingCredentialError)):
        return f"{exc.args[0]}. {exc.fix}."
    if isinstance(exc, ConfigurationError):
        return exc.args[0] if exc.args else "Invalid configuration."
    if isinstance(exc, UpstreamError):
        return describe_upstream_failure(exc)
    if isinstance(exc, ImgrelayError):
        return exc.args[0] if exc.args else "An error occurred."
    return str(exc) if exc.args else "An unexpected error occurred."


def _format_status(message: str, status_type: str = "info") -> str:
    """
    Format a status message with color and icon.

    Args:
        message: The status message text.
        status_type: One of "info", "success", "error", "warning", "idle".

    Returns:
        HTML-formatted status string ("" for idle).
    """
    if status_type == "success":
        icon, color, bg_color = "✅", "#10b981", "#d1fae5"
    elif status_type == "error":
        icon, color, bg_color = "❌", "#ef4444", "#fee2e2"
    elif status_type == "warning":
        icon, color, bg_color = "⚠️", "#f59e0b", "#fef3c7"
    elif status_type == "info":
        icon, color, bg_color = "ℹ️", "#3b82f6", "#dbeafe"
    else:  # idle
        return ""

    return f"""<div style="padding: 12px 16px; border-radius: 8px; background-color: {bg_color}; border-left: 4px solid {color}; margin: 8px 0;">
    <span style="font-size: 16px; margin-right: 8px;">{icon}</span>
    <span style="color: {color}; font-weight: 500;">{message}</span>
</div>"""


def _load_ui_models() -> tuple[list[tuple[str, str]], str | None]:
    """
    Usable models as dropdown (label, id) choices plus the default selection.

    The configured default model is preselected when usable, otherwise the
    first usable model; None when nothing is usable.
    """
    config = Config.from_env()
    choices = [(m.name, m.id) for m in list_models(load_registry()) if m.usable]
    ids = [model_id for _, model_id in choices]
    if config.default_model in ids:
        return choices, config.default_model
    return choices, (ids[0] if ids else None)


def _model_table_rows() -> list[list[Any]]:
    """One row per model for the status table."""
    return [
        [
            m.id,
            m.name,
            m.provider,
            "yes" if m.enabled else "no",
            "yes" if m.available else "no",
            "yes" if m.free else "",
        ]
        for m in list_models(load_registry())
    ]


def _provider_choices() -> list[tuple[str, str]]:
    return [(p.name, p.id) for p in load_registry().list_providers()]


def _filename_stem(prompt: str) -> str:
    """Filesystem-safe stem from the first words of the prompt."""
    slug = re.sub(r"[^a-z0-9]+", "-", prompt.lower()).strip("-")[:40].rstrip("-")
    return slug or "image"


def _save_result(result: Any, prompt: str) -> str:
    """Write the image bytes to a temp file named after the prompt and the current time."""
    name = (
        f"imgrelay_{_filename_stem(prompt)}_{int(time.time() * 1000)}"
        f".{result.suggested_extension()}"
    )
    out_path = Path(tempfile.gettempdir()) / name
    result.save(out_path)
    _register_temp_path(str(out_path))
    return str(out_path)


def _run_generate(
    prompt: str,
    model_id: str | None,
    history: list[tuple[str, str]] | None,
) -> tuple[str | None, str, list[tuple[str, str]]]:
    """
    Generate one image and add it to the front of the session history.

    History entries are (image_path, prompt) pairs, shown by the gallery as
    image and caption.

    Returns:
        (image_path, status_html, history). image_path is None on error and
        history is returned unchanged.
    """
    history = list(history or [])
    if not prompt or not prompt.strip():
        return None, _format_status("Enter a prompt to generate.", "warning"), history
    if not model_id:
        msg = "No model is available. Configure an API key."
        return None, _format_status(msg, "warning"), history

    try:
        config = Config.from_env()
        config.validate()
        dispatcher = Dispatcher(load_registry(), build_adapters(config))
        if log_prompts():
            logger.info("UI generate model=%s prompt=%s", model_id, prompt)
        result = dispatcher.generate(model_id, prompt)
        path = _save_result(result, prompt)
    except ImgrelayError as e:
        logger.warning("UI generate failed: %s", e)
        return None, _format_status(_exception_to_message(e), "error"), history

    history.insert(0, (path, prompt))
    msg = f"Done in {result.generation_time:.1f}s with {result.model_used}"
    return path, _format_status(msg, "success"), history


def _check_provider_handler(provider_id: str | None) -> str:
    """Probe one provider and report the outcome as a status block."""
    if not provider_id:
        return _format_status("Select a provider to check.", "warning")
    try:
        config = Config.from_env()
        result = probe_provider(
            provider_id, load_registry(), build_adapters(config), timeout=config.probe_timeout
        )
    except ImgrelayError as e:
        return _format_status(_exception_to_message(e), "error")
    return _format_status(result.message, "success")


def _refresh_models_handler() -> tuple[Any, list[list[Any]]]:
    """Re-read the environment and refresh the dropdown and the table."""
    choices, default = _load_ui_models()
    return gr.update(choices=choices, value=default), _model_table_rows()


def _clear_history_handler(
    history: list[tuple[str, str]] | None,
) -> tuple[list[tuple[str, str]], list[tuple[str, str]]]:
    """Empty the session gallery and delete its temp files."""
    for path, _ in history or []:
        _remove_temp_path(path)
    return [], []


def _build_blocks() -> gr.Blocks:
    """Build the Gradio Blocks layout and wire events."""
    choices, default_model = _load_ui_models()

    with gr.Blocks(title=PAGE_TITLE) as app:
        gr.Markdown(f"# {PAGE_TITLE}")

        with gr.Row():
            with gr.Column(scale=2):
                prompt_tb = gr.Textbox(
                    label="Prompt",
                    placeholder="Describe the image you want...",
                    lines=4,
                )
                model_dd = gr.Dropdown(
                    label="Model",
                    choices=choices,
                    value=default_model,
                    interactive=True,
                )
                with gr.Row():
                    generate_btn = gr.Button("Generate", variant="primary")
                    refresh_btn = gr.Button("Refresh models")
                status_html = gr.HTML("")
            with gr.Column(scale=3):
                out_image = gr.Image(
                    label="Output",
                    type="filepath",
                    height="60vh",
                )

        with gr.Accordion("Session gallery", open=False):
            gallery = gr.Gallery(label="Generated this session", columns=4)
            clear_btn = gr.Button("Clear gallery")

        with gr.Accordion("Models", open=False):
            models_df = gr.Dataframe(
                headers=MODEL_TABLE_HEADERS,
                value=_model_table_rows(),
                interactive=False,
            )

        with gr.Accordion("Provider health", open=False):
            with gr.Row():
                provider_dd = gr.Dropdown(label="Provider", choices=_provider_choices())
                check_btn = gr.Button("Check")
            provider_status = gr.HTML("")

        history_state = gr.State(value=[])

        generate_btn.click(
            fn=_run_generate,
            inputs=[prompt_tb, model_dd, history_state],
            outputs=[out_image, status_html, history_state],
        ).then(fn=lambda h: h, inputs=[history_state], outputs=[gallery])
        refresh_btn.click(fn=_refresh_models_handler, inputs=[], outputs=[model_dd, models_df])
        check_btn.click(fn=_check_provider_handler, inputs=[provider_dd], outputs=[provider_status])
        clear_btn.click(
            fn=_clear_history_handler, inputs=[history_state], outputs=[history_state, gallery]
        )

        gr.Markdown(f"<center><small>imgrelay v{__version__}</small></center>")

    return cast(gr.Blocks, app)


def launch(
    server_name: str | None = None,
    server_port: int | None = None,
    share: bool = False,
) -> None:
    """
    Build the Gradio app and launch the server.

    Args:
        server_name: Host to bind (default: IMGRELAY_UI_HOST or 127.0.0.1).
        server_port: Port (default: IMGRELAY_UI_PORT or 7860).
        share: If True, create a public share link (e.g. gradio.live).
    """
    host = server_name or os.getenv("IMGRELAY_UI_HOST", DEFAULT_UI_HOST)
    port = server_port
    if port is None:
        try:
            port = int(os.getenv("IMGRELAY_UI_PORT", str(DEFAULT_UI_PORT)))
        except ValueError:
            port = DEFAULT_UI_PORT
    print(f"imgrelay ui is starting (v{__version__}) on http://{host}:{port}...")
    app = _build_blocks()
    app.launch(server_name=host, server_port=port, share=share, inbrowser=True)


def main() -> None:
    """Entry point for the imgrelay-ui console script. Parses --port, --host, --share."""
    parser = argparse.ArgumentParser(
        description="Launch the imgrelay Gradio web UI.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        metavar="PORT",
        help=f"Port to bind (default: IMGRELAY_UI_PORT or {DEFAULT_UI_PORT}).",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        metavar="HOST",
        help=f"Host to bind (default: IMGRELAY_UI_HOST or {DEFAULT_UI_HOST}). Use 0.0.0.0 for LAN.",
    )
    parser.add_argument(
        "--share",
        action="store_true",
        default=None,
        help="Create a public share link (e.g. gradio.live). Overrides IMGRELAY_UI_SHARE.",
    )
    args = parser.parse_args()
    share_val = args.share
    if share_val is None:
        env_share = os.environ.get("IMGRELAY_UI_SHARE", "").lower()
        share_val = env_share in ("1", "true", "yes")
    launch(server_name=args.host, server_port=args.port, share=share_val)
