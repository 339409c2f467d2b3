"""
Click command definitions for the imgrelay CLI.

This module contains the Click command group and all CLI commands
(generate, models, verify-keys, test-provider, serve, ui).
"""

import json
import os
from pathlib import Path

import click

from imgrelay import __version__
from imgrelay.cli import progress
from imgrelay.cli.handlers import run_with_error_handling
from imgrelay.cli.utils import default_output_path
from imgrelay.core.adapters import build_adapters
from imgrelay.core.availability import get_credential, is_enabled, list_models
from imgrelay.core.config import Config
from imgrelay.core.dispatcher import build_dispatcher
from imgrelay.core.image_result import ImageResult
from imgrelay.core.probe import probe_provider
from imgrelay.core.registry import load_registry
from imgrelay.logging_config import configure_logging, get_verbosity_from_env

_verbose_option = click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help="Increase verbosity: -v also show prompts, -vv show API detail.",
)


def _apply_verbosity(verbose_count: int = 0, quiet: bool = False) -> None:
    # CLI flags override IMGRELAY_VERBOSITY
    verbose_level = min(verbose_count, 2) if verbose_count > 0 else get_verbosity_from_env()
    configure_logging(verbose_level=verbose_level, quiet=quiet)


def _load_config(debug_api: bool = False) -> Config:
    config = Config.from_env()
    if debug_api:
        config.debug_api = True
    config.validate()
    return config


@click.group(
    help=f"""Relay text prompts to third-party text-to-image providers.

\b
Version: {__version__}
Providers: Stability AI, OpenAI, Hugging Face, Replicate, DeepInfra, Craiyon
"""
)
@click.version_option(version=__version__, package_name="imgrelay")
@click.pass_context
def cli(ctx: click.Context) -> None:
    ctx.color = True


@cli.command()
@click.option("--prompt", "-p", required=True, help="Text description of the image to generate.")
@click.option("--model", "-m", help="Model id (default from IMGRELAY_DEFAULT_MODEL).")
@click.option("--out", "-o", type=click.Path(path_type=Path), help="Output file path.")
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Minimize progress messages; only print result path or errors.",
)
@_verbose_option
@click.option(
    "--debug-api",
    is_flag=True,
    help="Log raw API request payload and response (image data truncated) for debugging.",
)
def generate(
    prompt: str,
    model: str | None,
    out: Path | None,
    quiet: bool,
    verbose_count: int,
    debug_api: bool,
) -> None:
    """Generate an image from a text prompt and save it locally."""
    _apply_verbosity(verbose_count, quiet)

    def do_generate() -> None:
        config = _load_config(debug_api)
        model_id = model or config.default_model
        dispatcher = build_dispatcher(config)

        result: ImageResult
        if not quiet:
            with progress.generation_progress(model=model_id):
                result = dispatcher.generate(model_id, prompt)
        else:
            result = dispatcher.generate(model_id, prompt)

        out_path = out
        if out_path is None:
            out_path = Path(default_output_path(result.suggested_extension()))
        result.save(out_path)

        if not quiet:
            progress.print_success_result(
                output_path=out_path,
                generation_time=result.generation_time,
                model_used=result.model_used,
                provider=result.provider,
                prompt_used=result.prompt_used,
            )
        # Path on stdout for scriptability
        click.echo(str(out_path))

    run_with_error_handling(do_generate, quiet=quiet)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the model list as JSON on stdout.")
def models(as_json: bool) -> None:
    """List every model with its enabled/available state."""

    def do_models() -> None:
        views = list_models(load_registry())
        if as_json:
            click.echo(json.dumps({"models": [v.to_dict() for v in views]}, indent=2))
        else:
            progress.print_models_table(views)

    run_with_error_handling(do_models)


@cli.command("verify-keys")
def verify_keys() -> None:
    """Report which provider API keys are set (never prints the keys)."""

    def do_verify() -> None:
        config = Config.from_env()
        rows = []
        for provider in load_registry().list_providers():
            if not provider.requires_key:
                continue
            key = get_credential(provider)
            rows.append((provider.name, bool(key), len(key) if key else 0, is_enabled(provider)))
        progress.print_key_status(rows, config.environment)

    run_with_error_handling(do_verify)


@cli.command("test-provider")
@click.argument("provider_id")
@_verbose_option
def test_provider(provider_id: str, verbose_count: int) -> None:
    """Check that PROVIDER_ID is reachable with the configured API key."""
    _apply_verbosity(verbose_count)

    def do_probe() -> None:
        config = _load_config()
        result = probe_provider(
            provider_id,
            load_registry(),
            build_adapters(config),
            timeout=config.probe_timeout,
        )
        progress.print_success(result.message)

    run_with_error_handling(do_probe)


@cli.command()
@click.option(
    "--host", type=str, default=None, help="Host to bind (default: IMGRELAY_HOST or 0.0.0.0)."
)
@click.option("--port", "-p", type=int, default=None, help="Port (default: PORT or 5000).")
@_verbose_option
def serve(host: str | None, port: int | None, verbose_count: int) -> None:
    """Run the HTTP API server."""
    from imgrelay.server.app import run

    _apply_verbosity(verbose_count)
    run_with_error_handling(lambda: run(_load_config(), host=host, port=port))


@cli.command()
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    envvar="IMGRELAY_UI_PORT",
    help="Port for the Gradio server (default: 7860 or IMGRELAY_UI_PORT).",
)
@click.option(
    "--host",
    "host",
    type=str,
    default=None,
    envvar="IMGRELAY_UI_HOST",
    help="Host to bind (default: 127.0.0.1 or IMGRELAY_UI_HOST). Use 0.0.0.0 for LAN.",
)
@click.option(
    "--share",
    is_flag=True,
    default=None,
    envvar="IMGRELAY_UI_SHARE",
    help="Create a public share link (e.g. gradio.live).",
)
def ui(port: int | None, host: str | None, share: bool | None) -> None:
    """Launch the Gradio web UI."""
    from imgrelay.ui.gradio_app import launch as launch_ui

    configure_logging(verbose_level=get_verbosity_from_env(), quiet=False)

    share_val = share
    if share_val is None:
        env_share = os.environ.get("IMGRELAY_UI_SHARE", "").lower()
        share_val = env_share in ("1", "true", "yes")
    launch_ui(server_name=host, server_port=port, share=share_val)


def main() -> None:
    """Entry point for the imgrelay console script."""
    cli()


__all__ = ["cli", "main", "generate", "models", "verify_keys", "test_provider", "serve", "ui"]
