"""
Error handling for the CLI.

Maps imgrelay exceptions to exit codes and user-facing messages so command
bodies stay free of try/except for known errors.
"""

import sys
from collections.abc import Callable

import click

from imgrelay.cli import progress
from imgrelay.cli.utils import (
    EXIT_API_OR_NETWORK,
    EXIT_CANCELLED,
    EXIT_VALIDATION_OR_CONFIG,
)
from imgrelay.server.errors import describe_upstream_failure
from imgrelay.utils.exceptions import (
    ConfigurationError,
    ImgrelayError,
    InternalConfigurationError,
    InvalidRequestError,
    MissingCredentialError,
    ModelDisabledError,
    UpstreamError,
)


def map_exception_to_exit(exc: BaseException) -> tuple[int, str]:
    """Map library and known exceptions to (exit_code, user_message)."""
    if isinstance(exc, KeyboardInterrupt):
        return (EXIT_CANCELLED, "Cancelled.")
    if isinstance(exc, InvalidRequestError):
        msg = exc.args[0] if exc.args else "Invalid request."
        if exc.field:
            msg = f"{msg} (field: {exc.field})"
        return (EXIT_VALIDATION_OR_CONFIG, msg)
    if isinstance(exc, (ModelDisabledError, MissingCredentialError)):
        return (EXIT_VALIDATION_OR_CONFIG, f"{exc.args[0]}. {exc.fix}.")
    if isinstance(exc, InternalConfigurationError):
        return (EXIT_API_OR_NETWORK, exc.args[0] if exc.args else "Internal configuration error.")
    if isinstance(exc, ConfigurationError):
        return (EXIT_VALIDATION_OR_CONFIG, exc.args[0] if exc.args else "Invalid configuration.")
    if isinstance(exc, UpstreamError):
        summary = describe_upstream_failure(exc)
        detail = exc.args[0] if exc.args else ""
        return (EXIT_API_OR_NETWORK, f"{summary} ({detail})" if detail else summary)
    if isinstance(exc, ImgrelayError):
        return (EXIT_API_OR_NETWORK, exc.args[0] if exc.args else "An error occurred.")
    # Unhandled
    return (EXIT_API_OR_NETWORK, str(exc) if exc.args else "An unexpected error occurred.")


def _report(msg: str, quiet: bool) -> None:
    if quiet:
        click.echo(msg, err=True)
    else:
        progress.print_error(msg)


def run_with_error_handling(
    fn: Callable[[], None],
    *,
    quiet: bool = False,
) -> None:
    """
    Run fn(); on exception map to exit code and message, print and sys.exit.
    Ctrl+C exits with 130.
    """
    try:
        fn()
    except KeyboardInterrupt as e:
        code, msg = map_exception_to_exit(e)
        if not quiet:
            progress.print_warning(msg)
        sys.exit(code)
    except ImgrelayError as e:
        code, msg = map_exception_to_exit(e)
        _report(msg, quiet)
        sys.exit(code)
    except Exception as e:
        _, msg = map_exception_to_exit(e)
        _report(msg, quiet)
        sys.exit(EXIT_API_OR_NETWORK)


__all__ = [
    "map_exception_to_exit",
    "run_with_error_handling",
]
