"""
Rich progress displays for CLI operations.

All output goes to stderr to preserve stdout for machine-readable output.
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from imgrelay.core.availability import ResolvedModel

# Console for stderr output (preserves stdout for machine output)
console = Console(stderr=True)


@contextmanager
def generation_progress(model: str | None = None) -> Iterator[None]:
    """
    Display a spinner while a provider generates the image.

    Args:
        model: The model id being used

    Yields:
        None while generation is in progress
    """
    progress = Progress(
        SpinnerColumn(spinner_name="dots"),
        TextColumn("[green]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )

    desc_parts = ["Generating image"]
    if model:
        model_display = model if len(model) <= 40 else f"{model[:37]}..."
        desc_parts.append(f"[dim]({model_display})[/dim]")

    with progress:
        task = progress.add_task(" ".join(desc_parts), total=None)
        yield
        progress.update(task, completed=True)


def print_success_result(
    output_path: Path,
    generation_time: float,
    model_used: str,
    provider: str,
    prompt_used: str,
) -> None:
    """
    Print a rich formatted success message with generation details.

    Args:
        output_path: Path where the image was saved
        generation_time: Time taken to generate (seconds)
        model_used: The model id that generated the image
        provider: The provider id that served the request
        prompt_used: The prompt sent to the provider
    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right", vertical="top")
    table.add_column(style="white")

    table.add_row("Saved to", f"[bold green]{output_path}[/bold green]")
    table.add_row("Model", model_used)
    table.add_row("Provider", provider)
    table.add_row("Time", f"{generation_time:.1f}s")
    table.add_row("Prompt", f"[dim]{prompt_used}[/dim]")

    panel = Panel(
        table,
        title="[bold green]✓ Image Generated[/bold green]",
        border_style="green",
        padding=(1, 2),
    )

    console.print()
    console.print(panel)


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"


def print_models_table(models: Iterable[ResolvedModel]) -> None:
    """Print the resolved model views as a table."""
    table = Table(title="Models")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Provider")
    table.add_column("Enabled", justify="center")
    table.add_column("Available", justify="center")
    table.add_column("Free", justify="center")
    for m in models:
        table.add_row(
            m.id,
            m.name,
            m.provider,
            _yes_no(m.enabled),
            _yes_no(m.available),
            "yes" if m.free else "",
        )
    console.print(table)


def print_key_status(rows: Iterable[tuple[str, bool, int, bool]], environment: str) -> None:
    """Print (provider_name, key_present, key_length, enabled) rows."""
    table = Table(title=f"API keys ({environment})")
    table.add_column("Provider", style="cyan")
    table.add_column("Key set", justify="center")
    table.add_column("Key length", justify="right")
    table.add_column("Enabled", justify="center")
    for name, present, length, enabled in rows:
        table.add_row(name, _yes_no(present), str(length), _yes_no(enabled))
    console.print(table)


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]✗[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]✓[/green] {message}")
