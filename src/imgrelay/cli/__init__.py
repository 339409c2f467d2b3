"""
Command-line interface for imgrelay.

This package contains CLI implementations using Click.
"""

from imgrelay.cli.commands import cli, main

__all__ = ["cli", "main"]
