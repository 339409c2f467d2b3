"""
Utility functions for the CLI.

This module contains helper functions used by CLI commands,
such as path generation and exit code constants.
"""

from datetime import datetime

# Exit codes (130 = common for SIGINT)
EXIT_API_OR_NETWORK = 1
EXIT_VALIDATION_OR_CONFIG = 2
EXIT_CANCELLED = 130


def default_output_path(ext: str) -> str:
    """Return default output path: imgrelay_<YYYYMMDD>_<HHMMSS>.<ext> in current directory."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"imgrelay_{timestamp}.{ext or 'png'}"


__all__ = [
    "EXIT_API_OR_NETWORK",
    "EXIT_VALIDATION_OR_CONFIG",
    "EXIT_CANCELLED",
    "default_output_path",
]
