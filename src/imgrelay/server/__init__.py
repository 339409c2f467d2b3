"""
HTTP server for imgrelay (Flask).
"""

from imgrelay.server.app import create_app, log_provider_status, run

__all__ = ["create_app", "log_provider_status", "run"]
