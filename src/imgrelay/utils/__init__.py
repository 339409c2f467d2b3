"""Shared utilities for imgrelay."""
