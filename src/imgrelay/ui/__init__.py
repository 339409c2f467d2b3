"""Gradio web UI for imgrelay."""
