"""Command line interface for thinkstream."""

from .app import app, main

__all__ = ["app", "main"]
