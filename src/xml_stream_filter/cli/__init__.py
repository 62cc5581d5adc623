"""Command-line interface for xml-stream-filter."""

from .main import main

__all__ = ["main"]
