"""Command-line interface for html2html."""

from .main import main

__all__ = ["main"]
