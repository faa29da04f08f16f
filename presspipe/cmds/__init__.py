"""Command modules for the presspipe CLI.

This module exports the command groups (Typer apps) registered with the
main application.
"""

from .posts import app as posts_app
from .config import app as config_app

__all__ = [
    "posts_app",
    "config_app",
]
