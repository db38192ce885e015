"""CLI command handlers."""

from .replace import run_replace
from .version import show_version

__all__ = ['run_replace', 'show_version']
