"""
Command line interface for the Thread route updater.
"""

from .main import cli, main

__all__ = ["main", "cli"]
