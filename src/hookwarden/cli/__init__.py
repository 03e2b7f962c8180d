"""
Hookwarden CLI.

Entry point for the `hookwarden` command.
"""

from hookwarden.cli.main import cli

__all__ = ["cli"]
