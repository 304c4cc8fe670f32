"""
Bootpedia CLI — Typer-based command-line interface.

Entry point: ``bootpedia`` (registered in pyproject.toml).
"""

from bootpedia.cli.app import app

__all__ = ["app"]
