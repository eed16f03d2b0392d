"""
CLI interface module for jellyframe.

Provides a Typer-based command-line interface for resolving, probing,
loading, and prefetching catalog artwork.
"""

from __future__ import annotations

__all__: list[str] = []
