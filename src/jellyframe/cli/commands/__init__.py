"""CLI command groups for jellyframe."""

from __future__ import annotations

__all__: list[str] = []
