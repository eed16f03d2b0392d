"""
Configuration management module for jellyframe.

Handles application settings and environment variables for the image
pipeline (cache budgets, prefetch window, retry policy, paging).
"""

from __future__ import annotations

__all__: list[str] = []
