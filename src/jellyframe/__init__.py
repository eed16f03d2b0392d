"""
jellyframe - Artwork pipeline for a media server TV front-end.

Resolves which server image to show for a catalog item, fetches it with
classified error recovery, prefetches artwork around the focused item, and
pages large catalogs through memory.
"""

from __future__ import annotations

__version__ = "0.4.0"
__author__ = "jellyframe"
__email__ = "noreply@jellyframe.dev"
__license__ = "AGPL-3.0-or-later"

__all__ = ["__version__", "__author__", "__email__", "__license__"]
