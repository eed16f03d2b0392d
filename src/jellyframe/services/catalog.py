"""
Catalog file loader.

Reads catalog items exported from the media server as JSON, either a bare
array of items or an object with an ``"items"`` array.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from jellyframe.exceptions import CatalogError
from jellyframe.models.catalog_item import CatalogItem

logger = logging.getLogger(__name__)

_ITEMS_ADAPTER = TypeAdapter(List[CatalogItem])


def load_catalog(path: Union[str, Path]) -> List[CatalogItem]:
    """Load catalog items from a JSON file.

    Parameters
    ----------
    path : str | Path
        File to read.

    Returns
    -------
    List[CatalogItem]
        Items in file order.

    Raises
    ------
    CatalogError
        If the file cannot be read, is not valid JSON, or holds invalid items.
    """
    source = Path(path)
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except OSError as e:
        raise CatalogError(f"Cannot read catalog: {e}", source=str(source)) from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON: {e}", source=str(source)) from e

    if isinstance(raw, dict):
        raw = raw.get("items")
    if not isinstance(raw, list):
        raise CatalogError(
            "Catalog must be a JSON array or an object with an 'items' array",
            source=str(source),
        )

    try:
        items = _ITEMS_ADAPTER.validate_python(raw)
    except ValidationError as e:
        raise CatalogError(
            f"Invalid catalog item: {e.errors()[0]['msg']}", source=str(source)
        ) from e

    logger.debug("Loaded %d catalog item(s) from %s", len(items), source)
    return items


def find_item(items: List[CatalogItem], item_id: str) -> Optional[CatalogItem]:
    """Return the item with *item_id*, or None."""
    return next((item for item in items if item.id == item_id), None)
