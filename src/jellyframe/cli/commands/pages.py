"""
CLI command for browsing a catalog export page by page.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from jellyframe.config.settings import settings
from jellyframe.exceptions import CatalogError
from jellyframe.models.catalog_item import CatalogItem
from jellyframe.services.catalog import load_catalog
from jellyframe.services.pagination import PaginationManager

console = Console()


def show_page(
    catalog: Path = typer.Argument(..., help="Catalog export (JSON)"),
    page_size: Optional[int] = typer.Option(
        None, "--page-size", "-s", help="Items per page (default from settings)"
    ),
    page: int = typer.Option(1, "--page", "-p", help="Page to show (1-based)"),
    search: Optional[str] = typer.Option(
        None, "--search", help="Only show items on this page matching the text"
    ),
) -> None:
    """
    Show one page of a catalog export.

    Examples:
        jellyframe pages catalog.json
        jellyframe pages catalog.json --page-size 20 --page 3
    """
    if page_size is not None and page_size < 1:
        console.print("[red]Error: --page-size must be a positive integer[/red]")
        raise typer.Exit(code=2)

    try:
        items = load_catalog(catalog)
    except CatalogError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(code=2)

    pager: PaginationManager[CatalogItem] = PaginationManager(
        default_page_size=settings.page_size
    )
    pager.initialize(items, page_size=page_size)

    if not pager.go_to(page - 1):
        console.print(
            f"[red]Error: --page must be between 1 and {pager.total_pages}[/red]"
        )
        raise typer.Exit(code=2)

    shown = pager.search_current_page(search) if search else list(pager.current_items)
    start = pager.window.start_index

    table = Table(title=pager.page_info())
    table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Kind", style="magenta")

    for offset, item in enumerate(pager.current_items):
        if item in shown:
            table.add_row(str(start + offset), item.id, item.name, item.kind.value)

    console.print(table)
    if pager.has_next:
        console.print(f"[dim]Next: --page {page + 1}[/dim]")
