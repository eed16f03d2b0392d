"""
CLI commands for the image pipeline.

Provides ``resolve``, ``probe``, ``load`` and ``warm``, which run the
resolver, fetcher, orchestrator and prefetch scheduler against a catalog
export on disk and a live media server.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from jellyframe.config.settings import Settings, settings
from jellyframe.container import ImagePipeline
from jellyframe.exceptions import CatalogError
from jellyframe.models.catalog_item import CatalogItem
from jellyframe.models.enums import PresentationContext
from jellyframe.models.image import ImageFailed, ImageLoaded
from jellyframe.services.catalog import find_item, load_catalog
from jellyframe.services.error_classifier import describe
from jellyframe.services.image_cache import CacheStats
from jellyframe.services.image_resolver import ImageUrlResolver, context_for_kind
from jellyframe.services.prefetch import PrefetchStats

console = Console()

# Valid --context values (from PresentationContext enum)
_VALID_CONTEXTS = {c.value for c in PresentationContext}


def _build_pipeline(config: Optional[Settings] = None) -> ImagePipeline:
    """Build an ImagePipeline from application settings.

    Parameters
    ----------
    config : Settings | None
        Settings override; the global settings are used when omitted.

    Returns
    -------
    ImagePipeline
        Pipeline owning its own HTTP client and cache.
    """
    return ImagePipeline(settings=config or settings)


def _build_resolver() -> ImageUrlResolver:
    return ImageUrlResolver(
        settings.server_url,
        api_key=settings.api_key,
        quality=settings.image_quality,
    )


def format_size(size_bytes: int) -> str:
    """Convert bytes to human-readable format."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


def _read_catalog(catalog: Path) -> List[CatalogItem]:
    try:
        return load_catalog(catalog)
    except CatalogError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(code=2)


def _select_item(catalog: Path, item_id: str) -> CatalogItem:
    item = find_item(_read_catalog(catalog), item_id)
    if item is None:
        console.print(f'[red]Error: Item "{item_id}" not found in {catalog}[/red]')
        raise typer.Exit(code=2)
    return item


def _parse_context(
    value: Optional[str], item: CatalogItem
) -> PresentationContext:
    if value is None:
        return context_for_kind(item.kind)
    if value.lower() not in _VALID_CONTEXTS:
        console.print(
            f'[red]Error: Invalid --context "{value}". '
            f"Must be one of: {', '.join(sorted(_VALID_CONTEXTS))}[/red]"
        )
        raise typer.Exit(code=2)
    return PresentationContext(value.lower())


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


def resolve(
    catalog: Path = typer.Argument(..., help="Catalog export (JSON)"),
    item_id: str = typer.Option(..., "--item", "-i", help="Item id to resolve"),
    context: Optional[str] = typer.Option(
        None, "--context", "-c", help="Card context (defaults by item kind)"
    ),
) -> None:
    """
    Show the candidate fallback chain for an item.

    Examples:
        jellyframe resolve catalog.json --item abc123
        jellyframe resolve catalog.json --item abc123 --context episode
    """
    item = _select_item(catalog, item_id)
    ctx = _parse_context(context, item)
    candidates = _build_resolver().resolve(item, ctx)

    table = Table(title=f"Candidates for {item.name or item.id} ({ctx.value})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Role", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("URL", overflow="fold")

    for position, candidate in enumerate(candidates, start=1):
        table.add_row(
            str(position),
            candidate.role.value,
            f"{candidate.width}x{candidate.height}",
            candidate.url or "[yellow](placeholder)[/yellow]",
        )

    console.print(table)


# ---------------------------------------------------------------------------
# probe
# ---------------------------------------------------------------------------


def probe(
    catalog: Path = typer.Argument(..., help="Catalog export (JSON)"),
    item_id: str = typer.Option(..., "--item", "-i", help="Item id to probe"),
    context: Optional[str] = typer.Option(
        None, "--context", "-c", help="Card context (defaults by item kind)"
    ),
) -> None:
    """
    Fetch every candidate URL once and report how each one classifies.

    Examples:
        jellyframe probe catalog.json --item abc123
    """
    item = _select_item(catalog, item_id)
    ctx = _parse_context(context, item)

    try:
        asyncio.run(_probe_async(item=item, context=ctx))
    except KeyboardInterrupt:
        console.print("\n[yellow]Probe interrupted by user[/yellow]")
        raise typer.Exit(code=130)


async def _probe_async(*, item: CatalogItem, context: PresentationContext) -> None:
    """Async implementation of the probe command."""
    async with _build_pipeline() as pipeline:
        reports = await pipeline.orchestrator.probe(item, context)

    if not reports:
        console.print(f"[yellow]{item.id} has no image tags for {context.value}[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"Probe: {item.name or item.id} ({context.value})")
    table.add_column("Role", style="cyan")
    table.add_column("Result")
    table.add_column("HTTP", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("URL", overflow="fold")

    for report in reports:
        if report.ok:
            result = f"[green]ok[/green] {report.content_type}"
            size = format_size(report.size_bytes or 0)
        else:
            kind = report.kind.value if report.kind else "unknown"
            result = f"[red]{kind}[/red]"
            size = "-"
        table.add_row(
            report.role.value,
            result,
            str(report.status_code) if report.status_code is not None else "-",
            size,
            report.url,
        )

    console.print(table)

    if not any(report.ok for report in reports):
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# load
# ---------------------------------------------------------------------------


def load(
    catalog: Path = typer.Argument(..., help="Catalog export (JSON)"),
    item_id: str = typer.Option(..., "--item", "-i", help="Item id to load"),
    context: Optional[str] = typer.Option(
        None, "--context", "-c", help="Card context (defaults by item kind)"
    ),
) -> None:
    """
    Load an item's image the way a card does and print each state.

    Examples:
        jellyframe load catalog.json --item abc123 --context poster
    """
    item = _select_item(catalog, item_id)
    ctx = _parse_context(context, item)

    try:
        asyncio.run(_load_async(item=item, context=ctx))
    except KeyboardInterrupt:
        console.print("\n[yellow]Load interrupted by user[/yellow]")
        raise typer.Exit(code=130)


async def _load_async(*, item: CatalogItem, context: PresentationContext) -> None:
    """Async implementation of the load command."""
    failed = False
    async with _build_pipeline() as pipeline:
        async for state in pipeline.orchestrator.load_image(item, context):
            if isinstance(state, ImageLoaded):
                console.print(
                    f"[green]success[/green] {state.role.value} "
                    f"({format_size(state.payload.size_bytes)}, "
                    f"{state.payload.content_type})"
                )
                console.print(f"  {state.url}", soft_wrap=True)
            elif isinstance(state, ImageFailed):
                failed = True
                console.print(
                    f"[red]error[/red] {state.kind.value}: {describe(state.kind)}"
                )
            else:
                console.print(f"[cyan]loading[/cyan] {state.item_id}")

    if failed:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# warm
# ---------------------------------------------------------------------------


def warm(
    catalog: Path = typer.Argument(..., help="Catalog export (JSON)"),
    focus: int = typer.Option(..., "--focus", "-f", help="Index of the focused item"),
    distance: Optional[int] = typer.Option(
        None, "--distance", "-d", help="Items to warm on each side of the focus"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", help="Number of prefetch workers"
    ),
) -> None:
    """
    Prefetch the images around a focused item and report cache statistics.

    Examples:
        jellyframe warm catalog.json --focus 10
        jellyframe warm catalog.json --focus 10 --distance 4 --workers 2
    """
    items = _read_catalog(catalog)

    if not 0 <= focus < len(items):
        console.print(
            f"[red]Error: --focus must be between 0 and {len(items) - 1}[/red]"
            if items
            else "[red]Error: Catalog is empty[/red]"
        )
        raise typer.Exit(code=2)

    if distance is not None and distance < 0:
        console.print("[red]Error: --distance must be non-negative[/red]")
        raise typer.Exit(code=2)

    if workers is not None and workers <= 0:
        console.print("[red]Error: --workers must be a positive integer[/red]")
        raise typer.Exit(code=2)

    overrides: dict[str, int] = {}
    if distance is not None:
        overrides["preload_distance"] = distance
    if workers is not None:
        overrides["prefetch_workers"] = workers

    try:
        asyncio.run(
            _warm_async(
                items=items,
                focus=focus,
                config=settings.model_copy(update=overrides),
            )
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Prefetch interrupted by user[/yellow]")
        raise typer.Exit(code=130)


async def _warm_async(
    *,
    items: List[CatalogItem],
    focus: int,
    config: Settings,
) -> None:
    """Async implementation of the warm command.

    Parameters
    ----------
    items : List[CatalogItem]
        The list being navigated.
    focus : int
        Index of the focused item.
    config : Settings
        Settings with any command line overrides applied.
    """
    async with _build_pipeline(config) as pipeline:
        scheduler = pipeline.scheduler
        scheduled = scheduler.on_focus_changed(focus, items)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            progress.add_task(f"Prefetching {len(scheduled)} image(s)", total=None)
            await scheduler.join()

        prefetch_stats = scheduler.stats()
        cache_stats = pipeline.cache.stats()

    _display_summary(prefetch_stats=prefetch_stats, cache_stats=cache_stats)

    if prefetch_stats.failed > 0:
        raise typer.Exit(code=1)


def _display_summary(
    *,
    prefetch_stats: PrefetchStats,
    cache_stats: CacheStats,
) -> None:
    """Display prefetch and cache statistics tables."""
    console.print()

    table = Table(title="Prefetch Summary")
    table.add_column("Scheduled", justify="right")
    table.add_column("Completed", style="green", justify="right")
    table.add_column("Failed", style="red", justify="right")
    table.add_column("Dropped", style="yellow", justify="right")
    table.add_column("Skipped", style="blue", justify="right")
    table.add_row(
        str(prefetch_stats.scheduled),
        str(prefetch_stats.completed),
        str(prefetch_stats.failed),
        str(prefetch_stats.dropped),
        str(prefetch_stats.skipped),
    )
    console.print(table)

    cache_table = Table(title="Image Cache")
    cache_table.add_column("Metric", style="cyan")
    cache_table.add_column("Value", justify="right")
    cache_table.add_row("Entries", f"{cache_stats.entries} / {cache_stats.max_entries}")
    cache_table.add_row(
        "Size",
        f"{format_size(cache_stats.size_bytes)} / {format_size(cache_stats.max_bytes)}",
    )
    cache_table.add_row("Hits", str(cache_stats.hits))
    cache_table.add_row("Misses", str(cache_stats.misses))
    cache_table.add_row("Evictions", str(cache_stats.evictions))
    console.print(cache_table)
