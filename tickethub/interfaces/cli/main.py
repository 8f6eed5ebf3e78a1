"""
CLI Main - Typer-based command-line interface.

Usage:
    tickethub init
    tickethub search "login bug status:open"
    tickethub rebuild
    tickethub serve
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from tickethub.config import TicketHubError

app = typer.Typer(
    name="tickethub",
    help="TicketHub - Ticket and comment search",
    add_completion=False,
)
console = Console()


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    from tickethub.config import get_settings

    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def search(
    query: str = typer.Argument("", help="Search query (supports label:, status:, assignee:, creator:)"),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Number of results"),
    offset: int = typer.Option(0, "--offset", min=0, help="Result offset"),
    db: Path | None = typer.Option(None, "--db", help="Database path"),
) -> None:
    """Search tickets and ticket comments."""
    asyncio.run(_search_async(query, limit, offset, db))


async def _search_async(query: str, limit: int, offset: int, db: Path | None) -> None:
    """Async search implementation."""
    from tickethub.adapters.sqlite import SQLiteRepository
    from tickethub.config import get_settings
    from tickethub.domains.search import SearchExecutor, SearchIndexStore, SearchService

    settings = get_settings()
    db_path = db or settings.db_path
    store = SearchIndexStore(db_path)
    repo = SQLiteRepository(db_path)

    try:
        await store.initialize()
        service = SearchService(
            store,
            repo,
            executor=SearchExecutor(store, snippet_max_length=settings.snippet_max_length),
            max_limit=settings.search_max_limit,
        )
        page = await service.search(query, limit=limit, offset=offset)
    except TicketHubError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
    finally:
        await store.close()
        await repo.close()

    if not page.results:
        console.print(f"[yellow]No results for:[/yellow] {query or '(everything)'}")
        return

    table = Table(
        title=f"Page {page.current_page}/{page.total_pages} ({page.total_count} matches)"
    )
    table.add_column("Type", style="cyan")
    table.add_column("ID", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Status")
    table.add_column("Rank", justify="right", style="dim")
    table.add_column("Snippet")

    for result in page.results:
        table.add_row(
            result.type,
            str(result.id),
            result.title,
            result.status or "",
            f"{result.rank:.3f}",
            result.snippet.replace("\n", " "),
        )

    console.print(table)


@app.command()
def rebuild(
    db: Path | None = typer.Option(None, "--db", help="Database path"),
) -> None:
    """Rebuild the search index from stored tickets and comments."""
    asyncio.run(_rebuild_async(db))


async def _rebuild_async(db: Path | None) -> None:
    """Async rebuild implementation."""
    from tickethub.adapters.sqlite import SQLiteRepository
    from tickethub.config import get_settings
    from tickethub.domains.search import SearchIndexStore

    db_path = db or get_settings().db_path
    store = SearchIndexStore(db_path)
    repo = SQLiteRepository(db_path)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Rebuilding search index...", total=None)
        try:
            await repo.initialize()
            await store.initialize()
            counts = await store.rebuild_all(repo)
        except TicketHubError as e:
            console.print(f"[red]Error:[/red] {e.message}")
            raise typer.Exit(1)
        finally:
            await store.close()
            await repo.close()

    console.print(
        f"\n[green]Index rebuilt:[/green] {counts['tickets']} tickets, "
        f"{counts['comments']} comments"
    )


@app.command()
def init(
    db: Path | None = typer.Option(None, "--db", help="Database path"),
) -> None:
    """Create the record tables and search indexes."""
    asyncio.run(_init_async(db))


async def _init_async(db: Path | None) -> None:
    """Async initialization."""
    from tickethub.adapters.sqlite import SQLiteRepository
    from tickethub.config import get_settings
    from tickethub.domains.search import SearchIndexStore

    db_path = db or get_settings().db_path
    store = SearchIndexStore(db_path)
    repo = SQLiteRepository(db_path)

    try:
        await repo.initialize()
        await store.initialize()
        stats = await store.get_stats()
    finally:
        await store.close()
        await repo.close()

    console.print("\n[green]Initialization complete![/green]")
    console.print(f"[dim]Database: {db_path}[/dim]")
    console.print(
        f"[dim]Indexed: {stats['ticket']} tickets, {stats['comment']} comments[/dim]"
    )


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    console.print("\n[green]Starting TicketHub search API[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "tickethub.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from tickethub import __version__

    console.print(f"TicketHub v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
