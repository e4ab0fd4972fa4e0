"""
CareerPal Command Line Interface

Provides CLI commands for instant match scores, semantic search over
saved applications and embedding cache maintenance.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from careerpal.utils.exceptions import CareerPalError

app = typer.Typer(
    name="careerpal",
    help="CareerPal local semantic matching CLI",
    add_completion=False,
)
embeddings_app = typer.Typer(help="Inspect and manage cached embeddings.")
app.add_typer(embeddings_app, name="embeddings")

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
):
    """Configure logging before any command runs."""
    from careerpal.utils.logger import setup_logging

    setup_logging("DEBUG" if verbose else None)


async def _load_model(ctx) -> None:
    """Initialize the embedding model with a progress bar."""
    from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Loading embedding model...", total=100)
        await ctx.embedding_service.initialize(
            lambda p: progress.update(task, completed=p.progress, description=p.status)
        )


def _run(coro) -> None:
    """Run a coroutine, turning CareerPal errors into a clean exit."""
    try:
        asyncio.run(coro)
    except CareerPalError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show application version."""
    from careerpal import __version__, __app_name__

    console.print(f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]")


@app.command()
def info():
    """Show configuration."""
    from careerpal.utils.config import get_settings

    settings = get_settings()

    table = Table(title="CareerPal Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Storage Provider", settings.storage.provider)
    if settings.storage.provider == "local":
        persist = str(settings.storage.persist_path) if settings.storage.persist else "in-memory"
        table.add_row("Local Snapshot", persist)
    else:
        table.add_row("Database Host", settings.database.host)
        table.add_row("Database Name", settings.database.name)
    table.add_row("Embedding Model", settings.ml.embedding_model)
    table.add_row("Embedding Dimension", str(settings.ml.embedding_dimension))
    table.add_row("ML Device", settings.ml.device)
    table.add_row(
        "Score Range",
        f"{settings.matching.score_floor:.2f} - {settings.matching.score_ceiling:.2f}",
    )
    table.add_row("Log Level", settings.logging.level)

    console.print(table)


@app.command()
def init_db():
    """Create MongoDB indexes (server mode only)."""
    from careerpal.data.database import DatabaseManager

    async def _init() -> None:
        db_manager = DatabaseManager()
        try:
            console.print("  Checking database connection...")
            if not await db_manager.check_connection():
                console.print("[red]Error: Could not connect to MongoDB.[/red]")
                console.print("[dim]Make sure MongoDB is running and connection settings are correct.[/dim]")
                raise typer.Exit(1)
            console.print("  [green]✓[/green] Connected to MongoDB")

            console.print("  Creating indexes...")
            await db_manager.ensure_indexes()
            console.print("  [green]✓[/green] Indexes created")
        finally:
            db_manager.close()

    console.print("[yellow]Initializing database...[/yellow]")
    _run(_init())
    console.print("\n[green]Database initialized successfully![/green]")


@app.command()
def match(
    cv_file: Path = typer.Argument(..., help="Plain-text CV file"),
    job_files: list[Path] = typer.Argument(..., help="Job description file(s)"),
):
    """Score a CV against one or more job descriptions."""
    from careerpal.core.app_context import AppContext
    from careerpal.core.matching import calculate_batch_match_scores, get_match_level

    for path in [cv_file, *job_files]:
        if not path.is_file():
            console.print(f"[red]Error: File does not exist: {path}[/red]")
            raise typer.Exit(1)

    cv_text = cv_file.read_text(encoding="utf-8")
    job_texts = [p.read_text(encoding="utf-8") for p in job_files]

    level_styles = {"excellent": "green", "good": "cyan", "fair": "yellow", "poor": "red"}

    async def _match() -> None:
        ctx = AppContext.build()
        try:
            await _load_model(ctx)
            scores = await calculate_batch_match_scores(cv_text, job_texts, ctx.embedding_service)
        finally:
            await ctx.close()

        table = Table(title=f"Match Scores for {cv_file.name}")
        table.add_column("Job Description", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Level")

        for path, score in sorted(zip(job_files, scores), key=lambda x: x[1], reverse=True):
            level = get_match_level(score).value
            style = level_styles[level]
            table.add_row(path.name, f"[{style}]{score}[/{style}]", level)

        console.print(table)

    _run(_match())


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=0, help="Maximum results"),
    min_score: float = typer.Option(0.0, "--min-score", "-s", help="Minimum similarity"),
    lexical: bool = typer.Option(False, "--lexical", "-l", help="Text search only, no model"),
    explain: bool = typer.Option(False, "--explain", "-e", help="Show best matching field"),
):
    """Search saved applications by meaning or keywords."""
    from careerpal.core.app_context import AppContext
    from careerpal.core.search import SearchOptions, hybrid_search, is_semantic_query

    async def _search() -> None:
        ctx = AppContext.build()
        try:
            applications = await ctx.storage.get_applications()
            if not applications:
                console.print("[yellow]No saved applications.[/yellow]")
                return

            service = None
            if not lexical:
                if not is_semantic_query(query):
                    console.print("[dim]Keyword-style query; results blend text and semantic matches.[/dim]")
                await _load_model(ctx)
                service = ctx.embedding_service

            options = SearchOptions(limit=limit, min_score=min_score, explain=explain)
            results = await hybrid_search(query, applications, service, options, store=ctx.storage)
        finally:
            await ctx.close()

        if not results:
            console.print("[yellow]No matching applications.[/yellow]")
            return

        table = Table(title=f"Results for: {query}")
        table.add_column("Score", justify="right", style="green")
        table.add_column("Company", style="cyan")
        table.add_column("Role")
        table.add_column("Status")
        table.add_column("Matched On", style="dim")

        for result in results:
            application = result.item
            table.add_row(
                f"{result.score:.2f}",
                application.company,
                application.role,
                application.status.value,
                result.matched_on,
            )

        console.print(table)

    _run(_search())


@app.command()
def index():
    """Compute or refresh cached embeddings for all stored records."""
    from careerpal.core.app_context import AppContext
    from careerpal.utils.constants import EmbeddingSourceType

    async def _index() -> None:
        ctx = AppContext.build()
        try:
            await _load_model(ctx)
            cache = ctx.embedding_cache

            applications = await ctx.storage.get_applications()
            await cache.get_or_create_many(
                EmbeddingSourceType.APPLICATION,
                [(a.id, a.searchable_text) for a in applications],
            )
            console.print(f"  [green]✓[/green] Applications: {len(applications)}")

            cvs = await ctx.storage.get_cvs()
            await cache.get_or_create_many(EmbeddingSourceType.CV, [(cv.id, cv.text) for cv in cvs])
            console.print(f"  [green]✓[/green] CVs: {len(cvs)}")

            profile = await ctx.storage.get_profile()
            if profile is not None:
                await cache.get_or_create(
                    EmbeddingSourceType.PROFILE, profile.id, profile.profile_text
                )
                console.print("  [green]✓[/green] Profile")
        finally:
            await ctx.close()

    console.print("[yellow]Indexing embeddings...[/yellow]")
    _run(_index())
    console.print("\n[green]Index up to date![/green]")


@embeddings_app.command("stats")
def embeddings_stats():
    """Show cached embedding counts."""
    from careerpal.core.app_context import AppContext
    from careerpal.utils.constants import EmbeddingSourceType

    async def _stats() -> None:
        ctx = AppContext.build()
        try:
            counts = {
                source_type: len(await ctx.storage.get_all_embeddings(source_type))
                for source_type in EmbeddingSourceType
            }
            stats = await ctx.storage.get_storage_stats()
        finally:
            await ctx.close()

        table = Table(title="Embedding Cache")
        table.add_column("Source", style="cyan")
        table.add_column("Embeddings", justify="right", style="green")

        for source_type, count in counts.items():
            table.add_row(source_type.value, str(count))
        table.add_row("[bold]total[/bold]", f"[bold]{stats.embedding_count}[/bold]")

        console.print(table)
        console.print(f"[dim]Storage used: {stats.used_bytes} bytes[/dim]")

    _run(_stats())


@embeddings_app.command("clear")
def embeddings_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete all cached embeddings."""
    from careerpal.core.app_context import AppContext

    if not yes and not typer.confirm("Delete all cached embeddings?"):
        raise typer.Exit(0)

    async def _clear() -> None:
        ctx = AppContext.build()
        try:
            await ctx.storage.clear_embeddings()
        finally:
            await ctx.close()

    _run(_clear())
    console.print("[green]Embeddings cleared.[/green]")


if __name__ == "__main__":
    app()
