"""
Command Line Interface for TeacherVibes.
"""

import asyncio
from typing import List, Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..catalog.aggregator import CatalogAggregator
from ..catalog.enums import KeyStage, SortBy, Subject
from ..catalog.errors import CatalogLoadError
from ..catalog.schemas import FilterSpec
from ..catalog.view import CatalogView
from ..config import get_settings
from ..db.base import get_session_local, init_database, run_migrations
from ..gateway import SqlGateway
from ..logs import configure_logging

app = typer.Typer(help="TeacherVibes - community library of teaching artifacts")
console = Console()


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    dev: bool = typer.Option(False, help="Run in development mode (auto-reload)"),
):
    """Start the API server."""
    settings = get_settings()
    rprint(Panel.fit("Starting TeacherVibes", style="bold blue"))
    uvicorn.run(
        "teachervibes.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=dev,
    )


@app.command("init-db")
def init_db():
    """Create all database tables."""
    init_database()
    console.print("✅ Database initialized")


@app.command()
def migrate(
    revision: str = typer.Option("head", help="Alembic revision to upgrade to"),
):
    """Apply database migrations."""
    run_migrations(revision=revision)
    console.print(f"✅ Database upgraded to {revision}")


@app.command()
def browse(
    search: str = typer.Option("", help="Search titles, descriptions and prompts"),
    subject: List[Subject] = typer.Option([], help="Subject filter (repeatable)"),
    key_stage: List[KeyStage] = typer.Option([], help="Key stage filter (repeatable)"),
    sort_by: SortBy = typer.Option(SortBy.NEWEST, help="Sort order"),
):
    """Print the catalog as a table, filtered like the browse screen."""
    configure_logging(get_settings().log_level)
    view = CatalogView(CatalogAggregator(SqlGateway(get_session_local())))

    try:
        asyncio.run(view.refresh())
    except CatalogLoadError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(1)

    spec = FilterSpec(
        search_text=search,
        subjects=frozenset(subject),
        key_stages=frozenset(key_stage),
        sort_by=sort_by,
    )
    visible = view.visible(spec)

    if spec.is_default:
        title = f"{len(view.artifacts)} artifacts"
    else:
        title = f"Showing {len(visible)} of {len(view.artifacts)} artifacts"
    table = Table(title=title)
    table.add_column("Title", style="cyan")
    table.add_column("Subjects")
    table.add_column("Key Stages")
    table.add_column("Votes", justify="right")
    table.add_column("Favorites", justify="right")
    table.add_column("Created")

    for artifact in visible:
        table.add_row(
            artifact.title,
            ", ".join(s.value for s in artifact.subjects),
            ", ".join(k.value for k in artifact.key_stages),
            str(artifact.vote_count),
            str(artifact.favorite_count),
            artifact.created_at.strftime("%Y-%m-%d"),
        )

    console.print(table)


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
