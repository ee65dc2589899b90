"""
Mockview CLI using Typer.

Command-line interface for resume ingestion and mock interviews.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import MockviewSettings
from .db import Database
from .extractors import Document, ParseResult, ProgressEvent
from .logging_config import setup_logging
from .pipeline import ExtractionPipeline

app = typer.Typer(
    name="mockview",
    help="Mockview: AI mock interviews driven by your resume",
    add_completion=False,
)

console = Console()


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"Mockview version {__version__}")
        raise typer.Exit()


def load_config(config_file: Optional[Path]) -> MockviewSettings:
    """Load config from an explicit file or the default locations."""
    if config_file:
        config = MockviewSettings.load_from_yaml(config_file)
    else:
        config = MockviewSettings.load()
    setup_logging(config.log_level, config.log_file)
    return config


def run_ingestion(pipeline: ExtractionPipeline, document: Document) -> ParseResult:
    """Parse a document while rendering a live progress bar."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Validating...", total=100)

        def on_progress(event: ProgressEvent) -> None:
            progress.update(task, completed=event.progress, description=event.message)

        return asyncio.run(pipeline.parse_file(document, on_progress))


def print_result_summary(result: ParseResult) -> None:
    for warning in result.warnings:
        console.print(f"[yellow]⚠ {warning}[/]")

    if result.success:
        pages = f", {result.pages} pages" if result.pages else ""
        console.print(
            f"[bold green]✓ Extracted {len(result.text):,} characters[/] "
            f"with {result.strategy} ({result.processing_time} ms{pages})"
        )
    else:
        console.print(f"[bold red]✗ {result.error}[/]")
        console.print(f"[dim]Strategy: {result.strategy} ({result.processing_time} ms)[/]")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """Mockview: AI mock interviews"""
    pass


@app.command()
def parse(
    file: Path = typer.Argument(
        ...,
        help="PDF resume to extract text from",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write extracted text to this file instead of stdout",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Extract plain text from a PDF resume.

    Tries the local pypdf worker first and falls back to the remote
    Tika worker.
    """
    try:
        config = load_config(config_file)
        pipeline = ExtractionPipeline.from_config(config)

        result = run_ingestion(pipeline, Document.from_path(file))
        print_result_summary(result)
        if not result.success:
            sys.exit(1)

        if output:
            output.write_text(result.text, encoding="utf-8")
            console.print(f"[bold cyan]Saved:[/] {output}")
        else:
            console.print(Panel(result.text, title=file.name, expand=False))

    except Exception as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@app.command()
def strategies(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Show registered extraction strategies and their availability.
    """
    try:
        config = load_config(config_file)
        pipeline = ExtractionPipeline.from_config(config)

        async def probe():
            return [
                (strategy, await strategy.is_available())
                for strategy in pipeline.get_parsing_strategies()
            ]

        table = Table(title="Extraction Strategies")
        table.add_column("Priority", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("Available")

        results = asyncio.run(probe())
        for strategy, available in results:
            table.add_row(
                str(strategy.priority),
                strategy.name,
                "[green]yes[/]" if available else "[red]no[/]",
            )
        console.print(table)
        console.print(f"[cyan]Max file size:[/] {pipeline.get_max_file_size():,} bytes")

        if not any(available for _, available in results):
            console.print("[yellow]No strategy is available; resumes must be pasted as text[/]")
            sys.exit(1)

    except Exception as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@app.command()
def init_config(
    output: Path = typer.Option(
        Path("mockview.yaml"),
        "--output",
        "-o",
        help="Output path for config file",
    ),
    user: bool = typer.Option(
        False,
        "--user",
        help="Create user config at ~/.config/mockview/config.yaml",
    ),
):
    """
    Initialize a configuration file with defaults.
    """
    try:
        config = MockviewSettings()

        if user:
            output = Path.home() / ".config/mockview/config.yaml"

        if output.exists():
            overwrite = typer.confirm(f"Config file exists at {output}. Overwrite?")
            if not overwrite:
                console.print("[yellow]Cancelled[/]")
                raise typer.Exit()

        config.save_to_yaml(output)
        console.print(f"[bold green]✓ Config file created:[/] {output}")
        console.print("\n[cyan]Next steps:[/]")
        console.print("1. Set llm.api_key / llm.model and remote_worker.base_url")
        console.print("2. Run: mockview new-session <resume.pdf> --title <role>")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@app.command()
def new_session(
    file: Path = typer.Argument(
        ...,
        help="PDF resume for the session",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
    ),
    title: str = typer.Option(..., "--title", "-t", help="Job title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Job description"),
    yoe: Optional[str] = typer.Option(None, "--yoe", help="Years of experience required"),
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Database path (default: from config)",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Create an interview session from a PDF resume and job details.
    """
    try:
        from .llm.models import JobDetails

        config = load_config(config_file)
        if db:
            config.index_db = db
        config.ensure_directories()

        pipeline = ExtractionPipeline.from_config(config)
        result = run_ingestion(pipeline, Document.from_path(file))
        print_result_summary(result)
        if not result.success:
            sys.exit(1)

        database = Database(config.index_db)
        session_id = database.create_session(
            result.text,
            JobDetails(title=title, description=description, yoe_required=yoe),
        )
        console.print(f"\n[bold green]✓ Session created:[/] {session_id}")
        console.print(f"Run: mockview interview {session_id}")

    except Exception as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@app.command()
def sessions(
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Database path (default: from config)",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    List interview sessions.
    """
    try:
        config = load_config(config_file)
        if db:
            config.index_db = db

        database = Database(config.index_db)
        table = Table(title="Interview Sessions")
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Job Title")
        table.add_column("Status")
        table.add_column("Rating", justify="right")

        for session in database.list_sessions():
            rating = f"{session.feedback.rating:g}/10" if session.feedback else "-"
            table.add_row(str(session.id), session.job.title or "-", session.status, rating)

        console.print(table)

        stats = database.get_stats()
        console.print(
            f"[cyan]Total:[/] {stats['total_sessions']} "
            f"({stats['pending']} pending, {stats['in-progress']} in progress, "
            f"{stats['completed']} completed)"
        )

    except Exception as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@app.command()
def interview(
    session_id: int = typer.Argument(..., help="Session ID from new-session"),
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Database path (default: from config)",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Run an interactive mock interview for a session.

    Type your answers; enter /done to stop early and get feedback.
    """
    try:
        from .llm.pipeline import InterviewPipeline

        config = load_config(config_file)
        if db:
            config.index_db = db

        database = Database(config.index_db)
        pipeline = InterviewPipeline(config, database)

        console.print(f"\n[bold cyan]Interview session {session_id}[/]\n")
        console.print(f"[bold magenta]Interviewer:[/] {pipeline.start(session_id)}")

        while True:
            answer = console.input("\n[bold green]You:[/] ").strip()
            if not answer:
                continue
            if answer == "/done":
                break

            turn = pipeline.answer(session_id, answer)
            console.print(f"\n[bold magenta]Interviewer:[/] {turn.message}")
            if turn.end:
                break

        with console.status("Preparing your feedback report..."):
            feedback = pipeline.finish(session_id)

        console.print(Panel(feedback.overall, title=f"Overall rating: {feedback.rating:g}/10"))
        if feedback.strengths:
            console.print("[bold green]Strengths:[/]")
            for item in feedback.strengths:
                console.print(f"  • {item}")
        if feedback.weaknesses:
            console.print("[bold yellow]Areas to improve:[/]")
            for item in feedback.weaknesses:
                console.print(f"  • {item}")
        console.print(f"\n[bold cyan]Suggestions:[/] {feedback.suggestions}")

    except Exception as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


def main_cli():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main_cli()
