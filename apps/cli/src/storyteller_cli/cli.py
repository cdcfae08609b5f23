"""Storyteller CLI - explaining big ideas with small stories."""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from storyteller_core_schemas import (
    Scene,
    SceneStatus,
    StoryboardSnapshot,
    ValidationError,
)
from storyteller_gemini_client import GeminiClient
from storyteller_generators import ImageGenerator, NarrationGenerator
from storyteller_generators.image import DEFAULT_CHARACTER, DEFAULT_STYLE
from storyteller_services import StoryboardOrchestrator

app = typer.Typer(
    name="storyteller",
    help="Explaining big ideas with small stories",
    no_args_is_help=True,
)
console = Console()

STATUS_LABELS = {
    SceneStatus.LOADING: "[cyan]drawing...[/cyan]",
    SceneStatus.READY: "[green]image ready[/green]",
    SceneStatus.UNAVAILABLE: "[red]image could not be loaded[/red]",
}


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def run_async(coro):
    """Run an async coroutine.

    Handles both standalone CLI usage and environments with existing event loops
    (Jupyter notebooks, IDEs, etc.) by using nest_asyncio when needed.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is None:
        return asyncio.run(coro)

    # Event loop already running (Jupyter, IDE, etc.)
    import nest_asyncio

    nest_asyncio.apply()
    return loop.run_until_complete(coro)


def build_client(text_model: Optional[str], image_model: Optional[str]) -> GeminiClient:
    """Create the Gemini client, exiting with a hint if the API key is missing."""
    try:
        return GeminiClient(model=text_model, image_model=image_model)
    except ValueError as e:
        console.print("[red]Error: Missing API key[/red]")
        console.print(f"\n{e}")
        console.print("\n[dim]Set your API key with:[/dim]")
        console.print('  export GOOGLE_API_KEY="your-api-key"')
        raise typer.Exit(1)


def render_scene(scene: Scene, number: int, total: int) -> Panel:
    """Render one scene as a rich panel."""
    body = f"{scene.narration}\n\n{STATUS_LABELS[scene.status]}"
    return Panel(body, title=f"Scene {number} / {total}", border_style="magenta")


def render_summary(snapshot: StoryboardSnapshot) -> Table:
    """Render the whole storyboard as a table."""
    table = Table(title="Storyboard")
    table.add_column("#", justify="right")
    table.add_column("Narration")
    table.add_column("Image")
    for number, scene in enumerate(snapshot.scenes, start=1):
        table.add_row(str(number), scene.narration, STATUS_LABELS[scene.status])
    return table


def make_progress_printer():
    """Build a snapshot listener that prints each scene as it resolves."""
    state = {"resolved": 0}

    def on_snapshot(snapshot: StoryboardSnapshot) -> None:
        if snapshot.resolved_count == 0:
            console.print(f"\n[bold]{snapshot.length} scenes narrated.[/bold] Drawing illustrations...")
            return

        # Print the scenes resolved since the previous snapshot
        for index in range(state["resolved"], snapshot.resolved_count):
            console.print(render_scene(snapshot.scenes[index], index + 1, snapshot.length))
        state["resolved"] = snapshot.resolved_count

    return on_snapshot


def browse(orchestrator: StoryboardOrchestrator) -> None:
    """Prev/next carousel over the finished storyboard."""
    while True:
        snapshot = orchestrator.snapshot()
        scene = snapshot.current_scene
        if scene is None:
            return

        console.print(render_scene(scene, snapshot.cursor + 1, snapshot.length))
        choice = typer.prompt("[p]rev / [n]ext / [q]uit", default="n").strip().lower()

        if choice.startswith("q"):
            return
        if choice.startswith("p"):
            orchestrator.prev()
        else:
            orchestrator.next()


@app.command()
def tell(
    concept: str = typer.Argument(..., help="Concept to explain, e.g. 'How rockets work'"),
    browse_scenes: bool = typer.Option(False, "--browse", "-b", help="Browse the scenes afterwards"),
    text_model: Optional[str] = typer.Option(None, "--text-model", help="Gemini model for narration"),
    image_model: Optional[str] = typer.Option(None, "--image-model", help="Imagen model for illustrations"),
    character: str = typer.Option(DEFAULT_CHARACTER, help="Protagonist description used in every image"),
    style: str = typer.Option(DEFAULT_STYLE, help="Art style used in every image"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Tell a five-scene illustrated story that explains a concept.

    Examples:
        storyteller tell "How rockets work"
        storyteller tell "Why the sky is blue" --browse
    """
    setup_logging(verbose)

    if not concept.strip():
        console.print("[red]Please enter a concept to explain.[/red]")
        raise typer.Exit(1)

    client = build_client(text_model, image_model)
    orchestrator = StoryboardOrchestrator(
        narration_generator=NarrationGenerator(client),
        image_generator=ImageGenerator(client, character=character, style=style),
    )
    orchestrator.subscribe(make_progress_printer())

    console.print(Panel(concept, title="Concept", border_style="blue"))

    try:
        with console.status("Writing the story..."):
            snapshot = run_async(orchestrator.generate_storyboard(concept))
    except ValidationError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    if snapshot is None or snapshot.error:
        console.print(f"[red]{orchestrator.error}[/red]")
        raise typer.Exit(1)

    console.print()
    console.print(render_summary(snapshot))

    unavailable = sum(1 for s in snapshot.scenes if s.status == SceneStatus.UNAVAILABLE)
    if unavailable:
        console.print(f"[yellow]{unavailable} illustration(s) could not be generated.[/yellow]")

    if browse_scenes:
        browse(orchestrator)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Start the Storyteller API server."""
    import uvicorn

    from storyteller_api.app import create_app

    setup_logging(verbose)

    console.print(f"\n[bold]Storyteller API Server[/bold]")
    console.print(f"  URL: http://{host}:{port}")
    console.print(f"  Docs: http://{host}:{port}/docs")
    console.print()

    if reload:
        uvicorn.run(
            "storyteller_api.app:app",
            host=host,
            port=port,
            reload=True,
        )
    else:
        uvicorn.run(create_app(), host=host, port=port)


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
