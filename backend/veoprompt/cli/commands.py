"""CLI commands for veoprompt using Typer and Rich.

Implements 4 CLI commands:
- process: Run the full pipeline on a local video file
- validate: Check a saved model output against the Veo prompt shape
- template: Print the generation prompt for a saved analysis text
- models: List OpenRouter models available to the configured key
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from veoprompt import validate_credentials
from veoprompt.config import get_settings
from veoprompt.errors import InputValidationError, PipelineError
from veoprompt.orchestrator.factory import ANALYSIS_BACKENDS, build_openrouter_client, build_pipeline
from veoprompt.schemas.video import VideoAsset
from veoprompt.services.file_validator import guess_video_mime, validate_video_file
from veoprompt.services.prompt_template import build_generation_prompt
from veoprompt.services.response_validator import parse_veo_prompt

app = typer.Typer(name="veoprompt", help="Turn a video into a Veo 3 JSON prompt")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def process(
    video: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Video file to analyze"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON prompt to this file"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Gemini model (disables fallback)"),
    json_model: Optional[str] = typer.Option(None, "--json-model", help="OpenRouter model for JSON generation"),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help="gemini_files or vertex_gcs"),
    cleanup: Optional[bool] = typer.Option(None, "--cleanup/--no-cleanup", help="Delete the uploaded video afterwards"),
    show_analysis: bool = typer.Option(False, "--show-analysis", help="Print Gemini's description too"),
):
    """Analyze a video and generate a Veo 3 JSON prompt."""
    if backend is not None and backend not in ANALYSIS_BACKENDS:
        console.print(f"[red]Error:[/red] Invalid backend: {backend}. Choose: {', '.join(ANALYSIS_BACKENDS)}")
        raise typer.Exit(code=2)

    mime_type = guess_video_mime(video)
    size = video.stat().st_size
    validation = validate_video_file(size, mime_type, video.name)
    if not validation.valid:
        console.print(f"[red]Error:[/red] {validation.reason}")
        raise typer.Exit(code=2)

    settings = get_settings()
    for warning in validate_credentials(settings):
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    console.print(Panel.fit(
        f"[bold]Video:[/bold] {video.name}\n"
        f"[bold]Type:[/bold] {mime_type}\n"
        f"[bold]Size:[/bold] {size / (1024 * 1024):.1f} MB\n"
        f"[bold]Backend:[/bold] {backend or settings.pipeline.analysis_backend}",
        title="Veo Prompt",
    ))

    asyncio.run(_process_async(
        video, mime_type, output, model, json_model, backend, cleanup, show_analysis,
    ))


async def _process_async(
    video: Path, mime_type: str, output: Optional[Path], model: Optional[str],
    json_model: Optional[str], backend: Optional[str], cleanup: Optional[bool],
    show_analysis: bool,
):
    """Async implementation of process command."""
    try:
        pipeline = build_pipeline(
            get_settings(),
            backend=backend,
            cleanup=cleanup,
            analysis_model=model,
            generation_model=json_model,
        )
    except PipelineError as e:
        console.print(f"[red]✗ Configuration error:[/red] {e.message}")
        raise typer.Exit(code=1)

    asset = VideoAsset(data=video.read_bytes(), mime_type=mime_type, filename=video.name)

    try:
        with console.status("[bold green]Starting pipeline...") as status:
            def callback_wrapper(msg: str):
                status.update(f"[bold green]{msg}")

            result = await pipeline.run(asset, progress_callback=callback_wrapper)

    except KeyboardInterrupt:
        console.print()
        console.print("[yellow]Processing interrupted.[/yellow]")
        raise typer.Exit(code=130)

    except InputValidationError as e:
        console.print(f"[red]✗ Invalid input:[/red] {e.message}")
        raise typer.Exit(code=2)

    except PipelineError as e:
        console.print()
        console.print(f"[red]✗ Pipeline failed:[/red] {e.message}")
        if e.raw:
            console.print(Panel(e.raw, title="Raw model output", border_style="red"))
        raise typer.Exit(code=1)

    finally:
        await pipeline.close()

    timings = ", ".join(f"{step} {seconds:.1f}s" for step, seconds in result.step_durations.items())
    console.print(f"[green]✓[/green] Prompt generated ({timings})")

    if show_analysis:
        console.print(Panel(result.analysis_text, title=f"Analysis ({result.analysis_model})"))

    rendered = json.dumps(result.veo_prompt, indent=2, ensure_ascii=False)
    if output:
        output.write_text(rendered + "\n", encoding="utf-8")
        console.print(f"[green]Output:[/green] {output}")
    else:
        console.print_json(rendered)


@app.command()
def validate(
    raw_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Saved model output"),
):
    """Validate a saved model output as a Veo 3 prompt."""
    result = parse_veo_prompt(raw_file.read_text(encoding="utf-8"))
    if not result.success:
        console.print(f"[red]✗ Invalid:[/red] {result.error}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Valid Veo prompt ({len(result.data)} top-level keys)")


@app.command()
def template(
    analysis_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Saved analysis text"),
):
    """Print the generation prompt for a saved analysis text."""
    text = analysis_file.read_text(encoding="utf-8")
    if not text.strip():
        console.print("[red]Error:[/red] Analysis text is empty")
        raise typer.Exit(code=1)
    typer.echo(build_generation_prompt(text))


@app.command()
def models(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Only show model IDs containing this text"),
):
    """List OpenRouter models available to the configured key."""
    asyncio.run(_models_async(search))


async def _models_async(search: Optional[str]):
    """Async implementation of models command."""
    client = build_openrouter_client(get_settings())
    try:
        entries = await client.list_models()
    except PipelineError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1)
    finally:
        await client.close()

    if search:
        entries = [m for m in entries if search.lower() in str(m.get("id", "")).lower()]

    if not entries:
        console.print("[yellow]No models found.[/yellow]")
        return

    table = Table(title="OpenRouter Models")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Context", justify="right")

    for entry in entries:
        context = entry.get("context_length")
        table.add_row(
            str(entry.get("id", "")),
            str(entry.get("name", "")),
            f"{context:,}" if isinstance(context, int) else "-",
        )

    console.print(table)
