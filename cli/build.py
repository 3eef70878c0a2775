"""Build command - Assemble a story's Final Video from its asset bundle"""

import asyncio
import json
import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich import box

from core.assets import StoryStore
from core.errors import InvalidStoryIdError, StoryNotFoundError
from core.models.build import BuildResult, BuildStage
from core.orchestrator import PipelineOrchestrator
from core.renderer import FFmpegRenderer
from server.config import settings

console = Console()


async def _build_async(story_id: str, stories_dir: str, keep_scratch: bool, quiet: bool) -> BuildResult:
    store = StoryStore(root=stories_dir)
    bundle = store.load_bundle(story_id)

    renderer = FFmpegRenderer(
        config=settings.render_config(),
        max_concurrent_encoders=settings.max_concurrent_encoders,
        ffmpeg_path=settings.ffmpeg_path,
        ffprobe_path=settings.ffprobe_path
    )
    pipeline_config = settings.pipeline_config()
    pipeline_config.keep_scratch = keep_scratch or pipeline_config.keep_scratch
    orchestrator = PipelineOrchestrator(
        renderer=renderer,
        config=pipeline_config,
        subtitle_config=settings.subtitle_config()
    )

    def on_stage(stage: BuildStage):
        if not quiet and stage not in (BuildStage.DONE, BuildStage.FAILED):
            console.print(f"  [dim]→ {stage.value}[/dim]")

    return await orchestrator.build(bundle, on_stage=on_stage)


@click.command()
@click.argument("story_id")
@click.option("--stories-dir", "-d", default=None, help="Stories root (default: STORIES_DIR or ./stories)")
@click.option("--keep-scratch", is_flag=True, help="Keep intermediate clips for debugging")
@click.option("--json", "as_json", is_flag=True, help="Output the build result as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Show pipeline logs")
def build_cmd(story_id: str, stories_dir: str, keep_scratch: bool, as_json: bool, verbose: bool):
    """
    Build the Final Video for a story.

    STORY_ID is the story directory name under the stories root.

    Examples:

        # Build a story from ./stories/abc123
        storyreel build abc123

        # Build from another stories root and keep the segment clips
        storyreel build abc123 -d /data/stories --keep-scratch
    """
    stories_dir = stories_dir or settings.stories_dir

    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_time=False, show_path=False)]
        )

    if not as_json:
        console.print(f"\n[bold]Building story {story_id}[/bold]")

    try:
        result = asyncio.run(_build_async(story_id, stories_dir, keep_scratch, quiet=as_json))
    except (InvalidStoryIdError, StoryNotFoundError) as e:
        raise click.ClickException(e.message)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.success:
            raise SystemExit(1)
        return

    if not result.success:
        failure = result.failure
        where = f" (segment {failure.index + 1})" if failure.index is not None else ""
        raise click.ClickException(
            f"{failure.kind} during {failure.stage.value}{where}: {failure.message}"
        )

    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Final video", str(result.final_path))
    table.add_row("Duration", f"{result.duration:.2f}s")
    table.add_row("Segments", str(len(result.windows)))
    if result.subtitles_applied:
        table.add_row("Subtitles", "[green]embedded[/green]")
    else:
        table.add_row("Subtitles", f"[yellow]skipped[/yellow] ({result.subtitle_note})")
    table.add_row("Build time", f"{result.build_time:.1f}s")

    console.print("[green]✓ Build complete[/green]")
    console.print(table)
