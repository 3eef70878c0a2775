"""Check command - Verify the encoder toolchain and stories root"""

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from core.renderer import FFmpegRenderer
from server.config import settings


console = Console()


def get_status_dict(stories_dir: str) -> dict:
    """Collect encoder and storage status"""
    renderer = FFmpegRenderer(
        ffmpeg_path=settings.ffmpeg_path,
        ffprobe_path=settings.ffprobe_path
    )
    encoder = asyncio.run(renderer.check_ffmpeg_installed())
    root = Path(stories_dir)
    return {
        "encoder": encoder,
        "stories_dir": str(root.resolve()),
        "stories_dir_exists": root.is_dir(),
        "max_concurrent_encoders": settings.max_concurrent_encoders,
        "resolution": f"{settings.video_width}x{settings.video_height}",
    }


@click.command()
@click.option("--stories-dir", "-d", default=None, help="Stories root (default: STORIES_DIR or ./stories)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def check_cmd(stories_dir: str, as_json: bool):
    """Check that ffmpeg/ffprobe are available and show configuration"""
    status = get_status_dict(stories_dir or settings.stories_dir)
    ready = status["encoder"]["installed"] and status["encoder"]["ffprobe"] is not None

    if as_json:
        click.echo(json.dumps(status, indent=2))
    else:
        console.print(Panel.fit(
            "[bold blue]Story Reel Builder[/bold blue]\n"
            "Narrated image story to vertical video",
            border_style="blue"
        ))

        encoder = status["encoder"]
        table = Table(title="Environment", box=box.ROUNDED)
        table.add_column("Item", style="cyan")
        table.add_column("Status")

        if encoder["installed"]:
            table.add_row("ffmpeg", f"[green]✓[/green] {encoder['version']}")
        else:
            table.add_row("ffmpeg", "[red]✗ not found[/red]")
        if encoder["ffprobe"]:
            table.add_row("ffprobe", f"[green]✓[/green] {encoder['ffprobe']}")
        else:
            table.add_row("ffprobe", "[red]✗ not found[/red]")

        dir_style = "green" if status["stories_dir_exists"] else "yellow"
        table.add_row("Stories dir", f"[{dir_style}]{status['stories_dir']}[/{dir_style}]")
        table.add_row("Encoder slots", str(status["max_concurrent_encoders"]))
        table.add_row("Resolution", status["resolution"])

        console.print(table)
        if encoder.get("error"):
            console.print(f"[red]{encoder['error']}[/red]")

    if not ready:
        raise SystemExit(1)
