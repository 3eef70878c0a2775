"""List command - Show stories and whether their Final Video is published"""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich import box

from core.assets import AUDIO_NAME, TRANSCRIPT_NAME, StoryStore
from server.config import settings

console = Console()


def _story_rows(store: StoryStore):
    """Every story directory under the root with its asset summary"""
    root = Path(store.root)
    if not root.exists():
        return []

    rows = []
    for item in sorted(root.iterdir()):
        if not item.is_dir() or item.name.startswith("."):
            continue
        rows.append({
            "story_id": item.name,
            "has_video": store.has_final(item.name),
            "has_audio": (item / AUDIO_NAME).exists(),
            "has_transcript": (item / TRANSCRIPT_NAME).exists(),
        })
    return rows


@click.command()
@click.option("--stories-dir", "-d", default=None, help="Stories root (default: STORIES_DIR or ./stories)")
@click.option("--completed", is_flag=True, help="Only stories with a published Final Video")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(stories_dir: str, completed: bool, as_json: bool):
    """List stories under the stories root"""
    store = StoryStore(root=stories_dir or settings.stories_dir)

    if completed:
        stories = store.list_completed()
        if as_json:
            click.echo(json.dumps(stories))
            return
        for story_id in stories:
            console.print(story_id)
        return

    rows = _story_rows(store)
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        console.print(f"[yellow]No stories found in {store.root}[/yellow]")
        return

    table = Table(title=f"Stories in {store.root}", box=box.ROUNDED)
    table.add_column("Story", style="cyan")
    table.add_column("Narration")
    table.add_column("Transcript")
    table.add_column("Final Video")

    def mark(flag: bool) -> str:
        return "[green]✓[/green]" if flag else "[dim]-[/dim]"

    for row in rows:
        table.add_row(
            row["story_id"],
            mark(row["has_audio"]),
            mark(row["has_transcript"]),
            mark(row["has_video"])
        )

    console.print(table)
