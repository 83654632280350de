"""
storyweave-inspect: render a saved player's narrative state in the terminal.

Usage:
    storyweave-inspect saves/ player_1
    storyweave-inspect saves/ --list
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import load_config
from ..engine import NarrativeEngine
from ..state.store import JsonSnapshotStore
from .panels import render_arc_panel, render_emotion_panel, render_memory_table, render_world_events

console = Console()


def render_player(engine: NarrativeEngine, player_id: str, memory_limit: int = 10) -> None:
    """Print every panel for one player already loaded into the engine."""
    context = engine.get_story_context(player_id)

    console.print(render_arc_panel(player_id, context))
    for state in context.emotional_states.values():
        console.print(render_emotion_panel(state))
    console.print(render_world_events(context))
    console.print(render_memory_table(context, limit=memory_limit))

    if context.long_term_memories:
        console.print(f"[bold]Long-term:[/bold] {', '.join(context.long_term_memories)}")
    if context.relationship_milestones:
        console.print(f"[bold]Milestones:[/bold] {', '.join(context.relationship_milestones)}")


def render_saves(store: JsonSnapshotStore) -> None:
    table = Table(title="Saved players", header_style="bold")
    table.add_column("Player")
    table.add_column("Memories", justify="right")
    table.add_column("Chapter", justify="right")
    table.add_column("Saved", style="dim")

    for entry in store.list_all():
        table.add_row(
            entry["player_id"],
            str(entry["memory_count"]),
            str(entry["chapter"]),
            entry["saved_at"].strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="storyweave - inspect saved narrative state")
    parser.add_argument("snapshot_dir", type=Path, help="Directory of player snapshots")
    parser.add_argument("player_id", nargs="?", help="Player to inspect")
    parser.add_argument("--list", "-l", action="store_true", help="List saved players")
    parser.add_argument("--memories", "-m", type=int, default=10, help="Recent memories to show")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not args.snapshot_dir.is_dir():
        console.print(f"[red]Not a directory: {args.snapshot_dir}[/red]")
        return 1

    store = JsonSnapshotStore(args.snapshot_dir)

    if args.list or not args.player_id:
        render_saves(store)
        return 0

    try:
        snapshot = store.load(args.player_id)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 1

    if snapshot is None:
        console.print(f"[yellow]No saved narrative for {args.player_id}[/yellow]")
        return 1

    engine = NarrativeEngine(config=load_config(args.snapshot_dir))
    engine.restore(snapshot)
    render_player(engine, args.player_id, memory_limit=args.memories)
    return 0


if __name__ == "__main__":
    sys.exit(main())
