"""
Rich panels for inspecting narrative state in a terminal.
"""

from rich.panel import Panel
from rich.table import Table

from ..state.schema import CharacterEmotionalState, NarrativeContext, Pacing


PACING_COLORS = {
    Pacing.SLOW: "dim",
    Pacing.MODERATE: "cyan",
    Pacing.INTENSE: "yellow",
    Pacing.CLIMACTIC: "red",
}


def _bar(value: float, width: int = 10) -> str:
    filled = round(value * width)
    return "█" * filled + "░" * (width - filled)


def render_arc_panel(player_id: str, context: NarrativeContext) -> Panel:
    """Arc progress, pacing and tension on one line each."""
    color = PACING_COLORS.get(context.pacing, "white")
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()

    for arc in context.active_story_arcs:
        status = " [green](complete)[/green]" if arc.is_complete else ""
        table.add_row(arc.title, f"Chapter {arc.current_chapter}/{arc.total_chapters}{status}")

    table.add_row("Pacing", f"[{color}]{context.pacing.value}[/{color}]")
    table.add_row("Tension", f"{_bar(context.narrative_tension)} {round(context.narrative_tension * 100)}%")
    table.add_row("Mood", context.prevailing_mood)
    table.add_row("Profile", context.player_profile)

    return Panel(table, title=f"[bold]{player_id}[/bold]", title_align="left", border_style="blue")


def render_emotion_panel(state: CharacterEmotionalState) -> Panel:
    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Dimension")
    table.add_column("Value", justify="right")
    table.add_column("")

    for name, value in state.current_mood.items():
        table.add_row(name, f"{value:.2f}", _bar(value))
    table.add_section()
    for name, value in state.relationship_dynamics.items():
        table.add_row(name, f"{value:.2f}", _bar(value))

    return Panel(table, title=f"[bold]{state.character_id}[/bold]", title_align="left", border_style="magenta")


def render_memory_table(context: NarrativeContext, limit: int = 10) -> Table:
    table = Table(title="Recent memories", header_style="bold")
    table.add_column("When", style="dim")
    table.add_column("Event")
    table.add_column("Where")
    table.add_column("Impact", justify="right")
    table.add_column("Tags", style="cyan")

    for memory in context.story_memories[-limit:]:
        table.add_row(
            memory.timestamp.strftime("%Y-%m-%d %H:%M"),
            memory.event,
            memory.location,
            f"{memory.emotional_impact:+g}",
            ", ".join(memory.story_tags),
        )
    return table


def render_world_events(context: NarrativeContext) -> Table:
    table = Table(title="World events", header_style="bold")
    table.add_column("Event")
    table.add_column("Conditions", style="dim")
    table.add_column("Status")

    for event in context.world_events:
        if event.is_triggered:
            status = "[green]triggered[/green]"
        elif not event.is_fireable:
            status = "[red]unfireable[/red]"
        else:
            status = "pending"
        table.add_row(event.title, ", ".join(str(c) for c in event.trigger_conditions), status)
    return table
