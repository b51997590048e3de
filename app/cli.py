from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from adapters.filesystem.gesture_script import load_gesture_script
from adapters.filesystem.node_tree_repository import FileSystemNodeTreeRepository
from app.config import AppSettings, load_settings
from app.logging_setup import configure_logging
from app.replay import replay_script
from app.session_wiring import build_node_tree, build_session
from domain.models import NodeSpec
from domain.services.puzzle_session import PuzzleSession

app = typer.Typer(no_args_is_help=True)
console = Console()


def _settings(config: Optional[Path], tree_path: Optional[Path]) -> AppSettings:
    try:
        settings = load_settings(config)
    except (FileNotFoundError, ValidationError) as exc:
        console.print(f"[red]Invalid configuration:[/] {exc}")
        raise typer.Exit(code=1) from exc
    if tree_path is not None:
        settings.puzzle.node_tree_path = tree_path
    configure_logging(settings.puzzle.log_level)
    return settings


def _load_tree(settings: AppSettings) -> NodeSpec:
    try:
        return build_node_tree(settings)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Cannot load node tree:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _render_tree(spec: NodeSpec, branch: Tree) -> None:
    for child in spec.children:
        label = child.label or "·"
        suffix = " [cyan](room)[/]" if child.has_children else ""
        _render_tree(child, branch.add(f"[bold]{label}[/] {child.id}{suffix}"))


def _connections_table(session: PuzzleSession) -> Table:
    table = Table(title="Connections")
    table.add_column("Room")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Flow label")
    for room_id in session.store.room_ids():
        for connection in session.store.get_connections(room_id):
            table.add_row(
                room_id,
                connection.from_id,
                connection.to_id,
                session.resolve_label(connection.from_id, room_id) or "",
            )
    return table


@app.command("tree")
def show_tree(
    config: Optional[Path] = typer.Option(None, help="YAML settings file."),
    tree_path: Optional[Path] = typer.Option(None, "--tree", help="Node tree JSON file."),
) -> None:
    settings = _settings(config, tree_path)
    root = _load_tree(settings)
    branch = Tree(f"[bold]{root.label or root.id}[/]")
    _render_tree(root, branch)
    console.print(branch)


@app.command("boxes")
def show_boxes(
    room: str = typer.Argument(..., help="Room (node id) to lay out."),
    config: Optional[Path] = typer.Option(None, help="YAML settings file."),
    tree_path: Optional[Path] = typer.Option(None, "--tree", help="Node tree JSON file."),
) -> None:
    settings = _settings(config, tree_path)
    session = build_session(settings, _load_tree(settings))
    try:
        boxes = session.boxes(room)
    except KeyError as exc:
        console.print(f"[red]Unknown room:[/] {room}")
        raise typer.Exit(code=1) from exc

    table = Table(title=f"Room {room}")
    for column in ("Id", "Label", "X", "Y", "Size", "Zoomable", "Capacity"):
        table.add_column(column)
    labels = session.room_labels(room)
    for box in boxes:
        table.add_row(
            box.id,
            labels.get(box.id, ""),
            f"{box.x:.1f}",
            f"{box.y:.1f}",
            f"{box.size:.1f}",
            "yes" if box.has_children else "no",
            str(session.remaining_capacity(box.id, room)),
        )
    console.print(table)


@app.command("validate")
def validate(input_path: Path = typer.Argument(..., help="Node tree JSON file to validate.")) -> None:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)
    try:
        spec = FileSystemNodeTreeRepository().load(input_path)
    except ValueError as exc:
        console.print(f"[red]Validation failed:[/] {exc}")
        raise typer.Exit(code=1) from exc
    rooms = sum(1 for item in spec.walk() if item.has_children)
    console.print(f"[green]Valid node tree:[/] {input_path} ({rooms} rooms)")


@app.command("dump-tree")
def dump_tree(
    output_path: Path = typer.Argument(..., help="Where to write the node tree JSON."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
    config: Optional[Path] = typer.Option(None, help="YAML settings file."),
    tree_path: Optional[Path] = typer.Option(None, "--tree", help="Node tree JSON file."),
) -> None:
    settings = _settings(config, tree_path)
    root = _load_tree(settings)
    if output_path.exists() and not force:
        console.print(f"[red]File exists:[/] {output_path} (use --force)")
        raise typer.Exit(code=1)
    FileSystemNodeTreeRepository().save(root, output_path)
    console.print(f"[green]Wrote node tree:[/] {output_path}")


@app.command("replay")
def replay(
    script_path: Path = typer.Argument(..., help="Gesture script JSON file."),
    config: Optional[Path] = typer.Option(None, help="YAML settings file."),
    tree_path: Optional[Path] = typer.Option(None, "--tree", help="Node tree JSON file."),
) -> None:
    settings = _settings(config, tree_path)
    session = build_session(settings, _load_tree(settings))
    try:
        script = load_gesture_script(script_path)
        actions = replay_script(session, script)
    except (OSError, ValueError, KeyError) as exc:
        console.print(f"[red]Replay failed:[/] {exc}")
        raise typer.Exit(code=1) from exc

    for action in actions:
        console.print(f"[cyan]{action.type}[/]")
    console.print(_connections_table(session))
    console.print(f"Current room: [bold]{session.current_spec_id}[/]")


if __name__ == "__main__":
    app()
