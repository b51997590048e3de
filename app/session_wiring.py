from __future__ import annotations

from adapters.capacity.letter_table import LetterCapacityTable
from adapters.filesystem.node_tree_repository import FileSystemNodeTreeRepository
from adapters.layout.grid import GridRoomLayout
from app.config import AppSettings
from domain.models import NodeSpec
from domain.node_tree import DEFAULT_NODE_TREE, NodeTreeIndex
from domain.services.puzzle_session import PuzzleSession


def build_node_tree(settings: AppSettings) -> NodeSpec:
    path = settings.puzzle.node_tree_path
    if path is None:
        return DEFAULT_NODE_TREE
    if not path.exists():
        msg = f"Node tree file not found: {path}"
        raise FileNotFoundError(msg)
    return FileSystemNodeTreeRepository().load(path)


def build_capacity_table(settings: AppSettings) -> LetterCapacityTable:
    capacity = settings.puzzle.capacity
    return LetterCapacityTable(
        overrides=capacity.overrides,
        default_capacity=capacity.default_capacity,
    )


def build_session(settings: AppSettings, tree: NodeSpec | None = None) -> PuzzleSession:
    return PuzzleSession(
        tree=NodeTreeIndex.build(tree or build_node_tree(settings)),
        layout=GridRoomLayout(),
        capacity_table=build_capacity_table(settings),
        view_size=settings.puzzle.view.to_size(),
        drag_config=settings.puzzle.gesture.to_drag_config(),
    )
