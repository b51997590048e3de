from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from adapters.capacity.letter_table import LetterCapacityTable
from adapters.layout.grid import GridRoomLayout
from domain.models import NodeSpec, Size
from domain.node_tree import NodeTreeIndex
from domain.services.drag_state import DragConfig
from domain.services.graph_store import ConnectionGraphStore
from domain.services.puzzle_session import PuzzleSession


def _clear_flowrooms_env() -> None:
    for key in list(os.environ):
        if key.startswith("FLOWROOMS_"):
            os.environ.pop(key, None)


_clear_flowrooms_env()


@pytest.fixture(autouse=True)
def clear_flowrooms_env() -> Generator[None, None, None]:
    _clear_flowrooms_env()
    yield
    _clear_flowrooms_env()


@pytest.fixture
def store() -> ConnectionGraphStore:
    return ConnectionGraphStore()


@pytest.fixture
def view_size() -> Size:
    return Size(400, 300)


@pytest.fixture
def small_tree() -> NodeSpec:
    return NodeSpec.model_validate(
        {
            "id": "root",
            "label": "",
            "children": [
                {
                    "id": "root-C",
                    "label": "C",
                    "children": [
                        {"id": "root-C-C", "label": "C"},
                        {"id": "root-C-A", "label": "A"},
                    ],
                },
                {"id": "root-A", "label": "A"},
                {
                    "id": "root-B",
                    "label": "B",
                    "children": [{"id": "root-B-B", "label": "B"}],
                },
            ],
        }
    )


@pytest.fixture
def session_factory(
    small_tree: NodeSpec, view_size: Size
) -> Callable[..., PuzzleSession]:
    def _factory(tree: NodeSpec | None = None, **overrides: object) -> PuzzleSession:
        config = DragConfig(**overrides)  # type: ignore[arg-type]
        return PuzzleSession(
            tree=NodeTreeIndex.build(tree or small_tree),
            layout=GridRoomLayout(),
            capacity_table=LetterCapacityTable(),
            view_size=view_size,
            drag_config=config,
        )

    return _factory


@pytest.fixture
def session(session_factory: Callable[..., PuzzleSession]) -> PuzzleSession:
    return session_factory()
