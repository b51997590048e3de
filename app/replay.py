from __future__ import annotations

from typing import List

from adapters.filesystem.gesture_script import (
    Cancel,
    DeleteElement,
    Drag,
    EnterRoom,
    GestureEvent,
    GestureScript,
    LeaveRoom,
    Place,
    PointerDown,
    PointerMove,
    PointerUp,
    StubDown,
)
from domain.models import Point
from domain.services.drag_state import DragAction
from domain.services.puzzle_session import PuzzleSession


def replay_script(session: PuzzleSession, script: GestureScript) -> List[DragAction]:
    emitted: List[DragAction] = []
    for event in script.events:
        emitted.extend(apply_event(session, event))
    return emitted


def apply_event(session: PuzzleSession, event: GestureEvent) -> List[DragAction]:
    if isinstance(event, PointerDown):
        box = next((item for item in session.boxes() if item.id == event.box), None)
        if box is None:
            msg = f"Unknown box {event.box} in room {session.current_spec_id}"
            raise KeyError(msg)
        return session.pointer_down(event.box, _point_or(event.x, event.y, box.center))
    if isinstance(event, StubDown):
        stub = next(
            (
                item
                for item in session.store.get_incoming_stubs(session.current_spec_id)
                if item.id == event.stub
            ),
            None,
        )
        if stub is None:
            msg = f"Unknown incoming stub {event.stub} in room {session.current_spec_id}"
            raise KeyError(msg)
        return session.pointer_down_on_stub(event.stub, _point_or(event.x, event.y, stub.end))
    if isinstance(event, PointerMove):
        return session.pointer_move(Point(event.x, event.y))
    if isinstance(event, PointerUp):
        return session.pointer_up(Point(event.x, event.y), event.t)
    if isinstance(event, Drag):
        return session.drag_between(event.from_id, event.to_id, event.t)
    if isinstance(event, Place):
        session.place_element(event.key, Point(event.x, event.y))
        return []
    if isinstance(event, DeleteElement):
        session.delete_element(event.element)
        return []
    if isinstance(event, EnterRoom):
        return session.enter_room(event.room)
    if isinstance(event, LeaveRoom):
        session.leave_room()
        return []
    if isinstance(event, Cancel):
        return session.cancel()
    msg = f"Unsupported gesture event: {event!r}"
    raise ValueError(msg)


def _point_or(x: float | None, y: float | None, fallback: Point) -> Point:
    if x is None or y is None:
        return fallback
    return Point(x, y)
