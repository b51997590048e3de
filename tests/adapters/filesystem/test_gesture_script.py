from __future__ import annotations

from pathlib import Path

import pytest

from adapters.filesystem.gesture_script import (
    Drag,
    EnterRoom,
    Place,
    PointerDown,
    PointerUp,
    load_gesture_script,
)


def test_bare_event_list_is_accepted(tmp_path: Path) -> None:
    path = tmp_path / "script.json"
    path.write_text(
        '[{"type": "down", "box": "root-A"},'
        ' {"type": "up", "x": 10, "y": 20, "t": 5},'
        ' {"type": "drag", "from": "root-A", "to": "root-B"},'
        ' {"type": "place", "key": "1", "x": 200, "y": 50},'
        ' {"type": "enter", "room": "root-C"}]',
        encoding="utf-8",
    )

    script = load_gesture_script(path)

    down, up, drag, place, enter = script.events
    assert isinstance(down, PointerDown) and down.x is None
    assert isinstance(up, PointerUp) and up.t == 5
    assert isinstance(drag, Drag) and (drag.from_id, drag.to_id) == ("root-A", "root-B")
    assert isinstance(place, Place) and place.key == "1"
    assert isinstance(enter, EnterRoom) and enter.room == "root-C"


def test_wrapped_events_object_is_accepted(tmp_path: Path) -> None:
    path = tmp_path / "script.json"
    path.write_text('{"events": [{"type": "leave"}, {"type": "cancel"}]}', encoding="utf-8")
    assert len(load_gesture_script(path).events) == 2


@pytest.mark.parametrize(
    "payload",
    [
        '[{"type": "jump"}]',
        '[{"type": "move", "x": 1}]',
        '[{"type": "leave", "extra": true}]',
    ],
)
def test_invalid_events_raise_value_error(tmp_path: Path, payload: str) -> None:
    path = tmp_path / "script.json"
    path.write_text(payload, encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid gesture script"):
        load_gesture_script(path)
