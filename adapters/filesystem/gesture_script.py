from __future__ import annotations

from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from adapters.filesystem.json_utils import load_json_document


class _Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class PointerDown(_Event):
    type: Literal["down"]
    box: str
    x: Optional[float] = None
    y: Optional[float] = None


class StubDown(_Event):
    type: Literal["stub-down"]
    stub: str
    x: Optional[float] = None
    y: Optional[float] = None


class PointerMove(_Event):
    type: Literal["move"]
    x: float
    y: float


class PointerUp(_Event):
    type: Literal["up"]
    x: float
    y: float
    t: float = 0.0


class Drag(_Event):
    type: Literal["drag"]
    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    t: float = 0.0


class Place(_Event):
    type: Literal["place"]
    key: str
    x: float
    y: float


class DeleteElement(_Event):
    type: Literal["delete"]
    element: str


class EnterRoom(_Event):
    type: Literal["enter"]
    room: str


class LeaveRoom(_Event):
    type: Literal["leave"]


class Cancel(_Event):
    type: Literal["cancel"]


GestureEvent = Annotated[
    Union[
        PointerDown,
        StubDown,
        PointerMove,
        PointerUp,
        Drag,
        Place,
        DeleteElement,
        EnterRoom,
        LeaveRoom,
        Cancel,
    ],
    Field(discriminator="type"),
]


class GestureScript(BaseModel):
    events: List[GestureEvent] = Field(default_factory=list)


def load_gesture_script(path: Path) -> GestureScript:
    payload = load_json_document(path)
    if isinstance(payload, list):
        payload = {"events": payload}
    try:
        return GestureScript.model_validate(payload)
    except ValidationError as exc:
        msg = f"Invalid gesture script {path}: {exc.error_count()} error(s)"
        raise ValueError(msg) from exc
