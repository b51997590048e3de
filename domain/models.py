from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

CONVERTER_ID_PREFIX = "converter-"
COMBINER_ID_PREFIX = "combiner-"
INCOMING_STUB_PREFIX = "incoming-"
OUTGOING_STUB_PREFIX = "outgoing-"


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


@dataclass(frozen=True)
class Size:
    width: float
    height: float


class NodeSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    label: str = ""
    children: List[NodeSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def ensure_unique_ids(self) -> NodeSpec:
        seen: Set[str] = set()
        for spec in self.walk():
            if spec.id in seen:
                msg = f"Duplicate node id found: {spec.id}"
                raise ValueError(msg)
            seen.add(spec.id)
        return self

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def walk(self) -> Iterator[NodeSpec]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, spec_id: str) -> Optional[NodeSpec]:
        for spec in self.walk():
            if spec.id == spec_id:
                return spec
        return None


@dataclass(frozen=True)
class BoxInfo:
    id: str
    x: float
    y: float
    size: float
    has_children: bool = False
    can_start_connection: bool = True

    @property
    def center(self) -> Point:
        half = self.size / 2
        return Point(self.x + half, self.y + half)

    def contains(self, point: Point) -> bool:
        return (
            self.x <= point.x <= self.x + self.size
            and self.y <= point.y <= self.y + self.size
        )


@dataclass(frozen=True)
class IncomingStub:
    id: str
    label: str
    source_id: str
    start: Point
    end: Point


@dataclass(frozen=True)
class OutgoingStub:
    id: str
    label: str
    source_id: str
    start: Point
    end: Point


@dataclass(frozen=True)
class ConnectionPath:
    from_id: str
    to_id: str
    points: Tuple[Point, ...]
    incoming_stub: IncomingStub | None = None
