from __future__ import annotations

from typing import Protocol

from domain.models import BoxInfo, NodeSpec, Size


class RoomLayoutEngine(Protocol):
    def build_boxes(self, spec: NodeSpec, view_size: Size) -> list[BoxInfo]:
        ...
