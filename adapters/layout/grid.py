from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

from domain.models import BoxInfo, NodeSpec, Size
from domain.ports.layout import RoomLayoutEngine


@dataclass(frozen=True)
class RoomLayoutConfig:
    gap_ratio: float = 0.08
    min_columns: int = 3


class GridRoomLayout(RoomLayoutEngine):
    def __init__(self, config: RoomLayoutConfig | None = None) -> None:
        self.config = config or RoomLayoutConfig()

    def build_boxes(self, spec: NodeSpec, view_size: Size) -> List[BoxInfo]:
        children = spec.children
        if not children:
            return []
        base = min(view_size.width, view_size.height)
        gap = base * self.config.gap_ratio
        columns = max(self.config.min_columns, math.ceil(math.sqrt(len(children))))
        box_size = (base - gap * (columns + 1)) / columns

        used_columns = min(columns, len(children))
        rows = math.ceil(len(children) / columns)
        grid_width = used_columns * box_size + (used_columns - 1) * gap
        grid_height = rows * box_size + (rows - 1) * gap
        origin_x = (view_size.width - grid_width) / 2
        origin_y = (view_size.height - grid_height) / 2

        boxes: List[BoxInfo] = []
        for index, child in enumerate(children):
            row, column = divmod(index, columns)
            boxes.append(
                BoxInfo(
                    id=child.id,
                    x=origin_x + column * (box_size + gap),
                    y=origin_y + row * (box_size + gap),
                    size=box_size,
                    has_children=child.has_children,
                )
            )
        return boxes
