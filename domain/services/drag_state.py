from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import ClassVar, List, Tuple, Union

from domain.geometry import (
    append_path_point,
    box_at_point,
    box_edge_point,
    is_near_view_edge,
    replace_last_point,
)
from domain.models import BoxInfo, IncomingStub, Point, Size
from domain.services.graph_store import create_incoming_stub_id


@dataclass(frozen=True)
class DragConfig:
    double_click_ms: float = 350.0
    drag_threshold: float = 6.0
    point_spacing: float = 6.0
    stub_length_ratio: float = 0.12
    edge_margin: float = 12.0


@dataclass(frozen=True)
class DragDraw:
    type: ClassVar[str] = "drag-draw"
    points: Tuple[Point, ...]


@dataclass(frozen=True)
class DragClear:
    type: ClassVar[str] = "drag-clear"


@dataclass(frozen=True)
class ConnectionAdded:
    type: ClassVar[str] = "connection-added"
    from_id: str
    to_id: str
    points: Tuple[Point, ...]
    incoming_stub: IncomingStub


@dataclass(frozen=True)
class DoubleClick:
    type: ClassVar[str] = "double-click"
    box_id: str


@dataclass(frozen=True)
class EdgeExport:
    type: ClassVar[str] = "edge-export"
    box_id: str
    points: Tuple[Point, ...]


DragAction = Union[DragDraw, DragClear, ConnectionAdded, DoubleClick, EdgeExport]


@dataclass(frozen=True)
class Idle:
    pass


@dataclass
class Armed:
    start_box: BoxInfo
    start_point: Point
    moved: bool = False
    left_box: bool = False


@dataclass
class DrawingOutside:
    start_box: BoxInfo
    start_point: Point
    moved: bool
    start_anchor: Point
    points: List[Point] = field(default_factory=list)
    last_outside_point: Point | None = None


DragState = Union[Idle, Armed, DrawingOutside]


class DragStateMachine:
    def __init__(
        self,
        config: DragConfig | None = None,
        stub_id_factory: Callable[[], str] = create_incoming_stub_id,
        label_for: Callable[[str], str | None] | None = None,
    ) -> None:
        self.config = config or DragConfig()
        self._stub_id_factory = stub_id_factory
        self._label_for = label_for
        self._state: DragState = Idle()
        self._last_click_time = 0.0
        self._last_click_target: str | None = None

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def line_active(self) -> bool:
        return isinstance(self._state, DrawingOutside)

    def start_drag(self, box: BoxInfo, point: Point) -> list[DragAction]:
        self._state = Armed(start_box=box, start_point=point)
        return []

    def move_drag(self, point: Point, boxes: Sequence[BoxInfo]) -> list[DragAction]:
        state = self._state
        if isinstance(state, Idle):
            return []
        start_box = state.start_box
        moved = state.moved or state.start_point.distance_to(point) > self.config.drag_threshold

        if start_box.contains(point) or not start_box.can_start_connection:
            actions: list[DragAction] = [DragClear()] if isinstance(state, DrawingOutside) else []
            left_box = (
                isinstance(state, DrawingOutside) or state.left_box or not start_box.contains(point)
            )
            self._state = Armed(
                start_box=start_box, start_point=state.start_point, moved=moved, left_box=left_box
            )
            return actions

        if isinstance(state, DrawingOutside):
            drawing = state
            drawing.moved = moved
        else:
            drawing = DrawingOutside(
                start_box=start_box,
                start_point=state.start_point,
                moved=moved,
                start_anchor=box_edge_point(start_box, point),
            )
        self._state = drawing

        target = box_at_point(point, boxes)
        if target is None or target.id == start_box.id:
            append_path_point(drawing.points, point, self.config.point_spacing)
            drawing.last_outside_point = point
            draw_points = list(drawing.points)
        else:
            aim = drawing.last_outside_point
            end_anchor = box_edge_point(target, aim if aim is not None else drawing.start_anchor)
            draw_points = replace_last_point(drawing.points, end_anchor)
        return [DragDraw(points=(drawing.start_anchor, *draw_points))]

    def end_drag(
        self,
        point: Point,
        boxes: Sequence[BoxInfo],
        now: float,
        view_size: Size,
    ) -> list[DragAction]:
        state = self._state
        if isinstance(state, Idle):
            return []
        self._state = Idle()
        start_box = state.start_box
        drawing = state if isinstance(state, DrawingOutside) else None
        target = box_at_point(point, boxes)
        dropped_on_other = target is not None and target.id != start_box.id
        left_box = drawing is not None or (isinstance(state, Armed) and state.left_box)
        moved = (state.moved and left_box) or dropped_on_other

        if target is not None and dropped_on_other and start_box.can_start_connection:
            return [self._complete(start_box, target, point, drawing, view_size)]

        actions: list[DragAction] = []
        if drawing is not None:
            actions.append(DragClear())
            if target is None and is_near_view_edge(point, view_size, self.config.edge_margin):
                actions.append(
                    EdgeExport(box_id=start_box.id, points=(drawing.start_anchor, *drawing.points))
                )

        if not moved and start_box.has_children:
            if (
                self._last_click_target == start_box.id
                and now - self._last_click_time < self.config.double_click_ms
            ):
                self._last_click_time = 0.0
                self._last_click_target = None
                actions.append(DoubleClick(box_id=start_box.id))
                return actions
            self._last_click_time = now
            self._last_click_target = start_box.id
        return actions

    def clear(self) -> list[DragAction]:
        was_drawing = self.line_active
        self._state = Idle()
        return [DragClear()] if was_drawing else []

    def _complete(
        self,
        start_box: BoxInfo,
        target: BoxInfo,
        point: Point,
        drawing: DrawingOutside | None,
        view_size: Size,
    ) -> ConnectionAdded:
        if drawing is not None:
            start_anchor = drawing.start_anchor
            aim = drawing.last_outside_point or start_anchor
            path = drawing.points
        else:
            start_anchor = box_edge_point(start_box, point)
            aim = start_anchor
            path = []
        end_anchor = box_edge_point(target, aim)
        points = (start_anchor, *replace_last_point(path, end_anchor))
        return ConnectionAdded(
            from_id=start_box.id,
            to_id=target.id,
            points=points,
            incoming_stub=self._build_incoming_stub(start_box.id, target, end_anchor, view_size),
        )

    def _build_incoming_stub(
        self,
        source_id: str,
        box: BoxInfo,
        edge_point: Point,
        view_size: Size,
    ) -> IncomingStub:
        size = box.size or 1.0
        local_x = edge_point.x - box.x
        local_y = edge_point.y - box.y
        half = size / 2
        dx = half - local_x
        dy = half - local_y
        length = math.hypot(dx, dy) or 1.0
        start = Point(local_x / size * view_size.width, local_y / size * view_size.height)
        stub_length = min(view_size.width, view_size.height) * self.config.stub_length_ratio
        end = Point(start.x + dx / length * stub_length, start.y + dy / length * stub_length)
        label = self._label_for(source_id) if self._label_for else None
        return IncomingStub(
            id=self._stub_id_factory(),
            label=label or "",
            source_id=source_id,
            start=start,
            end=end,
        )
