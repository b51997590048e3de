from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from domain.geometry import (
    circle_intersects_box,
    circle_intersects_path,
    nearest_edge_point,
)
from domain.models import BoxInfo, ConnectionPath, IncomingStub, OutgoingStub, Point, Size
from domain.node_tree import NodeTreeIndex
from domain.placeables import (
    CONNECTION_STROKE_WIDTH,
    PlaceableDefinition,
    get_definition_for_id,
    get_definition_for_key,
)
from domain.ports.capacity import CapacityTable
from domain.ports.layout import RoomLayoutEngine
from domain.services.drag_state import (
    ConnectionAdded,
    DoubleClick,
    DragAction,
    DragClear,
    DragConfig,
    DragStateMachine,
    EdgeExport,
)
from domain.services.flow_label import (
    can_add_connection,
    count_outgoing,
    create_outbound_capacity_resolver,
    resolve_flow_label,
    sync_incoming_stub_labels,
)
from domain.services.graph_store import ConnectionGraphStore, create_outgoing_stub_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacedElement:
    definition: PlaceableDefinition
    box: BoxInfo
    label: str


class PuzzleSession:
    def __init__(
        self,
        tree: NodeTreeIndex,
        layout: RoomLayoutEngine,
        capacity_table: CapacityTable,
        view_size: Size,
        drag_config: DragConfig | None = None,
        store: ConnectionGraphStore | None = None,
    ) -> None:
        self.tree = tree
        self.layout = layout
        self.view_size = view_size
        self.store = store or ConnectionGraphStore()
        self.outbound_capacity = create_outbound_capacity_resolver(
            capacity_table.capacity_for, self.store.get_outbound_capacity_boost
        )
        self.drag = DragStateMachine(drag_config, label_for=self._current_flow_label)
        self.current_spec_id = tree.root.id
        self._room_stack: List[str] = []
        self._placed: Dict[str, Dict[str, PlacedElement]] = {}
        self._counters: Dict[str, int] = {}
        self._layouts: Dict[str, List[BoxInfo]] = {}
        self._outgoing_counts: Dict[str, int] = {}
        self.store.on_graph_changed(self._handle_graph_changed)

    # Rooms

    @property
    def room_path(self) -> List[str]:
        return [*self._room_stack, self.current_spec_id]

    def enter_room(self, spec_id: str) -> List[DragAction]:
        if not self.tree.is_zoomable(spec_id):
            msg = f"Node {spec_id} has no room to enter"
            raise KeyError(msg)
        actions = self.drag.clear()
        self._room_stack.append(self.current_spec_id)
        self.current_spec_id = spec_id
        logger.debug("Entered room %s", spec_id)
        return actions

    def leave_room(self) -> bool:
        if not self._room_stack:
            return False
        self.drag.clear()
        self.current_spec_id = self._room_stack.pop()
        logger.debug("Returned to room %s", self.current_spec_id)
        return True

    def resource_node_ids(self, spec_id: str | None = None) -> List[str]:
        spec = self.tree.require(spec_id or self.current_spec_id)
        return [child.id for child in spec.children]

    def room_labels(self, spec_id: str | None = None) -> Dict[str, str]:
        room_id = spec_id or self.current_spec_id
        spec = self.tree.require(room_id)
        labels = {child.id: child.label for child in spec.children}
        for element_id, element in self._placed.get(room_id, {}).items():
            labels[element_id] = element.label
        sync_incoming_stub_labels(labels, self.store.get_incoming_stubs(room_id))
        return labels

    def boxes(self, spec_id: str | None = None) -> List[BoxInfo]:
        room_id = spec_id or self.current_spec_id
        boxes = [
            replace(box, can_start_connection=self.remaining_capacity(box.id, room_id) > 0)
            for box in self._layout_boxes(room_id)
        ]
        boxes.extend(element.box for element in self._placed.get(room_id, {}).values())
        return boxes

    def placed_elements(self, spec_id: str | None = None) -> List[PlacedElement]:
        return list(self._placed.get(spec_id or self.current_spec_id, {}).values())

    # Labels and capacity

    def resolve_label(self, node_id: str, spec_id: str | None = None) -> str | None:
        room_id = spec_id or self.current_spec_id
        return resolve_flow_label(
            node_id, self.room_labels(room_id), self.store.get_connections(room_id)
        )

    def remaining_capacity(self, node_id: str, spec_id: str | None = None) -> int:
        room_id = spec_id or self.current_spec_id
        capacity = self.outbound_capacity(node_id, self.tree.label_of(node_id))
        used = count_outgoing(node_id, self.store.get_connections(room_id))
        return max(0, capacity - used)

    # Pointer input

    def pointer_down(self, box_id: str, point: Point) -> List[DragAction]:
        box = next((item for item in self.boxes() if item.id == box_id), None)
        if box is None:
            msg = f"Unknown box {box_id} in room {self.current_spec_id}"
            raise KeyError(msg)
        return self.drag.clear() + self.drag.start_drag(box, point)

    def pointer_down_on_stub(self, stub_id: str, point: Point) -> List[DragAction]:
        stubs = self.store.get_incoming_stubs(self.current_spec_id)
        stub = next((item for item in stubs if item.id == stub_id), None)
        if stub is None:
            msg = f"Unknown incoming stub {stub_id} in room {self.current_spec_id}"
            raise KeyError(msg)
        anchor = BoxInfo(id=stub.id, x=stub.end.x, y=stub.end.y, size=0.0)
        return self.drag.clear() + self.drag.start_drag(anchor, point)

    def pointer_move(self, point: Point) -> List[DragAction]:
        return self.drag.move_drag(point, self.boxes())

    def pointer_up(self, point: Point, now: float) -> List[DragAction]:
        actions = self.drag.end_drag(point, self.boxes(), now, self.view_size)
        return self.apply_actions(actions)

    def cancel(self) -> List[DragAction]:
        return self.drag.clear()

    def drag_between(self, from_id: str, to_id: str, now: float = 0.0) -> List[DragAction]:
        boxes = {box.id: box for box in self.boxes()}
        source = boxes[from_id]
        target = boxes[to_id]
        self.pointer_down(from_id, source.center)
        self.pointer_move(target.center)
        return self.pointer_up(target.center, now)

    def apply_actions(self, actions: Sequence[DragAction]) -> List[DragAction]:
        applied: List[DragAction] = []
        for action in actions:
            if isinstance(action, ConnectionAdded):
                committed = self.commit_connection(
                    action.from_id, action.to_id, action.points, action.incoming_stub
                )
                applied.append(action if committed is not None else DragClear())
            elif isinstance(action, DoubleClick):
                applied.extend(self.enter_room(action.box_id))
                applied.append(action)
            elif isinstance(action, EdgeExport):
                if self.export_to_edge(action.box_id, action.points) is not None:
                    applied.append(action)
            else:
                applied.append(action)
        return applied

    # Graph mutations

    def commit_connection(
        self,
        from_id: str,
        to_id: str,
        points: Sequence[Point],
        incoming_stub: IncomingStub | None = None,
    ) -> Optional[ConnectionPath]:
        room_id = self.current_spec_id
        connection = ConnectionPath(from_id=from_id, to_id=to_id, points=tuple(points))
        admitted = can_add_connection(
            connection,
            self.store.get_connections(room_id),
            self.room_labels(room_id),
            resource_node_ids=frozenset(self.resource_node_ids(room_id)),
            get_outbound_capacity_for_node=self.outbound_capacity,
        )
        if not admitted:
            logger.debug("Connection %s -> %s rejected in %s", from_id, to_id, room_id)
            return None
        if incoming_stub is not None and self.tree.is_zoomable(to_id):
            connection = replace(connection, incoming_stub=incoming_stub)
            self.store.add_incoming_stub(to_id, incoming_stub)
        self.store.add_connection(room_id, connection)
        return connection

    def delete_connection(self, connection: ConnectionPath, spec_id: str | None = None) -> bool:
        return self.store.remove_connection_with_stub(spec_id or self.current_spec_id, connection)

    def export_to_edge(self, box_id: str, points: Sequence[Point]) -> Optional[OutgoingStub]:
        room_id = self.current_spec_id
        spec = self.tree.require(room_id)
        if self.tree.parent_of(room_id) is None:
            return None
        box = next((item for item in self.boxes(room_id) if item.id == box_id), None)
        if box is None:
            return None
        # Resolved label: converter and combiner outputs export too.
        label = self.resolve_label(box_id, room_id)
        if not label or label != spec.label:
            return None
        start = points[-1] if points else box.center
        stub = OutgoingStub(
            id=create_outgoing_stub_id(),
            label=label,
            source_id=room_id,
            start=start,
            end=nearest_edge_point(start, self.view_size),
        )
        self.store.add_outgoing_stub(room_id, stub)
        logger.debug("Exported %s from %s as %s", box_id, room_id, stub.id)
        return stub

    # Placeable elements

    def place_element(self, key: str, center: Point) -> Optional[BoxInfo]:
        definition = get_definition_for_key(key)
        if definition is None:
            return None
        room_id = self.current_spec_id
        size = max(definition.min_size, self._base_box_size(room_id) * definition.scale)
        radius = size / 2
        if self._has_placement_collision(room_id, center, radius, definition.clearance):
            return None
        count = self._counters.get(definition.id_prefix, 0)
        self._counters[definition.id_prefix] = count + 1
        element_id = f"{definition.id_prefix}{count}"
        box = BoxInfo(id=element_id, x=center.x - radius, y=center.y - radius, size=size)
        self._placed.setdefault(room_id, {})[element_id] = PlacedElement(
            definition=definition, box=box, label=definition.label
        )
        return box

    def delete_element(self, element_id: str) -> bool:
        room_id = self.current_spec_id
        definition = get_definition_for_id(element_id)
        elements = self._placed.get(room_id, {})
        if definition is None or not definition.deletable or element_id not in elements:
            return False
        self.store.remove_connections_for_box(room_id, element_id)
        del elements[element_id]
        return True

    def _has_placement_collision(
        self, room_id: str, center: Point, radius: float, clearance: float
    ) -> bool:
        inflated = radius + clearance
        if any(circle_intersects_box(center, inflated, box) for box in self.boxes(room_id)):
            return True
        path_radius = radius + CONNECTION_STROKE_WIDTH / 2 + clearance
        if any(
            circle_intersects_path(center, path_radius, connection.points)
            for connection in self.store.get_connections(room_id)
        ):
            return True
        return any(
            circle_intersects_path(center, path_radius, [stub.start, stub.end])
            for stub in self.store.get_incoming_stubs(room_id)
        )

    # Internals

    def _layout_boxes(self, room_id: str) -> List[BoxInfo]:
        cached = self._layouts.get(room_id)
        if cached is None:
            cached = self.layout.build_boxes(self.tree.require(room_id), self.view_size)
            self._layouts[room_id] = cached
        return cached

    def _base_box_size(self, room_id: str) -> float:
        boxes = self._layout_boxes(room_id)
        if boxes:
            return boxes[0].size
        return min(self.view_size.width, self.view_size.height) * 0.2

    def _current_flow_label(self, node_id: str) -> str | None:
        return self.resolve_label(node_id)

    def _handle_graph_changed(self, spec_id: str) -> None:
        current = len(self.store.get_outgoing_stubs(spec_id))
        previous = self._outgoing_counts.get(spec_id, 0)
        self._outgoing_counts[spec_id] = current
        if current < previous:
            self._enforce_parent_capacity(spec_id)

    def _enforce_parent_capacity(self, spec_id: str) -> None:
        parent_id = self.tree.parent_of(spec_id)
        if parent_id is None:
            return
        capacity = self.outbound_capacity(spec_id, self.tree.label_of(spec_id))
        from_child = [
            item for item in self.store.get_connections(parent_id) if item.from_id == spec_id
        ]
        excess = len(from_child) - capacity
        for connection in from_child[: max(0, excess)]:
            logger.debug("Trimming %s -> %s in %s over capacity", spec_id, connection.to_id, parent_id)
            self.store.remove_connection_with_stub(parent_id, connection)
