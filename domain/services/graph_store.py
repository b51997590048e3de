from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Dict, List

from domain.models import (
    INCOMING_STUB_PREFIX,
    OUTGOING_STUB_PREFIX,
    ConnectionPath,
    IncomingStub,
    OutgoingStub,
)

logger = logging.getLogger(__name__)

GraphListener = Callable[[str], None]

_incoming_stub_ids = itertools.count()
_outgoing_stub_ids = itertools.count()


def create_incoming_stub_id() -> str:
    return f"{INCOMING_STUB_PREFIX}{next(_incoming_stub_ids)}"


def create_outgoing_stub_id() -> str:
    return f"{OUTGOING_STUB_PREFIX}{next(_outgoing_stub_ids)}"


@dataclass
class RoomGraph:
    connections: List[ConnectionPath] = field(default_factory=list)
    incoming_stubs: List[IncomingStub] = field(default_factory=list)
    outgoing_stubs: List[OutgoingStub] = field(default_factory=list)


class ConnectionGraphStore:
    def __init__(self) -> None:
        self._rooms: Dict[str, RoomGraph] = {}
        self._listeners: List[GraphListener] = []

    def on_graph_changed(self, listener: GraphListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def room_ids(self) -> List[str]:
        return list(self._rooms)

    def clear_room(self, spec_id: str) -> None:
        if self._rooms.pop(spec_id, None) is not None:
            self._notify(spec_id)

    # Connections

    def get_connections(self, spec_id: str) -> List[ConnectionPath]:
        room = self._rooms.get(spec_id)
        return list(room.connections) if room else []

    def add_connection(self, spec_id: str, connection: ConnectionPath) -> bool:
        self._room(spec_id).connections.append(connection)
        logger.debug("Added connection %s -> %s in %s", connection.from_id, connection.to_id, spec_id)
        self._notify(spec_id)
        return True

    def remove_connection(self, spec_id: str, connection: ConnectionPath) -> bool:
        room = self._rooms.get(spec_id)
        if room is None or connection not in room.connections:
            return False
        room.connections.remove(connection)
        self._trim_outgoing_stubs(room, 1)
        logger.debug("Removed connection %s -> %s in %s", connection.from_id, connection.to_id, spec_id)
        self._notify(spec_id)
        return True

    def remove_connections_for_box(self, spec_id: str, box_id: str) -> int:
        room = self._rooms.get(spec_id)
        if room is None:
            return 0
        touching = [
            item for item in room.connections if item.from_id == box_id or item.to_id == box_id
        ]
        if not touching:
            return 0
        room.connections = [item for item in room.connections if item not in touching]
        self._trim_outgoing_stubs(room, len(touching))
        logger.debug("Removed %d connections for %s in %s", len(touching), box_id, spec_id)
        self._notify(spec_id)
        for connection in touching:
            if connection.incoming_stub is not None:
                self.remove_incoming_stub(connection.to_id, connection.incoming_stub)
        return len(touching)

    def remove_connection_with_stub(self, spec_id: str, connection: ConnectionPath) -> bool:
        removed = self.remove_connection(spec_id, connection)
        if connection.incoming_stub is not None:
            self.remove_incoming_stub(connection.to_id, connection.incoming_stub)
        return removed

    # Incoming stubs

    def get_incoming_stubs(self, spec_id: str) -> List[IncomingStub]:
        room = self._rooms.get(spec_id)
        return list(room.incoming_stubs) if room else []

    def add_incoming_stub(self, spec_id: str, stub: IncomingStub) -> None:
        self._room(spec_id).incoming_stubs.append(stub)
        self._notify(spec_id)

    def remove_incoming_stub(self, spec_id: str, stub: IncomingStub) -> bool:
        room = self._rooms.get(spec_id)
        if room is None:
            return False
        remaining = [item for item in room.incoming_stubs if item.id != stub.id]
        if len(remaining) == len(room.incoming_stubs):
            return False
        room.incoming_stubs = remaining
        dependent = [
            item for item in room.connections if stub.id in (item.from_id, item.to_id)
        ]
        if dependent:
            room.connections = [item for item in room.connections if item not in dependent]
            self._trim_outgoing_stubs(room, len(dependent))
        logger.debug("Removed incoming stub %s (%d dependent) in %s", stub.id, len(dependent), spec_id)
        self._notify(spec_id)
        for connection in dependent:
            if connection.incoming_stub is not None:
                self.remove_incoming_stub(connection.to_id, connection.incoming_stub)
        return True

    # Outgoing stubs

    def get_outgoing_stubs(self, spec_id: str) -> List[OutgoingStub]:
        room = self._rooms.get(spec_id)
        return list(room.outgoing_stubs) if room else []

    def add_outgoing_stub(self, spec_id: str, stub: OutgoingStub) -> None:
        self._room(spec_id).outgoing_stubs.append(stub)
        self._notify(spec_id)

    def remove_outgoing_stub(self, spec_id: str, stub: OutgoingStub) -> bool:
        room = self._rooms.get(spec_id)
        if room is None:
            return False
        remaining = [item for item in room.outgoing_stubs if item.id != stub.id]
        if len(remaining) == len(room.outgoing_stubs):
            return False
        room.outgoing_stubs = remaining
        self._notify(spec_id)
        return True

    def remove_outgoing_stubs(self, spec_id: str, count: int) -> int:
        room = self._rooms.get(spec_id)
        if room is None or count <= 0:
            return 0
        removed = self._trim_outgoing_stubs(room, count)
        if removed:
            self._notify(spec_id)
        return removed

    def remove_outgoing_stubs_for_source(self, spec_id: str, source_id: str) -> int:
        room = self._rooms.get(spec_id)
        if room is None:
            return 0
        remaining = [item for item in room.outgoing_stubs if item.source_id != source_id]
        removed = len(room.outgoing_stubs) - len(remaining)
        if removed:
            room.outgoing_stubs = remaining
            self._notify(spec_id)
        return removed

    def get_outbound_capacity_boost(self, node_id: str) -> int:
        return sum(
            1
            for room in self._rooms.values()
            for stub in room.outgoing_stubs
            if stub.source_id == node_id
        )

    def _room(self, spec_id: str) -> RoomGraph:
        room = self._rooms.get(spec_id)
        if room is None:
            room = RoomGraph()
            self._rooms[spec_id] = room
        return room

    def _trim_outgoing_stubs(self, room: RoomGraph, count: int) -> int:
        removed = min(count, len(room.outgoing_stubs))
        if removed:
            room.outgoing_stubs = room.outgoing_stubs[removed:]
        return removed

    def _notify(self, spec_id: str) -> None:
        for listener in list(self._listeners):
            listener(spec_id)
