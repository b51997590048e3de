from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Mapping, Sequence
from dataclasses import dataclass
from typing import Optional, Set, Tuple

from domain.models import INCOMING_STUB_PREFIX, ConnectionPath, IncomingStub
from domain.placeables import ID_PREFIX_BY_KIND, ElementKind
from domain.services.labels import combine_labels, convert_label, get_label_type, letter_position

logger = logging.getLogger(__name__)

LabelMap = Mapping[str, str]
OutboundCapacity = Callable[[str, str], int]


@dataclass(frozen=True)
class ResolveContext:
    node_id: str
    labels: LabelMap
    connections: Sequence[ConnectionPath]
    visited: Set[str]

    @property
    def idle_label(self) -> str | None:
        return self.labels.get(self.node_id)

    def incoming(self) -> list[ConnectionPath]:
        return [item for item in self.connections if item.to_id == self.node_id]


@dataclass(frozen=True)
class AdmissionContext:
    from_id: str
    to_id: str
    labels: LabelMap
    connections: Sequence[ConnectionPath]


@dataclass(frozen=True)
class PlaceableBehavior:
    kind: ElementKind
    max_incoming: int | None = None
    max_outgoing: int | None = None
    resolve_label: Callable[[ResolveContext], str | None] | None = None
    can_accept_incoming: Callable[[AdmissionContext], bool] | None = None

    @property
    def id_prefix(self) -> str:
        return ID_PREFIX_BY_KIND[self.kind]


def _resolve_converter(context: ResolveContext) -> str | None:
    incoming = context.incoming()
    if not incoming:
        return context.idle_label
    upstream = resolve_flow_label(
        incoming[0].from_id, context.labels, context.connections, context.visited
    )
    if not upstream:
        return context.idle_label
    return convert_label(upstream)


def _resolve_combiner(context: ResolveContext) -> str | None:
    incoming = context.incoming()
    if not incoming:
        return context.idle_label
    upstream_labels = [
        resolve_flow_label(item.from_id, context.labels, context.connections, set(context.visited))
        for item in incoming
    ]
    combined = combine_labels([label for label in upstream_labels if label])
    return combined if combined is not None else context.idle_label


def _combiner_accepts(context: AdmissionContext) -> bool:
    incoming = [item for item in context.connections if item.to_id == context.to_id]
    if not incoming:
        return True
    if len(incoming) >= 2:
        return False
    existing_type = get_label_type(
        resolve_flow_label(incoming[0].from_id, context.labels, context.connections)
    )
    new_type = get_label_type(
        resolve_flow_label(context.from_id, context.labels, context.connections)
    )
    if existing_type is None or new_type is None:
        return False
    return existing_type == new_type


PLACEABLE_BEHAVIORS: Tuple[PlaceableBehavior, ...] = (
    PlaceableBehavior(
        kind=ElementKind.CONVERTER,
        max_incoming=1,
        max_outgoing=1,
        resolve_label=_resolve_converter,
    ),
    PlaceableBehavior(
        kind=ElementKind.COMBINER,
        max_incoming=2,
        max_outgoing=1,
        resolve_label=_resolve_combiner,
        can_accept_incoming=_combiner_accepts,
    ),
)


def get_behavior_for_id(node_id: str) -> Optional[PlaceableBehavior]:
    return next(
        (item for item in PLACEABLE_BEHAVIORS if node_id.startswith(item.id_prefix)),
        None,
    )


def resolve_flow_label(
    node_id: str,
    labels: LabelMap,
    connections: Sequence[ConnectionPath],
    visited: Set[str] | None = None,
) -> str | None:
    visited = set() if visited is None else visited
    stored = labels.get(node_id)
    if node_id in visited:
        return stored
    visited.add(node_id)
    behavior = get_behavior_for_id(node_id)
    if behavior is None or behavior.resolve_label is None:
        return stored
    resolved = behavior.resolve_label(ResolveContext(node_id, labels, connections, visited))
    return resolved if resolved is not None else stored


def default_capacity_for_label(label: str) -> int:
    trimmed = (label or "").strip()
    if len(trimmed) == 1 and trimmed.isascii() and trimmed.isalpha():
        return letter_position(trimmed)
    return 1


def create_outbound_capacity_resolver(
    capacity_for_label: Callable[[str], int] = default_capacity_for_label,
    get_capacity_boost: Callable[[str], int] | None = None,
) -> OutboundCapacity:
    def resolve(node_id: str, label: str) -> int:
        boost = get_capacity_boost(node_id) if get_capacity_boost else 0
        return capacity_for_label(label) + boost

    return resolve


def count_outgoing(node_id: str, connections: Sequence[ConnectionPath]) -> int:
    return sum(1 for item in connections if item.from_id == node_id)


def count_incoming(node_id: str, connections: Sequence[ConnectionPath]) -> int:
    return sum(1 for item in connections if item.to_id == node_id)


def can_add_connection(
    connection: ConnectionPath,
    connections: Sequence[ConnectionPath],
    box_labels: LabelMap,
    resource_node_ids: Collection[str] = frozenset(),
    get_outbound_capacity_for_node: OutboundCapacity | None = None,
) -> bool:
    from_behavior = get_behavior_for_id(connection.from_id)
    to_behavior = get_behavior_for_id(connection.to_id)

    if from_behavior is not None and from_behavior.max_outgoing is not None:
        if count_outgoing(connection.from_id, connections) >= from_behavior.max_outgoing:
            logger.debug("Rejected %s: outgoing limit reached", connection.from_id)
            return False

    if to_behavior is not None and to_behavior.max_incoming is not None:
        if count_incoming(connection.to_id, connections) >= to_behavior.max_incoming:
            logger.debug("Rejected %s: incoming limit reached", connection.to_id)
            return False

    if to_behavior is not None and to_behavior.can_accept_incoming is not None:
        context = AdmissionContext(
            from_id=connection.from_id,
            to_id=connection.to_id,
            labels=box_labels,
            connections=connections,
        )
        if not to_behavior.can_accept_incoming(context):
            logger.debug("Rejected %s -> %s: input type mismatch", connection.from_id, connection.to_id)
            return False

    if connection.from_id in resource_node_ids:
        resolve_capacity = get_outbound_capacity_for_node or create_outbound_capacity_resolver()
        label = box_labels.get(connection.from_id, "")
        capacity = resolve_capacity(connection.from_id, label)
        if count_outgoing(connection.from_id, connections) >= capacity:
            logger.debug("Rejected %s: outbound capacity %s exhausted", connection.from_id, capacity)
            return False

    return True


def sync_incoming_stub_labels(labels: dict[str, str], stubs: Sequence[IncomingStub]) -> None:
    for key in [key for key in labels if key.startswith(INCOMING_STUB_PREFIX)]:
        del labels[key]
    for stub in stubs:
        labels[stub.id] = stub.label
