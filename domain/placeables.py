from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from domain.models import (
    COMBINER_ID_PREFIX,
    CONVERTER_ID_PREFIX,
    INCOMING_STUB_PREFIX,
    OUTGOING_STUB_PREFIX,
)


CONNECTION_STROKE_WIDTH = 4.0


class ElementKind(str, Enum):
    RESOURCE = "resource"
    CONVERTER = "converter"
    COMBINER = "combiner"
    INCOMING_STUB = "incoming_stub"
    OUTGOING_STUB = "outgoing_stub"


ID_PREFIX_BY_KIND: Dict[ElementKind, str] = {
    ElementKind.CONVERTER: CONVERTER_ID_PREFIX,
    ElementKind.COMBINER: COMBINER_ID_PREFIX,
    ElementKind.INCOMING_STUB: INCOMING_STUB_PREFIX,
    ElementKind.OUTGOING_STUB: OUTGOING_STUB_PREFIX,
}


def element_kind_for_id(element_id: str) -> ElementKind:
    for kind, prefix in ID_PREFIX_BY_KIND.items():
        if element_id.startswith(prefix):
            return kind
    return ElementKind.RESOURCE


@dataclass(frozen=True)
class PlaceableDefinition:
    key: str
    kind: ElementKind
    label: str
    scale: float = 0.5
    min_size: float = 24.0
    clearance: float = 6.0
    deletable: bool = True

    @property
    def id_prefix(self) -> str:
        return ID_PREFIX_BY_KIND[self.kind]


PLACEABLE_DEFINITIONS: List[PlaceableDefinition] = [
    PlaceableDefinition(key="1", kind=ElementKind.CONVERTER, label="1/a"),
    PlaceableDefinition(key="2", kind=ElementKind.COMBINER, label="+"),
]


def get_definition_for_key(key: str) -> Optional[PlaceableDefinition]:
    return next((item for item in PLACEABLE_DEFINITIONS if item.key == key), None)


def get_definition_for_id(element_id: str) -> Optional[PlaceableDefinition]:
    kind = element_kind_for_id(element_id)
    return next((item for item in PLACEABLE_DEFINITIONS if item.kind is kind), None)
