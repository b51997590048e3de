from __future__ import annotations

from collections.abc import Mapping

from domain.ports.capacity import CapacityTable
from domain.services.flow_label import default_capacity_for_label


class LetterCapacityTable(CapacityTable):
    def __init__(
        self,
        overrides: Mapping[str, int] | None = None,
        default_capacity: int | None = None,
    ) -> None:
        self.overrides = {key.strip().upper(): value for key, value in (overrides or {}).items()}
        self.default_capacity = default_capacity

    def capacity_for(self, label: str) -> int:
        key = (label or "").strip().upper()
        if key in self.overrides:
            return self.overrides[key]
        if self.default_capacity is not None:
            return self.default_capacity
        return default_capacity_for_label(key)
