from __future__ import annotations

from typing import Protocol


class CapacityTable(Protocol):
    def capacity_for(self, label: str) -> int:
        ...
