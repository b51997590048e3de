from __future__ import annotations

from pathlib import Path
from typing import Protocol

from domain.models import NodeSpec


class NodeTreeRepository(Protocol):
    def load(self, path: Path) -> NodeSpec: ...

    def save(self, spec: NodeSpec, path: Path) -> None: ...
