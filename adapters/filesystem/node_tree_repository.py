from __future__ import annotations

from pathlib import Path

from adapters.filesystem.json_utils import load_json_document, write_json_atomic
from domain.models import NodeSpec
from domain.ports.repositories import NodeTreeRepository


class FileSystemNodeTreeRepository(NodeTreeRepository):
    def load(self, path: Path) -> NodeSpec:
        return NodeSpec.model_validate(load_json_document(path))

    def save(self, spec: NodeSpec, path: Path) -> None:
        write_json_atomic(path, spec.model_dump(mode="json"))
