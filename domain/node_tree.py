from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from domain.models import NodeSpec


def _leaf(node_id: str, label: str = "A") -> dict:
    return {"id": node_id, "label": label}


def _room(node_id: str, label: str, children: List[dict]) -> dict:
    return {"id": node_id, "label": label, "children": children}


DEFAULT_NODE_TREE = NodeSpec.model_validate(
    _room(
        "root",
        "",
        [
            _room(
                "root-C",
                "C",
                [_room("C-B", "B", [_leaf("C-B-A1"), _leaf("C-B-A2"), _leaf("C-B-A3")])],
            ),
            _leaf("root-A"),
            _room(
                "root-T",
                "T",
                [
                    _room(
                        "T-D",
                        "D",
                        [
                            _leaf("T-D-A"),
                            _room("T-D-B", "B", [_leaf("T-D-B-AA"), _leaf("T-D-B-AB")]),
                            _room("T-D-G", "G", [_leaf("T-D-G-AA"), _leaf("T-D-G-AB")]),
                        ],
                    ),
                    _room(
                        "T-C",
                        "C",
                        [
                            _room("T-C-F", "F", [_leaf("T-C-F-AA"), _leaf("T-C-F-AB")]),
                            _leaf("T-C-A"),
                            _room("T-C-B", "B", [_leaf("T-C-G-AA")]),
                        ],
                    ),
                    _room(
                        "T-H",
                        "H",
                        [
                            _leaf("T-H-AA"),
                            _leaf("T-H-AB"),
                            _room("T-H-E", "E", [_leaf("T-H-E-AA"), _leaf("T-H-E-AB")]),
                            _room("T-H-F", "F", [_leaf("T-H-F-AA"), _leaf("T-H-F-AB")]),
                            _room("T-H-G", "G", [_leaf("T-H-G-AA"), _leaf("T-H-G-AB")]),
                        ],
                    ),
                ],
            ),
        ],
    )
)


@dataclass(frozen=True)
class NodeTreeIndex:
    root: NodeSpec
    specs: Dict[str, NodeSpec]
    parents: Dict[str, str]

    @classmethod
    def build(cls, root: NodeSpec) -> NodeTreeIndex:
        specs: Dict[str, NodeSpec] = {}
        parents: Dict[str, str] = {}
        stack = [root]
        while stack:
            spec = stack.pop()
            specs[spec.id] = spec
            for child in spec.children:
                parents[child.id] = spec.id
                stack.append(child)
        return cls(root=root, specs=specs, parents=parents)

    def get(self, spec_id: str) -> Optional[NodeSpec]:
        return self.specs.get(spec_id)

    def require(self, spec_id: str) -> NodeSpec:
        spec = self.specs.get(spec_id)
        if spec is None:
            msg = f"Unknown node id: {spec_id}"
            raise KeyError(msg)
        return spec

    def parent_of(self, spec_id: str) -> Optional[str]:
        return self.parents.get(spec_id)

    def is_zoomable(self, spec_id: str) -> bool:
        spec = self.specs.get(spec_id)
        return bool(spec and spec.has_children)

    def label_of(self, spec_id: str) -> str:
        spec = self.specs.get(spec_id)
        return spec.label if spec else ""
