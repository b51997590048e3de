from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from adapters.filesystem.json_utils import load_json_document, strip_line_comments
from adapters.filesystem.node_tree_repository import FileSystemNodeTreeRepository
from domain.models import NodeSpec


def test_save_then_load_preserves_tree(tmp_path: Path, small_tree: NodeSpec) -> None:
    repository = FileSystemNodeTreeRepository()
    path = tmp_path / "nested" / "tree.json"

    repository.save(small_tree, path)

    assert repository.load(path) == small_tree
    assert not path.with_suffix(".json.tmp").exists()


def test_load_accepts_line_comments(tmp_path: Path) -> None:
    path = tmp_path / "tree.json"
    path.write_text(
        "{\n"
        '  // puzzle root\n'
        '  "id": "root",\n'
        '  "label": "",\n'
        '  "children": [{"id": "root-A", "label": "A"}] // single leaf\n'
        "}\n",
        encoding="utf-8",
    )
    spec = FileSystemNodeTreeRepository().load(path)
    assert [child.id for child in spec.children] == ["root-A"]


def test_strip_line_comments_keeps_slashes_in_strings() -> None:
    content = '{"url": "http://example.com"} // trailing'
    assert strip_line_comments(content) == '{"url": "http://example.com"} '


def test_load_rejects_duplicate_ids(tmp_path: Path) -> None:
    path = tmp_path / "tree.json"
    path.write_text(
        '{"id": "root", "children": [{"id": "x"}, {"id": "x"}]}', encoding="utf-8"
    )
    with pytest.raises(ValidationError):
        FileSystemNodeTreeRepository().load(path)


def test_load_json_document_reads_plain_json(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text('[1, 2, "three"]', encoding="utf-8")
    assert load_json_document(path) == [1, 2, "three"]
