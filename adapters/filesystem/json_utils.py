from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson


def strip_line_comments(content: str) -> str:
    result_lines: list[str] = []
    for line in content.splitlines():
        in_string = False
        escaped = False
        cleaned: list[str] = []
        for idx, char in enumerate(line):
            if char == '"' and not escaped:
                in_string = not in_string
            if not in_string and char == "/" and line[idx + 1 : idx + 2] == "/":
                break
            cleaned.append(char)
            escaped = char == "\\" and not escaped
        result_lines.append("".join(cleaned))
    return "\n".join(result_lines)


def load_json_document(path: Path) -> Any:
    raw = path.read_bytes()
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return orjson.loads(strip_line_comments(raw.decode("utf-8")))


def dump_json_bytes(payload: Any) -> bytes:
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE)


def write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.with_name(f"{path.name}.tmp")
    staging.write_bytes(dump_json_bytes(payload))
    staging.replace(path)
