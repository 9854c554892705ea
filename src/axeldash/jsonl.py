"""Tolerant line readers for append-only log files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .models import ActivityRecord


def read_lines(path: Path) -> list[str]:
    if not path.is_file():
        return []
    text = path.read_text(encoding="utf-8", errors="replace").strip()
    return [line for line in text.split("\n") if line]


def tail_line(path: Path) -> str | None:
    lines = read_lines(path)
    if not lines:
        return None
    return lines[-1]


def parse_json_line(line: str) -> Any | None:
    try:
        return json.loads(line)
    except ValueError:
        return None


def read_jsonl(path: Path) -> list[Any]:
    rows: list[Any] = []
    for line in read_lines(path):
        row = parse_json_line(line)
        if row is not None:
            rows.append(row)
    return rows


def parse_activity_line(line: str) -> ActivityRecord:
    parts = line.split("|")
    padded = parts[:3] + [None] * (3 - len(parts[:3]))
    timestamp, tool, result = padded
    return ActivityRecord(timestamp=timestamp, tool=tool, result=result)
