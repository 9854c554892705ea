from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from ..config import DashboardConfig
from ..jsonl import parse_activity_line, read_jsonl, read_lines
from ..models import ActivityRecord, ConversationFile

_UNSAFE_DATE_RE = re.compile(r"[^0-9-]")


def sanitize_date(date: str) -> str:
    """Reduce a requested date to digits and hyphens so it cannot leave the directory."""
    return _UNSAFE_DATE_RE.sub("", re.split(r"[\\/]", date)[-1])


class LogStore:
    """Activity log and per-date conversation logs."""

    def __init__(self, config: DashboardConfig) -> None:
        self.activity_file: Path = config.activity_file
        self.conversations_dir: Path = config.conversations_dir
        self.suffix = config.conversation_suffix
        self.limit = config.activity_limit

    def activity(self) -> list[ActivityRecord]:
        lines = read_lines(self.activity_file)
        return [parse_activity_line(line) for line in reversed(lines[-self.limit :])]

    def conversation_dates(self) -> list[ConversationFile]:
        if not self.conversations_dir.is_dir():
            return []
        names = sorted(
            (
                path.name
                for path in self.conversations_dir.iterdir()
                if path.name.endswith(self.suffix) and path.is_file()
            ),
            reverse=True,
        )
        return [
            ConversationFile(date=name[: -len(self.suffix)], file=name) for name in names
        ]

    def conversation_path(self, date: str) -> Path:
        return self.conversations_dir / f"{sanitize_date(date)}{self.suffix}"

    def conversation(self, date: str) -> list[Any]:
        return read_jsonl(self.conversation_path(date))
