from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

from ..config import DashboardConfig
from ..models import AdvisorEntry, KnowledgeEntry

_MARKDOWN_SUFFIX = ".md"


class InvalidMemoryType(ValueError):
    def __init__(self, category: str, valid: tuple[str, ...]):
        super().__init__(f"invalid memory type {category!r} (expected one of {', '.join(valid)})")
        self.category = category


class EntryNotFound(LookupError):
    def __init__(self, path: Path):
        super().__init__(f"not found: {path}")
        self.path = path


def bare_name(name: str) -> str:
    """Drop any directory components, accepting either separator."""
    return re.split(r"[\\/]", name)[-1]


def _markdown_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        (
            path
            for path in directory.iterdir()
            if path.suffix == _MARKDOWN_SUFFIX
            and not path.name.startswith(".")
            and path.is_file()
        ),
        key=lambda path: path.name,
    )


def _mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


class KnowledgeStore:
    """Markdown notes: categorized memory, the inventory file, advisor notes."""

    def __init__(self, config: DashboardConfig) -> None:
        self.memory_dir: Path = config.memory_dir
        self.categories = config.memory_categories
        self.inventory_file: Path = config.inventory_file
        self.advisors_dir: Path = config.advisors_dir

    def memory(self) -> dict[str, list[KnowledgeEntry]]:
        out: dict[str, list[KnowledgeEntry]] = {}
        for category in self.categories:
            out[category] = [
                KnowledgeEntry(name=path.stem, path=str(path), modified=_mtime(path))
                for path in _markdown_files(self.memory_dir / category)
            ]
        return out

    def memory_entry(self, category: str, name: str) -> str:
        if category not in self.categories:
            raise InvalidMemoryType(category, self.categories)
        safe = bare_name(name)
        path = self.memory_dir / category / f"{safe}{_MARKDOWN_SUFFIX}"
        if safe in {"", ".", ".."} or not path.is_file():
            raise EntryNotFound(path)
        return path.read_text(encoding="utf-8", errors="replace")

    def inventory(self) -> str:
        if not self.inventory_file.is_file():
            raise EntryNotFound(self.inventory_file)
        return self.inventory_file.read_text(encoding="utf-8", errors="replace")

    def advisors(self) -> list[AdvisorEntry]:
        return [
            AdvisorEntry(name=path.stem, path=str(path))
            for path in _markdown_files(self.advisors_dir)
        ]
