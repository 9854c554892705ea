from __future__ import annotations

from pathlib import Path

import pytest

from axeldash.config import DashboardConfig


@pytest.fixture
def config(tmp_path: Path) -> DashboardConfig:
    return DashboardConfig(
        logs_dir=tmp_path / "logs",
        memory_dir=tmp_path / "memory",
        advisors_dir=tmp_path / "advisors",
    )


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path
