from __future__ import annotations

from typing import TYPE_CHECKING

__all__ = [
    "__version__",
    "DashboardConfig",
    "ChangeNotifier",
    "KnowledgeStore",
    "LogStore",
    "create_app",
    "load_config",
]

__version__ = "0.1.0"

if TYPE_CHECKING:
    from .config import DashboardConfig, load_config
    from .notifier import ChangeNotifier
    from .stores import KnowledgeStore, LogStore
    from .web import create_app


def __getattr__(name: str):
    if name in {"DashboardConfig", "load_config"}:
        from .config import DashboardConfig, load_config

        return {"DashboardConfig": DashboardConfig, "load_config": load_config}[name]
    if name == "ChangeNotifier":
        from .notifier import ChangeNotifier

        return ChangeNotifier
    if name in {"KnowledgeStore", "LogStore"}:
        from .stores import KnowledgeStore, LogStore

        return {"KnowledgeStore": KnowledgeStore, "LogStore": LogStore}[name]
    if name == "create_app":
        from .web import create_app

        return create_app
    raise AttributeError(f"module 'axeldash' has no attribute {name!r}")
