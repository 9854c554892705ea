"""Per-connection file watches that push the newest log line to a viewer.

Each live connection opens its own :class:`WatchHandle`. The handle owns a
watchdog observer with up to two scheduled watches (the activity log and
the conversations directory) and is released only by the connection that
opened it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .config import DashboardConfig
from .jsonl import parse_activity_line, parse_json_line, tail_line
from .models import LiveMessage

log = logging.getLogger(__name__)

Send = Callable[[dict[str, Any]], None]

# opened/closed are emitted alongside modified for the same write.
_CHANGE_EVENTS = frozenset({"modified", "created", "moved"})


def _event_paths(event: FileSystemEvent) -> list[Path]:
    paths = [Path(os.fsdecode(event.src_path))]
    dest = getattr(event, "dest_path", "")
    if dest:
        paths.append(Path(os.fsdecode(dest)))
    return paths


class ActivityWatch(FileSystemEventHandler):
    """Pushes the last activity line whenever the activity file changes."""

    def __init__(self, path: Path, send: Send) -> None:
        self.path = path
        self.send = send

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        if self.path not in _event_paths(event):
            return
        self.push_latest()

    def push_latest(self) -> None:
        line = tail_line(self.path)
        if line is None:
            log.debug("activity log %s has no lines, nothing to push", self.path)
            return
        record = parse_activity_line(line)
        self.send(LiveMessage(type="activity", data=record.model_dump()).model_dump())


class ConversationWatch(FileSystemEventHandler):
    """Pushes the last message of whichever conversation file changed."""

    def __init__(self, directory: Path, suffix: str, send: Send) -> None:
        self.directory = directory
        self.suffix = suffix
        self.send = send

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        for path in _event_paths(event):
            if path.parent == self.directory and path.name.endswith(self.suffix):
                if self.push_latest(path):
                    return

    def push_latest(self, path: Path) -> bool:
        # Events can arrive for files that were removed right after.
        if not path.is_file():
            return False
        line = tail_line(path)
        if line is None:
            return False
        message = parse_json_line(line)
        if message is None:
            log.debug("skipping unparseable conversation line in %s", path)
            return False
        self.send(LiveMessage(type="conversation", data=message).model_dump())
        return True


class WatchHandle:
    """The set of watches owned by one live connection."""

    def __init__(self, observer_factory: Callable[[], Any] = Observer) -> None:
        self._observer_factory = observer_factory
        self._observer: Any | None = None
        self.watched: list[Path] = []
        self.closed = False

    def attach(self, directory: Path, handler: FileSystemEventHandler) -> None:
        if self.closed:
            raise RuntimeError("watch handle already closed")
        if self._observer is None:
            self._observer = self._observer_factory()
            self._observer.daemon = True
        self._observer.schedule(handler, str(directory), recursive=False)
        self.watched.append(directory)

    def start(self) -> WatchHandle:
        if self._observer is not None:
            self._observer.start()
        return self

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.unschedule_all()
        observer.stop()
        if observer.is_alive():
            observer.join()

    def __enter__(self) -> WatchHandle:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class ChangeNotifier:
    """Opens a :class:`WatchHandle` for each live connection.

    Watches are only attached for targets that exist when the connection
    opens; a log created later is picked up on the next connection.
    """

    def __init__(
        self,
        config: DashboardConfig,
        *,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.activity_file: Path = config.activity_file
        self.conversations_dir: Path = config.conversations_dir
        self.suffix = config.conversation_suffix
        self._observer_factory = observer_factory

    def open(self, send: Send) -> WatchHandle:
        handle = WatchHandle(self._observer_factory)
        if self.activity_file.is_file():
            handle.attach(self.activity_file.parent, ActivityWatch(self.activity_file, send))
            log.debug("watching activity log %s", self.activity_file)
        if self.conversations_dir.is_dir():
            handle.attach(
                self.conversations_dir,
                ConversationWatch(self.conversations_dir, self.suffix, send),
            )
            log.debug("watching conversations in %s", self.conversations_dir)
        return handle.start()
