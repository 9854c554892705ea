from __future__ import annotations

import json
import queue
from pathlib import Path
from typing import Any

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from axeldash.config import DashboardConfig
from axeldash.notifier import ActivityWatch, ChangeNotifier, ConversationWatch, WatchHandle

from conftest import write


class FakeObserver:
    def __init__(self) -> None:
        self.scheduled: list[tuple[Any, str, bool]] = []
        self.started = False
        self.stopped = False
        self.joined = False
        self.unscheduled = False
        self.daemon = False

    def schedule(self, handler: Any, path: str, recursive: bool = False) -> None:
        self.scheduled.append((handler, path, recursive))

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def unschedule_all(self) -> None:
        self.unscheduled = True

    def is_alive(self) -> bool:
        return self.started and not self.joined

    def join(self, timeout: float | None = None) -> None:
        self.joined = True


class Recorder:
    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)


@pytest.fixture
def observers() -> list[FakeObserver]:
    return []


@pytest.fixture
def notifier(config: DashboardConfig, observers: list[FakeObserver]) -> ChangeNotifier:
    def factory() -> FakeObserver:
        obs = FakeObserver()
        observers.append(obs)
        return obs

    return ChangeNotifier(config, observer_factory=factory)


def test_open_without_targets_attaches_nothing(
    notifier: ChangeNotifier, observers: list[FakeObserver]
) -> None:
    handle = notifier.open(Recorder())
    assert handle.watched == []
    assert observers == []
    handle.close()
    assert handle.closed


def test_open_attaches_both_watches_and_close_releases_them(
    config: DashboardConfig, notifier: ChangeNotifier, observers: list[FakeObserver]
) -> None:
    write(config.activity_file, "t|Read|ok\n")
    config.conversations_dir.mkdir(parents=True)

    with notifier.open(Recorder()) as handle:
        assert handle.watched == [config.logs_dir, config.conversations_dir]
        (obs,) = observers
        assert obs.started
        assert [type(h) for h, _, _ in obs.scheduled] == [ActivityWatch, ConversationWatch]
        assert all(recursive is False for _, _, recursive in obs.scheduled)

    assert obs.unscheduled and obs.stopped and obs.joined
    handle.close()


def test_targets_created_after_open_are_not_watched(
    config: DashboardConfig, notifier: ChangeNotifier
) -> None:
    handle = notifier.open(Recorder())
    write(config.activity_file, "t|Read|ok\n")
    assert handle.watched == []
    handle.close()


def test_each_connection_gets_its_own_handle(
    config: DashboardConfig, notifier: ChangeNotifier, observers: list[FakeObserver]
) -> None:
    write(config.activity_file, "t|Read|ok\n")
    first = notifier.open(Recorder())
    second = notifier.open(Recorder())

    first.close()

    assert observers[0].stopped
    assert not observers[1].stopped
    second.close()


def test_attach_after_close_is_rejected(config: DashboardConfig) -> None:
    handle = WatchHandle(FakeObserver)
    handle.close()
    with pytest.raises(RuntimeError):
        handle.attach(config.logs_dir, ActivityWatch(config.activity_file, Recorder()))


def test_activity_watch_pushes_newest_line(config: DashboardConfig) -> None:
    path = write(config.activity_file, "t0|Read|ok\nt1|Write|fail\n")
    sent = Recorder()
    watch = ActivityWatch(path, sent)

    with path.open("a", encoding="utf-8") as fh:
        fh.write("t2|Edit|ok\n")
    watch.dispatch(FileModifiedEvent(str(path)))
    watch.dispatch(FileClosedEvent(str(path)))
    watch.dispatch(DirModifiedEvent(str(path.parent)))

    assert sent.messages == [
        {"type": "activity", "data": {"timestamp": "t2", "tool": "Edit", "result": "ok"}}
    ]


def test_activity_watch_ignores_other_files(config: DashboardConfig) -> None:
    path = write(config.activity_file, "t0|Read|ok\n")
    other = write(config.logs_dir / "other.log", "x|y|z\n")
    sent = Recorder()

    ActivityWatch(path, sent).dispatch(FileModifiedEvent(str(other)))

    assert sent.messages == []


def test_activity_watch_follows_atomic_replace(config: DashboardConfig) -> None:
    path = write(config.activity_file, "t0|Read|ok\n")
    sent = Recorder()

    ActivityWatch(path, sent).dispatch(FileMovedEvent(str(path) + ".tmp", str(path)))

    assert [m["data"]["timestamp"] for m in sent.messages] == ["t0"]


def test_activity_watch_repeats_on_duplicate_events(config: DashboardConfig) -> None:
    path = write(config.activity_file, "t0|Read|ok\n")
    sent = Recorder()
    watch = ActivityWatch(path, sent)

    watch.dispatch(FileModifiedEvent(str(path)))
    watch.dispatch(FileModifiedEvent(str(path)))

    assert len(sent.messages) == 2
    assert sent.messages[0] == sent.messages[1]


def test_conversation_watch_pushes_last_message(config: DashboardConfig) -> None:
    path = write(
        config.conversations_dir / "2024-01-01.jsonl",
        json.dumps({"role": "user", "text": "a"}) + "\n" + json.dumps({"role": "assistant", "text": "b"}) + "\n",
    )
    sent = Recorder()

    ConversationWatch(config.conversations_dir, ".jsonl", sent).dispatch(
        FileModifiedEvent(str(path))
    )

    assert sent.messages == [
        {"type": "conversation", "data": {"role": "assistant", "text": "b"}}
    ]


def test_conversation_watch_ignores_other_suffixes(config: DashboardConfig) -> None:
    path = write(config.conversations_dir / "scratch.txt", '{"a": 1}\n')
    sent = Recorder()

    ConversationWatch(config.conversations_dir, ".jsonl", sent).dispatch(
        FileCreatedEvent(str(path))
    )

    assert sent.messages == []


def test_conversation_watch_skips_bad_json_and_deleted_files(
    config: DashboardConfig,
) -> None:
    path = write(config.conversations_dir / "2024-01-01.jsonl", '{"ok": 1}\n{broken\n')
    gone = config.conversations_dir / "2024-01-02.jsonl"
    sent = Recorder()
    watch = ConversationWatch(config.conversations_dir, ".jsonl", sent)

    watch.dispatch(FileModifiedEvent(str(path)))
    watch.dispatch(FileModifiedEvent(str(gone)))
    watch.dispatch(FileDeletedEvent(str(gone)))

    assert sent.messages == []


def test_real_observer_pushes_appended_line(config: DashboardConfig) -> None:
    path = write(
        config.activity_file,
        "2024-01-01T00:00:00Z|Read|ok\n2024-01-01T00:00:01Z|Write|fail\n",
    )
    received: queue.Queue = queue.Queue()

    with ChangeNotifier(config).open(received.put):
        with path.open("a", encoding="utf-8") as fh:
            fh.write("2024-01-01T00:00:02Z|Bash|ok\n")
        message = received.get(timeout=5)
        with pytest.raises(queue.Empty):
            received.get(timeout=0.5)

    assert message == {
        "type": "activity",
        "data": {"timestamp": "2024-01-01T00:00:02Z", "tool": "Bash", "result": "ok"},
    }


def test_conversation_watch_follows_rename_within_directory(
    config: DashboardConfig,
) -> None:
    gone = config.conversations_dir / "2024-01-01.jsonl"
    path = write(config.conversations_dir / "2024-01-02.jsonl", '{"text": "moved"}\n')
    sent = Recorder()

    ConversationWatch(config.conversations_dir, ".jsonl", sent).dispatch(
        FileMovedEvent(str(gone), str(path))
    )

    assert sent.messages == [{"type": "conversation", "data": {"text": "moved"}}]
