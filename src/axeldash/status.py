from __future__ import annotations

import logging
import resource
import sys
import time
from typing import Any, Callable

from .config import DashboardConfig
from .util import run_capture

log = logging.getLogger(__name__)


def _max_rss_kb() -> int:
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # macOS reports bytes, Linux kilobytes.
    if sys.platform == "darwin":
        return rss // 1024
    return rss


class StatusProber:
    """Reports process health and whether the dependent API answers."""

    def __init__(
        self,
        config: DashboardConfig,
        *,
        runner: Callable[[list[str]], Any] = run_capture,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = config.status_name
        self.url = config.status_url
        self.marker = config.status_marker
        self._runner = runner
        self._clock = clock
        self._started = clock()

    def service_alive(self) -> bool:
        try:
            proc = self._runner(["curl", "-s", self.url])
        except OSError as exc:
            log.debug("status probe could not run curl: %s", exc)
            return False
        return proc.returncode == 0 and self.marker in (proc.stdout or "")

    def snapshot(self) -> dict[str, Any]:
        return {
            self.name: self.service_alive(),
            "uptime": round(self._clock() - self._started, 3),
            "memory": {"max_rss_kb": _max_rss_kb()},
        }
