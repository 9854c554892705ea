"""Dashboard web interface: FastAPI app factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .. import __version__
from ..config import DashboardConfig, load_config
from ..notifier import ChangeNotifier
from ..status import StatusProber
from ..stores import KnowledgeStore, LogStore

_HERE = Path(__file__).parent

log = logging.getLogger(__name__)


def create_app(
    config: DashboardConfig | None = None,
    *,
    notifier: ChangeNotifier | None = None,
    prober: StatusProber | None = None,
) -> FastAPI:
    cfg = config or load_config()
    cfg.logs_dir.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("serving logs from %s, memory from %s", cfg.logs_dir, cfg.memory_dir)
        yield
        log.info("dashboard shutting down")

    app = FastAPI(title="axel dashboard", version=__version__, lifespan=lifespan)

    app.state.config = cfg
    app.state.logs = LogStore(cfg)
    app.state.knowledge = KnowledgeStore(cfg)
    app.state.notifier = notifier or ChangeNotifier(cfg)
    app.state.prober = prober or StatusProber(cfg)

    app.mount(
        "/static",
        StaticFiles(directory=str(_HERE / "static")),
        name="static",
    )

    templates = Jinja2Templates(directory=str(_HERE / "templates"))
    app.state.templates = templates

    from .live import router as live_router
    from .routes import router

    app.include_router(router)
    app.include_router(live_router)

    return app
