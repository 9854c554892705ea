"""Page and API routes for the dashboard."""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from .. import __version__
from ..models import ActivityRecord, AdvisorEntry, ConversationFile, KnowledgeEntry
from ..stores import EntryNotFound, InvalidMemoryType, KnowledgeStore, LogStore
from ..util import utc_now_iso

router = APIRouter()

_MARKDOWN = "text/markdown; charset=utf-8"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _logs(req: Request) -> LogStore:
    return req.app.state.logs


def _knowledge(req: Request) -> KnowledgeStore:
    return req.app.state.knowledge


def _templates(req: Request):
    return req.app.state.templates


# ---------------------------------------------------------------------------
# Pages (HTML)
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request):
    cfg = request.app.state.config
    return _templates(request).TemplateResponse(
        request,
        "dashboard.html",
        {
            "version": __version__,
            "categories": list(cfg.memory_categories),
            "status_name": cfg.status_name,
        },
    )


@router.get("/healthz")
async def healthz():
    return {"ok": True, "time": utc_now_iso()}


# ---------------------------------------------------------------------------
# Data API (JSON, read-only)
# ---------------------------------------------------------------------------


@router.get("/api/activity", response_model=list[ActivityRecord])
async def api_activity(request: Request):
    return _logs(request).activity()


@router.get("/api/conversations", response_model=list[ConversationFile])
async def api_conversations(request: Request):
    return _logs(request).conversation_dates()


@router.get("/api/conversations/{date}", response_model=list[Any])
async def api_conversation(request: Request, date: str):
    return _logs(request).conversation(date)


@router.get("/api/memory", response_model=dict[str, list[KnowledgeEntry]])
async def api_memory(request: Request):
    return _knowledge(request).memory()


@router.get("/api/memory/{category}/{name}")
async def api_memory_entry(request: Request, category: str, name: str):
    try:
        text = _knowledge(request).memory_entry(category, name)
    except InvalidMemoryType:
        return PlainTextResponse("Invalid type", status_code=400)
    except EntryNotFound:
        return PlainTextResponse("Not found", status_code=404)
    return PlainTextResponse(text, media_type=_MARKDOWN)


@router.get("/api/inventory")
async def api_inventory(request: Request):
    try:
        text = _knowledge(request).inventory()
    except EntryNotFound:
        return PlainTextResponse("No inventory", status_code=404)
    return PlainTextResponse(text, media_type=_MARKDOWN)


@router.get("/api/advisors", response_model=list[AdvisorEntry])
async def api_advisors(request: Request):
    return _knowledge(request).advisors()


@router.get("/api/status")
async def api_status(request: Request):
    prober = request.app.state.prober
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, prober.snapshot)
