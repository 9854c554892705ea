"""Live channels; each viewer owns the watches opened for it."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from ..notifier import ChangeNotifier, Send, WatchHandle

router = APIRouter()

log = logging.getLogger(__name__)

_QUEUE_SIZE = 256


def _notifier(conn: Request | WebSocket) -> ChangeNotifier:
    return conn.app.state.notifier


def _offer(queue: asyncio.Queue, message: dict[str, Any]) -> None:
    try:
        queue.put_nowait(message)
    except asyncio.QueueFull:
        log.debug("live queue full, dropping %s message", message.get("type"))


def queue_sender(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> Send:
    """Adapt a per-connection queue into a sender callable from watch threads."""

    def send(message: dict[str, Any]) -> None:
        try:
            loop.call_soon_threadsafe(_offer, queue, message)
        except RuntimeError:
            log.debug("event loop closed, dropping %s message", message.get("type"))

    return send


def sse_frame(message: dict[str, Any]) -> str:
    return f"event: {message['type']}\ndata: {json.dumps(message['data'])}\n\n"


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _release(handle: WatchHandle) -> None:
    # Observer shutdown joins a thread; keep it off the event loop.
    await asyncio.get_running_loop().run_in_executor(None, handle.close)


@router.websocket("/ws")
async def live_updates(websocket: WebSocket):
    await websocket.accept()
    log.info("dashboard client connected")
    queue: asyncio.Queue = asyncio.Queue(maxsize=_QUEUE_SIZE)
    sender = queue_sender(asyncio.get_running_loop(), queue)

    handle = _notifier(websocket).open(sender)
    pump = asyncio.create_task(_pump(websocket, queue))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        pump.cancel()
        await asyncio.gather(pump, return_exceptions=True)
        await _release(handle)

    log.info("dashboard client disconnected")


@router.get("/api/events")
async def api_events(request: Request):
    notifier = _notifier(request)
    loop = asyncio.get_running_loop()

    async def event_stream():
        queue: asyncio.Queue = asyncio.Queue(maxsize=_QUEUE_SIZE)
        handle = notifier.open(queue_sender(loop, queue))
        try:
            while True:
                message = await queue.get()
                yield sse_frame(message)
        finally:
            await _release(handle)

    return StreamingResponse(event_stream(), media_type="text/event-stream")
