"""WS /ws/events: push engagement events to connected observers.

Each connection gets its own bounded inbox on the broadcaster.  The
handler forwards queued events and watches for the client going away;
whichever finishes first tears the other down.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from backend.app.services.notifier import Subscription, broadcaster

logger = logging.getLogger(__name__)

router = APIRouter()


async def _pump(websocket: WebSocket, sub: Subscription) -> None:
    while True:
        message = await sub.get()
        await websocket.send_json(message)


async def _drain(websocket: WebSocket) -> None:
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/ws/events")
async def events(websocket: WebSocket) -> None:
    # Subscribe before accepting so no event published after the
    # handshake can be missed.
    sub = broadcaster.subscribe()
    try:
        await websocket.accept()
        logger.info("observer_connected: id=%d", sub.id)
        tasks = {
            asyncio.create_task(_pump(websocket, sub)),
            asyncio.create_task(_drain(websocket)),
        }
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("observer_send_failed: id=%d error=%s", sub.id, exc)
    finally:
        broadcaster.unsubscribe(sub)
        logger.info("observer_disconnected: id=%d", sub.id)
