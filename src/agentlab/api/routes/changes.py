"""Change feed over WebSocket.

WS /ws/changes?table=<table>[&experiment_id=<id>][&user_id=<id>]

Each connection subscribes to one table of the change feed, optionally
narrowed to events whose payload carries the given experiment_id or
user_id. Messages sent to the client (JSON):

    {"type": "subscribed", "table": ..., "filter": {...}}
    {"type": "change", "table": ..., "event_type": ..., "record_id": ..., "payload": {...}}
    {"type": "pong"}     in reply to {"type": "ping"}

The subscription is dropped when the client disconnects.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from agentlab.api.app import get_change_feed
from agentlab.realtime.feed import ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)

router = APIRouter()


def _change_message(event: ChangeEvent) -> dict[str, Any]:
    return jsonable_encoder(
        {
            "type": "change",
            "table": event.table,
            "event_type": event.event_type,
            "record_id": event.record_id,
            "payload": event.payload,
        }
    )


async def _receive_until_disconnect(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    """Answer pings until the client goes away.

    Replies go through the outbox so only one task ever sends.
    """
    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except json.JSONDecodeError:
                outbox.put_nowait({"type": "error", "detail": "Invalid message format"})
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                outbox.put_nowait({"type": "pong"})
    except WebSocketDisconnect:
        return


@router.websocket("/ws/changes")
async def stream_changes(
    websocket: WebSocket,
    table: str,
    experiment_id: str | None = None,
    user_id: str | None = None,
    feed: ChangeFeed = Depends(get_change_feed),
) -> None:
    """Stream committed changes of one table to a client."""
    await websocket.accept()

    loop = asyncio.get_running_loop()
    outbox: asyncio.Queue = asyncio.Queue()

    def deliver(event: ChangeEvent) -> None:
        # Publishers run on the request threadpool, not on this loop
        loop.call_soon_threadsafe(outbox.put_nowait, _change_message(event))

    filters = {
        key: value
        for key, value in (("experiment_id", experiment_id), ("user_id", user_id))
        if value is not None
    }
    subscription = feed.subscribe(table, deliver, filters)
    logger.info("Change stream opened for %s %s", table, filters)

    receiver = asyncio.create_task(_receive_until_disconnect(websocket, outbox))
    try:
        await websocket.send_json({"type": "subscribed", "table": table, "filter": filters})
        while True:
            getter = asyncio.create_task(outbox.get())
            done, _ = await asyncio.wait(
                {getter, receiver}, return_when=asyncio.FIRST_COMPLETED
            )
            if receiver in done:
                getter.cancel()
                break
            await websocket.send_json(getter.result())
    except WebSocketDisconnect:
        pass
    finally:
        subscription.unsubscribe()
        receiver.cancel()
        logger.info("Change stream closed for %s", table)
