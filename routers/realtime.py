import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from database import SessionLocal
from utils.auth import resolve_user
from utils.realtime import hub, Subscription, auth_channel, comments_channel, notifications_channel

router = APIRouter(prefix="/realtime", tags=["realtime"])
logger = logging.getLogger(__name__)


def _viewer_id(token: Optional[str]) -> Optional[str]:
    with SessionLocal() as db:
        user = resolve_user(token, db)
        return user.id if user else None


async def _stream(websocket: WebSocket, subscription: Subscription, skip_own: bool = False) -> None:
    """
    Forwards every payload on the subscription to the socket until the client leaves.

    A receive task runs alongside the queue so a disconnect is noticed even
    when the channel is quiet.
    """
    receiver = asyncio.ensure_future(websocket.receive_text())
    getter = None
    try:
        while True:
            getter = asyncio.ensure_future(subscription.get())
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)

            if getter in done:
                payload = getter.result()
                record = payload.get("record") or {}
                own = skip_own and subscription.viewer_id and record.get("user_id") == subscription.viewer_id
                if not own:
                    await websocket.send_json(payload)
            else:
                getter.cancel()

            if receiver in done:
                logger.debug("Ignoring client message on %s: %s", subscription.channel, receiver.result())
                receiver = asyncio.ensure_future(websocket.receive_text())
    except WebSocketDisconnect:
        logger.debug("Client left %s", subscription.channel)
    finally:
        receiver.cancel()
        if getter is not None:
            getter.cancel()
        hub.unsubscribe(subscription)


@router.websocket("/articles/{article_id}/comments")
async def comments_feed(websocket: WebSocket, article_id: str, token: Optional[str] = Query(None)):
    viewer_id = await run_in_threadpool(_viewer_id, token) if token else None
    subscription = hub.subscribe(comments_channel(article_id), viewer_id=viewer_id)
    await websocket.accept()
    await _stream(websocket, subscription, skip_own=True)


@router.websocket("/notifications")
async def notifications_feed(websocket: WebSocket, token: Optional[str] = Query(None)):
    viewer_id = await run_in_threadpool(_viewer_id, token)
    if viewer_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    subscription = hub.subscribe(notifications_channel(viewer_id), viewer_id=viewer_id)
    await websocket.accept()
    await _stream(websocket, subscription)


@router.websocket("/auth")
async def auth_feed(websocket: WebSocket, token: Optional[str] = Query(None)):
    viewer_id = await run_in_threadpool(_viewer_id, token)
    if viewer_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    subscription = hub.subscribe(auth_channel(viewer_id), viewer_id=viewer_id)
    await websocket.accept()
    await _stream(websocket, subscription)
