"""
Realtime Routes (WebSocket)

WS /realtime/applications?token=<jwt> - Company's application changes
WS /realtime/notifications?token=<jwt> - Notification rows as they are recorded

Messages:
    {"type": "status", "status": "SUBSCRIBED"}
    {"type": "snapshot", "applications": [...]}       (applications feed only)
    {"type": "change", "table": ..., "event": "INSERT|UPDATE|DELETE", "new": ..., "old": ...}
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from udyoga_setu.core.auth import user_from_token
from udyoga_setu.services.application_service import get_application_service, APPLICATION_TABLES
from udyoga_setu.services.realtime import get_change_feed, Subscription

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["Realtime"])


async def _forward(websocket: WebSocket, sub: Subscription):
    while True:
        event = await sub.queue.get()
        await websocket.send_json(jsonable_encoder(event))


async def _drain(websocket: WebSocket):
    # client messages are ignored; returns once the socket closes
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Realtime client disconnected")


async def _serve(websocket: WebSocket, sub: Subscription):
    """Forward queued events until the client goes away or a send fails."""
    sender = asyncio.create_task(_forward(websocket, sub))
    receiver = asyncio.create_task(_drain(websocket))
    try:
        await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        sender.cancel()
        receiver.cancel()
        results = await asyncio.gather(sender, receiver, return_exceptions=True)
    for result in results:
        if isinstance(result, Exception):
            logger.warning("Realtime connection closed: %r", result)


async def _authorize(websocket: WebSocket, token: Optional[str], require_company: bool) -> Optional[dict]:
    """Accept the socket for a valid token. Only admins may go without a company, and only when allowed."""
    user = user_from_token(token)
    company_optional = not require_company and user and user["role"] == "admin"
    if not user or not (user["company_id"] or company_optional):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None
    await websocket.accept()
    return user


@router.websocket("/applications")
async def applications_feed(websocket: WebSocket, token: Optional[str] = Query(None)):
    user = await _authorize(websocket, token, require_company=True)
    if not user:
        return

    feed = get_change_feed()
    # subscribe before the snapshot so nothing falls between the two
    sub = feed.subscribe(APPLICATION_TABLES, company_id=user["company_id"])
    try:
        await websocket.send_json({"type": "status", "status": "SUBSCRIBED"})
        snapshot = get_application_service().get_company_applications(user["company_id"])
        await websocket.send_json({"type": "snapshot", "applications": jsonable_encoder(snapshot)})
        await _serve(websocket, sub)
    finally:
        feed.unsubscribe(sub)


@router.websocket("/notifications")
async def notifications_feed(websocket: WebSocket, token: Optional[str] = Query(None)):
    user = await _authorize(websocket, token, require_company=False)
    if not user:
        return

    feed = get_change_feed()
    # admins without a company see every notification
    sub = feed.subscribe(["notifications"], company_id=user["company_id"])
    try:
        await websocket.send_json({"type": "status", "status": "SUBSCRIBED"})
        await _serve(websocket, sub)
    finally:
        feed.unsubscribe(sub)
