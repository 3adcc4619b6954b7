from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from signage.api.deps import get_hub_ws
from signage.ws.hub import NotificationHub

log = logging.getLogger("ws")

router = APIRouter(tags=["ws"])


@router.websocket("/ws")
async def display_socket(
    websocket: WebSocket,
    deviceId: Optional[str] = Query(None),
    hub: NotificationHub = Depends(get_hub_ws),
):
    await websocket.accept()

    # ws://host/ws?deviceId=xxx ; without it the socket never reaches the hub
    if not deviceId:
        log.warning("ws_rejected_no_device_id")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="deviceId required")
        return

    await hub.connect(deviceId, websocket)

    try:
        while True:
            msg = await websocket.receive_json()
            if isinstance(msg, dict) and msg.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
                continue
            log.debug("ws_unknown_msg", extra={"device_id": deviceId, "msg": msg})
    except WebSocketDisconnect:
        pass
    except Exception as e:
        log.warning("ws_connection_closed", extra={"device_id": deviceId, "error": str(e)})
    finally:
        await hub.disconnect(deviceId, websocket)
