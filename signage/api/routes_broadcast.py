from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from signage.api.deps import get_hub
from signage.models.events import BroadcastEnvelope
from signage.ws.hub import InvalidEnvelope, NotificationHub

log = logging.getLogger("broadcast")

router = APIRouter(tags=["broadcast"])


# =====================================================
# RELAY ENDPOINT (admin process -> socket process)
# =====================================================

@router.post("/broadcast")
async def broadcast(envelope: BroadcastEnvelope, hub: NotificationHub = Depends(get_hub)):
    try:
        delivered = await hub.dispatch(envelope)
    except InvalidEnvelope as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "delivered": delivered}
