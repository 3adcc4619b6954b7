from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.errors import PyMongoError

from signage.api.deps import get_clock, get_content_repo, get_hub, get_notifier
from signage.models.content import VisibleContentResponse
from signage.services.clock import Clock, parse_instant
from signage.services.notifier import Notifier
from signage.services.schedule import visible_content_for_device
from signage.state.content_repository import ContentRepository
from signage.ws.hub import NotificationHub

log = logging.getLogger("devices")

router = APIRouter(prefix="/devices", tags=["devices"])


@router.get("/connected")
async def connected_devices(hub: NotificationHub = Depends(get_hub)):
    return {"deviceIds": hub.connected_device_ids()}


# =====================================================
# WHAT THE DISPLAY SHOULD SHOW RIGHT NOW
# =====================================================

@router.get("/{device_id}/contents", response_model=VisibleContentResponse)
async def visible_contents(
    device_id: str,
    at: Optional[str] = Query(None, description="ISO datetime; naive = local time"),
    repo: ContentRepository = Depends(get_content_repo),
    clock: Clock = Depends(get_clock),
):
    try:
        now = parse_instant(at, clock)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid 'at' datetime")

    try:
        items = await asyncio.to_thread(repo.list_for_device, device_id)
    except PyMongoError:
        raise HTTPException(status_code=503, detail="content storage unavailable")

    contents = visible_content_for_device(items, now)
    log.debug(
        "visible_contents",
        extra={"device_id": device_id, "total": len(items), "visible": len(contents)},
    )
    return VisibleContentResponse(deviceId=device_id, at=now.isoformat(), contents=contents)


# =====================================================
# ADMIN HOOKS (content / patient queue changed)
# =====================================================

@router.post("/{device_id}/contents/changed")
async def contents_changed(device_id: str, notifier: Notifier = Depends(get_notifier)):
    await notifier.content_update(device_id)
    return {"ok": True}


@router.post("/{device_id}/patients/changed")
async def patients_changed(device_id: str, notifier: Notifier = Depends(get_notifier)):
    await notifier.patient_list_update(device_id)
    return {"ok": True}
