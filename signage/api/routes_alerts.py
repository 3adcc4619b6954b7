from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from signage.api.deps import get_alert_store, get_notifier
from signage.models.alert import Alert, AlertClose, AlertCreate
from signage.services.notifier import Notifier
from signage.state.alert_store import AlertStore

router = APIRouter(prefix="/alerts", tags=["alerts"])


# =====================================================
# CREATE + PUSH
# =====================================================

@router.post("", response_model=Alert)
async def create_alert(
    body: AlertCreate,
    store: AlertStore = Depends(get_alert_store),
    notifier: Notifier = Depends(get_notifier),
):
    targets = [d for d in body.targetDeviceIds if d]
    if not body.message.strip() or not targets:
        raise HTTPException(status_code=400, detail="message, targetDeviceIds required")

    alert = store.add(body.message, targets, body.expiresAt, body.durationMs)
    await notifier.alert(alert)
    return alert


# =====================================================
# PENDING ALERTS FOR A DEVICE
# =====================================================

@router.get("", response_model=List[Alert])
async def list_alerts(
    deviceId: Optional[str] = Query(None),
    store: AlertStore = Depends(get_alert_store),
):
    if not deviceId:
        raise HTTPException(status_code=400, detail="deviceId required")
    return store.list_active_for_device(deviceId)


# =====================================================
# CLOSE (all alerts currently shown on one device)
# =====================================================

@router.post("/close")
async def close_alerts(
    body: AlertClose,
    store: AlertStore = Depends(get_alert_store),
    notifier: Notifier = Depends(get_notifier),
):
    if not body.deviceId:
        raise HTTPException(status_code=400, detail="deviceId is required")
    closed = store.remove_for_device(body.deviceId)
    await notifier.close_alert(body.deviceId)
    return {"success": True, "closed": closed}


@router.delete("/{alert_id}")
async def delete_alert(
    alert_id: str,
    store: AlertStore = Depends(get_alert_store),
    notifier: Notifier = Depends(get_notifier),
):
    if not store.remove(alert_id):
        raise HTTPException(status_code=404, detail="alert not found")
    # the hub process may hold its own copy for replay
    await notifier.delete_alert(alert_id)
    return {"ok": True}
