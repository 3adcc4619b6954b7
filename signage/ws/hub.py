from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError
from starlette.websockets import WebSocket, WebSocketState

from signage.models.alert import Alert
from signage.models.events import BroadcastEnvelope, InitMessage
from signage.state.alert_store import AlertStore

log = logging.getLogger("ws.hub")


class InvalidEnvelope(ValueError):
    pass


def is_open(ws: WebSocket) -> bool:
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class NotificationHub:
    """
    Live display connections, one per device id.

    - Last writer wins: a new connection for a device replaces the tracked
      handle (the old socket is not closed here)
    - Delivery is best-effort: offline devices are skipped, a failed send
      never aborts the other targets and never raises to the caller
    - Pending alerts are replayed in an `init` message on every connect
    """

    def __init__(self, alert_store: AlertStore) -> None:
        self.alerts = alert_store
        self._connections: Dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()

        # debug
        self._tx_count = 0
        self._tx_skipped_offline = 0

    def connected_device_ids(self) -> List[str]:
        return sorted(self._connections)

    def connections_count(self) -> int:
        return len(self._connections)

    def is_connected(self, device_id: str) -> bool:
        return device_id in self._connections

    # =========================
    # CONNECTION LIFECYCLE
    # =========================

    async def connect(self, device_id: str, ws: WebSocket) -> None:
        """Registers an accepted socket and replays the device's pending alerts."""
        async with self._lock:
            previous = self._connections.get(device_id)
            self._connections[device_id] = ws

        if previous is not None and previous is not ws:
            log.info("ws_superseded", extra={"device_id": device_id})

        pending = self.alerts.list_active_for_device(device_id)
        await self._send(device_id, ws, InitMessage(alerts=pending).model_dump(mode="json"))
        log.info(
            "ws_connected",
            extra={
                "device_id": device_id,
                "pending_alerts": len(pending),
                "clients": len(self._connections),
            },
        )

    async def disconnect(self, device_id: str, ws: WebSocket) -> bool:
        """Forgets `ws` unless a newer connection already replaced it."""
        async with self._lock:
            if self._connections.get(device_id) is not ws:
                return False
            del self._connections[device_id]
        log.info("ws_disconnected", extra={"device_id": device_id, "clients": len(self._connections)})
        return True

    async def shutdown(self) -> None:
        async with self._lock:
            connections = list(self._connections.items())
            self._connections.clear()

        for device_id, ws in connections:
            if not is_open(ws):
                continue
            try:
                await ws.close(code=1001)
            except Exception:
                log.debug("ws_close_failed", extra={"device_id": device_id})
        log.info("hub_stopped", extra={"closed": len(connections)})

    # =========================
    # DELIVERY
    # =========================

    async def broadcast(
        self,
        kind: str,
        device_ids: Iterable[str],
        payload: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Sends `{type: kind, **payload}` to each target. Returns how many got it."""
        message = {"type": kind, **(payload or {})}

        async with self._lock:
            targets = [(d, self._connections.get(d)) for d in dict.fromkeys(device_ids)]

        delivered = 0
        for device_id, ws in targets:
            if ws is None:
                self._tx_skipped_offline += 1
                log.debug("broadcast_skipped_offline", extra={"type": kind, "device_id": device_id})
                continue
            if await self._send(device_id, ws, message):
                delivered += 1

        self._tx_count += delivered
        log.info(
            "broadcast",
            extra={"type": kind, "targets": len(targets), "delivered": delivered},
        )
        return delivered

    async def publish_alert(self, alert: Alert) -> int:
        # keep a copy here too, so a device connecting later gets it replayed
        alert = self.alerts.put(alert)
        if not self.alerts.is_active(alert):
            log.info("alert_expired_not_sent", extra={"alert_id": alert.id})
            return 0
        return await self.broadcast(
            "alert",
            alert.targetDeviceIds,
            {"alert": alert.model_dump(mode="json")},
        )

    async def close_alert(self, device_id: str) -> int:
        self.alerts.remove_for_device(device_id)
        return await self.broadcast("closeAlert", [device_id])

    def delete_alert(self, alert_id: str) -> bool:
        return self.alerts.remove(alert_id)

    async def content_update(self, device_id: str) -> int:
        return await self.broadcast("contentUpdate", [device_id])

    async def patient_list_update(self, device_id: str) -> int:
        return await self.broadcast("patientListUpdate", [device_id])

    async def dispatch(self, envelope: BroadcastEnvelope) -> int:
        """Entry point for relayed envelopes (HTTP /broadcast, redis)."""
        if envelope.type == "alert":
            raw = envelope.data.get("alert")
            if not isinstance(raw, dict):
                raise InvalidEnvelope("data.alert object is required")
            try:
                alert = Alert.model_validate(raw)
            except ValidationError as e:
                raise InvalidEnvelope(f"invalid alert: {e.error_count()} error(s)") from e
            return await self.publish_alert(alert)

        if envelope.type == "deleteAlert":
            alert_id = envelope.data.get("alertId")
            if not isinstance(alert_id, str) or not alert_id:
                raise InvalidEnvelope("data.alertId is required")
            self.delete_alert(alert_id)
            return 0

        # device-scoped kinds: no implicit fan-out to every device
        device_id = envelope.data.get("deviceId")
        if not isinstance(device_id, str) or not device_id:
            raise InvalidEnvelope("data.deviceId is required")

        if envelope.type == "closeAlert":
            return await self.close_alert(device_id)
        if envelope.type == "contentUpdate":
            return await self.content_update(device_id)
        return await self.patient_list_update(device_id)

    async def _send(self, device_id: str, ws: WebSocket, message: Dict[str, Any]) -> bool:
        if not is_open(ws):
            await self._prune(device_id, ws)
            return False
        try:
            await ws.send_json(message)
            return True
        except Exception as e:
            log.warning(
                "ws_send_failed",
                extra={"device_id": device_id, "type": message.get("type"), "error": str(e)},
            )
            await self._prune(device_id, ws)
            return False

    async def _prune(self, device_id: str, ws: WebSocket) -> None:
        if await self.disconnect(device_id, ws):
            log.warning("ws_client_pruned", extra={"device_id": device_id})
