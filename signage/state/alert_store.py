from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from signage.models.alert import Alert
from signage.services.clock import Clock, localize

log = logging.getLogger("alerts.store")


class AlertStore:
    """
    Process-local alert list.

    - Nothing survives a restart (alerts are transient overlays)
    - Expiry is lazy: expired alerts are filtered at read time, never swept
    - All operations are synchronous and bounded; safe to call from the
      event loop without locking
    """

    def __init__(self, clock: Clock):
        self.clock = clock
        self._alerts: List[Alert] = []

    def __len__(self) -> int:
        return len(self._alerts)

    # =========================
    # WRITE
    # =========================

    def add(
        self,
        message: str,
        target_device_ids: List[str],
        expires_at: Optional[datetime] = None,
        duration_ms: Optional[int] = None,
    ) -> Alert:
        created_at = self.clock.now()

        if expires_at is not None:
            expires_at = localize(expires_at, self.clock.tz)
        elif duration_ms:
            expires_at = created_at + timedelta(milliseconds=duration_ms)

        alert = Alert(
            id=str(uuid.uuid4()),
            message=message,
            targetDeviceIds=list(dict.fromkeys(target_device_ids)),
            createdAt=created_at,
            expiresAt=expires_at,
            durationMs=duration_ms,
        )
        self._alerts.append(alert)
        log.info(
            "alert_added",
            extra={"alert_id": alert.id, "targets": len(alert.targetDeviceIds)},
        )
        return alert

    def put(self, alert: Alert) -> Alert:
        """Insert or replace by id (used for alerts created in another process)."""
        alert = self._normalize(alert)
        for idx, existing in enumerate(self._alerts):
            if existing.id == alert.id:
                self._alerts[idx] = alert
                return alert
        self._alerts.append(alert)
        return alert

    def remove(self, alert_id: str) -> bool:
        for idx, existing in enumerate(self._alerts):
            if existing.id == alert_id:
                del self._alerts[idx]
                log.info("alert_removed", extra={"alert_id": alert_id})
                return True
        return False

    def remove_for_device(self, device_id: str) -> int:
        """
        Drops `device_id` from every pending alert; alerts left without
        targets are deleted. Returns how many alerts were touched.
        """
        touched = 0
        kept: List[Alert] = []
        for alert in self._alerts:
            if not alert.targets(device_id):
                kept.append(alert)
                continue
            touched += 1
            remaining = [d for d in alert.targetDeviceIds if d != device_id]
            if remaining:
                kept.append(alert.model_copy(update={"targetDeviceIds": remaining}))
        self._alerts = kept
        if touched:
            log.info("alerts_closed_for_device", extra={"device_id": device_id, "alerts": touched})
        return touched

    # =========================
    # READ
    # =========================

    def get(self, alert_id: str) -> Optional[Alert]:
        return next((a for a in self._alerts if a.id == alert_id), None)

    def list_active_for_device(self, device_id: str, now: Optional[datetime] = None) -> List[Alert]:
        now = localize(now, self.clock.tz) if now else self.clock.now()
        return [
            a for a in self._alerts
            if a.targets(device_id) and not a.is_expired(now)
        ]

    def is_active(self, alert: Alert, now: Optional[datetime] = None) -> bool:
        now = localize(now, self.clock.tz) if now else self.clock.now()
        return not alert.is_expired(now)

    def _normalize(self, alert: Alert) -> Alert:
        update = {"createdAt": localize(alert.createdAt, self.clock.tz)}
        if alert.expiresAt is not None:
            update["expiresAt"] = localize(alert.expiresAt, self.clock.tz)
        elif alert.durationMs:
            update["expiresAt"] = update["createdAt"] + timedelta(milliseconds=alert.durationMs)
        return alert.model_copy(update=update)
