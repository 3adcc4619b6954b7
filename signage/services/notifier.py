"""
How admin actions reach connected displays.

One contract for every transport: best-effort, never raises, never retries.
Which implementation runs is decided once at startup from `hub_mode`.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from redis.asyncio import Redis
from redis.exceptions import ConnectionError, TimeoutError

from signage.core.config import Settings
from signage.models.alert import Alert
from signage.models.events import BroadcastEnvelope
from signage.ws.hub import InvalidEnvelope, NotificationHub

log = logging.getLogger("notifier")


class Notifier:
    """Base: builds envelopes; subclasses decide where `send` delivers them."""

    name = "base"

    async def send(self, envelope: BroadcastEnvelope) -> None:
        raise NotImplementedError

    async def alert(self, alert: Alert) -> None:
        await self.send(BroadcastEnvelope(type="alert", data={"alert": alert.model_dump(mode="json")}))

    async def delete_alert(self, alert_id: str) -> None:
        await self.send(BroadcastEnvelope(type="deleteAlert", data={"alertId": alert_id}))

    async def close_alert(self, device_id: str) -> None:
        await self.send(BroadcastEnvelope(type="closeAlert", data={"deviceId": device_id}))

    async def content_update(self, device_id: str) -> None:
        await self.send(BroadcastEnvelope(type="contentUpdate", data={"deviceId": device_id}))

    async def patient_list_update(self, device_id: str) -> None:
        await self.send(BroadcastEnvelope(type="patientListUpdate", data={"deviceId": device_id}))


class NullNotifier(Notifier):
    name = "off"

    async def send(self, envelope: BroadcastEnvelope) -> None:
        log.debug("notify_dropped", extra={"type": envelope.type})


class LocalNotifier(Notifier):
    """Hub lives in this process."""

    name = "local"

    def __init__(self, hub: NotificationHub):
        self.hub = hub

    async def send(self, envelope: BroadcastEnvelope) -> None:
        try:
            await self.hub.dispatch(envelope)
        except InvalidEnvelope as e:
            log.warning("notify_local_invalid", extra={"type": envelope.type, "error": str(e)})


class HttpNotifier(Notifier):
    """Hub lives in another process; POST the envelope to its /broadcast."""

    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = f"{base_url.rstrip('/')}/broadcast"
        self.timeout_s = timeout_s
        self._transport = transport

    async def send(self, envelope: BroadcastEnvelope) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                r = await client.post(self.url, json=envelope.model_dump(mode="json"))
            if not (200 <= r.status_code < 300):
                log.warning(
                    "notify_http_rejected",
                    extra={"type": envelope.type, "status": r.status_code},
                )
        except httpx.HTTPError as e:
            log.warning("notify_http_error", extra={"type": envelope.type, "error": str(e)})


class RedisNotifier(Notifier):
    """Hub lives in another process subscribed to the events channel."""

    name = "redis"

    def __init__(self, redis: Redis, channel: str):
        self.redis = redis
        self.channel = channel

    async def send(self, envelope: BroadcastEnvelope) -> None:
        payload: Dict[str, Any] = envelope.model_dump(mode="json")
        try:
            await self.redis.publish(self.channel, json.dumps(payload))
        except (ConnectionError, TimeoutError):
            log.exception("notify_redis_publish_error", extra={"type": envelope.type})


def build_notifier(
    settings: Settings,
    hub: Optional[NotificationHub] = None,
    redis: Optional[Redis] = None,
) -> Notifier:
    if settings.hub_mode == "local" and hub is not None:
        return LocalNotifier(hub)
    if settings.hub_mode == "http":
        return HttpNotifier(settings.hub_base_url, settings.hub_timeout_s)
    if settings.hub_mode == "redis" and redis is not None:
        return RedisNotifier(redis, settings.events_channel)
    if settings.hub_mode != "off":
        log.warning("notifier_unavailable", extra={"hub_mode": settings.hub_mode})
    return NullNotifier()
