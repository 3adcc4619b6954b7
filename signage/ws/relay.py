from __future__ import annotations

import asyncio
import json
import logging
from typing import Union

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import ConnectionError, TimeoutError

from signage.models.events import BroadcastEnvelope
from signage.state.redis_keys import EVENTS_CHANNEL
from signage.ws.hub import InvalidEnvelope, NotificationHub

log = logging.getLogger("ws.relay")


class RedisToHubRelay:
    """
    Runs in the process that owns the sockets. Envelopes published on the
    events channel by other processes are handed to the hub exactly as if
    they had arrived on POST /broadcast. A lost redis connection is retried
    every `retry_delay_s` until `stop()`.
    """

    def __init__(
        self,
        redis: Redis,
        hub: NotificationHub,
        channel: str = EVENTS_CHANNEL,
        retry_delay_s: float = 2.0,
    ) -> None:
        self.redis = redis
        self.hub = hub
        self.channel = channel
        self.retry_delay_s = retry_delay_s
        self._task: asyncio.Task | None = None
        self._running = False

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        log.info("relay_started", extra={"channel": self.channel})

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        log.info("relay_stopped")

    async def handle_raw(self, data: Union[bytes, bytearray, str]) -> int:
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8", errors="ignore")
        try:
            envelope = BroadcastEnvelope.model_validate(json.loads(data))
            return await self.hub.dispatch(envelope)
        except (json.JSONDecodeError, ValidationError, InvalidEnvelope) as e:
            log.warning("relay_message_invalid", extra={"error": str(e)})
            return 0

    async def _loop(self) -> None:
        while self._running:
            pubsub = self.redis.pubsub()
            try:
                await pubsub.subscribe(self.channel)
                while self._running:
                    msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                    if not msg:
                        continue
                    await self.handle_raw(msg.get("data") or b"")
            except (ConnectionError, TimeoutError) as e:
                log.warning(
                    "relay_redis_error",
                    extra={"error": str(e), "retry_in_s": self.retry_delay_s},
                )
            finally:
                await self._close(pubsub)

            if self._running:
                await asyncio.sleep(self.retry_delay_s)

    async def _close(self, pubsub) -> None:
        try:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()
        except Exception:
            log.debug("relay_unsubscribe_failed")
