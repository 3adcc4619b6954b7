from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from signage.core.config import Settings, settings as default_settings
from signage.core.logging import setup_logging

from signage.db.mongo import Mongo
from signage.services.clock import SystemClock
from signage.services.holidays import KoreanHolidayProvider
from signage.services.notifier import build_notifier
from signage.state.alert_store import AlertStore
from signage.state.content_repository import MongoContentRepository

from signage.ws.hub import NotificationHub
from signage.ws.relay import RedisToHubRelay

from signage.api.routes_ws import router as ws_router
from signage.api.routes_broadcast import router as broadcast_router
from signage.api.routes_alerts import router as alerts_router
from signage.api.routes_devices import router as devices_router
from signage.api.routes_schedule import router as schedule_router

log = logging.getLogger("app")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Services are created in the lifespan. Anything already set on
    `app.state` before startup (clock, content_repo, holidays) is kept,
    which is how tests inject fakes.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        log.info("app_starting", extra={"env": settings.app_env, "hub_mode": settings.hub_mode})

        state = app.state

        if getattr(state, "clock", None) is None:
            state.clock = SystemClock(settings.timezone)
        if getattr(state, "holidays", None) is None:
            state.holidays = KoreanHolidayProvider()

        # CONTENT STORAGE
        mongo: Optional[Mongo] = None
        if getattr(state, "content_repo", None) is None:
            mongo = Mongo.from_settings(settings)
            state.content_repo = MongoContentRepository(mongo)
            log.info("mongo_configured", extra={"db": settings.mongo_db})

        # HUB
        state.alert_store = AlertStore(state.clock)
        state.hub = NotificationHub(state.alert_store)

        # REDIS (optional)
        redis: Optional[Redis] = None
        relay: Optional[RedisToHubRelay] = None
        if settings.redis_enabled:
            redis = Redis.from_url(settings.redis_url, decode_responses=False)
            relay = RedisToHubRelay(redis, state.hub, settings.events_channel)
            await relay.start()
        state.redis = redis
        state.relay = relay

        # NOTIFIER, decided once here
        state.notifier = build_notifier(settings, state.hub, redis)
        log.info("notifier_ready", extra={"notifier": state.notifier.name})

        try:
            yield
        finally:
            if relay is not None:
                try:
                    await relay.stop()
                except Exception:
                    log.exception("error_stopping_relay")

            await state.hub.shutdown()

            if redis is not None:
                try:
                    await redis.aclose()
                except Exception:
                    log.exception("error_closing_redis")

            if mongo is not None:
                mongo.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ws_router)
    app.include_router(broadcast_router)
    app.include_router(alerts_router)
    app.include_router(devices_router)
    app.include_router(schedule_router)

    @app.get("/health")
    def health():
        hub = getattr(app.state, "hub", None)
        return {
            "ok": True,
            "app": settings.app_name,
            "env": settings.app_env,
            "connections": hub.connections_count() if hub else 0,
        }

    return app


app = create_app()
