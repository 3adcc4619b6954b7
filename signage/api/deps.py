from __future__ import annotations

from fastapi import Request, WebSocket

from signage.services.clock import Clock
from signage.services.holidays import HolidayProvider
from signage.services.notifier import Notifier
from signage.state.alert_store import AlertStore
from signage.state.content_repository import ContentRepository
from signage.ws.hub import NotificationHub


# =========================
# CORE STATE
# =========================

def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_alert_store(request: Request) -> AlertStore:
    return request.app.state.alert_store


def get_content_repo(request: Request) -> ContentRepository:
    return request.app.state.content_repo


def get_holiday_provider(request: Request) -> HolidayProvider:
    return request.app.state.holidays


# =========================
# HUB / NOTIFIER
# =========================

def get_hub(request: Request) -> NotificationHub:
    return request.app.state.hub


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


# =========================
# HUB (WEBSOCKET)
# =========================

def get_hub_ws(websocket: WebSocket) -> NotificationHub:
    return websocket.app.state.hub
