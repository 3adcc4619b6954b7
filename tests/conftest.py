"""
Shared fixtures: a frozen clock, an in-memory alert store and hub, fake
sockets, and a FastAPI app wired with in-memory content storage.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from signage.core.config import Settings
from signage.main import create_app
from signage.models.content import ContentItem
from signage.services.clock import FixedClock
from signage.state.alert_store import AlertStore
from signage.state.content_repository import InMemoryContentRepository
from signage.ws.hub import NotificationHub

# Wednesday, noon local time
NOW = datetime(2025, 1, 15, 12, 0)


class FakeSocket:
    """Stands in for a starlette WebSocket: records what the hub sends."""

    def __init__(self, open: bool = True, fail: bool = False):
        state = WebSocketState.CONNECTED if open else WebSocketState.DISCONNECTED
        self.client_state = state
        self.application_state = state
        self.fail = fail
        self.sent: List[Dict[str, Any]] = []
        self.close_code: Optional[int] = None

    async def send_json(self, message: Dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(message)

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        self.close_code = code
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED

    def types(self) -> List[str]:
        return [m["type"] for m in self.sent]


def make_item(**overrides: Any) -> ContentItem:
    fields: Dict[str, Any] = {
        "id": "c1",
        "deviceId": "d1",
        "order": 0,
        "active": True,
        "scheduleKind": "always",
    }
    fields.update(overrides)
    return ContentItem(**fields)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store(clock):
    return AlertStore(clock)


@pytest.fixture
def hub(store):
    return NotificationHub(store)


@pytest.fixture
def content_repo():
    return InMemoryContentRepository(
        [
            {"id": "late", "deviceId": "d1", "order": 2, "scheduleKind": "always"},
            {"id": "first", "deviceId": "d1", "order": 1, "scheduleKind": "always"},
            {"id": "second", "deviceId": "d1", "order": 1, "scheduleKind": "days_of_week", "daysOfWeek": "3"},
            {"id": "hidden", "deviceId": "d1", "order": 0, "scheduleKind": "always", "active": False},
            {"id": "morning", "deviceId": "d1", "order": 0, "scheduleKind": "always",
             "startTime": "08:00", "endTime": "10:00"},
            {"id": "other", "deviceId": "d2", "order": 0, "scheduleKind": "always"},
            {"id": "broken", "deviceId": "d1", "order": "not-a-number", "scheduleKind": "always"},
            {"id": "jan20", "deviceId": "d1", "order": 5, "scheduleKind": "specific_date",
             "specificDate": "2025-01-20"},
        ]
    )


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        hub_mode="local",
        redis_url="",
        log_level="WARNING",
        timezone="Asia/Seoul",
    )


@pytest.fixture
def app(test_settings, clock, content_repo):
    application = create_app(test_settings)
    application.state.clock = clock
    application.state.content_repo = content_repo
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
