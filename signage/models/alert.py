from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class Alert(BaseModel):
    id: str
    message: str
    targetDeviceIds: List[str]
    createdAt: datetime
    expiresAt: Optional[datetime] = None
    # auto-dismiss hint for the display client
    durationMs: Optional[int] = None

    def targets(self, device_id: str) -> bool:
        return device_id in self.targetDeviceIds

    def is_expired(self, now: datetime) -> bool:
        return self.expiresAt is not None and self.expiresAt <= now


class AlertCreate(BaseModel):
    message: str
    targetDeviceIds: List[str] = Field(default_factory=list)
    expiresAt: Optional[datetime] = None
    durationMs: Optional[int] = Field(default=None, ge=0)


class AlertClose(BaseModel):
    deviceId: str
