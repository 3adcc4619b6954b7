from __future__ import annotations

from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ContentItem(BaseModel):
    """
    A content record as stored for a device.

    Scheduling fields are kept loose (raw strings / lists as they come out
    of storage). The evaluator parses them defensively, so a bad value makes
    the item invisible instead of failing validation.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    deviceId: str
    order: int = 0
    active: bool = True
    durationMs: int = Field(default=0, ge=0)  # 0 = play until end of media

    # display fields (passed through to the client as-is)
    type: str = "image"
    name: str = ""
    url: Optional[str] = None
    text: Optional[str] = None

    # schedule (unknown kinds are kept so they can fail safe)
    scheduleKind: Optional[str] = None
    specificDate: Optional[Union[date, str]] = None
    daysOfWeek: Optional[Union[List[int], str]] = None  # 0 = Sunday
    startDate: Optional[Union[date, str]] = None
    endDate: Optional[Union[date, str]] = None
    startTime: Optional[str] = None  # "HH:MM"
    endTime: Optional[str] = None


class VisibleContentResponse(BaseModel):
    deviceId: str
    at: str
    contents: List[ContentItem]
