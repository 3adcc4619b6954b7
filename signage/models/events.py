from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal

from signage.models.alert import Alert


BroadcastType = Literal[
    "alert",
    "closeAlert",
    "contentUpdate",
    "patientListUpdate",
    # relay-only: drops the hub's copy of an alert, nothing is sent to displays
    "deleteAlert",
]


class BroadcastEnvelope(BaseModel):
    """Body of POST /broadcast and of messages on the redis relay channel."""

    type: BroadcastType
    data: Dict[str, Any] = Field(default_factory=dict)


class InitMessage(BaseModel):
    type: Literal["init"] = "init"
    alerts: List[Alert]
