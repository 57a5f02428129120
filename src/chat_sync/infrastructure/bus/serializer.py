from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


def serialize_event(event: str, payload: dict[str, Any]) -> str:
    envelope = {"event": str(event), "data": payload}
    return json.dumps(envelope, cls=_Encoder)


def deserialize_event(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    data = json.loads(raw)
    if not isinstance(data, dict) or "event" not in data:
        raise ValueError("Broadcast envelope without an event name")
    payload = data.get("data") or {}
    if not isinstance(payload, dict):
        raise ValueError("Broadcast envelope data must be an object")
    return data["event"], payload
