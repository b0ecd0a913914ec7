from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED_SCHEDULED = "disconnected-scheduled"
    DISCONNECTED_UNSCHEDULED = "disconnected-unscheduled"


@dataclass(frozen=True)
class StatisticsSnapshot:
    """Point-in-time copy of a sink's connection state."""

    last_open_time: datetime | None
    connection_protocol: str
    remote_address: str
    dropped_event_count: int
    connected: bool
    state: ConnectionState = ConnectionState.DISCONNECTED_UNSCHEDULED

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["last_open_time"] = (
            self.last_open_time.isoformat() if self.last_open_time else None
        )
        payload["state"] = self.state.value
        return payload
