"""Connection status and the published application state."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pylmu.models._base import LmuEnum, LmuModel
from pylmu.models.session import SessionSnapshot
from pylmu.models.standing import DriverStanding


class ConnectionStatus(LmuEnum):
    CONNECTED = "CONNECTED"
    CONNECTING = "CONNECTING"
    DISCONNECTED = "DISCONNECTED"
    ERROR = "ERROR"

    @classmethod
    def _missing_(cls, value: object) -> ConnectionStatus:
        # No UNKNOWN member; an unrecognized status reads as disconnected.
        if isinstance(value, str):
            upper = value.strip().upper()
            if upper in cls.__members__:
                return cls.__members__[upper]
        return cls.DISCONNECTED


class LmuState(LmuModel):
    """Immutable snapshot handed to subscribers.

    ``session`` and ``standings`` always come from the same poll tick.
    """

    connection: ConnectionStatus = ConnectionStatus.DISCONNECTED
    session: SessionSnapshot | None = None
    standings: tuple[DriverStanding, ...] = ()
    last_updated: datetime | None = None

    @property
    def player(self) -> DriverStanding | None:
        return next((s for s in self.standings if s.is_player), None)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready camelCase dict for the UI/IPC layer."""
        return self.model_dump(mode="json", by_alias=True)
