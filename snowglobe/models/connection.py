from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, List, Optional

from pydantic import ConfigDict, Field

from snowglobe.models.messages import ShakeEvent, WireModel


class Role(str, Enum):
    UNREGISTERED = "unregistered"
    CONTROLLER = "controller"
    DISPLAY = "display"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionMetadata(WireModel):
    """Transport facts captured when a connection opens."""

    remote_address: Optional[str] = None
    user_agent: Optional[str] = None
    connected_at: datetime = Field(default_factory=utc_now)


class ConnectionRecord(WireModel):
    """
    Registry entry for a registered connection.

    Records are immutable; the registry swaps in a new copy to change one.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role = Field(..., alias="type")
    connected_at: datetime
    remote_address: Optional[str] = None
    user_agent: Optional[str] = None
    last_shake: Optional[ShakeEvent] = None


class UserCount(WireModel):
    """Initial state sent to a newly registered display."""

    event: ClassVar[str] = "userCount"

    count: int
    users: List[ConnectionRecord]
