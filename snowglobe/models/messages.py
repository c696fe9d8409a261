import math
import re
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


_LEADING_INT = re.compile(r"^\s*[+-]?\d+")
_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

Scalar = Union[int, float, str]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_int(value: Any, default: int) -> int:
    """Lenient integer parse: leading digits of a string, truncation of a float."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group()) if match else default
    return default


def parse_float(value: Any, default: float = 0.0) -> float:
    """Lenient float parse: leading number of a string, default for anything else."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_FLOAT.match(value)
        if not match:
            return default
        number = float(match.group())
    else:
        return default
    return number if math.isfinite(number) else default


def timestamp_to_epoch_ms(value: Any) -> Optional[float]:
    """
    Interpret a client timestamp as epoch milliseconds.

    Numbers and numeric strings are taken as milliseconds; other strings are
    parsed as ISO-8601 (naive values are UTC). Returns None when neither works.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        number = float(text)
    except ValueError:
        pass
    else:
        return number if math.isfinite(number) else None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp() * 1000.0


class WireModel(BaseModel):
    """Base for payloads carried in the ``data`` member of a frame."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event: ClassVar[str] = ""

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Envelope(BaseModel):
    """One WebSocket frame: ``{"event": name, "data": {...}}``."""

    event: str
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def default_data(cls, value):
        return {} if value is None else value


# Client -> server


class RegisterMessage(WireModel):
    """Inbound role registration from a new connection."""

    event: ClassVar[str] = "register"

    type: Any = Field(default=None, description="Requested role: 'controller' or 'display'.")
    user_agent: Optional[str] = Field(default=None, description="Client-reported user agent.")

    @field_validator("user_agent", mode="before")
    @classmethod
    def stringify_user_agent(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)


class ShakeEvent(WireModel):
    """
    Normalized shake, as stored on the controller record and broadcast to displays.

    Raw client values are coerced on validation: intensity is clamped to 1-10,
    the float fields fall back to 0.0 when they cannot be parsed.
    """

    event: ClassVar[str] = "shake"

    user_id: str = Field(..., description="Transport id of the sending controller.")
    intensity: int = Field(default=1, ge=1, le=10, description="Shake strength, 1-10.")
    acceleration: float = Field(default=0.0, description="Peak acceleration reported by the client.")
    timestamp: Scalar = Field(..., description="Client timestamp, forwarded unchanged.")
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    shake_number: Scalar = Field(default=0, description="Client-side shake counter.")

    @field_validator("intensity", mode="before")
    @classmethod
    def clamp_intensity(cls, value):
        return min(max(parse_int(value, 1) or 1, 1), 10)

    @field_validator("acceleration", "x", "y", "z", mode="before")
    @classmethod
    def coerce_float(cls, value):
        return parse_float(value)

    @field_validator("shake_number", mode="before")
    @classmethod
    def default_shake_number(cls, value):
        return value or 0


class MotionSample(WireModel):
    """Continuous motion reading forwarded to displays when strong enough."""

    event: ClassVar[str] = "motion"

    user_id: str
    total_acceleration: float = 0.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    timestamp: Scalar = Field(default_factory=utc_now_iso)

    @field_validator("total_acceleration", "x", "y", "z", mode="before")
    @classmethod
    def coerce_float(cls, value):
        return parse_float(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def default_timestamp(cls, value):
        return value or utc_now_iso()


# Server -> client


class Connected(WireModel):
    """Welcome sent to a newly registered controller."""

    event: ClassVar[str] = "connected"

    message: str = "Connected to Snow Globe!"
    user_id: str
    total_users: int


class UserConnected(WireModel):
    event: ClassVar[str] = "userConnected"

    user_id: str
    total_users: int


class UserDisconnected(WireModel):
    event: ClassVar[str] = "userDisconnected"

    user_id: str
    total_users: int


class ShakeConfirmed(WireModel):
    """Acknowledgement of an accepted shake, sent to its controller only."""

    event: ClassVar[str] = "shakeConfirmed"

    intensity: int
    timestamp: Scalar
    acceleration: float
    shake_number: Scalar


class Stats(WireModel):
    event: ClassVar[str] = "stats"

    connected_controllers: int
    connected_displays: int
    timestamp: str = Field(default_factory=utc_now_iso)


class ErrorMessage(WireModel):
    event: ClassVar[str] = "error"

    message: str


class Pong(WireModel):
    event: ClassVar[str] = "pong"

    timestamp: str = Field(default_factory=utc_now_iso)


class SchemaDocument(BaseModel):
    """Documentation payload served at /docs for quick reference."""

    websocket_endpoints: Dict[str, str]
    frame_schema: Dict[str, Any]
    inbound_messages: Dict[str, Dict[str, Any]]
    outbound_messages: Dict[str, Dict[str, Any]]
    examples: Dict[str, Any] = Field(default_factory=dict)
    notes: List[str] = []
