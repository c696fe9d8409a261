"""Pydantic models for relay records and WebSocket message schemas."""

from .messages import (
    Connected,
    Envelope,
    ErrorMessage,
    MotionSample,
    Pong,
    RegisterMessage,
    SchemaDocument,
    ShakeConfirmed,
    ShakeEvent,
    Stats,
    UserConnected,
    UserDisconnected,
    WireModel,
)
from .connection import ConnectionMetadata, ConnectionRecord, Role, UserCount

__all__ = [
    "Connected",
    "ConnectionMetadata",
    "ConnectionRecord",
    "Envelope",
    "ErrorMessage",
    "MotionSample",
    "Pong",
    "RegisterMessage",
    "Role",
    "SchemaDocument",
    "ShakeConfirmed",
    "ShakeEvent",
    "Stats",
    "UserConnected",
    "UserCount",
    "UserDisconnected",
    "WireModel",
]
