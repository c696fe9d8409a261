import logging
from typing import Any, Dict, Iterable, Optional, Protocol

from snowglobe.models import WireModel

logger = logging.getLogger(__name__)


class Channel(Protocol):
    def send_frame(self, event: str, data: Dict[str, Any]) -> bool:
        """Queue one frame; return False if the peer is already gone."""
        ...

    def close(self, code: Optional[int] = None, reason: Optional[str] = None) -> None:
        ...


class MessageDispatcher:
    """Routes outbound messages to open connections by transport id."""

    def __init__(self):
        self._channels: Dict[str, Channel] = {}

    def attach(self, connection_id: str, channel: Channel) -> None:
        self._channels[connection_id] = channel

    def detach(self, connection_id: str) -> None:
        self._channels.pop(connection_id, None)

    def is_attached(self, connection_id: str) -> bool:
        return connection_id in self._channels

    def channels(self) -> Dict[str, Channel]:
        return dict(self._channels)

    def send(self, connection_id: str, message: WireModel) -> bool:
        channel = self._channels.get(connection_id)
        if channel is None:
            logger.debug("Dropping %s for unknown connection %s", message.event, connection_id)
            return False
        return channel.send_frame(message.event, message.to_wire())

    def broadcast(self, connection_ids: Iterable[str], message: WireModel) -> int:
        """Fire-and-forget fan-out; returns how many channels accepted the frame."""
        data = message.to_wire()
        delivered = 0
        for connection_id in list(connection_ids):
            channel = self._channels.get(connection_id)
            if channel is not None and channel.send_frame(message.event, data):
                delivered += 1
        return delivered
