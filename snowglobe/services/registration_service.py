import logging
from typing import Any, Dict, Set

import tornado.ioloop
from pydantic import ValidationError

from snowglobe.errors import ProtocolError
from snowglobe.models import (
    Connected,
    ConnectionMetadata,
    ConnectionRecord,
    RegisterMessage,
    Role,
    UserCount,
)
from snowglobe.repositories import ConnectionRegistry
from snowglobe.services.dispatcher import MessageDispatcher
from snowglobe.services.presence_service import PresenceNotifier

logger = logging.getLogger(__name__)

ROLE_TOKENS = {"controller": Role.CONTROLLER, "display": Role.DISPLAY}


class RegistrationService:
    """Assigns a role to a new connection and sends it its initial state."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        dispatcher: MessageDispatcher,
        presence: PresenceNotifier,
        deadline_seconds: float = 5.0,
    ):
        self.registry = registry
        self.dispatcher = dispatcher
        self.presence = presence
        self.deadline_seconds = deadline_seconds
        self._registered: Set[str] = set()

    def register(self, connection_id: str, payload: Dict[str, Any], metadata: ConnectionMetadata) -> ConnectionRecord:
        try:
            message = RegisterMessage.model_validate(payload)
        except ValidationError as exc:
            raise ProtocolError("Invalid registration data") from exc

        logger.info("Registration attempt: %s wants to be %r", connection_id, message.type)
        role = ROLE_TOKENS.get(message.type) if isinstance(message.type, str) else None
        if role is None:
            logger.warning("Unknown registration type %r from %s", message.type, connection_id)
            raise ProtocolError(f"Unknown registration type: {message.type}")

        existing = self.registry.get(connection_id)
        if existing is not None:
            logger.warning("%s is already registered as %s", connection_id, existing.role.value)
            raise ProtocolError(f"Already registered as {existing.role.value}")

        if message.user_agent:
            metadata = metadata.model_copy(update={"user_agent": message.user_agent})
        record = self.registry.register(connection_id, role, metadata)
        self._registered.add(connection_id)

        if role is Role.CONTROLLER:
            total = self.registry.count(Role.CONTROLLER)
            logger.info("Controller registered: %s (Total controllers: %d)", connection_id, total)
            self.presence.controller_connected(connection_id)
            self.dispatcher.send(connection_id, Connected(user_id=connection_id, total_users=total))
        else:
            logger.info(
                "Display registered: %s (Total displays: %d)", connection_id, self.registry.count(Role.DISPLAY)
            )
            controllers = self.registry.snapshot(Role.CONTROLLER)
            self.dispatcher.send(connection_id, UserCount(count=len(controllers), users=controllers))
        return record

    def watch(self, connection_id: str, metadata: ConnectionMetadata) -> None:
        """Schedule the one-shot diagnostic for connections that never register."""
        tornado.ioloop.IOLoop.current().call_later(
            self.deadline_seconds, self.check_registered, connection_id, metadata
        )

    def check_registered(self, connection_id: str, metadata: ConnectionMetadata) -> bool:
        if connection_id in self._registered:
            self._registered.discard(connection_id)
            return True
        logger.warning(
            "Client %s connected but never registered (still open: %s, remote address: %s, user agent: %s)",
            connection_id,
            self.dispatcher.is_attached(connection_id),
            metadata.remote_address,
            metadata.user_agent,
        )
        return False
