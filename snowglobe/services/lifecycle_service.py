import logging
from typing import Optional

from snowglobe.models import ConnectionMetadata, Role
from snowglobe.repositories import ConnectionRegistry
from snowglobe.services.dispatcher import Channel, MessageDispatcher
from snowglobe.services.presence_service import PresenceNotifier
from snowglobe.services.registration_service import RegistrationService

logger = logging.getLogger(__name__)


class LifecycleManager:
    """Connect/disconnect bookkeeping shared by every WebSocket handler."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        dispatcher: MessageDispatcher,
        presence: PresenceNotifier,
        registration: RegistrationService,
    ):
        self.registry = registry
        self.dispatcher = dispatcher
        self.presence = presence
        self.registration = registration

    def connect(self, connection_id: str, channel: Channel, metadata: ConnectionMetadata) -> None:
        logger.info(
            "Client connected: %s (remote address: %s, user agent: %s)",
            connection_id,
            metadata.remote_address,
            metadata.user_agent or "Not provided",
        )
        self.dispatcher.attach(connection_id, channel)
        self.registration.watch(connection_id, metadata)

    def disconnect(self, connection_id: str) -> Optional[Role]:
        self.dispatcher.detach(connection_id)
        role = self.registry.remove(connection_id)
        logger.info(
            "Client disconnected: %s (%s). Now %d controllers, %d displays",
            connection_id,
            role.value if role else "unregistered",
            self.registry.count(Role.CONTROLLER),
            self.registry.count(Role.DISPLAY),
        )
        if role is Role.CONTROLLER:
            self.presence.controller_disconnected(connection_id)
        return role
