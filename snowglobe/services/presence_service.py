import logging
from typing import Optional

import tornado.ioloop

from snowglobe.models import Role, Stats, UserConnected, UserDisconnected
from snowglobe.repositories import ConnectionRegistry
from snowglobe.services.dispatcher import MessageDispatcher

logger = logging.getLogger(__name__)


class PresenceNotifier:
    """Tells displays when controllers come and go. Displays are never announced."""

    def __init__(self, registry: ConnectionRegistry, dispatcher: MessageDispatcher):
        self.registry = registry
        self.dispatcher = dispatcher

    def controller_connected(self, connection_id: str) -> int:
        message = UserConnected(user_id=connection_id, total_users=self.registry.count(Role.CONTROLLER))
        return self.dispatcher.broadcast(self.registry.ids(Role.DISPLAY), message)

    def controller_disconnected(self, connection_id: str) -> int:
        message = UserDisconnected(user_id=connection_id, total_users=self.registry.count(Role.CONTROLLER))
        return self.dispatcher.broadcast(self.registry.ids(Role.DISPLAY), message)


class StatsPublisher:
    """Broadcasts live registry counts to every display on a fixed period."""

    def __init__(self, registry: ConnectionRegistry, dispatcher: MessageDispatcher, interval_seconds: float = 30.0):
        self.registry = registry
        self.dispatcher = dispatcher
        self.interval_seconds = interval_seconds
        self._callback: Optional[tornado.ioloop.PeriodicCallback] = None

    def publish(self) -> Stats:
        stats = Stats(
            connected_controllers=self.registry.count(Role.CONTROLLER),
            connected_displays=self.registry.count(Role.DISPLAY),
        )
        self.dispatcher.broadcast(self.registry.ids(Role.DISPLAY), stats)
        logger.info(
            "Server Stats: %d controllers, %d displays",
            stats.connected_controllers,
            stats.connected_displays,
        )
        return stats

    def start(self) -> None:
        if self._callback is not None:
            return
        self._callback = tornado.ioloop.PeriodicCallback(self.publish, self.interval_seconds * 1000)
        self._callback.start()

    def stop(self) -> None:
        if self._callback is not None:
            self._callback.stop()
            self._callback = None
