import tornado.web

from snowglobe.models import Role
from snowglobe.models.messages import utc_now_iso
from snowglobe.repositories import ConnectionRegistry


class HealthHandler(tornado.web.RequestHandler):
    def initialize(self, registry: ConnectionRegistry):
        self.registry = registry

    def get(self):
        self.write(
            {
                "status": "healthy",
                "connectedUsers": self.registry.count(Role.CONTROLLER),
                "connectedDisplays": self.registry.count(Role.DISPLAY),
                "timestamp": utc_now_iso(),
            }
        )
