import json
from html import escape

import tornado.web

from snowglobe.models import Role
from snowglobe.models.messages import utc_now_iso
from snowglobe.repositories import ConnectionRegistry


class DebugHandler(tornado.web.RequestHandler):
    """JSON view of every registered connection."""

    def initialize(self, registry: ConnectionRegistry):
        self.registry = registry

    def get(self):
        controllers = [
            {
                "id": record.id,
                "type": record.role.value,
                "connectedAt": record.connected_at.isoformat(),
                "lastShake": record.last_shake.timestamp if record.last_shake else "None",
            }
            for record in self.registry.snapshot(Role.CONTROLLER)
        ]
        displays = [
            {
                "id": record.id,
                "type": record.role.value,
                "connectedAt": record.connected_at.isoformat(),
            }
            for record in self.registry.snapshot(Role.DISPLAY)
        ]
        self.set_header("Content-Type", "application/json")
        self.write(
            json.dumps(
                {
                    "controllers": controllers,
                    "displays": displays,
                    "totals": {"controllers": len(controllers), "displays": len(displays)},
                }
            )
        )


class StatusHandler(tornado.web.RequestHandler):
    """Plain HTML status page."""

    def initialize(self, registry: ConnectionRegistry):
        self.registry = registry

    def get(self):
        controller_ids = ", ".join(escape(r.id) for r in self.registry.snapshot(Role.CONTROLLER)) or "None"
        display_ids = ", ".join(escape(r.id) for r in self.registry.snapshot(Role.DISPLAY)) or "None"
        self.write(
            f"""
            <h1>Snow Globe Server Running</h1>
            <p>Connected Controllers (phones): {self.registry.count(Role.CONTROLLER)}</p>
            <p>Connected Displays (screens): {self.registry.count(Role.DISPLAY)}</p>
            <p>Server Time: {utc_now_iso()}</p>
            <br>
            <a href="/controller.html">Phone Controller</a><br>
            <a href="/display.html">Main Display</a><br>
            <br>
            <h3>Debug Info:</h3>
            <p>Controllers: {controller_ids}</p>
            <p>Displays: {display_ids}</p>
            """
        )
