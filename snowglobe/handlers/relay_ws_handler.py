import json
import logging
import uuid
from typing import Any, Dict

import tornado.websocket
from pydantic import ValidationError

from snowglobe.errors import ProtocolError, RateLimited, RelayError
from snowglobe.models import ConnectionMetadata, Envelope, ErrorMessage, Pong, WireModel
from snowglobe.services import EventRouter, LifecycleManager, RegistrationService

logger = logging.getLogger(__name__)


class RelayWebSocketHandler(tornado.websocket.WebSocketHandler):
    """One instance per client; translates frames into service calls."""

    def initialize(
        self,
        registration: RegistrationService,
        router: EventRouter,
        lifecycle: LifecycleManager,
    ):
        self.registration = registration
        self.router = router
        self.lifecycle = lifecycle
        self.connection_id = uuid.uuid4().hex
        self.metadata = ConnectionMetadata()

    def check_origin(self, origin: str) -> bool:
        # Controllers load from arbitrary hosts; accept any origin.
        return True

    def open(self):
        self.metadata = ConnectionMetadata(
            remote_address=self.request.remote_ip,
            user_agent=self.request.headers.get("User-Agent"),
        )
        self.lifecycle.connect(self.connection_id, self, self.metadata)

    def on_message(self, message):
        try:
            self._dispatch(self._parse_envelope(message))
        except RateLimited:
            return
        except RelayError as exc:
            self.reply(ErrorMessage(message=exc.message))
        except Exception:
            logger.exception("Unhandled error processing message from %s", self.connection_id)

    def on_close(self):
        self.lifecycle.disconnect(self.connection_id)

    def reply(self, message: WireModel) -> bool:
        return self.send_frame(message.event, message.to_wire())

    def send_frame(self, event: str, data: Dict[str, Any]) -> bool:
        try:
            future = self.write_message(json.dumps({"event": event, "data": data}))
        except tornado.websocket.WebSocketClosedError:
            logger.debug("Skipping %s for closed connection %s", event, self.connection_id)
            return False
        future.add_done_callback(self._on_write_done)
        return True

    def _on_write_done(self, future) -> None:
        if future.cancelled() or future.exception() is None:
            return
        logger.debug("Write to %s failed: %r", self.connection_id, future.exception())

    def _parse_envelope(self, message) -> Envelope:
        try:
            return Envelope.model_validate_json(message)
        except ValidationError as exc:
            raise ProtocolError("Malformed message") from exc

    def _dispatch(self, envelope: Envelope) -> None:
        if envelope.event == "register":
            self.registration.register(self.connection_id, envelope.data, self.metadata)
        elif envelope.event == "shake":
            self.router.handle_shake(self.connection_id, envelope.data)
        elif envelope.event == "motion":
            self.router.handle_motion(self.connection_id, envelope.data)
        elif envelope.event == "ping":
            self.reply(Pong())
        else:
            logger.debug("Ignoring unknown event %r from %s", envelope.event, self.connection_id)
