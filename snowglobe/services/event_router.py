import logging
import time
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from snowglobe.errors import AuthorizationError, ProtocolError, RateLimited
from snowglobe.models import MotionSample, Role, ShakeConfirmed, ShakeEvent
from snowglobe.models.messages import parse_float, timestamp_to_epoch_ms
from snowglobe.repositories import ConnectionRegistry
from snowglobe.services.dispatcher import MessageDispatcher

logger = logging.getLogger(__name__)

REQUIRED_SHAKE_FIELDS = ("timestamp", "intensity", "acceleration")


def epoch_ms() -> float:
    return time.time() * 1000.0


def _is_blank(value: Any) -> bool:
    # Falsy values (missing, null, "", 0, false) all count as absent.
    return not value


class EventRouter:
    """Validates, rate limits and fans out controller shake and motion events."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        dispatcher: MessageDispatcher,
        cooldown_ms: float = 1000.0,
        motion_threshold: float = 15.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.registry = registry
        self.dispatcher = dispatcher
        self.cooldown_ms = cooldown_ms
        self.motion_threshold = motion_threshold
        self.clock = clock or epoch_ms

    def handle_shake(self, connection_id: str, payload: Dict[str, Any]) -> ShakeEvent:
        """
        Accept one shake from a controller.

        Raises AuthorizationError for non-controllers, ProtocolError for a
        payload missing timestamp/intensity/acceleration, and RateLimited when
        the previous accepted shake is less than ``cooldown_ms`` old. Nothing is
        stored or sent in any of those cases.
        """
        record = self.registry.get(connection_id)
        if record is None or record.role is not Role.CONTROLLER:
            raise AuthorizationError("Not registered as controller")

        if any(_is_blank(payload.get(field)) for field in REQUIRED_SHAKE_FIELDS):
            logger.info("Invalid shake data from %s: %s", connection_id, payload)
            raise ProtocolError("Invalid shake data")

        last_ms = timestamp_to_epoch_ms(record.last_shake.timestamp) if record.last_shake else None
        elapsed = self.clock() - (last_ms or 0.0)
        if elapsed < self.cooldown_ms:
            logger.debug("Shake ignored from %s: too frequent (%.0fms)", connection_id, elapsed)
            raise RateLimited(elapsed)

        try:
            shake = ShakeEvent.model_validate(
                {
                    "user_id": connection_id,
                    "intensity": payload.get("intensity"),
                    "acceleration": payload.get("acceleration"),
                    "timestamp": payload.get("timestamp"),
                    "x": payload.get("x"),
                    "y": payload.get("y"),
                    "z": payload.get("z"),
                    "shake_number": payload.get("shakeNumber"),
                }
            )
        except ValidationError as exc:
            logger.info("Invalid shake data from %s: %s", connection_id, exc.errors())
            raise ProtocolError("Invalid shake data") from exc

        self.registry.set_last_shake(connection_id, shake)
        notified = self.dispatcher.broadcast(self.registry.ids(Role.DISPLAY), shake)
        logger.info(
            "Shake #%s from %s: intensity %d, acceleration %.2f (%d displays notified)",
            shake.shake_number,
            connection_id,
            shake.intensity,
            shake.acceleration,
            notified,
        )
        self.dispatcher.send(
            connection_id,
            ShakeConfirmed(
                intensity=shake.intensity,
                timestamp=shake.timestamp,
                acceleration=shake.acceleration,
                shake_number=shake.shake_number,
            ),
        )
        return shake

    def handle_motion(self, connection_id: str, payload: Dict[str, Any]) -> Optional[MotionSample]:
        """Forward a strong motion sample to displays; returns None when dropped."""
        if self.registry.role_of(connection_id) is not Role.CONTROLLER:
            return None

        if parse_float(payload.get("totalAcceleration")) <= self.motion_threshold:
            return None

        try:
            sample = MotionSample.model_validate(
                {
                    "user_id": connection_id,
                    "total_acceleration": payload.get("totalAcceleration"),
                    "x": payload.get("x"),
                    "y": payload.get("y"),
                    "z": payload.get("z"),
                    "timestamp": payload.get("timestamp"),
                }
            )
        except ValidationError:
            logger.debug("Dropping malformed motion sample from %s", connection_id)
            return None

        self.dispatcher.broadcast(self.registry.ids(Role.DISPLAY), sample)
        return sample
