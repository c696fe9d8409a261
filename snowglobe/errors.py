class RelayError(Exception):
    """Base class for errors raised while handling a client message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProtocolError(RelayError):
    """Malformed frame, unknown registration type or invalid shake payload."""


class AuthorizationError(RelayError):
    """Sender does not hold the role required for the message."""


class RateLimited(RelayError):
    """Shake arrived inside the per-controller cooldown window."""

    def __init__(self, elapsed_ms: float):
        super().__init__(f"too frequent ({elapsed_ms:.0f}ms)")
        self.elapsed_ms = elapsed_ms
