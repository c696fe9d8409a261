from .health_handler import HealthHandler
from .docs_handler import DocsHandler
from .status_handler import DebugHandler, StatusHandler
from .relay_ws_handler import RelayWebSocketHandler

__all__ = [
    "HealthHandler",
    "DocsHandler",
    "DebugHandler",
    "StatusHandler",
    "RelayWebSocketHandler",
]
