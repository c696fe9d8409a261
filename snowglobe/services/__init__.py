from .dispatcher import Channel, MessageDispatcher
from .event_router import EventRouter
from .lifecycle_service import LifecycleManager
from .presence_service import PresenceNotifier, StatsPublisher
from .registration_service import RegistrationService

__all__ = [
    "Channel",
    "EventRouter",
    "LifecycleManager",
    "MessageDispatcher",
    "PresenceNotifier",
    "RegistrationService",
    "StatsPublisher",
]
