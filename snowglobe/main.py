import asyncio
import logging
import os
import signal
from typing import Optional

import tornado.web

from snowglobe.handlers import DebugHandler, DocsHandler, HealthHandler, RelayWebSocketHandler, StatusHandler
from snowglobe.repositories import ConnectionRegistry
from snowglobe.services import (
    EventRouter,
    LifecycleManager,
    MessageDispatcher,
    PresenceNotifier,
    RegistrationService,
    StatsPublisher,
)
from snowglobe.settings import RelaySettings


def make_app(settings: Optional[RelaySettings] = None) -> tornado.web.Application:
    settings = settings or RelaySettings.from_env()
    registry = ConnectionRegistry()
    dispatcher = MessageDispatcher()
    presence = PresenceNotifier(registry, dispatcher)
    registration = RegistrationService(
        registry,
        dispatcher,
        presence,
        deadline_seconds=settings.registration_deadline_seconds,
    )
    router = EventRouter(
        registry,
        dispatcher,
        cooldown_ms=settings.shake_cooldown_ms,
        motion_threshold=settings.motion_threshold,
    )
    lifecycle = LifecycleManager(registry, dispatcher, presence, registration)
    stats_publisher = StatsPublisher(registry, dispatcher, interval_seconds=settings.stats_interval_seconds)

    routes = [
        (r"/", StatusHandler, dict(registry=registry)),
        (r"/debug", DebugHandler, dict(registry=registry)),
        (r"/health", HealthHandler, dict(registry=registry)),
        (r"/docs", DocsHandler),
        (
            r"/ws",
            RelayWebSocketHandler,
            dict(registration=registration, router=router, lifecycle=lifecycle),
        ),
    ]
    if settings.static_path:
        routes.append((r"/(.+)", tornado.web.StaticFileHandler, dict(path=settings.static_path)))

    return tornado.web.Application(
        routes,
        registry=registry,
        dispatcher=dispatcher,
        stats_publisher=stats_publisher,
        relay_settings=settings,
    )


def setup_logger(name, level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger


def _log_loop_exception(loop, context):
    logging.getLogger("snowglobe").error(
        "Unhandled async failure: %s", context.get("message"), exc_info=context.get("exception")
    )


async def serve(settings: RelaySettings) -> None:
    logger = logging.getLogger("snowglobe")
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(_log_loop_exception)

    app = make_app(settings)
    logger.info("Waiting for application startup...")
    server = app.listen(port=settings.port, address=settings.address)
    app.settings["stats_publisher"].start()
    logger.info("Application startup complete.")
    logger.info(f"Snow globe relay running on http://{settings.address}:{settings.port} (Press Ctrl+C to quit)")

    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass
    await stop_event.wait()

    logger.info("Termination signal received, shutting down gracefully")
    server.stop()
    app.settings["stats_publisher"].stop()
    for channel in app.settings["dispatcher"].channels().values():
        channel.close(code=1001, reason="server shutting down")
    logger.info("Server closed")


def main() -> None:
    settings = RelaySettings.from_env()
    logger = setup_logger("snowglobe", settings.log_level)
    logger.info(f"Started server process {os.getpid()}")
    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
