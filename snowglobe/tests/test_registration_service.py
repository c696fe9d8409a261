import asyncio
import logging

import pytest

from snowglobe.errors import ProtocolError
from snowglobe.models import Role
from snowglobe.services import RegistrationService


def test_unknown_role_is_rejected_without_mutation(registration, registry, metadata, connect):
    channel = connect("w1")

    with pytest.raises(ProtocolError) as excinfo:
        registration.register("w1", {"type": "watcher"}, metadata)

    assert excinfo.value.message == "Unknown registration type: watcher"
    assert registry.get("w1") is None
    assert registry.count(Role.CONTROLLER) == 0
    assert registry.count(Role.DISPLAY) == 0
    assert channel.frames == []


def test_missing_role_is_rejected(registration, registry, metadata):
    with pytest.raises(ProtocolError):
        registration.register("w1", {}, metadata)
    assert registry.get("w1") is None


def test_controller_registration_welcomes_and_notifies_displays(registration, metadata, connect):
    display_a = connect("d1")
    display_b = connect("d2")
    registration.register("d1", {"type": "display"}, metadata)
    registration.register("d2", {"type": "display"}, metadata)
    controller = connect("c1")

    record = registration.register("c1", {"type": "controller", "userAgent": "iPhone"}, metadata)

    assert record.role is Role.CONTROLLER
    assert record.user_agent == "iPhone"
    assert controller.frames == [
        ("connected", {"message": "Connected to Snow Globe!", "userId": "c1", "totalUsers": 1})
    ]
    for display in (display_a, display_b):
        assert display.of("userConnected") == [{"userId": "c1", "totalUsers": 1}]


def test_controller_user_agent_falls_back_to_transport(registration, registry, metadata, connect):
    connect("c1")
    registration.register("c1", {"type": "controller"}, metadata)
    assert registry.get("c1").user_agent == "pytest-agent"


def test_display_registration_receives_controller_snapshot(registration, metadata, connect):
    first = connect("c1")
    second = connect("c2")
    registration.register("c1", {"type": "controller"}, metadata)
    registration.register("c2", {"type": "controller"}, metadata)
    display = connect("d1")

    registration.register("d1", {"type": "display"}, metadata)

    assert display.events() == ["userCount"]
    payload = display.of("userCount")[0]
    assert payload["count"] == 2
    assert [user["id"] for user in payload["users"]] == ["c1", "c2"]
    assert payload["users"][0]["type"] == "controller"
    # Displays are invisible to controllers.
    assert first.events() == ["connected"]
    assert second.events() == ["connected"]


def test_display_registration_is_not_broadcast_to_other_displays(registration, metadata, connect):
    existing = connect("d1")
    registration.register("d1", {"type": "display"}, metadata)
    connect("d2")

    registration.register("d2", {"type": "display"}, metadata)

    assert existing.events() == ["userCount"]


def test_re_registration_is_rejected(registration, registry, metadata, connect):
    display = connect("d1")
    registration.register("d1", {"type": "display"}, metadata)
    channel = connect("c1")
    registration.register("c1", {"type": "controller"}, metadata)

    with pytest.raises(ProtocolError) as excinfo:
        registration.register("c1", {"type": "display"}, metadata)

    assert excinfo.value.message == "Already registered as controller"
    assert registry.role_of("c1") is Role.CONTROLLER
    assert registry.count(Role.DISPLAY) == 1
    assert channel.events() == ["connected"]
    assert display.events() == ["userCount", "userConnected"]


def test_check_registered_logs_phantom_connection(registration, metadata, connect, caplog):
    connect("ghost")

    with caplog.at_level(logging.WARNING, logger="snowglobe"):
        assert registration.check_registered("ghost", metadata) is False

    assert "ghost connected but never registered" in caplog.text


def test_check_registered_is_quiet_for_registered_connection(registration, metadata, connect, caplog):
    connect("c1")
    registration.register("c1", {"type": "controller"}, metadata)

    with caplog.at_level(logging.WARNING, logger="snowglobe"):
        assert registration.check_registered("c1", metadata) is True

    assert "never registered" not in caplog.text


@pytest.mark.asyncio
async def test_watch_fires_after_deadline(registry, dispatcher, presence, metadata, caplog):
    service = RegistrationService(registry, dispatcher, presence, deadline_seconds=0.01)

    with caplog.at_level(logging.WARNING, logger="snowglobe"):
        service.watch("late", metadata)
        await asyncio.sleep(0.1)

    assert "late connected but never registered" in caplog.text


@pytest.mark.asyncio
async def test_registration_after_deadline_still_succeeds(registry, dispatcher, presence, metadata, connect):
    service = RegistrationService(registry, dispatcher, presence, deadline_seconds=0.01)
    channel = connect("slow")

    service.watch("slow", metadata)
    await asyncio.sleep(0.05)
    service.register("slow", {"type": "controller"}, metadata)

    assert registry.role_of("slow") is Role.CONTROLLER
    assert channel.events() == ["connected"]


def test_check_registered_is_quiet_after_register_then_disconnect(
    registration, lifecycle, metadata, connect, caplog
):
    connect("c1")
    registration.register("c1", {"type": "controller"}, metadata)
    lifecycle.disconnect("c1")

    with caplog.at_level(logging.WARNING, logger="snowglobe"):
        assert registration.check_registered("c1", metadata) is True

    assert "never registered" not in caplog.text


def test_failed_registration_still_counts_as_unregistered(registration, metadata, connect, caplog):
    connect("w1")
    with pytest.raises(ProtocolError):
        registration.register("w1", {"type": "watcher"}, metadata)

    with caplog.at_level(logging.WARNING, logger="snowglobe"):
        assert registration.check_registered("w1", metadata) is False

    assert "w1 connected but never registered" in caplog.text
