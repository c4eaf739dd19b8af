from __future__ import annotations

import logging

from errors import AppError, ErrorKind
from guidance import GuidanceCenter
from models import Component, ErrorActionType


def test_specific_guidance() -> None:
    center = GuidanceCenter()

    guidance = center.get_guidance(AppError(ErrorKind.PERMISSION_DENIED), Component.TEXT_INSERTION)

    assert guidance.title == "Accessibility Permission Required"
    assert guidance.actions[0].type == ErrorActionType.OPEN_ACCESSIBILITY_SETTINGS
    assert guidance.help_url


def test_unknown_pair_gets_default_guidance() -> None:
    guidance = GuidanceCenter().get_guidance(
        AppError(ErrorKind.COMPONENT_FAILURE, "Hotkey System"), Component.HOTKEY_SYSTEM
    )

    assert guidance.title == "Something Went Wrong"
    assert [a.type for a in guidance.actions] == [
        ErrorActionType.RESTART_COMPONENT,
        ErrorActionType.CONTACT_SUPPORT,
    ]


def test_listeners_receive_guidance_until_removed() -> None:
    center = GuidanceCenter()
    received = []
    remove = center.add_listener(lambda g, e, c: received.append((g.title, e.kind, c)))
    error = AppError(ErrorKind.HOTKEY_CONFLICT, "Key.alt_l")

    center.notify(center.get_guidance(error, Component.HOTKEY_SYSTEM), error, Component.HOTKEY_SYSTEM)
    remove()
    remove()
    center.notify(center.get_guidance(error, Component.HOTKEY_SYSTEM), error, Component.HOTKEY_SYSTEM)

    assert received == [("Hotkey Already In Use", ErrorKind.HOTKEY_CONFLICT, Component.HOTKEY_SYSTEM)]


def test_failing_listener_does_not_stop_others() -> None:
    center = GuidanceCenter()
    received = []

    def broken(*_args) -> None:  # noqa: ANN002
        raise RuntimeError("ui gone")

    center.add_listener(broken)
    center.add_listener(lambda g, e, c: received.append(g.title))
    error = AppError(ErrorKind.TRANSCRIPTION_FAILED)

    center.notify(center.get_guidance(error, Component.TRANSCRIPTION_ENGINE), error, Component.TRANSCRIPTION_ENGINE)

    assert received == ["Transcription Failed"]


def test_guidance_without_listeners_is_logged(caplog) -> None:  # noqa: ANN001
    center = GuidanceCenter()
    error = AppError(ErrorKind.SYSTEM_RESOURCES_EXHAUSTED)

    with caplog.at_level(logging.WARNING, logger="dictate-recovery"):
        center.notify(
            center.get_guidance(error, Component.SYSTEM_RESOURCES), error, Component.SYSTEM_RESOURCES
        )

    assert "System Resources Low" in caplog.text
