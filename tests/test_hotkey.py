from __future__ import annotations

from unittest.mock import MagicMock

import pytest

import hotkey
from hotkey import AccessibilityPermissionChecker, GlobalHotkeyAdapter


class _Key:
    def __init__(self, name: str) -> None:
        self._name = name

    def __str__(self) -> str:
        return self._name


def _adapter(presses: list, releases: list) -> GlobalHotkeyAdapter:
    return GlobalHotkeyAdapter(
        on_press=lambda: presses.append(1),
        on_release=lambda: releases.append(1),
        hotkey_name="Key.alt_l",
    )


def test_start_and_stop_listening(monkeypatch) -> None:  # noqa: ANN001
    fake_keyboard = MagicMock()
    fake_keyboard.Listener.return_value.running = True
    monkeypatch.setattr(hotkey, "keyboard", fake_keyboard)

    adapter = _adapter([], [])
    assert adapter.is_listening() is False

    adapter.start_listening()
    adapter.start_listening()
    assert fake_keyboard.Listener.call_count == 1
    assert adapter.is_listening() is True

    adapter.stop_listening()
    fake_keyboard.Listener.return_value.stop.assert_called_once()
    assert adapter.is_listening() is False


def test_dead_listener_is_not_listening(monkeypatch) -> None:  # noqa: ANN001
    fake_keyboard = MagicMock()
    fake_keyboard.Listener.return_value.running = False
    monkeypatch.setattr(hotkey, "keyboard", fake_keyboard)

    adapter = _adapter([], [])
    adapter.start_listening()

    assert adapter.is_listening() is False


def test_start_raises_without_pynput(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(hotkey, "keyboard", None)

    with pytest.raises(RuntimeError, match="pynput is not installed"):
        _adapter([], []).start_listening()


def test_press_and_release_are_debounced() -> None:
    presses: list = []
    releases: list = []
    adapter = _adapter(presses, releases)

    adapter._handle_press(_Key("Key.alt_l"))
    adapter._handle_press(_Key("Key.alt_l"))
    adapter._handle_press(_Key("Key.shift"))
    adapter._handle_release(_Key("Key.alt_l"))
    adapter._handle_release(_Key("Key.alt_l"))

    assert presses == [1]
    assert releases == [1]


def test_accessibility_check_reads_trust_flag(monkeypatch) -> None:  # noqa: ANN001
    fake_keyboard = MagicMock()
    fake_keyboard.Listener.IS_TRUSTED = False
    monkeypatch.setattr(hotkey, "keyboard", fake_keyboard)

    assert AccessibilityPermissionChecker().check_accessibility_permission() is False

    fake_keyboard.Listener.IS_TRUSTED = True
    assert AccessibilityPermissionChecker().check_accessibility_permission() is True


def test_accessibility_check_without_pynput(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(hotkey, "keyboard", None)

    assert AccessibilityPermissionChecker().check_accessibility_permission() is False
