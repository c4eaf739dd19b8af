"""Global hotkey and accessibility adapters based on pynput."""

from __future__ import annotations

import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class GlobalHotkeyAdapter:
    def __init__(
        self,
        on_press: Callable[[], None],
        on_release: Callable[[], None],
        hotkey_name: str = "Key.alt_l",
    ) -> None:
        self._hotkey_name = hotkey_name
        self._on_press = on_press
        self._on_release = on_release
        self._listener: Optional[object] = None
        self._pressed = False
        self._lock = threading.Lock()

    def is_listening(self) -> bool:
        listener = self._listener
        return listener is not None and bool(getattr(listener, "running", False))

    def start_listening(self) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        if self._listener is not None:
            return
        self._pressed = False
        self._listener = keyboard.Listener(on_press=self._handle_press, on_release=self._handle_release)
        self._listener.start()

    def stop_listening(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None

    def _handle_press(self, key: object) -> None:
        if str(key) != self._hotkey_name:
            return
        with self._lock:
            if self._pressed:
                return
            self._pressed = True
        self._on_press()

    def _handle_release(self, key: object) -> None:
        if str(key) != self._hotkey_name:
            return
        with self._lock:
            if not self._pressed:
                return
            self._pressed = False
        self._on_release()


class AccessibilityPermissionChecker:
    """Query-only: reports whether the process may observe and post key events."""

    def check_accessibility_permission(self) -> bool:
        if keyboard is None:
            return False
        # Only the macOS backend exposes IS_TRUSTED; other platforms need no grant.
        return bool(getattr(keyboard.Listener, "IS_TRUSTED", True))
