"""Clipboard based text insertion."""

from __future__ import annotations

import logging
import sys
import time
from typing import Optional

from errors import AppError, ErrorKind
from models import PasteResult

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore

try:
    from pynput.keyboard import Controller, Key
except Exception:  # pragma: no cover
    Controller = None  # type: ignore
    Key = None  # type: ignore

logger = logging.getLogger("dictate-recovery")

INSERTION_FAILED = AppError(ErrorKind.TEXT_INSERTION_FAILED).description


class ClipboardPasteService:
    """Puts text on the clipboard, sends the paste shortcut, then puts the old clipboard back."""

    def __init__(self, restore_delay_s: float = 0.1, modifier: Optional[str] = None) -> None:
        self._restore_delay_s = restore_delay_s
        self._modifier = modifier or ("cmd" if sys.platform == "darwin" else "ctrl")

    def is_available(self) -> bool:
        if pyperclip is None or Controller is None or Key is None:
            return False
        try:
            pyperclip.paste()
        except Exception:
            return False
        return True

    def paste_text(self, text: str) -> PasteResult:
        if not text.strip():
            return PasteResult(success=False, reason="empty text", clipboard_restored=True)
        if not self.is_available():
            return PasteResult(
                success=False,
                reason="clipboard/keyboard unavailable",
                clipboard_restored=False,
            )

        previous: Optional[str] = None
        try:
            previous = pyperclip.paste()
            pyperclip.copy(text)
            self._send_paste_shortcut()
            # The target app reads the clipboard asynchronously.
            time.sleep(self._restore_delay_s)
        except Exception as exc:
            return PasteResult(
                success=False,
                reason=f"{INSERTION_FAILED}: {exc}",
                clipboard_restored=self._restore(previous),
            )
        return PasteResult(success=True, reason="ok", clipboard_restored=self._restore(previous))

    def _send_paste_shortcut(self) -> None:
        keyboard = Controller()
        with keyboard.pressed(getattr(Key, self._modifier)):
            keyboard.press("v")
            keyboard.release("v")

    def _restore(self, previous: Optional[str]) -> bool:
        if previous is None:
            return False
        try:
            pyperclip.copy(previous)
        except Exception:
            logger.exception("Could not restore the clipboard")
            return False
        return True
