from __future__ import annotations

from unittest.mock import MagicMock

import auto_paste
from auto_paste import ClipboardPasteService


def test_paste_returns_failure_when_dependencies_missing(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(auto_paste, "pyperclip", None)
    monkeypatch.setattr(auto_paste, "Controller", None)
    monkeypatch.setattr(auto_paste, "Key", None)

    service = ClipboardPasteService()
    result = service.paste_text("hello")

    assert service.is_available() is False
    assert result.success is False
    assert result.clipboard_restored is False


def test_paste_returns_failure_on_empty_text() -> None:
    service = ClipboardPasteService()
    result = service.paste_text("   ")

    assert result.success is False
    assert result.clipboard_restored is True


def test_unreadable_clipboard_is_unavailable(monkeypatch) -> None:  # noqa: ANN001
    clipboard = MagicMock()
    clipboard.paste.side_effect = Exception("no clipboard mechanism")
    monkeypatch.setattr(auto_paste, "pyperclip", clipboard)
    monkeypatch.setattr(auto_paste, "Controller", MagicMock())
    monkeypatch.setattr(auto_paste, "Key", MagicMock())

    assert ClipboardPasteService().is_available() is False


def test_paste_restores_previous_clipboard(monkeypatch) -> None:  # noqa: ANN001
    clipboard = MagicMock()
    clipboard.paste.return_value = "previous"
    monkeypatch.setattr(auto_paste, "pyperclip", clipboard)
    monkeypatch.setattr(auto_paste, "Controller", MagicMock())
    monkeypatch.setattr(auto_paste, "Key", MagicMock())

    result = ClipboardPasteService(restore_delay_s=0).paste_text("hello")

    assert result.success is True
    assert [c.args[0] for c in clipboard.copy.call_args_list] == ["hello", "previous"]


def test_keyboard_failure_restores_clipboard(monkeypatch) -> None:  # noqa: ANN001
    clipboard = MagicMock()
    clipboard.paste.return_value = "previous"
    controller = MagicMock()
    controller.return_value.pressed.side_effect = RuntimeError("not trusted")
    monkeypatch.setattr(auto_paste, "pyperclip", clipboard)
    monkeypatch.setattr(auto_paste, "Controller", controller)
    monkeypatch.setattr(auto_paste, "Key", MagicMock())

    result = ClipboardPasteService(restore_delay_s=0).paste_text("hello")

    assert result.success is False
    assert result.clipboard_restored is True
    assert result.reason.startswith(auto_paste.INSERTION_FAILED)
    clipboard.copy.assert_called_with("previous")


def test_paste_uses_configured_modifier(monkeypatch) -> None:  # noqa: ANN001
    clipboard = MagicMock()
    clipboard.paste.return_value = ""
    controller = MagicMock()
    key = MagicMock()
    monkeypatch.setattr(auto_paste, "pyperclip", clipboard)
    monkeypatch.setattr(auto_paste, "Controller", controller)
    monkeypatch.setattr(auto_paste, "Key", key)

    ClipboardPasteService(restore_delay_s=0, modifier="ctrl").paste_text("hello")

    controller.return_value.pressed.assert_called_once_with(key.ctrl)
