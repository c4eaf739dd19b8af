from __future__ import annotations

import pytest

from interfaces import Collaborators


class FakeAudio:
    def __init__(self) -> None:
        self.capturing = False
        self.permission = True
        self.fail_start = False
        self.calls: list[str] = []

    def is_capturing(self) -> bool:
        return self.capturing

    def start_capture(self) -> None:
        self.calls.append("start")
        if self.fail_start:
            raise RuntimeError("device busy")
        self.capturing = True

    def stop_capture(self) -> None:
        self.calls.append("stop")
        self.capturing = False

    def request_permission(self) -> bool:
        self.calls.append("request_permission")
        return self.permission


class FakeEngine:
    def __init__(self) -> None:
        self.model = "test-model"
        self.loaded = True
        self.fail_load = False
        self.calls: list[str] = []

    @property
    def current_model(self) -> str:
        return self.model

    def is_model_loaded(self) -> bool:
        return self.loaded

    def load_model(self, model_id: str) -> None:
        self.calls.append(f"load:{model_id}")
        self.loaded = False
        if self.fail_load:
            raise RuntimeError("model missing")
        self.loaded = True

    def clear_state(self) -> None:
        self.calls.append("clear")


class FakeTextInsertion:
    def __init__(self) -> None:
        self.available = True

    def is_available(self) -> bool:
        return self.available


class FakeHotkey:
    def __init__(self) -> None:
        self.listening = True
        self.fail_start = False
        self.calls: list[str] = []

    def is_listening(self) -> bool:
        return self.listening

    def start_listening(self) -> None:
        self.calls.append("start")
        if self.fail_start:
            raise RuntimeError("listener refused")
        self.listening = True

    def stop_listening(self) -> None:
        self.calls.append("stop")
        self.listening = False


class FakePermissions:
    def __init__(self) -> None:
        self.accessibility = True

    def check_accessibility_permission(self) -> bool:
        return self.accessibility


@pytest.fixture
def collaborators() -> Collaborators:
    return Collaborators(
        audio=FakeAudio(),
        transcription=FakeEngine(),
        text_insertion=FakeTextInsertion(),
        hotkey=FakeHotkey(),
        permissions=FakePermissions(),
    )
