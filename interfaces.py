"""Protocol interfaces for the collaborators the recovery core drives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

from errors import AppError
from models import Component, ErrorGuidance, ErrorRecord, HealthReport


class AudioSystem(Protocol):
    def is_capturing(self) -> bool: ...

    def start_capture(self) -> None: ...

    def stop_capture(self) -> None: ...

    def request_permission(self) -> bool: ...


class TranscriptionEngine(Protocol):
    @property
    def current_model(self) -> str: ...

    def is_model_loaded(self) -> bool: ...

    def load_model(self, model_id: str) -> None: ...

    def clear_state(self) -> None: ...


class TextInsertion(Protocol):
    def is_available(self) -> bool: ...


class HotkeySystem(Protocol):
    def is_listening(self) -> bool: ...

    def start_listening(self) -> None: ...

    def stop_listening(self) -> None: ...


class PermissionChecker(Protocol):
    def check_accessibility_permission(self) -> bool: ...


class DiagnosticsSink(Protocol):
    def record_error(
        self,
        error: AppError,
        component: Component,
        context: Optional[Mapping[str, object]] = None,
    ) -> ErrorRecord: ...

    def mark_resolved(self, record_id: str) -> None: ...

    async def perform_health_check(self) -> HealthReport: ...


class GuidanceSink(Protocol):
    def get_guidance(self, error: AppError, component: Component) -> ErrorGuidance: ...

    def notify(self, guidance: ErrorGuidance, error: AppError, component: Component) -> None: ...


@dataclass
class Collaborators:
    audio: AudioSystem
    transcription: TranscriptionEngine
    text_insertion: TextInsertion
    hotkey: HotkeySystem
    permissions: PermissionChecker
