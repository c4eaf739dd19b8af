"""Error taxonomy and recovery exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorSeverity(str, Enum):
    MINOR = "minor"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class ErrorKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    AUDIO_DEVICE_UNAVAILABLE = "audio_device_unavailable"
    AUDIO_CAPTURE_FAILURE = "audio_capture_failure"
    TRANSCRIPTION_FAILED = "transcription_failed"
    MODEL_LOAD_FAILED = "model_load_failed"
    TEXT_INSERTION_FAILED = "text_insertion_failed"
    HOTKEY_CONFLICT = "hotkey_conflict"
    HOTKEY_SYSTEM_ERROR = "hotkey_system_error"
    NETWORK_CONNECTION_FAILED = "network_connection_failed"
    SYSTEM_RESOURCES_EXHAUSTED = "system_resources_exhausted"
    COMPONENT_FAILURE = "component_failure"


_NON_RECOVERABLE = frozenset(
    {
        ErrorKind.PERMISSION_DENIED,
        ErrorKind.HOTKEY_CONFLICT,
        ErrorKind.SYSTEM_RESOURCES_EXHAUSTED,
    }
)

_SEVERITY = {
    ErrorKind.PERMISSION_DENIED: ErrorSeverity.CRITICAL,
    ErrorKind.SYSTEM_RESOURCES_EXHAUSTED: ErrorSeverity.CRITICAL,
    ErrorKind.AUDIO_DEVICE_UNAVAILABLE: ErrorSeverity.WARNING,
    ErrorKind.MODEL_LOAD_FAILED: ErrorSeverity.WARNING,
    ErrorKind.HOTKEY_CONFLICT: ErrorSeverity.WARNING,
    ErrorKind.HOTKEY_SYSTEM_ERROR: ErrorSeverity.WARNING,
    ErrorKind.COMPONENT_FAILURE: ErrorSeverity.WARNING,
    ErrorKind.AUDIO_CAPTURE_FAILURE: ErrorSeverity.MINOR,
    ErrorKind.TRANSCRIPTION_FAILED: ErrorSeverity.MINOR,
    ErrorKind.TEXT_INSERTION_FAILED: ErrorSeverity.MINOR,
    ErrorKind.NETWORK_CONNECTION_FAILED: ErrorSeverity.MINOR,
}

_DISPLAY_NAMES = {
    ErrorKind.PERMISSION_DENIED: "Permission Denied",
    ErrorKind.AUDIO_DEVICE_UNAVAILABLE: "Audio Device Unavailable",
    ErrorKind.AUDIO_CAPTURE_FAILURE: "Audio Capture Failure",
    ErrorKind.TRANSCRIPTION_FAILED: "Transcription Failed",
    ErrorKind.MODEL_LOAD_FAILED: "Model Load Failed",
    ErrorKind.TEXT_INSERTION_FAILED: "Text Insertion Failed",
    ErrorKind.HOTKEY_CONFLICT: "Hotkey Conflict",
    ErrorKind.HOTKEY_SYSTEM_ERROR: "Hotkey System Error",
    ErrorKind.NETWORK_CONNECTION_FAILED: "Network Connection Failed",
    ErrorKind.SYSTEM_RESOURCES_EXHAUSTED: "System Resources Exhausted",
    ErrorKind.COMPONENT_FAILURE: "Component Failure",
}

# "{}" is filled with the error detail for the kinds that carry one.
_DESCRIPTIONS = {
    ErrorKind.PERMISSION_DENIED: "Permission denied for required system access",
    ErrorKind.AUDIO_DEVICE_UNAVAILABLE: "Audio input device is not available",
    ErrorKind.AUDIO_CAPTURE_FAILURE: "Audio capture failed: {}",
    ErrorKind.TRANSCRIPTION_FAILED: "Speech transcription failed",
    ErrorKind.MODEL_LOAD_FAILED: "Failed to load transcription model: {}",
    ErrorKind.TEXT_INSERTION_FAILED: "Failed to insert text into target application",
    ErrorKind.HOTKEY_CONFLICT: "Hotkey conflict detected: {}",
    ErrorKind.HOTKEY_SYSTEM_ERROR: "Hotkey system error: {}",
    ErrorKind.NETWORK_CONNECTION_FAILED: "Network connection failed",
    ErrorKind.SYSTEM_RESOURCES_EXHAUSTED: "System resources are exhausted",
    ErrorKind.COMPONENT_FAILURE: "Component failure: {}",
}

RECOVERY_SUGGESTIONS = {
    ErrorKind.PERMISSION_DENIED: "Grant the required permissions in System Settings",
    ErrorKind.AUDIO_DEVICE_UNAVAILABLE: "Check your microphone connection and audio settings",
    ErrorKind.AUDIO_CAPTURE_FAILURE: "Restart the audio system or check device settings",
    ErrorKind.TRANSCRIPTION_FAILED: "Try speaking more clearly or check audio quality",
    ErrorKind.MODEL_LOAD_FAILED: "Restart the application or check the model configuration",
    ErrorKind.TEXT_INSERTION_FAILED: "Check accessibility permissions and target application",
    ErrorKind.HOTKEY_CONFLICT: "Choose a different hotkey combination",
    ErrorKind.HOTKEY_SYSTEM_ERROR: "Restart the hotkey system",
    ErrorKind.NETWORK_CONNECTION_FAILED: "Check your internet connection",
    ErrorKind.SYSTEM_RESOURCES_EXHAUSTED: "Close other applications to free up resources",
    ErrorKind.COMPONENT_FAILURE: "Restart the affected component",
}


@dataclass(frozen=True)
class AppError:
    """An observed failure: its kind plus an optional free-text detail."""

    kind: ErrorKind
    detail: str = ""

    @property
    def is_recoverable(self) -> bool:
        return self.kind not in _NON_RECOVERABLE

    @property
    def severity(self) -> ErrorSeverity:
        return _SEVERITY[self.kind]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self.kind]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self.kind].format(self.detail)

    @property
    def recovery_suggestion(self) -> str:
        return RECOVERY_SUGGESTIONS[self.kind]

    def __str__(self) -> str:
        return self.description


# ----------------------------------------------------------------------
# Exceptions raised while recovering
# ----------------------------------------------------------------------


class RecoveryError(Exception):
    prefix = "Recovery failed"

    def __init__(self, details: str = "") -> None:
        self.details = details
        super().__init__(f"{self.prefix}: {details}" if details else self.prefix)


class RecoveryTimeoutError(RecoveryError):
    prefix = "Recovery operation timed out"


class PermissionRecoveryError(RecoveryError):
    prefix = "Permission recovery failed"


class AudioRecoveryError(RecoveryError):
    prefix = "Audio system recovery failed"


class TranscriptionRecoveryError(RecoveryError):
    prefix = "Transcription recovery failed"


class TextInsertionRecoveryError(RecoveryError):
    prefix = "Text insertion recovery failed"


class HotkeyRecoveryError(RecoveryError):
    prefix = "Hotkey recovery failed"


class ValidationFailedError(RecoveryError):
    prefix = "Validation failed"
