"""User guidance for failures the core cannot repair on its own."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from errors import AppError, ErrorKind
from models import Component, ErrorAction, ErrorActionType, ErrorGuidance

logger = logging.getLogger("dictate-recovery")

GuidanceListener = Callable[[ErrorGuidance, AppError, Component], None]

_RETRY = ErrorAction("Try Again", ErrorActionType.RETRY)

_GUIDANCE: dict[tuple[ErrorKind, Component], ErrorGuidance] = {
    (ErrorKind.PERMISSION_DENIED, Component.AUDIO_SYSTEM): ErrorGuidance(
        title="Microphone Permission Required",
        message="Dictation needs access to your microphone to capture audio for transcription.",
        actions=(
            ErrorAction("Open System Settings", ErrorActionType.OPEN_SYSTEM_SETTINGS),
            _RETRY,
        ),
        help_url="https://support.apple.com/guide/mac-help/control-access-to-your-microphone-on-mac-mchla1b1e1fe/mac",
    ),
    (ErrorKind.PERMISSION_DENIED, Component.TEXT_INSERTION): ErrorGuidance(
        title="Accessibility Permission Required",
        message="Dictation needs accessibility permission to insert text into other applications.",
        actions=(
            ErrorAction("Open Accessibility Settings", ErrorActionType.OPEN_ACCESSIBILITY_SETTINGS),
            _RETRY,
        ),
        help_url="https://support.apple.com/guide/mac-help/allow-accessibility-apps-to-access-your-mac-mh43185/mac",
    ),
    (ErrorKind.PERMISSION_DENIED, Component.HOTKEY_SYSTEM): ErrorGuidance(
        title="Input Monitoring Permission Required",
        message="The global hotkey needs accessibility permission to observe key presses.",
        actions=(
            ErrorAction("Open Accessibility Settings", ErrorActionType.OPEN_ACCESSIBILITY_SETTINGS),
            _RETRY,
        ),
        help_url="https://support.apple.com/guide/mac-help/allow-accessibility-apps-to-access-your-mac-mh43185/mac",
    ),
    (ErrorKind.AUDIO_DEVICE_UNAVAILABLE, Component.AUDIO_SYSTEM): ErrorGuidance(
        title="Audio Device Not Available",
        message="No audio input device is available. Please check your microphone connection.",
        actions=(
            ErrorAction("Check Audio Settings", ErrorActionType.OPEN_AUDIO_SETTINGS),
            ErrorAction("Retry", ErrorActionType.RETRY),
        ),
    ),
    (ErrorKind.AUDIO_CAPTURE_FAILURE, Component.AUDIO_SYSTEM): ErrorGuidance(
        title="Audio Capture Interrupted",
        message="Recording stopped unexpectedly and the audio system could not be restarted.",
        actions=(
            ErrorAction("Check Audio Settings", ErrorActionType.OPEN_AUDIO_SETTINGS),
            ErrorAction("Restart Audio", ErrorActionType.RESTART_COMPONENT),
        ),
    ),
    (ErrorKind.TRANSCRIPTION_FAILED, Component.TRANSCRIPTION_ENGINE): ErrorGuidance(
        title="Transcription Failed",
        message="Speech recognition failed. This might be due to unclear audio or system load.",
        actions=(
            _RETRY,
            ErrorAction("Check Audio Quality", ErrorActionType.CHECK_AUDIO_QUALITY),
        ),
    ),
    (ErrorKind.NETWORK_CONNECTION_FAILED, Component.TRANSCRIPTION_ENGINE): ErrorGuidance(
        title="Transcription Service Unreachable",
        message="The transcription service could not be reached. Check your connection and retry.",
        actions=(
            ErrorAction("Check Network", ErrorActionType.CHECK_NETWORK),
            _RETRY,
        ),
    ),
    (ErrorKind.HOTKEY_CONFLICT, Component.HOTKEY_SYSTEM): ErrorGuidance(
        title="Hotkey Already In Use",
        message="Another application is using the dictation hotkey. Choose a different one.",
        actions=(ErrorAction("Change Hotkey", ErrorActionType.CHANGE_HOTKEY),),
    ),
    (ErrorKind.SYSTEM_RESOURCES_EXHAUSTED, Component.SYSTEM_RESOURCES): ErrorGuidance(
        title="System Resources Low",
        message="Your system is running low on resources. Close other applications and retry.",
        actions=(_RETRY,),
    ),
}

_DEFAULT_GUIDANCE = ErrorGuidance(
    title="Something Went Wrong",
    message="Dictation encountered an issue. You can try restarting the affected component.",
    actions=(
        ErrorAction("Restart Component", ErrorActionType.RESTART_COMPONENT),
        ErrorAction("Contact Support", ErrorActionType.CONTACT_SUPPORT),
    ),
)


class GuidanceCenter:
    """Builds guidance and fans it out to registered listeners."""

    def __init__(self) -> None:
        self._listeners: list[GuidanceListener] = []
        self._lock = threading.Lock()

    def get_guidance(self, error: AppError, component: Component) -> ErrorGuidance:
        return _GUIDANCE.get((error.kind, component), _DEFAULT_GUIDANCE)

    def add_listener(self, listener: GuidanceListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _remove

    def notify(self, guidance: ErrorGuidance, error: AppError, component: Component) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            logger.warning(
                "No guidance listener registered; %s: %s", guidance.title, guidance.message
            )
            return
        for listener in listeners:
            try:
                listener(guidance, error, component)
            except Exception:
                logger.exception("Guidance listener failed")
