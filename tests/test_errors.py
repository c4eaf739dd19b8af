from __future__ import annotations

import pytest

from errors import (
    AppError,
    AudioRecoveryError,
    ErrorKind,
    ErrorSeverity,
    RecoveryError,
    RecoveryTimeoutError,
    ValidationFailedError,
)


@pytest.mark.parametrize(
    "kind",
    [ErrorKind.PERMISSION_DENIED, ErrorKind.HOTKEY_CONFLICT, ErrorKind.SYSTEM_RESOURCES_EXHAUSTED],
)
def test_non_recoverable_kinds(kind: ErrorKind) -> None:
    assert AppError(kind).is_recoverable is False


def test_everything_else_is_recoverable() -> None:
    recoverable = [
        k
        for k in ErrorKind
        if k
        not in (
            ErrorKind.PERMISSION_DENIED,
            ErrorKind.HOTKEY_CONFLICT,
            ErrorKind.SYSTEM_RESOURCES_EXHAUSTED,
        )
    ]
    assert all(AppError(k).is_recoverable for k in recoverable)


def test_severity_table() -> None:
    assert AppError(ErrorKind.PERMISSION_DENIED).severity == ErrorSeverity.CRITICAL
    assert AppError(ErrorKind.MODEL_LOAD_FAILED).severity == ErrorSeverity.WARNING
    assert AppError(ErrorKind.TEXT_INSERTION_FAILED).severity == ErrorSeverity.MINOR
    assert ErrorSeverity.CRITICAL.display_name == "Critical"


def test_every_kind_has_presentation() -> None:
    for kind in ErrorKind:
        error = AppError(kind, "detail")
        assert error.display_name
        assert error.description
        assert error.recovery_suggestion


def test_description_includes_detail() -> None:
    error = AppError(ErrorKind.AUDIO_CAPTURE_FAILURE, "stream closed")
    assert error.description == "Audio capture failed: stream closed"
    assert str(error) == error.description


def test_errors_compare_by_kind_and_detail() -> None:
    assert AppError(ErrorKind.TRANSCRIPTION_FAILED) == AppError(ErrorKind.TRANSCRIPTION_FAILED)
    assert AppError(ErrorKind.TRANSCRIPTION_FAILED, "a") != AppError(ErrorKind.TRANSCRIPTION_FAILED, "b")


def test_recovery_error_messages() -> None:
    assert str(AudioRecoveryError("no device")) == "Audio system recovery failed: no device"
    assert str(RecoveryTimeoutError()) == "Recovery operation timed out"
    assert ValidationFailedError("x").details == "x"
    assert issubclass(RecoveryTimeoutError, RecoveryError)
