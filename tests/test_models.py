from __future__ import annotations

from models import Component, RecoveryState, RecoveryStatus


def test_recovering_progress_is_clamped() -> None:
    assert RecoveryStatus.recovering(Component.AUDIO_SYSTEM, 1.7).progress == 1.0
    assert RecoveryStatus.recovering(Component.AUDIO_SYSTEM, -0.2).progress == 0.0


def test_active_states() -> None:
    assert RecoveryStatus.detecting().is_active is True
    assert RecoveryStatus.recovering(Component.AUDIO_SYSTEM, 0.3).is_active is True
    assert RecoveryStatus.idle().is_active is False
    assert RecoveryStatus.completed(True).is_active is False
    assert RecoveryStatus.failed("timeout").is_active is False


def test_failed_status_carries_reason() -> None:
    status = RecoveryStatus.failed("timeout")

    assert status.state == RecoveryState.FAILED
    assert status.success is False
    assert status.display_message == "Recovery failed: timeout"


def test_display_messages() -> None:
    assert RecoveryStatus.idle().display_message == "System ready"
    assert (
        RecoveryStatus.recovering(Component.TEXT_INSERTION, 0.5).display_message
        == "Recovering Text Insertion... 50%"
    )
    assert RecoveryStatus.completed(True).display_message == "Recovery successful"


def test_every_component_is_described() -> None:
    for component in Component:
        assert component.display_name
        assert component.description
