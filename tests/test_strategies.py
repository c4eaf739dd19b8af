from __future__ import annotations

import pytest

from errors import AppError, ErrorKind
from models import Component
from strategies import (
    ALL_STRATEGIES,
    FULL_SYSTEM_RESET,
    GRACEFUL_DEGRADATION,
    REQUEST_PERMISSIONS,
    RESET_AUDIO_SYSTEM,
    RESTART_TRANSCRIPTION_ENGINE,
    RETRY_TEXT_INSERTION,
    USER_GUIDED_RECOVERY,
    RecoveryStrategy,
    StrategyKind,
    catalog_rank,
    fallback_chain,
    is_applicable,
    select_strategy,
)


@pytest.mark.parametrize(
    ("kind", "component", "expected"),
    [
        (ErrorKind.PERMISSION_DENIED, Component.AUDIO_SYSTEM, REQUEST_PERMISSIONS),
        (ErrorKind.PERMISSION_DENIED, Component.TEXT_INSERTION, REQUEST_PERMISSIONS),
        (ErrorKind.AUDIO_DEVICE_UNAVAILABLE, Component.AUDIO_SYSTEM, RESET_AUDIO_SYSTEM),
        (ErrorKind.AUDIO_CAPTURE_FAILURE, Component.AUDIO_SYSTEM, RESET_AUDIO_SYSTEM),
        (ErrorKind.TRANSCRIPTION_FAILED, Component.TRANSCRIPTION_ENGINE, RESTART_TRANSCRIPTION_ENGINE),
        (ErrorKind.MODEL_LOAD_FAILED, Component.TRANSCRIPTION_ENGINE, RESTART_TRANSCRIPTION_ENGINE),
        (ErrorKind.TEXT_INSERTION_FAILED, Component.TEXT_INSERTION, RETRY_TEXT_INSERTION),
        (
            ErrorKind.HOTKEY_SYSTEM_ERROR,
            Component.HOTKEY_SYSTEM,
            RecoveryStrategy.component_reset(Component.HOTKEY_SYSTEM),
        ),
        (ErrorKind.SYSTEM_RESOURCES_EXHAUSTED, Component.SYSTEM_RESOURCES, GRACEFUL_DEGRADATION),
        (ErrorKind.NETWORK_CONNECTION_FAILED, Component.TRANSCRIPTION_ENGINE, USER_GUIDED_RECOVERY),
        (ErrorKind.AUDIO_CAPTURE_FAILURE, Component.TEXT_INSERTION, USER_GUIDED_RECOVERY),
    ],
)
def test_first_attempt_uses_table(kind: ErrorKind, component: Component, expected: RecoveryStrategy) -> None:
    assert select_strategy(AppError(kind), component) == expected


def test_repeated_failures_escalate() -> None:
    error = AppError(ErrorKind.TEXT_INSERTION_FAILED)
    assert select_strategy(error, Component.TEXT_INSERTION, previous_attempts=1) == (
        RecoveryStrategy.component_reset(Component.TEXT_INSERTION)
    )
    assert select_strategy(error, Component.TEXT_INSERTION, previous_attempts=2) == FULL_SYSTEM_RESET
    assert select_strategy(error, Component.TEXT_INSERTION, previous_attempts=7) == FULL_SYSTEM_RESET


def test_component_reset_requires_component() -> None:
    with pytest.raises(ValueError):
        RecoveryStrategy(StrategyKind.COMPONENT_RESET)
    with pytest.raises(ValueError):
        RecoveryStrategy(StrategyKind.RESET_AUDIO_SYSTEM, Component.AUDIO_SYSTEM)


def test_strategy_attributes() -> None:
    reset = RecoveryStrategy.component_reset(Component.AUDIO_SYSTEM)
    assert reset.is_automatic is True
    assert reset.display_description == "Resetting Audio System"
    assert str(reset) == "component_reset(audio_system)"
    assert USER_GUIDED_RECOVERY.is_automatic is False
    assert REQUEST_PERMISSIONS.requires_user_interaction is True
    assert RETRY_TEXT_INSERTION.priority > FULL_SYSTEM_RESET.priority
    assert all(s.estimated_duration > 0 for s in ALL_STRATEGIES)


def test_fallback_chains() -> None:
    assert fallback_chain(RETRY_TEXT_INSERTION) == [
        RecoveryStrategy.component_reset(Component.TEXT_INSERTION),
        USER_GUIDED_RECOVERY,
    ]
    assert fallback_chain(RecoveryStrategy.component_reset(Component.HOTKEY_SYSTEM)) == [
        FULL_SYSTEM_RESET,
        USER_GUIDED_RECOVERY,
    ]
    assert fallback_chain(FULL_SYSTEM_RESET) == [USER_GUIDED_RECOVERY, GRACEFUL_DEGRADATION]
    for strategy in ALL_STRATEGIES:
        assert fallback_chain(strategy)


def test_applicability() -> None:
    audio_failure = AppError(ErrorKind.AUDIO_CAPTURE_FAILURE)
    assert is_applicable(RESET_AUDIO_SYSTEM, audio_failure, Component.AUDIO_SYSTEM)
    assert not is_applicable(RESET_AUDIO_SYSTEM, audio_failure, Component.TEXT_INSERTION)
    assert not is_applicable(REQUEST_PERMISSIONS, audio_failure, Component.AUDIO_SYSTEM)
    assert is_applicable(FULL_SYSTEM_RESET, audio_failure, Component.TEXT_INSERTION)
    assert is_applicable(
        RecoveryStrategy.component_reset(Component.AUDIO_SYSTEM), audio_failure, Component.AUDIO_SYSTEM
    )
    assert not is_applicable(
        RecoveryStrategy.component_reset(Component.HOTKEY_SYSTEM), audio_failure, Component.AUDIO_SYSTEM
    )


def test_catalog_rank_follows_catalog_order() -> None:
    assert catalog_rank(REQUEST_PERMISSIONS) == 0
    assert catalog_rank(GRACEFUL_DEGRADATION) == len(ALL_STRATEGIES) - 1
