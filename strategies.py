"""Recovery strategy catalog.

Pure decision logic: which strategy to try for an (error, component) pair,
what to fall back to when a strategy does not hold, and whether a learned
strategy may stand in for the table-driven one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from errors import AppError, ErrorKind
from models import Component


class StrategyKind(str, Enum):
    REQUEST_PERMISSIONS = "request_permissions"
    RESET_AUDIO_SYSTEM = "reset_audio_system"
    RESTART_TRANSCRIPTION_ENGINE = "restart_transcription_engine"
    RETRY_TEXT_INSERTION = "retry_text_insertion"
    COMPONENT_RESET = "component_reset"
    FULL_SYSTEM_RESET = "full_system_reset"
    USER_GUIDED_RECOVERY = "user_guided_recovery"
    GRACEFUL_DEGRADATION = "graceful_degradation"


_AUTOMATIC = frozenset(
    {
        StrategyKind.REQUEST_PERMISSIONS,
        StrategyKind.RESET_AUDIO_SYSTEM,
        StrategyKind.RESTART_TRANSCRIPTION_ENGINE,
        StrategyKind.RETRY_TEXT_INSERTION,
        StrategyKind.COMPONENT_RESET,
        StrategyKind.FULL_SYSTEM_RESET,
    }
)

_PRIORITY = {
    StrategyKind.RETRY_TEXT_INSERTION: 10,
    StrategyKind.RESTART_TRANSCRIPTION_ENGINE: 9,
    StrategyKind.RESET_AUDIO_SYSTEM: 8,
    StrategyKind.REQUEST_PERMISSIONS: 7,
    StrategyKind.COMPONENT_RESET: 6,
    StrategyKind.USER_GUIDED_RECOVERY: 5,
    StrategyKind.GRACEFUL_DEGRADATION: 4,
    StrategyKind.FULL_SYSTEM_RESET: 1,
}

# Seconds.
_ESTIMATED_DURATION = {
    StrategyKind.RETRY_TEXT_INSERTION: 2.0,
    StrategyKind.RESTART_TRANSCRIPTION_ENGINE: 5.0,
    StrategyKind.RESET_AUDIO_SYSTEM: 3.0,
    StrategyKind.REQUEST_PERMISSIONS: 10.0,
    StrategyKind.COMPONENT_RESET: 4.0,
    StrategyKind.USER_GUIDED_RECOVERY: 30.0,
    StrategyKind.GRACEFUL_DEGRADATION: 1.0,
    StrategyKind.FULL_SYSTEM_RESET: 15.0,
}

_USER_INTERACTION = frozenset(
    {StrategyKind.REQUEST_PERMISSIONS, StrategyKind.USER_GUIDED_RECOVERY}
)

_UNIVERSAL = frozenset(
    {
        StrategyKind.FULL_SYSTEM_RESET,
        StrategyKind.USER_GUIDED_RECOVERY,
        StrategyKind.GRACEFUL_DEGRADATION,
    }
)


@dataclass(frozen=True)
class RecoveryStrategy:
    """A remediation action; ``component`` is set only for component resets."""

    kind: StrategyKind
    component: Optional[Component] = None

    def __post_init__(self) -> None:
        if (self.kind == StrategyKind.COMPONENT_RESET) != (self.component is not None):
            raise ValueError(f"invalid component payload for {self.kind.value}")

    @classmethod
    def component_reset(cls, component: Component) -> RecoveryStrategy:
        return cls(StrategyKind.COMPONENT_RESET, component)

    @property
    def is_automatic(self) -> bool:
        return self.kind in _AUTOMATIC

    @property
    def priority(self) -> int:
        return _PRIORITY[self.kind]

    @property
    def estimated_duration(self) -> float:
        return _ESTIMATED_DURATION[self.kind]

    @property
    def requires_user_interaction(self) -> bool:
        return self.kind in _USER_INTERACTION

    @property
    def display_description(self) -> str:
        if self.component is not None:
            return f"Resetting {self.component.display_name}"
        return _DESCRIPTIONS[self.kind]

    def __str__(self) -> str:
        if self.component is not None:
            return f"{self.kind.value}({self.component.value})"
        return self.kind.value


_DESCRIPTIONS = {
    StrategyKind.REQUEST_PERMISSIONS: "Requesting system permissions",
    StrategyKind.RESET_AUDIO_SYSTEM: "Resetting audio system",
    StrategyKind.RESTART_TRANSCRIPTION_ENGINE: "Restarting transcription engine",
    StrategyKind.RETRY_TEXT_INSERTION: "Retrying text insertion",
    StrategyKind.FULL_SYSTEM_RESET: "Performing full system reset",
    StrategyKind.USER_GUIDED_RECOVERY: "Guided recovery assistance",
    StrategyKind.GRACEFUL_DEGRADATION: "Enabling fallback mode",
}

REQUEST_PERMISSIONS = RecoveryStrategy(StrategyKind.REQUEST_PERMISSIONS)
RESET_AUDIO_SYSTEM = RecoveryStrategy(StrategyKind.RESET_AUDIO_SYSTEM)
RESTART_TRANSCRIPTION_ENGINE = RecoveryStrategy(StrategyKind.RESTART_TRANSCRIPTION_ENGINE)
RETRY_TEXT_INSERTION = RecoveryStrategy(StrategyKind.RETRY_TEXT_INSERTION)
FULL_SYSTEM_RESET = RecoveryStrategy(StrategyKind.FULL_SYSTEM_RESET)
USER_GUIDED_RECOVERY = RecoveryStrategy(StrategyKind.USER_GUIDED_RECOVERY)
GRACEFUL_DEGRADATION = RecoveryStrategy(StrategyKind.GRACEFUL_DEGRADATION)

ALL_STRATEGIES: tuple[RecoveryStrategy, ...] = (
    REQUEST_PERMISSIONS,
    RESET_AUDIO_SYSTEM,
    RESTART_TRANSCRIPTION_ENGINE,
    RETRY_TEXT_INSERTION,
    *(RecoveryStrategy.component_reset(c) for c in Component),
    FULL_SYSTEM_RESET,
    USER_GUIDED_RECOVERY,
    GRACEFUL_DEGRADATION,
)

# (error kind, component) -> strategy; a None component matches any component.
_STRATEGY_TABLE: dict[tuple[ErrorKind, Optional[Component]], RecoveryStrategy] = {
    (ErrorKind.PERMISSION_DENIED, None): REQUEST_PERMISSIONS,
    (ErrorKind.AUDIO_DEVICE_UNAVAILABLE, Component.AUDIO_SYSTEM): RESET_AUDIO_SYSTEM,
    (ErrorKind.AUDIO_CAPTURE_FAILURE, Component.AUDIO_SYSTEM): RESET_AUDIO_SYSTEM,
    (ErrorKind.TRANSCRIPTION_FAILED, Component.TRANSCRIPTION_ENGINE): RESTART_TRANSCRIPTION_ENGINE,
    (ErrorKind.MODEL_LOAD_FAILED, Component.TRANSCRIPTION_ENGINE): RESTART_TRANSCRIPTION_ENGINE,
    (ErrorKind.TEXT_INSERTION_FAILED, Component.TEXT_INSERTION): RETRY_TEXT_INSERTION,
    (ErrorKind.HOTKEY_CONFLICT, Component.HOTKEY_SYSTEM): RecoveryStrategy.component_reset(
        Component.HOTKEY_SYSTEM
    ),
    (ErrorKind.HOTKEY_SYSTEM_ERROR, Component.HOTKEY_SYSTEM): RecoveryStrategy.component_reset(
        Component.HOTKEY_SYSTEM
    ),
    (ErrorKind.SYSTEM_RESOURCES_EXHAUSTED, None): GRACEFUL_DEGRADATION,
}


def select_strategy(
    error: AppError,
    component: Component,
    previous_attempts: int = 0,
) -> RecoveryStrategy:
    """Pick the strategy for ``error`` on ``component``.

    Repeated failures escalate regardless of the error: one previous attempt
    resets the whole component, two or more reset everything.
    """
    if previous_attempts >= 2:
        return FULL_SYSTEM_RESET
    if previous_attempts == 1:
        return RecoveryStrategy.component_reset(component)

    strategy = _STRATEGY_TABLE.get((error.kind, component))
    if strategy is None:
        strategy = _STRATEGY_TABLE.get((error.kind, None))
    return strategy or USER_GUIDED_RECOVERY


def fallback_chain(strategy: RecoveryStrategy) -> list[RecoveryStrategy]:
    """Strategies to try, in order, when ``strategy`` fails validation."""
    kind = strategy.kind
    if kind == StrategyKind.RETRY_TEXT_INSERTION:
        return [RecoveryStrategy.component_reset(Component.TEXT_INSERTION), USER_GUIDED_RECOVERY]
    if kind == StrategyKind.RESTART_TRANSCRIPTION_ENGINE:
        return [
            RecoveryStrategy.component_reset(Component.TRANSCRIPTION_ENGINE),
            GRACEFUL_DEGRADATION,
        ]
    if kind == StrategyKind.RESET_AUDIO_SYSTEM:
        return [RecoveryStrategy.component_reset(Component.AUDIO_SYSTEM), USER_GUIDED_RECOVERY]
    if kind == StrategyKind.REQUEST_PERMISSIONS:
        return [USER_GUIDED_RECOVERY]
    if kind == StrategyKind.COMPONENT_RESET:
        return [FULL_SYSTEM_RESET, USER_GUIDED_RECOVERY]
    if kind == StrategyKind.USER_GUIDED_RECOVERY:
        return [GRACEFUL_DEGRADATION]
    if kind == StrategyKind.GRACEFUL_DEGRADATION:
        return [USER_GUIDED_RECOVERY]
    return [USER_GUIDED_RECOVERY, GRACEFUL_DEGRADATION]


def is_applicable(strategy: RecoveryStrategy, error: AppError, component: Component) -> bool:
    kind = strategy.kind
    if kind in _UNIVERSAL:
        return True
    if kind == StrategyKind.REQUEST_PERMISSIONS:
        return error.kind == ErrorKind.PERMISSION_DENIED
    if kind == StrategyKind.RESET_AUDIO_SYSTEM:
        return component == Component.AUDIO_SYSTEM and error.kind in (
            ErrorKind.AUDIO_DEVICE_UNAVAILABLE,
            ErrorKind.AUDIO_CAPTURE_FAILURE,
        )
    if kind == StrategyKind.RESTART_TRANSCRIPTION_ENGINE:
        return component == Component.TRANSCRIPTION_ENGINE and error.kind in (
            ErrorKind.TRANSCRIPTION_FAILED,
            ErrorKind.MODEL_LOAD_FAILED,
        )
    if kind == StrategyKind.RETRY_TEXT_INSERTION:
        return (
            component == Component.TEXT_INSERTION
            and error.kind == ErrorKind.TEXT_INSERTION_FAILED
        )
    return strategy.component == component


def catalog_rank(strategy: RecoveryStrategy) -> int:
    """Position in ``ALL_STRATEGIES``; the final deterministic tie-break."""
    return ALL_STRATEGIES.index(strategy)
