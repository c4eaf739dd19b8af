"""Core data models for the recovery core."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Optional

from errors import AppError

if TYPE_CHECKING:
    from strategies import RecoveryStrategy


class Component(str, Enum):
    HOTKEY_SYSTEM = "hotkey_system"
    AUDIO_SYSTEM = "audio_system"
    TRANSCRIPTION_ENGINE = "transcription_engine"
    TEXT_INSERTION = "text_insertion"
    SYSTEM_RESOURCES = "system_resources"

    @property
    def display_name(self) -> str:
        return _COMPONENT_NAMES[self]

    @property
    def description(self) -> str:
        return _COMPONENT_DESCRIPTIONS[self]


_COMPONENT_NAMES = {
    Component.HOTKEY_SYSTEM: "Hotkey System",
    Component.AUDIO_SYSTEM: "Audio System",
    Component.TRANSCRIPTION_ENGINE: "Transcription Engine",
    Component.TEXT_INSERTION: "Text Insertion",
    Component.SYSTEM_RESOURCES: "System Resources",
}

_COMPONENT_DESCRIPTIONS = {
    Component.HOTKEY_SYSTEM: "Global hotkey detection and handling",
    Component.AUDIO_SYSTEM: "Audio capture and processing",
    Component.TRANSCRIPTION_ENGINE: "Speech-to-text transcription",
    Component.TEXT_INSERTION: "Text insertion into target applications",
    Component.SYSTEM_RESOURCES: "System resource monitoring and management",
}


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass
class PasteResult:
    success: bool
    reason: str
    clipboard_restored: bool


@dataclass
class TranscriptionResult:
    text: str = ""
    error: Optional[AppError] = None


# ----------------------------------------------------------------------
# Records
# ----------------------------------------------------------------------


@dataclass
class ErrorRecord:
    error: AppError
    component: Component
    timestamp: float
    context: dict[str, str] = field(default_factory=dict)
    resolved: bool = False
    resolved_at: Optional[float] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def display_description(self) -> str:
        status = "Resolved" if self.resolved else "Active"
        return f"{self.component.display_name}: {self.error.display_name} - {status}"


@dataclass(frozen=True)
class StrategyExecutionRecord:
    strategy: RecoveryStrategy
    error: AppError
    component: Component
    success: bool
    duration: float
    timestamp: float


@dataclass(frozen=True)
class ComponentSnapshot:
    """Observable flags of a component captured right before a recovery."""

    component: Component
    flags: Mapping[str, bool]
    captured_at: float


@dataclass(frozen=True)
class RecoveryRecord:
    timestamp: float
    error: AppError
    original_error: AppError
    component: Component
    strategy: RecoveryStrategy
    success: bool
    duration: float
    attempts: int = 1
    failure_reason: str = ""
    suggested_fallback: Optional[RecoveryStrategy] = None

    @property
    def display_description(self) -> str:
        result = "Successful" if self.success else "Failed"
        return f"{self.component.display_name}: {self.error.display_name} - {result}"


@dataclass(frozen=True)
class RecoveryStatistics:
    total_attempts: int
    successful_recoveries: int
    success_rate: float
    average_duration: float
    last_recovery: Optional[float]


# ----------------------------------------------------------------------
# Status
# ----------------------------------------------------------------------


class RecoveryState(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    RECOVERING = "recovering"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RecoveryStatus:
    state: RecoveryState
    component: Optional[Component] = None
    progress: float = 0.0
    success: Optional[bool] = None
    reason: str = ""

    @classmethod
    def idle(cls) -> RecoveryStatus:
        return cls(RecoveryState.IDLE)

    @classmethod
    def detecting(cls) -> RecoveryStatus:
        return cls(RecoveryState.DETECTING)

    @classmethod
    def recovering(cls, component: Component, progress: float) -> RecoveryStatus:
        return cls(
            RecoveryState.RECOVERING,
            component=component,
            progress=min(max(progress, 0.0), 1.0),
        )

    @classmethod
    def completed(cls, success: bool) -> RecoveryStatus:
        return cls(RecoveryState.COMPLETED, success=success)

    @classmethod
    def failed(cls, reason: str) -> RecoveryStatus:
        return cls(RecoveryState.FAILED, success=False, reason=reason)

    @property
    def is_active(self) -> bool:
        return self.state in (RecoveryState.DETECTING, RecoveryState.RECOVERING)

    @property
    def display_message(self) -> str:
        if self.state == RecoveryState.DETECTING:
            return "Detecting issue..."
        if self.state == RecoveryState.RECOVERING and self.component is not None:
            return f"Recovering {self.component.display_name}... {int(self.progress * 100)}%"
        if self.state == RecoveryState.COMPLETED:
            return "Recovery successful" if self.success else "Recovery completed with issues"
        if self.state == RecoveryState.FAILED:
            return f"Recovery failed: {self.reason}"
        return "System ready"


# ----------------------------------------------------------------------
# Guidance
# ----------------------------------------------------------------------


class ErrorActionType(str, Enum):
    RETRY = "retry"
    OPEN_SYSTEM_SETTINGS = "open_system_settings"
    OPEN_ACCESSIBILITY_SETTINGS = "open_accessibility_settings"
    OPEN_AUDIO_SETTINGS = "open_audio_settings"
    CHECK_AUDIO_QUALITY = "check_audio_quality"
    CHECK_NETWORK = "check_network"
    CHANGE_HOTKEY = "change_hotkey"
    RESTART_COMPONENT = "restart_component"
    CONTACT_SUPPORT = "contact_support"


@dataclass(frozen=True)
class ErrorAction:
    title: str
    type: ErrorActionType


@dataclass(frozen=True)
class ErrorGuidance:
    title: str
    message: str
    actions: tuple[ErrorAction, ...]
    help_url: Optional[str] = None


# ----------------------------------------------------------------------
# Health
# ----------------------------------------------------------------------


class IssueSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class HealthIssue:
    severity: IssueSeverity
    component: Component
    description: str
    recommendation: str


@dataclass(frozen=True)
class HealthReport:
    timestamp: float
    duration: float
    issues: tuple[HealthIssue, ...]

    @property
    def critical_issues(self) -> list[HealthIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.CRITICAL]

    @property
    def warning_issues(self) -> list[HealthIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]

    @property
    def is_healthy(self) -> bool:
        return not self.critical_issues and not self.warning_issues


@dataclass(frozen=True)
class ErrorAnalysis:
    total_errors: int
    resolved_errors: int
    errors_by_component: Mapping[Component, int]
    errors_by_kind: Mapping[str, int]
    most_problematic_component: Optional[Component]
    most_common_error: Optional[str]

    @property
    def resolution_rate(self) -> float:
        if self.total_errors == 0:
            return 0.0
        return self.resolved_errors / self.total_errors
