"""In-memory diagnostics: error log, health checks and error analysis."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import Counter, deque
from typing import Callable, Mapping, Optional

from errors import AppError, ErrorSeverity
from interfaces import Collaborators
from models import (
    Component,
    ErrorAnalysis,
    ErrorRecord,
    HealthIssue,
    HealthReport,
    IssueSeverity,
)

logger = logging.getLogger("dictate-recovery")


class DiagnosticsManager:
    def __init__(
        self,
        collaborators: Optional[Collaborators] = None,
        max_error_history: int = 100,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._c = collaborators
        self._clock = clock
        self._errors: deque[ErrorRecord] = deque(maxlen=max_error_history)
        self._lock = threading.Lock()

    def recent_errors(self) -> list[ErrorRecord]:
        with self._lock:
            return list(self._errors)

    def record_error(
        self,
        error: AppError,
        component: Component,
        context: Optional[Mapping[str, object]] = None,
    ) -> ErrorRecord:
        record = ErrorRecord(
            error=error,
            component=component,
            timestamp=self._clock(),
            context={k: str(v) for k, v in (context or {}).items()},
        )
        with self._lock:
            self._errors.appendleft(record)
        logger.error(
            "Error recorded - component: %s, error: %s, context: %s",
            component.display_name,
            error.display_name,
            record.context,
        )
        return record

    def mark_resolved(self, record_id: str) -> None:
        with self._lock:
            for record in self._errors:
                if record.id == record_id and not record.resolved:
                    record.resolved = True
                    record.resolved_at = self._clock()
                    return

    async def perform_health_check(self) -> HealthReport:
        started = self._clock()
        issues: list[HealthIssue] = []
        if self._c is not None:
            for component, check in _component_checks(self._c):
                try:
                    issue = await asyncio.to_thread(check)
                except Exception as exc:
                    issue = HealthIssue(
                        IssueSeverity.CRITICAL,
                        component,
                        f"Health check failed: {exc}",
                        f"Restart the {component.display_name.lower()}",
                    )
                if issue is not None:
                    issues.append(issue)
        issues.extend(self._unresolved_critical_issues())
        return HealthReport(
            timestamp=started,
            duration=self._clock() - started,
            issues=tuple(issues),
        )

    def _unresolved_critical_issues(self) -> list[HealthIssue]:
        seen: set[Component] = set()
        issues: list[HealthIssue] = []
        for record in self.recent_errors():
            if record.resolved or record.error.severity != ErrorSeverity.CRITICAL:
                continue
            if record.component in seen:
                continue
            seen.add(record.component)
            issues.append(
                HealthIssue(
                    IssueSeverity.CRITICAL,
                    record.component,
                    f"Unresolved error: {record.error.description}",
                    record.error.recovery_suggestion,
                )
            )
        return issues

    def analyze_errors(self) -> ErrorAnalysis:
        records = self.recent_errors()
        by_component = Counter(r.component for r in records)
        by_kind = Counter(r.error.kind.value for r in records)
        return ErrorAnalysis(
            total_errors=len(records),
            resolved_errors=sum(1 for r in records if r.resolved),
            errors_by_component=dict(by_component),
            errors_by_kind=dict(by_kind),
            most_problematic_component=(
                by_component.most_common(1)[0][0] if by_component else None
            ),
            most_common_error=by_kind.most_common(1)[0][0] if by_kind else None,
        )


def _component_checks(
    c: Collaborators,
) -> list[tuple[Component, Callable[[], Optional[HealthIssue]]]]:
    def hotkey() -> Optional[HealthIssue]:
        if c.hotkey.is_listening():
            return None
        return HealthIssue(
            IssueSeverity.WARNING,
            Component.HOTKEY_SYSTEM,
            "Hotkey listener is not running",
            "Restart the hotkey system",
        )

    def transcription() -> Optional[HealthIssue]:
        if c.transcription.is_model_loaded():
            return None
        return HealthIssue(
            IssueSeverity.CRITICAL,
            Component.TRANSCRIPTION_ENGINE,
            f"Model {c.transcription.current_model!r} is not loaded",
            "Restart the transcription engine",
        )

    def accessibility() -> Optional[HealthIssue]:
        if c.permissions.check_accessibility_permission():
            return None
        return HealthIssue(
            IssueSeverity.CRITICAL,
            Component.TEXT_INSERTION,
            "Accessibility permission is not granted",
            "Grant accessibility permission in System Settings",
        )

    def text_insertion() -> Optional[HealthIssue]:
        if c.text_insertion.is_available():
            return None
        return HealthIssue(
            IssueSeverity.WARNING,
            Component.TEXT_INSERTION,
            "Text insertion is unavailable",
            "Check clipboard and keyboard access",
        )

    return [
        (Component.HOTKEY_SYSTEM, hotkey),
        (Component.TRANSCRIPTION_ENGINE, transcription),
        (Component.TEXT_INSERTION, accessibility),
        (Component.TEXT_INSERTION, text_insertion),
    ]
