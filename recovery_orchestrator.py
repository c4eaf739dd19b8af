"""State-machine based recovery orchestration.

``idle -> detecting -> recovering -> completed | failed -> idle``. One
recovery runs at a time. A recoverable report for the component already being
recovered (or already waiting for recovery) is coalesced into that attempt;
any other report waits its turn. Terminal states fall back to idle after a quiet
period unless a new report arrives first.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from typing import Awaitable, Callable, Mapping, Optional, TypeVar

from component_recovery import ComponentRecovery
from config import RecoverySettings
from errors import AppError, ErrorKind, RecoveryTimeoutError
from interfaces import DiagnosticsSink, GuidanceSink
from ledger import StrategyOutcomeLedger
from models import (
    Component,
    ErrorRecord,
    HealthReport,
    RecoveryRecord,
    RecoveryState,
    RecoveryStatistics,
    RecoveryStatus,
)
from strategies import RecoveryStrategy, fallback_chain, is_applicable

logger = logging.getLogger("dictate-recovery")

T = TypeVar("T")

StatusCallback = Callable[[RecoveryStatus, RecoveryStatus], None]
HistoryCallback = Callable[[list[RecoveryRecord]], None]

_TERMINAL = (RecoveryState.COMPLETED, RecoveryState.FAILED)


class ErrorRecoveryOrchestrator:
    def __init__(
        self,
        executor: ComponentRecovery,
        ledger: StrategyOutcomeLedger,
        diagnostics: DiagnosticsSink,
        guidance: GuidanceSink,
        settings: Optional[RecoverySettings] = None,
        clock: Callable[[], float] = time.time,
        on_status_change: Optional[StatusCallback] = None,
        on_history_change: Optional[HistoryCallback] = None,
    ) -> None:
        self._executor = executor
        self._ledger = ledger
        self._diagnostics = diagnostics
        self._guidance = guidance
        self._settings = settings or RecoverySettings()
        self._clock = clock

        self._status = RecoveryStatus.idle()
        self._history: list[RecoveryRecord] = []
        self._last_recovery_attempt: Optional[float] = None
        self._status_listeners: list[StatusCallback] = []
        self._history_listeners: list[HistoryCallback] = []
        if on_status_change:
            self._status_listeners.append(on_status_change)
        if on_history_change:
            self._history_listeners.append(on_history_change)

        self._lock = asyncio.Lock()
        # Only recoverable reports are tracked; others must never absorb a report.
        self._active_component: Optional[Component] = None
        self._waiting: Counter[Component] = Counter()
        self._idle_task: Optional[asyncio.Task[None]] = None
        self._monitor_task: Optional[asyncio.Task[None]] = None

    @property
    def status(self) -> RecoveryStatus:
        return self._status

    @property
    def is_recovering(self) -> bool:
        return self._status.is_active

    @property
    def history(self) -> list[RecoveryRecord]:
        return list(self._history)

    @property
    def last_recovery_attempt(self) -> Optional[float]:
        return self._last_recovery_attempt

    def add_status_listener(self, listener: StatusCallback) -> Callable[[], None]:
        self._status_listeners.append(listener)
        return lambda: _discard(self._status_listeners, listener)

    def add_history_listener(self, listener: HistoryCallback) -> Callable[[], None]:
        self._history_listeners.append(listener)
        return lambda: _discard(self._history_listeners, listener)

    # ------------------------------------------------------------------
    # Error intake
    # ------------------------------------------------------------------

    async def handle_error(
        self,
        error: AppError,
        component: Component,
        context: Optional[Mapping[str, object]] = None,
        user_initiated: bool = False,
    ) -> Optional[RecoveryRecord]:
        """Report ``error`` on ``component`` and recover from it if allowed.

        Returns the summary of the attempt, or None when no attempt was made
        (coalesced, not recoverable, or too many recent attempts).
        """
        logger.error("Handling error in %s: %s", component.display_name, error.display_name)
        error_record = self._diagnostics.record_error(
            error, component, {**(context or {}), "user_initiated": user_initiated}
        )

        recoverable = error.is_recoverable
        if recoverable and (
            component == self._active_component or self._waiting[component] > 0
        ):
            logger.info(
                "Coalescing %s for %s into the recovery already scheduled",
                error.display_name,
                component.display_name,
            )
            return None

        queued = recoverable
        if queued:
            self._waiting[component] += 1
        try:
            async with self._lock:
                if queued:
                    self._waiting[component] -= 1
                    queued = False
                    self._active_component = component
                try:
                    return await self._process(error, component, error_record)
                finally:
                    self._active_component = None
        finally:
            if queued:
                self._waiting[component] -= 1

    async def recover_component(self, component: Component) -> Optional[RecoveryRecord]:
        """User-initiated recovery of ``component``."""
        error = AppError(ErrorKind.COMPONENT_FAILURE, component.display_name)
        return await self.handle_error(error, component, user_initiated=True)

    async def _process(
        self,
        error: AppError,
        component: Component,
        error_record: ErrorRecord,
    ) -> Optional[RecoveryRecord]:
        self._cancel_idle_reset()

        recent = self._recent_attempts(component)
        if not error.is_recoverable or recent >= self._settings.max_attempts:
            if not error.is_recoverable:
                reason = f"{error.display_name} is not automatically recoverable"
            else:
                reason = f"too many recovery attempts for {component.display_name}"
            logger.warning("Skipping recovery for %s - %s", error.display_name, reason)
            self._transition(RecoveryStatus.failed(reason))
            self._show_guidance(error, component)
            self._schedule_idle_reset()
            return None

        self._last_recovery_attempt = self._clock()
        self._transition(RecoveryStatus.detecting())
        strategy = self._ledger.recommend(error, component, previous_attempts=recent)
        logger.info(
            "Recovering %s using %s (previous attempts: %d)",
            component.display_name,
            strategy,
            recent,
        )

        started_at = self._clock()
        started = time.monotonic()
        self._transition(RecoveryStatus.recovering(component, 0.0))
        failure: Optional[Exception] = None
        try:
            await self._race_timeout(
                self._executor.execute(
                    strategy,
                    component,
                    on_progress=lambda p: self._transition(
                        RecoveryStatus.recovering(component, p)
                    ),
                ),
                self._settings.timeout_s,
            )
            self._transition(RecoveryStatus.recovering(component, 1.0))
            await self._executor.validate_component(component)
        except Exception as exc:
            failure = exc
        duration = time.monotonic() - started

        self._ledger.record(strategy, error, component, failure is None, duration)

        if failure is None:
            record = RecoveryRecord(
                timestamp=started_at,
                error=error,
                original_error=error,
                component=component,
                strategy=strategy,
                success=True,
                duration=duration,
            )
            self._diagnostics.mark_resolved(error_record.id)
            self._commit(record, RecoveryStatus.completed(True))
            logger.info("Recovery successful for %s", component.display_name)
        else:
            reason = _describe_failure(failure)
            record = RecoveryRecord(
                timestamp=started_at,
                error=AppError(ErrorKind.COMPONENT_FAILURE, f"Recovery failed: {reason}"),
                original_error=error,
                component=component,
                strategy=strategy,
                success=False,
                duration=duration,
                failure_reason=reason,
                suggested_fallback=_next_fallback(strategy, error, component),
            )
            self._commit(record, RecoveryStatus.failed(reason))
            logger.error("Recovery failed for %s: %s", component.display_name, reason)
            self._show_guidance(error, component)

        self._schedule_idle_reset()
        return record

    async def _race_timeout(self, work: Awaitable[T], timeout_s: float) -> T:
        """Run ``work`` against a timer; whichever finishes first wins.

        The loser is cancelled and awaited, so a timed-out action has finished
        its own cleanup before this returns.
        """
        action = asyncio.ensure_future(work)
        timer = asyncio.ensure_future(asyncio.sleep(timeout_s))
        action_won = False
        try:
            await asyncio.wait({action, timer}, return_when=asyncio.FIRST_COMPLETED)
            action_won = action.done()
        finally:
            for task in (timer, action):
                if not task.done():
                    task.cancel()
            await asyncio.gather(timer, action, return_exceptions=True)
        if not action_won:
            raise RecoveryTimeoutError(f"no result within {timeout_s:g}s")
        return action.result()

    def _recent_attempts(self, component: Component) -> int:
        cutoff = self._clock() - self._settings.attempt_window_s
        return sum(
            1 for r in self._history if r.component == component and r.timestamp > cutoff
        )

    # ------------------------------------------------------------------
    # Statistics & health
    # ------------------------------------------------------------------

    def statistics(self) -> RecoveryStatistics:
        total = len(self._history)
        successful = sum(1 for r in self._history if r.success)
        return RecoveryStatistics(
            total_attempts=total,
            successful_recoveries=successful,
            success_rate=successful / total if total else 0.0,
            average_duration=sum(r.duration for r in self._history) / total if total else 0.0,
            last_recovery=self._history[0].timestamp if self._history else None,
        )

    async def check_health(self) -> HealthReport:
        report = await self._diagnostics.perform_health_check()
        for issue in report.critical_issues:
            logger.warning("Proactive health check detected issue: %s", issue.description)
        return report

    def start_health_monitoring(self) -> None:
        if self._monitor_task is not None and not self._monitor_task.done():
            return
        self._monitor_task = asyncio.get_running_loop().create_task(self._monitor_health())

    async def stop_health_monitoring(self) -> None:
        task, self._monitor_task = self._monitor_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _monitor_health(self) -> None:
        while True:
            await asyncio.sleep(self._settings.health_check_interval_s)
            try:
                await self.check_health()
            except Exception:
                logger.exception("Proactive health check failed")

    async def shutdown(self) -> None:
        await self.stop_health_monitoring()
        task, self._idle_task = self._idle_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    # ------------------------------------------------------------------
    # Status plumbing
    # ------------------------------------------------------------------

    def _commit(self, record: RecoveryRecord, status: RecoveryStatus) -> None:
        """Apply a history entry and its status together, then notify."""
        self._history.insert(0, record)
        del self._history[self._settings.ledger_capacity:]
        previous, self._status = self._status, status
        self._notify_status(previous, status)
        snapshot = list(self._history)
        for listener in list(self._history_listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("History listener failed")

    def _transition(self, to_status: RecoveryStatus) -> None:
        from_status = self._status
        # A repeated terminal status is a new outcome and is always reported.
        if from_status == to_status and to_status.state not in _TERMINAL:
            return
        self._status = to_status
        self._notify_status(from_status, to_status)

    def _notify_status(self, from_status: RecoveryStatus, to_status: RecoveryStatus) -> None:
        for listener in list(self._status_listeners):
            try:
                listener(from_status, to_status)
            except Exception:
                logger.exception("Status listener failed")

    def _schedule_idle_reset(self) -> None:
        self._cancel_idle_reset()
        self._idle_task = asyncio.get_running_loop().create_task(self._return_to_idle())

    def _cancel_idle_reset(self) -> None:
        if self._idle_task is not None and not self._idle_task.done():
            self._idle_task.cancel()
        self._idle_task = None

    async def _return_to_idle(self) -> None:
        await asyncio.sleep(self._settings.quiescence_delay_s)
        if not self._status.is_active:
            self._transition(RecoveryStatus.idle())

    def _show_guidance(self, error: AppError, component: Component) -> None:
        guidance = self._guidance.get_guidance(error, component)
        self._guidance.notify(guidance, error, component)


def _describe_failure(exc: Exception) -> str:
    if isinstance(exc, RecoveryTimeoutError):
        return "timeout"
    return str(exc) or type(exc).__name__


def _next_fallback(
    strategy: RecoveryStrategy,
    error: AppError,
    component: Component,
) -> Optional[RecoveryStrategy]:
    for candidate in fallback_chain(strategy):
        if candidate != strategy and is_applicable(candidate, error, component):
            return candidate
    return None


def _discard(listeners: list, listener: object) -> None:
    if listener in listeners:
        listeners.remove(listener)
