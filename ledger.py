"""Bounded history of strategy outcomes and the learning loop built on it."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable

from errors import AppError
from models import Component, StrategyExecutionRecord
from strategies import RecoveryStrategy, catalog_rank, is_applicable, select_strategy

# Records needed for an exact (error, component) pair before history may
# override the catalog.
MIN_RECORDS_FOR_RECOMMENDATION = 3


class StrategyOutcomeLedger:
    """Most-recent-first record of strategy executions.

    The oldest record is evicted once ``capacity`` is exceeded, whatever its
    outcome. Recommendations use raw success frequency over what is left in
    the ledger: no recency weighting and no confidence threshold beyond the
    minimum record count.
    """

    def __init__(
        self,
        capacity: int = 100,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._clock = clock
        self._records: deque[StrategyExecutionRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def records(self) -> list[StrategyExecutionRecord]:
        with self._lock:
            return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def record(
        self,
        strategy: RecoveryStrategy,
        error: AppError,
        component: Component,
        success: bool,
        duration: float,
    ) -> StrategyExecutionRecord:
        entry = StrategyExecutionRecord(
            strategy=strategy,
            error=error,
            component=component,
            success=success,
            duration=duration,
            timestamp=self._clock(),
        )
        with self._lock:
            # deque(maxlen) drops from the opposite end, i.e. the oldest.
            self._records.appendleft(entry)
        return entry

    def success_rate(self, strategy: RecoveryStrategy) -> float:
        with self._lock:
            outcomes = [r.success for r in self._records if r.strategy == strategy]
        if not outcomes:
            return 0.0
        return sum(outcomes) / len(outcomes)

    def recommend(
        self,
        error: AppError,
        component: Component,
        previous_attempts: int = 0,
    ) -> RecoveryStrategy:
        default = select_strategy(error, component, previous_attempts)
        if previous_attempts >= 1:
            return default

        with self._lock:
            relevant = [
                r for r in self._records if r.error == error and r.component == component
            ]
        if len(relevant) < MIN_RECORDS_FOR_RECOMMENDATION:
            return default

        grouped: dict[RecoveryStrategy, list[bool]] = {}
        for r in relevant:
            grouped.setdefault(r.strategy, []).append(r.success)

        best = max(
            grouped,
            key=lambda s: (
                sum(grouped[s]) / len(grouped[s]),
                s.priority,
                -catalog_rank(s),
            ),
        )
        if not is_applicable(best, error, component):
            return default
        return best
