"""Quota/rate governor for a budgeted external API (the AI inference path).

Two limits are enforced together:

* a daily ceiling on permitted calls, reset at the local calendar-day boundary;
* a minimum spacing between consecutive permitted calls.

The day rollover is checked lazily at the start of every quota decision, so an
idle process heals itself without a timer. State lives in memory only; a
process restart starts a fresh day budget.

All read-modify-write sequences run under one ``threading.Lock``. The lock is
never held across I/O: callers reserve a slot with :meth:`try_acquire`, release
the lock, and only then make the external call.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class QuotaState:
    """Mutable counters guarded by the governor's lock."""

    daily_count: int
    reset_day: date
    last_call_at: datetime | None = None


@dataclass(frozen=True)
class QuotaSnapshot:
    """Point-in-time, read-only copy of the governor's state."""

    daily_calls_used: int
    daily_calls_limit: int
    last_reset_day: date
    last_call_at: datetime | None
    min_interval_seconds: float

    @property
    def remaining_calls(self) -> int:
        return max(0, self.daily_calls_limit - self.daily_calls_used)

    @property
    def exhausted(self) -> bool:
        return self.daily_calls_used >= self.daily_calls_limit


class QuotaGovernor:
    """Decides, per request, whether a budgeted call may be made now.

    Usage::

        governor = QuotaGovernor(min_interval_seconds=60, daily_ceiling=50)
        if governor.try_acquire():
            await call_the_api()      # slot already recorded
        else:
            use_the_fallback()
    """

    def __init__(
        self,
        min_interval_seconds: float = 60.0,
        daily_ceiling: int = 50,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be >= 0")
        if daily_ceiling < 0:
            raise ValueError("daily_ceiling must be >= 0")
        self._min_interval = timedelta(seconds=min_interval_seconds)
        self._daily_ceiling = daily_ceiling
        self._clock = clock or _local_now
        self._lock = threading.Lock()
        self._state = QuotaState(daily_count=0, reset_day=self._clock().date())

    @property
    def min_interval_seconds(self) -> float:
        return self._min_interval.total_seconds()

    @property
    def daily_ceiling(self) -> int:
        return self._daily_ceiling

    # ------------------------------------------------------------------
    # Public API — each method is one critical section
    # ------------------------------------------------------------------

    def reset_if_new_day(self, now: datetime | None = None) -> bool:
        """Zero the daily counter if ``now`` falls on a new calendar day."""
        with self._lock:
            return self._reset_if_new_day(now or self._clock())

    def can_call_now(self, now: datetime | None = None) -> bool:
        """True iff spacing and daily ceiling both allow a call. No side effects."""
        with self._lock:
            return self._can_call(now or self._clock())

    def record_call(self, now: datetime | None = None) -> None:
        """Account for one call made at ``now``."""
        with self._lock:
            self._record(now or self._clock())

    def try_acquire(self, now: datetime | None = None) -> bool:
        """Roll over the day, check both limits and reserve a slot, atomically.

        Returns True when the caller may make exactly one call; the call has
        already been recorded. Concurrent callers can never jointly exceed the
        ceiling or the spacing.
        """
        now = now or self._clock()
        with self._lock:
            self._reset_if_new_day(now)
            if not self._can_call(now):
                logger.info("AI call denied: %s", self._denial_reason(now))
                return False
            self._record(now)
            logger.info(
                "AI call permitted (%d/%d used today)",
                self._state.daily_count,
                self._daily_ceiling,
            )
            return True

    def snapshot(self) -> QuotaSnapshot:
        """Copy the current counters. Does not roll the day over."""
        with self._lock:
            return QuotaSnapshot(
                daily_calls_used=self._state.daily_count,
                daily_calls_limit=self._daily_ceiling,
                last_reset_day=self._state.reset_day,
                last_call_at=self._state.last_call_at,
                min_interval_seconds=self.min_interval_seconds,
            )

    def reset(self) -> None:
        """Forget all usage (tests and manual operator resets)."""
        with self._lock:
            self._state = QuotaState(daily_count=0, reset_day=self._clock().date())

    # ------------------------------------------------------------------
    # Lock-free internals; callers must hold self._lock
    # ------------------------------------------------------------------

    def _reset_if_new_day(self, now: datetime) -> bool:
        today = now.date()
        if today == self._state.reset_day:
            return False
        logger.info(
            "Daily AI call counter reset (%s -> %s, %d calls used)",
            self._state.reset_day,
            today,
            self._state.daily_count,
        )
        self._state.daily_count = 0
        self._state.reset_day = today
        return True

    def _can_call(self, now: datetime) -> bool:
        if self._state.daily_count >= self._daily_ceiling:
            return False
        last = self._state.last_call_at
        return last is None or now - last >= self._min_interval

    def _record(self, now: datetime) -> None:
        self._state.last_call_at = now
        self._state.daily_count += 1

    def _denial_reason(self, now: datetime) -> str:
        if self._state.daily_count >= self._daily_ceiling:
            return f"daily limit reached ({self._state.daily_count}/{self._daily_ceiling})"
        last = self._state.last_call_at
        elapsed = (now - last).total_seconds() if last else 0.0
        return f"rate limit ({elapsed:.0f}s since last call, minimum {self.min_interval_seconds:.0f}s)"
