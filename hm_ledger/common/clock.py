# hm_ledger/common/clock.py
from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock, timezone-aware when USE_TZ is on."""

    def now(self) -> datetime:
        return timezone.now()


class FixedClock:
    """
    Clock pinned to a single instant. Used by tests and by operators replaying
    a sweep for a given day.
    """

    def __init__(self, instant: datetime):
        if timezone.is_naive(instant) and settings.USE_TZ:
            instant = timezone.make_aware(instant)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance_to(self, instant: datetime) -> None:
        if timezone.is_naive(instant) and settings.USE_TZ:
            instant = timezone.make_aware(instant)
        self._instant = instant


def get_clock(clock: Clock | None = None) -> Clock:
    """
    Resolve the clock to use: an explicit one wins, otherwise the dotted path
    in settings.LEDGER_CLOCK is instantiated.
    """
    if clock is not None:
        return clock
    path = getattr(settings, "LEDGER_CLOCK", "hm_ledger.common.clock.SystemClock")
    return import_string(path)()


def local_date(clock: Clock) -> date:
    """Calendar date of clock.now() in the project timezone."""
    instant = clock.now()
    if timezone.is_aware(instant):
        instant = timezone.localtime(instant)
    return instant.date()
