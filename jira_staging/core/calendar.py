"""Business-day arithmetic over a weekmask and holiday list (numpy busday API)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

import numpy as np
import pandas as pd

from .config import BUSINESS_WEEKMASK, DEFAULT_HOLIDAYS
from .exceptions import InvalidInputError


def _to_day(value) -> np.datetime64:
    return np.datetime64(value, "D")


class BusinessCalendar:
    """Count and offset business days.

    ``business_days_between`` counts business days in ``[start, end)`` and is
    symmetric in its arguments. Offsets step one business day at a time from
    the given date, so ``subtract_business_days(add_business_days(d, n), n)``
    returns ``d`` for any business day ``d``. A zero offset returns the date
    unchanged even when it falls on a weekend or holiday.
    """

    def __init__(self, weekmask: str = BUSINESS_WEEKMASK, holidays: Iterable = DEFAULT_HOLIDAYS):
        self.weekmask = weekmask
        try:
            self.holidays: tuple[date, ...] = tuple(
                sorted({pd.Timestamp(h).date() for h in holidays})
            )
            self._busdaycal = np.busdaycalendar(
                weekmask=weekmask,
                holidays=np.array(self.holidays, dtype="datetime64[D]"),
            )
        except ValueError as exc:
            raise InvalidInputError(f"bad business calendar ({exc})") from exc

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(weekmask={self.weekmask!r}, holidays={len(self.holidays)})"

    def is_business_day(self, day: date) -> bool:
        return bool(np.is_busday(_to_day(day), busdaycal=self._busdaycal))

    def business_days_between(self, start: date, end: date) -> int:
        lo, hi = sorted((start, end))
        return int(np.busday_count(_to_day(lo), _to_day(hi), busdaycal=self._busdaycal))

    def add_business_days(self, day: date, days: int) -> date:
        if days == 0:
            return day
        if days < 0:
            return self.subtract_business_days(day, -days)
        # Rolling back first makes a weekend start count its next business day as the first step
        shifted = np.busday_offset(_to_day(day), days, roll="backward", busdaycal=self._busdaycal)
        return shifted.astype(object)

    def subtract_business_days(self, day: date, days: int) -> date:
        if days == 0:
            return day
        if days < 0:
            return self.add_business_days(day, -days)
        shifted = np.busday_offset(_to_day(day), -days, roll="forward", busdaycal=self._busdaycal)
        return shifted.astype(object)


DEFAULT_CALENDAR = BusinessCalendar()
