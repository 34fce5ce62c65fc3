from datetime import date

import pytest

from jira_staging.core.calendar import BusinessCalendar
from jira_staging.core.exceptions import InvalidInputError

# January 2024 starts on a Monday
MON, TUE, FRI, SAT, NEXT_MON = date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 5), date(2024, 1, 6), date(2024, 1, 8)


def test_business_days_between_is_half_open_and_symmetric():
    cal = BusinessCalendar()
    assert cal.business_days_between(TUE, NEXT_MON) == 4
    assert cal.business_days_between(NEXT_MON, TUE) == 4
    assert cal.business_days_between(FRI, NEXT_MON) == 1
    assert cal.business_days_between(TUE, TUE) == 0


def test_offsets_skip_weekends():
    cal = BusinessCalendar()
    assert cal.add_business_days(FRI, 1) == NEXT_MON
    assert cal.subtract_business_days(NEXT_MON, 1) == FRI
    assert cal.subtract_business_days(NEXT_MON, 4) == TUE


def test_offsets_from_weekend_count_first_business_day_as_one_step():
    cal = BusinessCalendar()
    assert cal.add_business_days(SAT, 1) == NEXT_MON
    assert cal.subtract_business_days(SAT, 1) == FRI


def test_zero_offset_returns_date_unchanged():
    cal = BusinessCalendar()
    assert cal.add_business_days(SAT, 0) == SAT
    assert cal.subtract_business_days(SAT, 0) == SAT


def test_negative_offsets_flip_direction():
    cal = BusinessCalendar()
    assert cal.add_business_days(NEXT_MON, -1) == FRI
    assert cal.subtract_business_days(FRI, -1) == NEXT_MON


def test_add_then_subtract_round_trips_business_days():
    cal = BusinessCalendar(holidays=["2024-01-03"])
    for start in (MON, TUE, FRI, NEXT_MON):
        for n in (0, 1, 3, 7, 20):
            assert cal.subtract_business_days(cal.add_business_days(start, n), n) == start


def test_holidays_are_not_business_days():
    cal = BusinessCalendar(holidays=["2024-01-03", date(2024, 1, 4)])
    assert not cal.is_business_day(date(2024, 1, 3))
    assert cal.business_days_between(TUE, NEXT_MON) == 2
    assert cal.add_business_days(TUE, 1) == FRI


def test_custom_weekmask():
    cal = BusinessCalendar(weekmask="1111110")
    assert cal.is_business_day(SAT)
    assert cal.business_days_between(FRI, NEXT_MON) == 2


def test_invalid_calendar_is_rejected():
    with pytest.raises(InvalidInputError):
        BusinessCalendar(weekmask="0000000")
    with pytest.raises(InvalidInputError):
        BusinessCalendar(holidays=["not a date"])
