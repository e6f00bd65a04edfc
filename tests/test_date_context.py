from datetime import date, datetime

import pytest

from models.date_context import DateContext


def test_capture_from_datetime():
    ctx = DateContext.capture(datetime(2025, 3, 14, 23, 59))
    assert ctx.iso_date == "2025-03-14"
    assert ctx.day_of_week == "Friday"
    assert ctx.current_year == 2025
    assert ctx.previous_year == 2024


def test_capture_from_date_on_new_year():
    ctx = DateContext.capture(date(2026, 1, 1))
    assert ctx.previous_year == 2025
    assert ctx.day_of_week == "Thursday"


def test_inconsistent_years_rejected():
    with pytest.raises(ValueError):
        DateContext(iso_date="2025-03-14", day_of_week="Friday", current_year=2025, previous_year=2023)


def test_describe_mentions_both_years():
    text = DateContext.capture(date(2025, 3, 14)).describe()
    assert text == "Today is Friday, 2025-03-14. The current year is 2025; last year was 2024."
