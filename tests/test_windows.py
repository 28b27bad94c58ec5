"""
Window calculator tests (pure date arithmetic).
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from trialops.services.scheduling.windows import (
    SchedulingWindow,
    creation_dates,
    get_rule,
    is_opd_day,
    opd_options,
    parse_visit_date,
    to_calendar_date,
    validation_window,
)

ANCHOR = date(2024, 1, 5)


class TestCreationDates:
    def test_screening_visit_is_due_two_weeks_after_creation(self):
        stamp = creation_dates(1, date(2024, 1, 2))
        assert stamp.scheduled_on == date(2024, 1, 2)
        assert stamp.due_date == date(2024, 1, 16)

    def test_visit_two_follows_screening_by_one_day(self):
        stamp = creation_dates(2, ANCHOR)
        assert stamp.scheduled_on - ANCHOR == timedelta(days=1)
        assert stamp.due_date - stamp.scheduled_on == timedelta(days=7)
        assert stamp == (date(2024, 1, 6), date(2024, 1, 13))

    @pytest.mark.parametrize("visit_number", [3, 4, 5])
    def test_monthly_visits(self, visit_number):
        stamp = creation_dates(visit_number, ANCHOR)
        assert stamp.scheduled_on - ANCHOR == timedelta(days=30)
        assert stamp.due_date - stamp.scheduled_on == timedelta(days=7)

    @pytest.mark.parametrize("visit_number", [6, 7, 8])
    def test_quarterly_visits(self, visit_number):
        stamp = creation_dates(visit_number, ANCHOR)
        assert stamp.scheduled_on - ANCHOR == timedelta(days=90)
        assert stamp.due_date - stamp.scheduled_on == timedelta(days=14)

    def test_datetime_anchor_is_reduced_to_its_utc_date(self):
        late_evening = datetime(2024, 1, 5, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
        stamp = creation_dates(2, late_evening)
        # 22:00 at UTC-5 is already 2024-01-06 in UTC
        assert stamp.scheduled_on == date(2024, 1, 7)

    @pytest.mark.parametrize("visit_number", [0, 9, -1])
    def test_out_of_range_visit_number(self, visit_number):
        with pytest.raises(ValueError):
            get_rule(visit_number)


class TestValidationWindow:
    def test_without_due_date_spans_two_weeks_from_creation(self):
        window = validation_window(5, datetime(2024, 3, 1, 8, 0), None)
        assert window == SchedulingWindow(date(2024, 3, 1), date(2024, 3, 15))

    def test_without_creation_date_falls_back_to_today(self):
        window = validation_window(2, None, None, today=date(2024, 4, 2))
        assert window.start == date(2024, 4, 2)
        assert window.end == date(2024, 4, 16)

    @pytest.mark.parametrize("visit_number", [1, 2])
    def test_first_two_visits_start_at_creation(self, visit_number):
        window = validation_window(visit_number, date(2024, 1, 2), date(2024, 2, 20))
        assert window == SchedulingWindow(date(2024, 1, 2), date(2024, 2, 20))

    @pytest.mark.parametrize("visit_number", [3, 4, 5])
    def test_monthly_visits_look_back_one_week(self, visit_number):
        window = validation_window(visit_number, date(2024, 1, 2), date(2024, 2, 9))
        assert window == SchedulingWindow(date(2024, 2, 2), date(2024, 2, 9))

    @pytest.mark.parametrize("visit_number", [6, 7, 8])
    def test_quarterly_visits_look_back_two_weeks(self, visit_number):
        window = validation_window(visit_number, date(2024, 1, 2), date(2024, 4, 30))
        assert window == SchedulingWindow(date(2024, 4, 16), date(2024, 4, 30))

    def test_look_back_never_starts_before_creation(self):
        window = validation_window(3, date(2024, 2, 5), date(2024, 2, 9))
        assert window.start == date(2024, 2, 5)

    def test_due_date_before_creation_gives_empty_window(self):
        window = validation_window(3, date(2024, 3, 1), date(2024, 2, 20))
        assert window.is_empty
        assert opd_options(window) == []

    def test_window_bounds_are_inclusive(self):
        window = SchedulingWindow(date(2024, 2, 2), date(2024, 2, 9))
        assert date(2024, 2, 2) in window
        assert date(2024, 2, 9) in window
        assert date(2024, 2, 1) not in window
        assert date(2024, 2, 10) not in window


class TestOpdDays:
    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2024, 1, 1), False),  # Monday
            (date(2024, 1, 2), True),  # Tuesday
            (date(2024, 1, 3), True),  # Wednesday
            (date(2024, 1, 4), False),  # Thursday
            (date(2024, 1, 5), True),  # Friday
            (date(2024, 1, 6), False),  # Saturday
            (date(2024, 1, 7), False),  # Sunday
        ],
    )
    def test_only_tuesday_wednesday_friday(self, day, expected):
        assert is_opd_day(day) is expected

    def test_weekday_is_taken_in_utc(self):
        # Monday 20:00 at UTC-5 is Tuesday in UTC
        assert is_opd_day(datetime(2024, 1, 1, 20, 0, tzinfo=timezone(timedelta(hours=-5))))

    def test_opd_options_lists_every_open_day_in_range(self):
        options = opd_options(SchedulingWindow(date(2024, 1, 1), date(2024, 1, 14)))
        assert options == [
            date(2024, 1, 2),
            date(2024, 1, 3),
            date(2024, 1, 5),
            date(2024, 1, 9),
            date(2024, 1, 10),
            date(2024, 1, 12),
        ]
        assert all(day.weekday() in (1, 2, 4) for day in options)


class TestParsing:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2024-01-05", date(2024, 1, 5)),
            (" 2024-01-05 ", date(2024, 1, 5)),
            ("2024-02-30", None),
            ("05/01/2024", None),
            ("2024-1-5", date(2024, 1, 5)),
            ("", None),
            (None, None),
            ("yesterday", None),
        ],
    )
    def test_parse_visit_date(self, raw, expected):
        assert parse_visit_date(raw) == expected

    def test_to_calendar_date_accepts_iso_strings(self):
        assert to_calendar_date("2024-01-05") == date(2024, 1, 5)
        assert to_calendar_date("2024-01-05T23:30:00-02:00") == date(2024, 1, 6)
        assert to_calendar_date("2024-01-05T10:00:00Z") == date(2024, 1, 5)
