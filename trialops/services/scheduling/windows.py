"""
Visit window calculator.

Pure date arithmetic for the 8-visit protocol:

- ``creation_dates`` stamps ``scheduled_on`` / ``due_date`` when a visit row is
  created, relative to the previous visit's ``visit_date`` (or today for the
  screening visit).
- ``validation_window`` gives the [start, end] range an operator may pick an
  OPD appointment from once the row exists.
- ``is_opd_day`` restricts appointments to Tuesday, Wednesday and Friday.

All values are calendar dates. Datetimes are normalized to their UTC date
before any comparison.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, NamedTuple, Optional, Union

FIRST_VISIT = 1
LAST_VISIT = 8

# date.weekday(): Monday == 0
OPD_WEEKDAYS = frozenset({1, 2, 4})  # Tue, Wed, Fri

# Window length used when a visit has no due date yet
DEFAULT_WINDOW_DAYS = 14


@dataclass(frozen=True)
class VisitRule:
    """Scheduling parameters for one protocol visit."""

    anchor_offset_days: int  # scheduled_on = anchor + offset
    due_offset_days: int  # due_date = scheduled_on + offset
    lookback_days: Optional[int]  # validation window start = due_date - lookback (None: from creation)


VISIT_RULES: Dict[int, VisitRule] = {
    1: VisitRule(anchor_offset_days=0, due_offset_days=14, lookback_days=None),
    2: VisitRule(anchor_offset_days=1, due_offset_days=7, lookback_days=None),
    3: VisitRule(anchor_offset_days=30, due_offset_days=7, lookback_days=7),
    4: VisitRule(anchor_offset_days=30, due_offset_days=7, lookback_days=7),
    5: VisitRule(anchor_offset_days=30, due_offset_days=7, lookback_days=7),
    6: VisitRule(anchor_offset_days=90, due_offset_days=14, lookback_days=14),
    7: VisitRule(anchor_offset_days=90, due_offset_days=14, lookback_days=14),
    8: VisitRule(anchor_offset_days=90, due_offset_days=14, lookback_days=14),
}


class ScheduleStamp(NamedTuple):
    scheduled_on: date
    due_date: date


class SchedulingWindow(NamedTuple):
    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end


def get_rule(visit_number: int) -> VisitRule:
    try:
        return VISIT_RULES[visit_number]
    except KeyError:
        raise ValueError(
            f"visit_number must be an integer between {FIRST_VISIT} and {LAST_VISIT}"
        ) from None


def to_calendar_date(value: Union[date, datetime, str]) -> date:
    """
    Normalize a date, datetime or ISO-8601 string to a calendar date.

    Aware datetimes are converted to UTC first; naive datetimes are assumed
    to already be UTC.
    """
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def today_utc() -> date:
    return utc_now().date()


def creation_dates(visit_number: int, anchor: Union[date, datetime]) -> ScheduleStamp:
    """
    Compute the ``scheduled_on`` / ``due_date`` pair stamped on a new visit.

    ``anchor`` is the previous visit's ``visit_date`` for visits 2-8 and the
    creation day for visit 1.
    """
    rule = get_rule(visit_number)
    scheduled_on = to_calendar_date(anchor) + timedelta(days=rule.anchor_offset_days)
    return ScheduleStamp(scheduled_on, scheduled_on + timedelta(days=rule.due_offset_days))


def validation_window(
    visit_number: int,
    created_at: Optional[Union[date, datetime]],
    due_date: Optional[Union[date, datetime]],
    today: Optional[date] = None,
) -> SchedulingWindow:
    """
    Window an operator may schedule an existing visit in.

    Anchored on the creation day (today when unknown). Without a due date
    the window is the following two weeks; otherwise it ends on the due date
    and, for visits 3-8, starts no earlier than the rule's look-back.
    """
    rule = get_rule(visit_number)
    anchor = to_calendar_date(created_at) if created_at is not None else (today or today_utc())

    if due_date is None:
        return SchedulingWindow(anchor, anchor + timedelta(days=DEFAULT_WINDOW_DAYS))

    end = to_calendar_date(due_date)
    start = anchor
    if rule.lookback_days is not None:
        start = max(anchor, end - timedelta(days=rule.lookback_days))
    return SchedulingWindow(start, end)


def is_opd_day(day: Union[date, datetime]) -> bool:
    return to_calendar_date(day).weekday() in OPD_WEEKDAYS


def opd_options(window: SchedulingWindow) -> List[date]:
    """All Tue/Wed/Fri dates inside the window, inclusive; empty for a degenerate window."""
    if window.is_empty:
        return []
    span = (window.end - window.start).days
    days = (window.start + timedelta(days=offset) for offset in range(span + 1))
    return [day for day in days if is_opd_day(day)]


def parse_visit_date(raw: Optional[str]) -> Optional[date]:
    """
    Parse an operator supplied ``YYYY-MM-DD`` override.

    Returns None for anything that is not a syntactically valid calendar date
    so callers can fall back to today.
    """
    if not raw or not isinstance(raw, str) or not raw.strip():
        return None
    parts = raw.strip().split("-")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        return None
    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError:
        return None
