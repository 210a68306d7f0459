"""
Scoring periods

A period is a half-open date range: start is included, end is not.
Presets match the ones offered on the leaderboard page.
"""

from datetime import date, datetime

from app.utils.timezone_utils import today_in_app_timezone

ALL_TIME_START = date(2000, 1, 1)

PRESETS = ("this_month", "last_month", "this_year", "all_time")


class Period:
    def __init__(self, start, end):
        if start >= end:
            raise ValueError(f"Period start {start} must be before end {end}")
        self.start = start
        self.end = end

    def __repr__(self):
        return f"<Period {self.start.isoformat()} to {self.end.isoformat()}>"

    def __eq__(self, other):
        if not isinstance(other, Period):
            return NotImplemented
        return (self.start, self.end) == (other.start, other.end)

    def __hash__(self):
        return hash((self.start, self.end))

    def contains(self, day):
        """Check if a date falls inside the period"""
        return self.start <= day < self.end

    def to_dict(self):
        return {"start_date": self.start.isoformat(), "end_date": self.end.isoformat()}


def _first_of_month(year, month):
    # month may run past 12 or below 1
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, 1)


def current_month(today=None):
    today = today or today_in_app_timezone()
    return Period(
        _first_of_month(today.year, today.month),
        _first_of_month(today.year, today.month + 1),
    )


def last_month(today=None):
    today = today or today_in_app_timezone()
    return Period(
        _first_of_month(today.year, today.month - 1),
        _first_of_month(today.year, today.month),
    )


def this_year(today=None):
    today = today or today_in_app_timezone()
    return Period(date(today.year, 1, 1), date(today.year + 1, 1, 1))


def all_time(today=None):
    """Everything from 2000 up to the end of next year"""
    today = today or today_in_app_timezone()
    return Period(ALL_TIME_START, date(today.year + 1, 12, 31))


_PRESET_BUILDERS = {
    "this_month": current_month,
    "last_month": last_month,
    "this_year": this_year,
    "all_time": all_time,
}


def period_from_preset(preset, today=None):
    """Build a period from a preset name"""
    builder = _PRESET_BUILDERS.get(preset)
    if builder is None:
        raise ValueError(
            f"Unknown period preset '{preset}' (expected one of: {', '.join(PRESETS)})"
        )
    return builder(today)


def parse_date(value):
    """Parse a YYYY-MM-DD string, passing dates through untouched"""
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def resolve_period(start=None, end=None, preset=None, today=None):
    """
    Resolve the period to score.

    Explicit start and end dates win, then a preset, and the current month
    is the fallback.
    """
    start = parse_date(start)
    end = parse_date(end)

    if start and end:
        return Period(start, end)

    if preset:
        return period_from_preset(preset, today)

    return current_month(today)
