"""
Timezone utility functions for the Kittens Scoreboard
"""

from datetime import datetime, timezone

import pytz
from flask import current_app, has_app_context


def get_app_timezone():
    """Get the application's configured timezone"""
    timezone_name = "UTC"
    if has_app_context():
        timezone_name = current_app.config.get("TIMEZONE", "UTC")
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback to UTC if timezone is invalid
        return pytz.UTC


def get_current_time():
    """Get current time in the application's timezone"""
    app_tz = get_app_timezone()
    return datetime.now(app_tz)


def get_utc_time():
    """Get current time in UTC"""
    return datetime.now(timezone.utc)


def today_in_app_timezone():
    """Today's date as seen by the group, not by the server"""
    return get_current_time().date()
