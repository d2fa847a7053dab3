"""
Date parsing for API day payloads.

Every date used for bucketing is a naive local datetime.
"""

import re
from datetime import datetime
from typing import Any

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_naive_local(moment: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def parse_day_date(value: Any) -> datetime | None:
    """
    Parse an API date into a naive local datetime.

    Accepts datetimes, ISO-8601 strings (a trailing ``Z`` included) and bare
    ``YYYY-MM-DD`` dates. Returns None for anything unparseable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            if _DATE_ONLY.match(text):
                parsed = datetime.strptime(text, "%Y-%m-%d")
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    return to_naive_local(parsed)
