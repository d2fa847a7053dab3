"""
Schedule bucketing for dated regimen days.

Buckets are evaluated in order and the first match wins, so every kept
day lands in exactly one bucket. "This Week" starts two days after the
ISO week start: those days are always today or tomorrow (or already past).
"""

from datetime import datetime, timedelta
from typing import Any, Iterable

from coachshare.analysis.dates import parse_day_date, to_naive_local
from coachshare.analysis.types import DayEntry, ScheduleBucket


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_iso_week(moment: datetime) -> datetime:
    """Monday 00:00 of the week containing ``moment``."""
    return start_of_day(moment) - timedelta(days=moment.weekday())


def start_of_next_month(moment: datetime) -> datetime:
    first = start_of_day(moment).replace(day=1)
    if first.month == 12:
        return first.replace(year=first.year + 1, month=1)
    return first.replace(month=first.month + 1)


def bucket_for(day: datetime, now: datetime) -> ScheduleBucket | None:
    """Bucket of a single date relative to ``now``; None when it is past."""
    day = to_naive_local(day)
    now = to_naive_local(now)
    today = start_of_day(now)
    tomorrow = today + timedelta(days=1)
    this_week = start_of_iso_week(now)
    next_week = this_week + timedelta(days=7)
    week_after_next = next_week + timedelta(days=7)

    if day < today:
        return None
    if day < tomorrow:
        return ScheduleBucket.TODAY
    if day < tomorrow + timedelta(days=1):
        return ScheduleBucket.TOMORROW
    if this_week + timedelta(days=2) <= day < next_week:
        return ScheduleBucket.THIS_WEEK
    if next_week <= day < week_after_next:
        return ScheduleBucket.NEXT_WEEK
    if week_after_next <= day < start_of_next_month(now):
        return ScheduleBucket.THIS_MONTH
    return ScheduleBucket.FUTURE


def bucketize(
    day_entries: Iterable[DayEntry],
    now: datetime,
) -> dict[ScheduleBucket, list[DayEntry]]:
    """
    Partition present and future days into schedule buckets.

    Returns all six buckets in display order, each sorted ascending by date.
    Days before the start of today are dropped.
    """
    groups: dict[ScheduleBucket, list[DayEntry]] = {
        bucket: [] for bucket in ScheduleBucket
    }
    for entry in day_entries:
        bucket = bucket_for(entry.date, now)
        if bucket is not None:
            groups[bucket].append(entry)

    for entries in groups.values():
        entries.sort(key=lambda e: e.date)
    return groups


def days_from_regimens(regimens: Iterable[dict[str, Any]]) -> list[DayEntry]:
    """Flatten regimen payloads into dated DayEntry items, oldest first."""
    days: list[DayEntry] = []
    for regimen in regimens:
        raw_days = regimen.get("days")
        if not isinstance(raw_days, list):
            continue

        regimen_id = str(regimen.get("_id") or regimen.get("id") or "")
        regimen_name = regimen.get("name") or "Unnamed Regimen"
        for day in raw_days:
            if not isinstance(day, dict):
                continue
            date = parse_day_date(day.get("date"))
            if date is None:
                continue
            days.append(
                DayEntry(
                    date=date,
                    name=day.get("name") or "Unnamed Workout",
                    intensity=day.get("intensity"),
                    exercises=day.get("exercises") or [],
                    regimen_id=regimen_id,
                    regimen_name=regimen_name,
                    assigned_to=regimen.get("assignedTo") or [],
                )
            )

    days.sort(key=lambda d: d.date)
    return days
