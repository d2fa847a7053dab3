"""
Derived-state aggregators for schedule and intensity views.
"""

from coachshare.analysis.types import DayEntry, IntensityProfile, ScheduleBucket
from coachshare.analysis.dates import parse_day_date, to_naive_local
from coachshare.analysis.schedule import bucket_for, bucketize, days_from_regimens
from coachshare.analysis.intensity import (
    CANONICAL_INTENSITIES,
    intensity_color,
    normalize_intensity,
    overall_intensity,
    profile,
    profile_regimen,
)

__all__ = [
    # Types
    "DayEntry",
    "IntensityProfile",
    "ScheduleBucket",
    # Schedule
    "bucket_for",
    "bucketize",
    "days_from_regimens",
    "parse_day_date",
    "to_naive_local",
    # Intensity
    "CANONICAL_INTENSITIES",
    "intensity_color",
    "normalize_intensity",
    "overall_intensity",
    "profile",
    "profile_regimen",
]
