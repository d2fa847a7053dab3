"""
Intensity aggregation for regimen days.
"""

from typing import Any, Iterable

from coachshare.analysis.types import IntensityProfile

CANONICAL_INTENSITIES = ("easy", "medium", "hard", "rest")

# Tie-break order for every threshold check
PRIORITY = ("hard", "medium", "easy", "rest")

MAJORITY_THRESHOLD = 0.5
PLURALITY_THRESHOLD = 0.33

# Label counted for days that carry no intensity at all
UNSPECIFIED = "unspecified"

INTENSITY_COLORS = {
    "easy": "green",
    "medium": "yellow",
    "hard": "red",
    "rest": "blue",
}


def normalize_intensity(value: Any) -> str:
    if value is None:
        return UNSPECIFIED
    return str(value).strip().lower() or UNSPECIFIED


def _intensity_of(day: Any) -> Any:
    if isinstance(day, dict):
        return day.get("intensity")
    return getattr(day, "intensity", None)


def profile(days: Iterable[Any]) -> IntensityProfile:
    """
    Count days per canonical intensity.

    Labels are lowercased and trimmed first; anything that is not one of
    easy/medium/hard/rest is counted under its normalized label in
    ``custom``. Every input day is counted exactly once.
    """
    result = IntensityProfile()
    for day in days:
        label = normalize_intensity(_intensity_of(day))
        if label in CANONICAL_INTENSITIES:
            setattr(result, label, getattr(result, label) + 1)
        else:
            result.custom[label] = result.custom.get(label, 0) + 1
    return result


def profile_regimen(regimen: dict[str, Any]) -> IntensityProfile:
    days = regimen.get("days")
    return profile(days if isinstance(days, list) else [])


def overall_intensity(intensity_profile: IntensityProfile) -> str:
    """
    Single label summarizing a profile.

    A canonical intensity with at least half of all days wins, then the
    first reaching 33%, then the largest share. Ties follow hard, medium,
    easy, rest. "Unknown" for an empty profile; "Medium" when only custom
    labels are present.
    """
    total = intensity_profile.total
    if total == 0:
        return "Unknown"

    shares = {
        label: getattr(intensity_profile, label) / total for label in PRIORITY
    }

    for threshold in (MAJORITY_THRESHOLD, PLURALITY_THRESHOLD):
        for label in PRIORITY:
            if shares[label] >= threshold:
                return label.capitalize()

    top = max(shares.values())
    if top == 0:
        return "Medium"
    for label in PRIORITY:
        if shares[label] == top:
            return label.capitalize()
    return "Medium"


def intensity_color(label: str) -> str:
    """Display color for an intensity label (gray for custom labels)."""
    return INTENSITY_COLORS.get(normalize_intensity(label), "gray")
