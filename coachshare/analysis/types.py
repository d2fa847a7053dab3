"""
Derived-state types using Pydantic models.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from coachshare.analysis.dates import parse_day_date


class ScheduleBucket(str, Enum):
    """Time-relative schedule groups, in display order."""

    TODAY = "Today"
    TOMORROW = "Tomorrow"
    THIS_WEEK = "This Week"
    NEXT_WEEK = "Next Week"
    THIS_MONTH = "This Month"
    FUTURE = "Future"


class DayEntry(BaseModel):
    """A dated training day taken from a regimen."""

    date: datetime
    name: str = "Unnamed Workout"
    intensity: str | None = None
    exercises: list[Any] = Field(default_factory=list)
    regimen_id: str = ""
    regimen_name: str = "Unnamed Regimen"
    assigned_to: list[Any] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def to_local_date(cls, v: Any) -> Any:
        """ISO strings and aware datetimes become naive local datetimes."""
        parsed = parse_day_date(v)
        return parsed if parsed is not None else v


class IntensityProfile(BaseModel):
    """Day counts per canonical intensity, plus any custom labels."""

    easy: int = 0
    medium: int = 0
    hard: int = 0
    rest: int = 0
    custom: dict[str, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.easy + self.medium + self.hard + self.rest + sum(
            self.custom.values()
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "easy": self.easy,
            "medium": self.medium,
            "hard": self.hard,
            "rest": self.rest,
            "custom": dict(self.custom),
        }
