# domain.py
from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Mapping


class JobStatus(str, Enum):
    SAVED = "saved"
    SUBMITTED = "submitted"
    APPROVED = "approved"


def normalize_distance(value: Any) -> float:
    """Non-numeric, non-finite and negative distances count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        km = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(km) or km < 0:
        return 0.0
    return km


@dataclass(frozen=True)
class OvertimePolicy:
    """Overtime rules: daily cap, then weekly tiering of the accumulated overtime."""
    daily_threshold: float = 8.0
    first_tier_threshold: float = 1.0
    first_tier_multiplier: float = 1.5
    second_tier_multiplier: float = 2.0
    rounding_minutes: int = 0  # 0 = exact minutes, 15 = quarter-hour

    def __post_init__(self) -> None:
        if self.daily_threshold < 0:
            raise ValueError(f"daily_threshold must be >= 0, got {self.daily_threshold}")
        if self.first_tier_threshold < 0:
            raise ValueError(f"first_tier_threshold must be >= 0, got {self.first_tier_threshold}")
        if self.first_tier_multiplier < 1 or self.second_tier_multiplier < 1:
            raise ValueError("overtime multipliers must be >= 1")
        if self.rounding_minutes < 0:
            raise ValueError(f"rounding_minutes must be >= 0, got {self.rounding_minutes}")


@dataclass
class JobRecord:
    """One logged unit of field work."""
    job_date: Any
    depart_time: Any = None
    end_time: Any = None
    arrival_time: Any = None
    distance_out: Any = None
    distance_return: Any = None
    work_order: str | None = None
    user_id: str | None = None
    status: JobStatus = JobStatus.SAVED
    locked: bool = False
    id: int | None = None

    # Column names used by the hosted backend rows.
    ALIASES = {
        "depart": "depart_time",
        "fin": "end_time",
        "arrivee": "arrival_time",
        "km_aller": "distance_out",
        "km_retour": "distance_return",
        "ot": "work_order",
    }

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "JobRecord":
        kwargs: dict[str, Any] = {}
        for key, value in row.items():
            name = cls.ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                kwargs[name] = value
        if "status" in kwargs:
            try:
                kwargs["status"] = JobStatus(kwargs["status"])
            except ValueError:
                kwargs["status"] = JobStatus.SAVED
        kwargs.setdefault("job_date", None)
        return cls(**kwargs)


@dataclass
class DailyTotal:
    """Totals for one calendar day. Hours are summed as whole minutes."""
    day: date
    total_minutes: int = 0
    total_distance: float = 0.0
    record_count: int = 0
    work_order_count: int = 0

    @property
    def total_hours(self) -> float:
        return self.total_minutes / 60.0

    @property
    def week_start(self) -> date:
        return self.day - timedelta(days=self.day.weekday())


@dataclass(frozen=True)
class WeekBucket:
    """Summary of one ISO week (Monday to Sunday)."""
    week_start: date
    week_end: date
    regular_hours: float
    overtime15_hours: float
    overtime20_hours: float
    total_hours: float
    total_distance: float
    record_count: int = 0
    days: tuple[date, ...] = field(default_factory=tuple)

    @property
    def overtime_hours(self) -> float:
        return self.overtime15_hours + self.overtime20_hours

    @property
    def iso_year_week(self) -> tuple[int, int]:
        """Returns (ISO year, ISO week number)."""
        iso = self.week_start.isocalendar()
        return (iso[0], iso[1])


__all__ = ["JobStatus", "normalize_distance", "OvertimePolicy", "JobRecord", "DailyTotal", "WeekBucket"]
