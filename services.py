# services.py
from __future__ import annotations
import math
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import structlog

from domain import DailyTotal, JobRecord, OvertimePolicy, WeekBucket, normalize_distance
from timeparse import make_instant, parse_job_date

log = structlog.get_logger("fieldhours.services")


def _as_record(item: JobRecord | Mapping[str, Any]) -> JobRecord:
    if isinstance(item, JobRecord):
        return item
    return JobRecord.from_mapping(item)


def filter_records(
    records: Iterable[JobRecord | Mapping[str, Any]],
    start: date | None = None,
    end: date | None = None,
) -> List[JobRecord]:
    """Keeps records whose job date falls within [start, end]. Unparseable dates are dropped."""
    kept: List[JobRecord] = []
    for item in records:
        r = _as_record(item)
        d = parse_job_date(r.job_date)
        if d is None:
            continue
        if start is not None and d < start:
            continue
        if end is not None and d > end:
            continue
        kept.append(r)
    return kept


class WorkHoursCalculator:
    """Business rules for worked hours, daily overtime and weekly overtime tiers."""

    def __init__(self, policy: OvertimePolicy | None = None):
        self.policy = policy or OvertimePolicy()

    # ---- per record ----

    def record_minutes(self, record: JobRecord) -> int:
        """Whole minutes from depart to end; 0 when a time is missing or the range is inverted."""
        start = make_instant(record.job_date, record.depart_time)
        end = make_instant(record.job_date, record.end_time)
        if start is None or end is None:
            return 0
        minutes = int((end - start).total_seconds() // 60)
        if minutes <= 0:
            return 0
        step = self.policy.rounding_minutes
        if step:
            # half up
            minutes = int(math.floor(minutes / step + 0.5)) * step
        return minutes

    def record_hours(self, record: JobRecord) -> float:
        return self.record_minutes(record) / 60.0

    def record_distance(self, record: JobRecord) -> float:
        return normalize_distance(record.distance_out) + normalize_distance(record.distance_return)

    # ---- daily ----

    def daily_totals(self, records: Iterable[JobRecord | Mapping[str, Any]]) -> Dict[date, DailyTotal]:
        """
        Folds records into one DailyTotal per calendar date, newest day first.
        Records with an unparseable date are skipped and logged.
        """
        days: Dict[date, DailyTotal] = {}
        distances: Dict[date, List[float]] = {}
        for item in records:
            r = _as_record(item)
            d = parse_job_date(r.job_date)
            if d is None:
                log.warning("job_date_unparseable", job_id=r.id, job_date=repr(r.job_date))
                continue
            day = days.get(d)
            if day is None:
                day = days[d] = DailyTotal(day=d)
                distances[d] = []
            day.record_count += 1
            day.total_minutes += self.record_minutes(r)
            distances[d].append(self.record_distance(r))
            if r.work_order is not None and str(r.work_order).strip():
                day.work_order_count += 1
        for d, values in distances.items():
            # correctly rounded, independent of record order
            days[d].total_distance = math.fsum(values)
        return {d: days[d] for d in sorted(days, reverse=True)}

    # ---- overtime ----

    def split_daily(self, hours: float) -> Tuple[float, float]:
        """Returns (regular, overtime) for one day's total hours."""
        if not math.isfinite(hours) or hours <= 0:
            return 0.0, 0.0
        threshold = self.policy.daily_threshold
        return min(threshold, hours), max(0.0, hours - threshold)

    def tier_weekly(self, overtime_total: float) -> Tuple[float, float]:
        """Splits a week's accumulated daily overtime into (1st tier, 2nd tier)."""
        if not math.isfinite(overtime_total) or overtime_total <= 0:
            return 0.0, 0.0
        first = self.policy.first_tier_threshold
        return min(first, overtime_total), max(0.0, overtime_total - first)

    def weighted_hours(self, week: WeekBucket) -> float:
        """Hours weighted by their pay multiplier (regular counts 1x)."""
        p = self.policy
        return (
            week.regular_hours
            + week.overtime15_hours * p.first_tier_multiplier
            + week.overtime20_hours * p.second_tier_multiplier
        )

    def gross_pay(self, week: WeekBucket, hourly_rate: float) -> float:
        return round(self.weighted_hours(week) * hourly_rate, 2)

    # ---- weekly ----

    def weekly_summary(self, daily: Mapping[date, DailyTotal]) -> List[WeekBucket]:
        """
        Groups daily totals by ISO week (Monday start) and tiers each week's overtime.
        Returns one bucket per week that has records, newest week first.
        """
        by_week: Dict[date, List[DailyTotal]] = {}
        for day in daily.values():
            by_week.setdefault(day.week_start, []).append(day)

        weeks: List[WeekBucket] = []
        for week_start in sorted(by_week, reverse=True):
            # oldest first
            days = sorted(by_week[week_start], key=lambda x: x.day)
            regular = overtime = distance = 0.0
            count = 0
            for day in days:
                reg, ot = self.split_daily(day.total_hours)
                regular += reg
                overtime += ot
                distance += day.total_distance
                count += day.record_count
            ot15, ot20 = self.tier_weekly(overtime)
            weeks.append(WeekBucket(
                week_start=week_start,
                week_end=week_start + timedelta(days=6),
                regular_hours=regular,
                overtime15_hours=ot15,
                overtime20_hours=ot20,
                total_hours=regular + ot15 + ot20,
                total_distance=distance,
                record_count=count,
                days=tuple(d.day for d in reversed(days)),
            ))
        return weeks

    def weekly_summary_from_records(self, records: Iterable[JobRecord | Mapping[str, Any]]) -> List[WeekBucket]:
        return self.weekly_summary(self.daily_totals(records))

    def week_recap(self, daily: Mapping[date, DailyTotal], week_start: date) -> List[DailyTotal]:
        """Daily totals of the week starting at ``week_start`` (any day of it works), newest first."""
        monday = week_start - timedelta(days=week_start.weekday())
        return sorted(
            (d for d in daily.values() if d.week_start == monday),
            key=lambda x: x.day,
            reverse=True,
        )


__all__ = ["WorkHoursCalculator", "filter_records"]
