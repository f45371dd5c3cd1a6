# utils.py
import math
from datetime import date
from typing import Any, Iterable, Mapping

import pandas as pd

from domain import DailyTotal, WeekBucket


def format_hours_hm(hours: Any) -> str:
    """2.75 -> '2h45'. Anything non-numeric, non-finite or <= 0 renders as '0h00'."""
    try:
        value = float(hours)
    except (TypeError, ValueError):
        return "0h00"
    if not math.isfinite(value) or value <= 0:
        return "0h00"
    total_minutes = int(math.floor(value * 60 + 0.5))
    h, m = divmod(total_minutes, 60)
    return f"{h}h{m:02d}"


def weeks_to_dataframe(weeks: Iterable[WeekBucket]) -> pd.DataFrame:
    rows = []
    for w in weeks:
        year, week = w.iso_year_week
        rows.append({
            "ISO Week": f"{year}-W{week:02d}",
            "Start": w.week_start.isoformat(),
            "End": w.week_end.isoformat(),
            "Regular (h)": round(w.regular_hours, 2),
            "OT 1.5x (h)": round(w.overtime15_hours, 2),
            "OT 2.0x (h)": round(w.overtime20_hours, 2),
            "Total (h)": round(w.total_hours, 2),
            "1x": format_hours_hm(w.regular_hours),
            "1.5x": format_hours_hm(w.overtime15_hours),
            "2.0x": format_hours_hm(w.overtime20_hours),
            "Total": format_hours_hm(w.total_hours),
            "Distance (km)": round(w.total_distance, 2),
            "Jobs": w.record_count,
        })
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.sort_values(["Start"], ascending=False).reset_index(drop=True)
    return df


def days_to_dataframe(daily: Mapping[date, DailyTotal]) -> pd.DataFrame:
    rows = []
    for d in daily.values():
        rows.append({
            "Date": d.day.isoformat(),
            "Day": d.day.strftime("%A"),
            "Hours": round(d.total_hours, 2),
            "Hours (h:min)": format_hours_hm(d.total_hours),
            "Distance (km)": round(d.total_distance, 2),
            "Jobs": d.record_count,
            "Work orders": d.work_order_count,
        })
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.sort_values(["Date"], ascending=False).reset_index(drop=True)
    return df
