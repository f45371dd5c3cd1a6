# app.py
# -----------------------------------------------
# Field hours: wiring between storage and the weekly hours engine.
# Requires: sqlmodel, pandas, structlog (psycopg2-binary for Postgres)
# -----------------------------------------------

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import List, Mapping

import pandas as pd
import structlog

from config import Settings, load_settings
from domain import DailyTotal, WeekBucket
from log_config import configure_logging
from repository import JobRecordRepository
from services import WorkHoursCalculator, filter_records
from utils import weeks_to_dataframe

log = structlog.get_logger("fieldhours.app")


@lru_cache(maxsize=None)
def get_repo(url: str) -> JobRecordRepository:
    return JobRecordRepository(url, echo=False)


@dataclass
class App:
    settings: Settings
    repo: JobRecordRepository
    calculator: WorkHoursCalculator

    def weekly_summary(self, user_id: str, start: date | None = None, end: date | None = None) -> List[WeekBucket]:
        records = self.repo.list_for_user(user_id)
        if start is not None or end is not None:
            records = filter_records(records, start=start, end=end)
        weeks = self.calculator.weekly_summary_from_records(records)
        log.debug("weekly_summary", user_id=user_id, records=len(records), weeks=len(weeks))
        return weeks

    def week_recap(self, user_id: str, week_start: date) -> List[DailyTotal]:
        daily = self.calculator.daily_totals(self.repo.list_for_user(user_id))
        return self.calculator.week_recap(daily, week_start)

    def weekly_dataframe(self, user_id: str) -> pd.DataFrame:
        return weeks_to_dataframe(self.weekly_summary(user_id))


def bootstrap(environ: Mapping[str, str] | None = None) -> App:
    env = os.environ if environ is None else environ
    settings = load_settings(env)
    configure_logging(verbose=settings.verbose, log_json=settings.log_json)
    # Hosted runtimes lose local files on redeploy
    if settings.database_url.startswith("sqlite") and ("RENDER" in env or "SPACE_ID" in env):
        log.warning("sqlite_on_hosted_runtime", database_url=settings.database_url)
    return App(
        settings=settings,
        repo=get_repo(settings.database_url),
        calculator=WorkHoursCalculator(settings.policy),
    )
