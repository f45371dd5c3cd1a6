# config.py
# Settings come from environment variables; every value has a default.
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from domain import OvertimePolicy

_TRUE = {"1", "true", "yes", "on"}


def _pick_data_dir(environ: Mapping[str, str]) -> Path:
    candidates = []
    env = environ.get("DATA_DIR")
    if env:
        candidates.append(Path(env))
    candidates += [Path("/data"), Path.cwd() / "data"]

    for p in candidates:
        try:
            p.mkdir(parents=True, exist_ok=True)
            t = p / ".rwtest"
            t.write_text("ok")
            t.unlink(missing_ok=True)
            return p
        except OSError:
            continue
    return Path.cwd()


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _bool(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "").strip().lower() in _TRUE


@dataclass
class Settings:
    database_url: str
    data_dir: Path
    policy: OvertimePolicy = field(default_factory=OvertimePolicy)
    log_json: bool = False
    verbose: bool = False


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    environ = os.environ if environ is None else environ
    data_dir = _pick_data_dir(environ)
    default_sqlite = f"sqlite:///{(data_dir / 'fieldhours.db').as_posix()}"
    policy = OvertimePolicy(
        daily_threshold=_float(environ, "DAILY_THRESHOLD_H", 8.0),
        first_tier_threshold=_float(environ, "FIRST_TIER_H", 1.0),
        first_tier_multiplier=_float(environ, "OT_TIER1_MULTIPLIER", 1.5),
        second_tier_multiplier=_float(environ, "OT_TIER2_MULTIPLIER", 2.0),
        rounding_minutes=_int(environ, "ROUNDING_MINUTES", 0),
    )
    return Settings(
        database_url=environ.get("DATABASE_URL") or default_sqlite,
        data_dir=data_dir,
        policy=policy,
        log_json=_bool(environ, "LOG_JSON"),
        verbose=_bool(environ, "LOG_VERBOSE"),
    )


__all__ = ["Settings", "load_settings"]
