from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from dotenv import load_dotenv


ENV_PREFIX = "COMMIT_TIMESHEET_"

DEFAULT_MAX_HOURS_PER_DAY = 8.0
DEFAULT_MIN_COMMIT_TIME = 0.25
DEFAULT_GRADUATION = 0.25
DEFAULT_EQUAL_ROUND_PRECISION = 2
DEFAULT_LOCALE = "en"
DEFAULT_METHOD = "standard"
DEFAULT_DAYS = 30


class SettingsError(ValueError):
    pass


def normalize_datetime(dt: datetime) -> datetime:
    """Normalize a datetime to UTC; naive values are treated as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _env(name: str) -> Optional[str]:
    value = (os.getenv(ENV_PREFIX + name) or "").strip()
    return value or None


def env_flag(name: str) -> bool:
    return (_env(name) or "").lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = _env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise SettingsError(f"{ENV_PREFIX}{name} must be a number, got {value!r}")


def _env_int(name: str, default: int) -> int:
    value = _env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise SettingsError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}")


@dataclass
class Settings:
    """Estimation window and daily budget.

    The window is open on both ends: only commits strictly after
    ``start_time`` and strictly before ``end_time`` are estimated.
    """

    start_time: datetime
    end_time: datetime
    max_hours_per_day: float = DEFAULT_MAX_HOURS_PER_DAY
    min_commit_time: float = DEFAULT_MIN_COMMIT_TIME
    graduation: float = DEFAULT_GRADUATION
    equal_round_precision: int = DEFAULT_EQUAL_ROUND_PRECISION
    locale: str = DEFAULT_LOCALE
    method: str = DEFAULT_METHOD

    def __post_init__(self) -> None:
        self.start_time = normalize_datetime(self.start_time)
        self.end_time = normalize_datetime(self.end_time)
        self.validate()

    def validate(self) -> "Settings":
        if self.max_hours_per_day <= 0:
            raise SettingsError("max_hours_per_day must be greater than 0")
        if self.min_commit_time < 0:
            raise SettingsError("min_commit_time must not be negative")
        if self.graduation <= 0:
            raise SettingsError("graduation must be greater than 0")
        if isinstance(self.equal_round_precision, bool) or not isinstance(self.equal_round_precision, int):
            raise SettingsError("equal_round_precision must be an integer")
        if self.equal_round_precision < 0:
            raise SettingsError("equal_round_precision must not be negative")
        if self.start_time >= self.end_time:
            raise SettingsError(
                f"start_time ({self.start_time.isoformat()}) must be before end_time ({self.end_time.isoformat()})"
            )
        return self

    @classmethod
    def from_env(
        cls,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        *,
        dotenv: bool = True,
        **overrides: Any,
    ) -> "Settings":
        """Build settings from ``COMMIT_TIMESHEET_*`` variables (and ``.env``).

        When no start is given the window covers the last
        ``COMMIT_TIMESHEET_DAYS`` days before ``end_time``. Keyword
        ``overrides`` that are not ``None`` replace the environment value of
        the field they name, which is then not read at all.
        """
        if dotenv:
            load_dotenv()

        end = end_time or datetime.now(timezone.utc)
        if start_time is None:
            days = _env_int("DAYS", DEFAULT_DAYS)
            start = normalize_datetime(end) - timedelta(days=days)
        else:
            start = start_time

        unknown = set(overrides) - set(_ENV_FIELDS)
        if unknown:
            raise TypeError(f"Unknown settings field(s): {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {}
        for name, (read, default) in _ENV_FIELDS.items():
            if overrides.get(name) is not None:
                values[name] = overrides[name]
            else:
                values[name] = read(name.upper(), default)

        return cls(start_time=start, end_time=end, **values)


def _env_str(name: str, default: str) -> str:
    return _env(name) or default


# Field name -> (reader of COMMIT_TIMESHEET_<FIELD>, default)
_ENV_FIELDS: Dict[str, Tuple[Callable[[str, Any], Any], Any]] = {
    "max_hours_per_day": (_env_float, DEFAULT_MAX_HOURS_PER_DAY),
    "min_commit_time": (_env_float, DEFAULT_MIN_COMMIT_TIME),
    "graduation": (_env_float, DEFAULT_GRADUATION),
    "equal_round_precision": (_env_int, DEFAULT_EQUAL_ROUND_PRECISION),
    "locale": (_env_str, DEFAULT_LOCALE),
    "method": (_env_str, DEFAULT_METHOD),
}
