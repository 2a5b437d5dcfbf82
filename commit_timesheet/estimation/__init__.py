"""Commit parsing and per-commit work time estimation."""

from commit_timesheet.estimation.commits_parser import (
    CALCULATION_METHODS,
    CalculationResult,
    Commit,
    CommitTimesheetError,
    NoCommitsFoundError,
    RawRepositoryLog,
    calculate,
    equal_calculation,
    parse,
    standard_calculation,
)
from commit_timesheet.estimation.settings import Settings, SettingsError

__all__ = [
    "CALCULATION_METHODS",
    "CalculationResult",
    "Commit",
    "CommitTimesheetError",
    "NoCommitsFoundError",
    "RawRepositoryLog",
    "Settings",
    "SettingsError",
    "calculate",
    "equal_calculation",
    "parse",
    "standard_calculation",
]
