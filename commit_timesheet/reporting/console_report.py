from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from commit_timesheet.estimation.commits_parser import CalculationResult, Commit, group_by_day
from commit_timesheet.estimation.settings import Settings


# Short "date + time" layouts per locale.
LOCALE_FORMATS: Dict[str, str] = {
    "en": "{month:02d}/{day:02d}/{year} {hour12}:{minute:02d} {ampm}",
    "en-gb": "{day:02d}/{month:02d}/{year} {hour:02d}:{minute:02d}",
    "de": "{day:02d}.{month:02d}.{year} {hour:02d}:{minute:02d}",
    "fr": "{day:02d}/{month:02d}/{year} {hour:02d}:{minute:02d}",
    "pl": "{day:02d}.{month:02d}.{year} {hour:02d}:{minute:02d}",
    "es": "{day:02d}/{month:02d}/{year} {hour}:{minute:02d}",
    "it": "{day:02d}/{month:02d}/{year} {hour:02d}:{minute:02d}",
    "nl": "{day:02d}-{month:02d}-{year} {hour:02d}:{minute:02d}",
    "ru": "{day:02d}.{month:02d}.{year} {hour}:{minute:02d}",
    "ja": "{year}/{month:02d}/{day:02d} {hour:02d}:{minute:02d}",
    "zh-cn": "{year}/{month:02d}/{day:02d} {hour:02d}:{minute:02d}",
}
FALLBACK_FORMAT = "{year}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}"

_console = Console()


def resolve_locale_format(locale: Optional[str]) -> str:
    """Pick a layout for ``locale``; ``de_AT``/``de-AT`` fall back to ``de``."""
    key = (locale or "").strip().lower().replace("_", "-")
    if key in LOCALE_FORMATS:
        return LOCALE_FORMATS[key]
    language = key.split("-", 1)[0]
    return LOCALE_FORMATS.get(language, FALLBACK_FORMAT)


def format_commit_date(date: datetime, locale: Optional[str]) -> str:
    hour12 = date.hour % 12 or 12
    return resolve_locale_format(locale).format(
        year=date.year,
        month=date.month,
        day=date.day,
        hour=date.hour,
        hour12=hour12,
        minute=date.minute,
        ampm="AM" if date.hour < 12 else "PM",
    )


def commit_line(commit: Commit, locale: Optional[str]) -> Text:
    line = Text()
    line.append(format_commit_date(commit.date.astimezone(), locale), style="grey50")
    line.append(" ")
    line.append(commit.project, style="cyan")
    line.append(" ")
    line.append(commit.text, style="white")
    return line


def report(commits: Sequence[Commit], settings: Settings, console: Optional[Console] = None) -> None:
    """Print one line per commit: local date/time, project and message."""
    console = console or _console
    for commit in commits:
        console.print(commit_line(commit, settings.locale), highlight=False, soft_wrap=True)


def report_daily_summary(result: CalculationResult, console: Optional[Console] = None) -> None:
    console = console or _console

    table = Table(title="Estimated time per day")
    table.add_column("Date", style="green")
    table.add_column("Commits", justify="right", style="yellow")
    table.add_column("Lines", justify="right")
    table.add_column("Hours", justify="right", style="cyan")

    total_lines = 0
    total_hours = 0.0
    for short_date, day_commits in group_by_day(result.commits).items():
        lines = sum(commit.lines for commit in day_commits)
        hours = sum(commit.time for commit in day_commits)
        total_lines += lines
        total_hours += hours
        table.add_row(
            short_date,
            str(result.commits_length_map.get(short_date, len(day_commits))),
            str(lines),
            f"{hours:.2f}",
        )

    table.add_section()
    table.add_row("Total", str(len(result.commits)), str(total_lines), f"{total_hours:.2f}")
    console.print(table)
