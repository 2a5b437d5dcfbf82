"""
Commit parsing and work time estimation.

Turns raw per-repository commit blocks into dated commit records and spreads
a daily work budget over each day's commits, either in ``graduation`` sized
chunks (standard) or normalized so every day adds up to the budget (equal).
"""

from __future__ import annotations

import math
import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import PurePath
from typing import Callable, Dict, List, Sequence

from commit_timesheet.estimation.settings import Settings


class CommitTimesheetError(RuntimeError):
    pass


class NoCommitsFoundError(CommitTimesheetError):
    def __init__(self, message: str = "No commits found."):
        super().__init__(message)


DELETIONS_PATTERN = re.compile(r"([0-9]+) deletions?")
INSERTIONS_PATTERN = re.compile(r"([0-9]+) insertions?")


@dataclass
class RawRepositoryLog:
    """Commit blocks collected from one repository.

    Each block is ``"fullhash;shorthash;epoch;message"`` followed by an
    optional ``--shortstat`` line on the next line.
    """

    repository_path: str
    commit_blocks: List[str] = field(default_factory=list)


@dataclass
class Commit:
    fullhash: str
    hash: str
    date: datetime
    short_date: str
    text: str
    project: str
    insertions: int = 0
    deletions: int = 0
    lines: int = 0
    time: float = 0.0
    is_min_commit_time: bool = False


@dataclass
class CalculationResult:
    commits: List[Commit]
    commits_length_map: Dict[str, int]

    @property
    def total_time(self) -> float:
        return sum(commit.time for commit in self.commits)


TimeCalculationMethod = Callable[[float], float]


def _parse_int(value: str, default: int = 0) -> int:
    try:
        return int(value.strip())
    except (AttributeError, ValueError):
        return default


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _parse_commit_date(value: str) -> datetime:
    """UTC datetime for git's integer `%at`; anything unusable maps to the epoch."""
    seconds = _parse_int(value)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return EPOCH


def _match_count(pattern: re.Pattern, text: str) -> int:
    match = pattern.search(text or "")
    if not match:
        return 0
    return _parse_int(match.group(1))


def project_name(repository_path: str) -> str:
    """Repository folder name for a ``<worktree>/.git`` path.

    Bare repositories (``proj.git``) and plain directories use their own
    name, without the ``.git`` suffix.
    """
    parts = PurePath(repository_path).parts
    if not parts:
        return ""
    if parts[-1] == ".git":
        return parts[-2] if len(parts) >= 2 else ""
    name = parts[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def parse_commit_block(block: str, project: str) -> Commit:
    """Parse one commit block.

    Missing fields never fail the block: hashes and message default to ``""``
    and the epoch, insertions and deletions default to ``0``.
    """
    description, _, modifications = (block or "").partition("\n")
    fields = description.split(";", 3)
    fields += [""] * (4 - len(fields))
    fullhash, short_hash, epoch, text = fields

    date = _parse_commit_date(epoch)
    insertions = _match_count(INSERTIONS_PATTERN, modifications)
    deletions = _match_count(DELETIONS_PATTERN, modifications)

    return Commit(
        fullhash=fullhash.strip(),
        hash=short_hash.strip(),
        date=date,
        short_date=date.date().isoformat(),
        text=text.strip(),
        project=project,
        insertions=insertions,
        deletions=deletions,
        lines=insertions + deletions,
    )


def parse(raw_logs: Sequence[RawRepositoryLog], settings: Settings) -> List[Commit]:
    """
    Parse raw commit blocks into commits inside the settings window.

    Args:
        raw_logs: Collected logs, one per repository
        settings: Provides the open ``(start_time, end_time)`` window

    Returns:
        Commits sorted ascending by date (empty list when nothing matches)
    """
    commits: List[Commit] = []
    for raw_log in raw_logs:
        project = project_name(raw_log.repository_path)
        for block in raw_log.commit_blocks:
            commits.append(parse_commit_block(block, project))

    start = settings.start_time
    end = settings.end_time
    commits = [commit for commit in commits if start < commit.date < end]
    commits.sort(key=lambda commit: commit.date)
    return commits


def group_by_day(commits: Sequence[Commit]) -> Dict[str, List[Commit]]:
    buckets: Dict[str, List[Commit]] = defaultdict(list)
    for commit in commits:
        buckets[commit.short_date].append(commit)
    return dict(buckets)


def calculate(
    raw_logs: Sequence[RawRepositoryLog],
    settings: Settings,
    time_calculation_method: TimeCalculationMethod,
) -> CalculationResult:
    """
    Parse commits and assign each one a time from its share of the day.

    ``time_calculation_method`` receives the commit's ratio of lines changed
    within its day bucket (0 for a day without any changed lines).

    Raises:
        NoCommitsFoundError: No commit falls inside the window
    """
    commits = parse(raw_logs, settings)
    buckets = group_by_day(commits)
    commits_length_map: Dict[str, int] = {}

    for commit in commits:
        day_commits = buckets[commit.short_date]
        lines_in_day = sum(day_commit.lines for day_commit in day_commits)
        ratio = commit.lines / lines_in_day if lines_in_day else 0.0

        commit.time = time_calculation_method(ratio)

        if commit.short_date not in commits_length_map:
            commits_length_map[commit.short_date] = len(day_commits)

    if not commits:
        raise NoCommitsFoundError()

    print(f"Found {len(commits)} commit(s).")
    return CalculationResult(commits=commits, commits_length_map=commits_length_map)


def standard_time(ratio: float, settings: Settings) -> float:
    """Floor the proportional share to a multiple of ``graduation`` hours.

    A share that floors to zero gets ``min_commit_time`` instead.
    """
    steps = math.floor((ratio * settings.max_hours_per_day) / settings.graduation)
    return steps * settings.graduation or settings.min_commit_time


def standard_calculation(raw_logs: Sequence[RawRepositoryLog], settings: Settings) -> CalculationResult:
    return calculate(raw_logs, settings, lambda ratio: standard_time(ratio, settings))


def round_half_up(value: float, precision: int) -> float:
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def equal_calculation(raw_logs: Sequence[RawRepositoryLog], settings: Settings) -> CalculationResult:
    """
    Spread ``max_hours_per_day`` over each day so the day adds up to it.

    Commits whose share is below ``min_commit_time`` are pinned to it and the
    remaining budget is redistributed over the others in a single pass; a
    commit pushed below the minimum by that redistribution keeps its value.
    Times are rounded to ``equal_round_precision + 1`` digits, then to
    ``equal_round_precision`` digits.
    """
    max_hours = settings.max_hours_per_day
    min_time = settings.min_commit_time
    precision = settings.equal_round_precision

    result = calculate(raw_logs, settings, lambda ratio: ratio * max_hours)

    for day_commits in group_by_day(result.commits).values():
        min_commit_time_commits = 0
        for commit in day_commits:
            if commit.time < min_time:
                commit.time = min_time
                commit.is_min_commit_time = True
                min_commit_time_commits += 1

        # Pinned commits alone may exceed the budget; the rest then get nothing.
        remaining_hours = max(max_hours - min_commit_time_commits * min_time, 0.0)

        if min_commit_time_commits:
            for commit in day_commits:
                if not commit.is_min_commit_time:
                    commit.time = (commit.time / max_hours) * remaining_hours

        for commit in day_commits:
            commit.time = round_half_up(round_half_up(commit.time, precision + 1), precision)

    return result


CALCULATION_METHODS: Dict[str, Callable[[Sequence[RawRepositoryLog], Settings], CalculationResult]] = {
    "standard": standard_calculation,
    "equal": equal_calculation,
}
