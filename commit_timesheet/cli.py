#!/usr/bin/env python3
"""
Commit Timesheet

Estimates time spent per day and per commit from the git history of one or
more local repositories.
"""

from __future__ import annotations

import argparse
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from commit_timesheet.collection.git_log import (
    collect_raw_logs,
    ensure_git_available,
    find_git_repositories,
)
from commit_timesheet.estimation.commits_parser import (
    CALCULATION_METHODS,
    CommitTimesheetError,
    NoCommitsFoundError,
)
from commit_timesheet.estimation.settings import Settings, SettingsError
from commit_timesheet.reporting.console_report import report, report_daily_summary
from commit_timesheet.reporting.excel_export import export_report


# Lower bound slack for git's committer-date --since filter.
GIT_SINCE_SLACK = timedelta(days=1)


def parse_date(value: str) -> datetime:
    try:
        return datetime.strptime(value, '%Y-%m-%d').replace(tzinfo=timezone.utc)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r} (expected YYYY-MM-DD)")


def split_names(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    names = [name.strip() for name in value.split(',') if name.strip()]
    return names or None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Estimate time spent per day and per commit from local git history.'
    )
    parser.add_argument(
        'paths',
        nargs='*',
        default=['.'],
        help='Repositories or directories to search for repositories (default: current directory)'
    )
    parser.add_argument('--start-date', type=parse_date, help='Start date, exclusive (YYYY-MM-DD)')
    parser.add_argument('--end-date', type=parse_date, help='End date, exclusive (YYYY-MM-DD, default: now)')
    parser.add_argument(
        '--method',
        choices=sorted(CALCULATION_METHODS),
        help='Time calculation method (default: standard)'
    )
    parser.add_argument('--max-hours-per-day', type=float, help='Hours of work assumed per day')
    parser.add_argument('--min-commit-time', type=float, help='Minimum hours assigned to a commit')
    parser.add_argument('--graduation', type=float, help='Hour granularity of the standard method')
    parser.add_argument('--equal-round-precision', type=int, help='Decimal digits kept by the equal method')
    parser.add_argument('--locale', help='Locale used for dates (e.g. en, en-gb, de, pl)')
    parser.add_argument('--author', help='Only count commits whose author matches this pattern')
    parser.add_argument(
        '--max-depth',
        type=int,
        default=5,
        help='Maximum directory depth to search for repositories (default: 5)'
    )
    parser.add_argument('--include-repos', help='Comma-separated list of repository names to include')
    parser.add_argument('--exclude-repos', help='Comma-separated list of repository names to exclude')
    parser.add_argument('--include-merges', action='store_true', help='Also count merge commits')
    parser.add_argument('--summary', action='store_true', help='Print a per-day summary table')
    parser.add_argument('--output', help='Write an Excel report to this path')
    parser.add_argument(
        '--xlsx',
        action='store_true',
        help='Write an Excel report under data_reports/<timestamp>/'
    )
    return parser


def build_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env(
        args.start_date,
        args.end_date,
        dotenv=False,
        max_hours_per_day=args.max_hours_per_day,
        min_commit_time=args.min_commit_time,
        graduation=args.graduation,
        equal_round_precision=args.equal_round_precision,
        locale=args.locale or None,
        method=args.method or None,
    )
    if settings.method not in CALCULATION_METHODS:
        raise SettingsError(
            f"Unknown method {settings.method!r} (expected one of: {', '.join(sorted(CALCULATION_METHODS))})"
        )
    return settings


def discover_repositories(
    paths: Sequence[str],
    max_depth: int,
    include_repos: Optional[List[str]] = None,
    exclude_repos: Optional[List[str]] = None,
) -> List[Path]:
    include_set = set(include_repos) if include_repos else None
    exclude_set = set(exclude_repos) if exclude_repos else None

    repos: List[Path] = []
    for path in paths:
        print(f"Scanning for git repositories in: {Path(path).expanduser().resolve()}")
        for repo in find_git_repositories(Path(path), max_depth):
            if repo in repos:
                continue
            if exclude_set and repo.name in exclude_set:
                print(f"Skipping excluded repository: {repo.name}")
                continue
            if include_set and repo.name not in include_set:
                continue
            repos.append(repo)

    print(f"Found {len(repos)} git repositories")
    return repos


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the commit-timesheet tool."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        settings = build_settings(args)
    except SettingsError as e:
        print(f"Error: {e}")
        return 1

    try:
        ensure_git_available()
    except CommitTimesheetError as e:
        print(f"Error: {e}")
        return 1

    print("=" * 60)
    print("Commit Timesheet")
    print("=" * 60)
    print(f"Start date: {settings.start_time.strftime('%Y-%m-%d %H:%M')} (UTC)")
    print(f"End date: {settings.end_time.strftime('%Y-%m-%d %H:%M')} (UTC)")
    print(f"Method: {settings.method}")
    print(f"Max hours per day: {settings.max_hours_per_day}")
    print(f"Min commit time: {settings.min_commit_time}")
    if settings.method == 'standard':
        print(f"Graduation: {settings.graduation}")
    else:
        print(f"Round precision: {settings.equal_round_precision}")
    if args.author:
        print(f"Author: {args.author}")
    print("=" * 60)
    print()

    repos = discover_repositories(
        args.paths,
        args.max_depth,
        split_names(args.include_repos),
        split_names(args.exclude_repos),
    )
    # git filters --since/--until on the committer date while commits are
    # dated by author date. Only a loose lower bound is passed; the parser
    # applies the exact window.
    raw_logs = collect_raw_logs(
        repos,
        settings.start_time - GIT_SINCE_SLACK,
        None,
        author=args.author,
        include_merges=args.include_merges,
    )

    print()
    try:
        result = CALCULATION_METHODS[settings.method](raw_logs, settings)
    except NoCommitsFoundError as e:
        print(str(e))
        return 0
    print()

    report(result.commits, settings)

    if args.summary:
        print()
        report_daily_summary(result)

    print()
    print(f"Total estimated hours: {result.total_time:.2f}")

    if args.output or args.xlsx:
        export_report(result, args.output)

    return 0


if __name__ == '__main__':
    raise SystemExit(main())
