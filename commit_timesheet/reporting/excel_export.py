"""
Excel export of estimated commit times.

Writes a multi-sheet workbook: one row per commit, plus per-day and
per-project summaries.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd

from commit_timesheet.estimation.commits_parser import CalculationResult, Commit


REPORTS_DIR = "data_reports"
REPORT_FILENAME = "commit_timesheet.xlsx"

COMMIT_COLUMNS = [
    'date',
    'short_date',
    'project',
    'hash',
    'fullhash',
    'text',
    'insertions',
    'deletions',
    'lines',
    'estimated_hours',
    'is_min_commit_time',
]


def default_output_path(reports_dir: Union[str, Path] = REPORTS_DIR, now: Optional[datetime] = None) -> Path:
    """Workbook path for a run: ``<reports_dir>/<YYYYMMDD_HHMMSS>/commit_timesheet.xlsx``.

    Nothing is created; ``export_report`` makes the directory when it writes.
    """
    run_stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return (Path(reports_dir).expanduser() / run_stamp / REPORT_FILENAME).resolve()


def commits_to_frame(commits: Sequence[Commit]) -> pd.DataFrame:
    rows = []
    for commit in commits:
        rows.append({
            # Excel cannot store timezone-aware datetimes
            'date': commit.date.replace(tzinfo=None),
            'short_date': commit.short_date,
            'project': commit.project,
            'hash': commit.hash,
            'fullhash': commit.fullhash,
            'text': commit.text,
            'insertions': commit.insertions,
            'deletions': commit.deletions,
            'lines': commit.lines,
            'estimated_hours': commit.time,
            'is_min_commit_time': commit.is_min_commit_time,
        })
    return pd.DataFrame(rows, columns=COMMIT_COLUMNS)


def build_daily_summary(result: CalculationResult) -> pd.DataFrame:
    """Summarize commits, lines and estimated hours per day."""
    df = commits_to_frame(result.commits)
    if df.empty:
        return pd.DataFrame(columns=['date', 'commits', 'lines', 'estimated_hours', 'projects'])

    daily = df.groupby('short_date').agg({
        'lines': 'sum',
        'estimated_hours': 'sum',
        'project': lambda projects: ', '.join(sorted(set(projects))),
    }).reset_index()
    daily.rename(columns={'short_date': 'date', 'project': 'projects'}, inplace=True)
    daily['commits'] = daily['date'].map(result.commits_length_map).fillna(0).astype(int)
    daily = daily[['date', 'commits', 'lines', 'estimated_hours', 'projects']]
    return daily.sort_values('date', ascending=True).reset_index(drop=True)


def build_project_summary(commits: Sequence[Commit]) -> pd.DataFrame:
    df = commits_to_frame(commits)
    if df.empty:
        return pd.DataFrame(columns=['project', 'commits', 'lines', 'estimated_hours', 'active_days'])

    summary = df.groupby('project').agg({
        'hash': 'count',
        'lines': 'sum',
        'estimated_hours': 'sum',
        'short_date': 'nunique',
    }).reset_index()
    summary.rename(columns={'hash': 'commits', 'short_date': 'active_days'}, inplace=True)
    return summary.sort_values('estimated_hours', ascending=False).reset_index(drop=True)


def export_report(result: CalculationResult, output_file: Optional[Union[str, Path]] = None) -> Path:
    """
    Save the estimates to an Excel workbook.

    Args:
        result: Calculated commits
        output_file: Output path (defaults to data_reports/<timestamp>/commit_timesheet.xlsx)

    Returns:
        Path of the written workbook
    """
    output_path = Path(output_file) if output_file else default_output_path()
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
        commits_to_frame(result.commits).to_excel(writer, sheet_name='Commits', index=False)
        build_daily_summary(result).to_excel(writer, sheet_name='Daily Summary', index=False)
        build_project_summary(result.commits).to_excel(writer, sheet_name='Project Summary', index=False)

    print(f"Report generated successfully: {output_path}")
    return output_path
