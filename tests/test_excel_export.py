#!/usr/bin/env python3
"""Unit tests for the Excel export."""

import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from commit_timesheet.estimation.commits_parser import CalculationResult, Commit
from commit_timesheet.reporting.excel_export import (
    COMMIT_COLUMNS,
    build_daily_summary,
    build_project_summary,
    commits_to_frame,
    default_output_path,
    export_report,
)


def make_commit(day, hour, project, lines, time, short_hash="abc1234"):
    date = datetime(2024, 1, day, hour, 0, tzinfo=timezone.utc)
    return Commit(
        fullhash=short_hash * 5,
        hash=short_hash,
        date=date,
        short_date=date.date().isoformat(),
        text=f"work on {project}",
        project=project,
        insertions=lines,
        lines=lines,
        time=time,
    )


def make_result():
    commits = [
        make_commit(10, 9, "alpha", 10, 2.0, "aaaaaaa"),
        make_commit(10, 11, "beta", 30, 6.0, "bbbbbbb"),
        make_commit(11, 9, "alpha", 5, 8.0, "ccccccc"),
    ]
    return CalculationResult(commits=commits, commits_length_map={"2024-01-10": 2, "2024-01-11": 1})


class TestFrames(unittest.TestCase):
    def test_commits_to_frame(self):
        df = commits_to_frame(make_result().commits)
        self.assertEqual(list(df.columns), COMMIT_COLUMNS)
        self.assertEqual(len(df), 3)
        self.assertEqual(df['estimated_hours'].sum(), 16.0)
        self.assertIsNone(df['date'].iloc[0].tzinfo)

    def test_commits_to_frame_empty(self):
        df = commits_to_frame([])
        self.assertTrue(df.empty)
        self.assertEqual(list(df.columns), COMMIT_COLUMNS)

    def test_daily_summary(self):
        daily = build_daily_summary(make_result())
        self.assertEqual(list(daily['date']), ["2024-01-10", "2024-01-11"])
        self.assertEqual(list(daily['commits']), [2, 1])
        self.assertEqual(list(daily['lines']), [40, 5])
        self.assertEqual(list(daily['estimated_hours']), [8.0, 8.0])
        self.assertEqual(daily['projects'].iloc[0], "alpha, beta")

    def test_daily_summary_empty(self):
        daily = build_daily_summary(CalculationResult(commits=[], commits_length_map={}))
        self.assertTrue(daily.empty)

    def test_project_summary(self):
        summary = build_project_summary(make_result().commits)
        self.assertEqual(list(summary['project']), ["alpha", "beta"])
        alpha = summary[summary['project'] == "alpha"].iloc[0]
        self.assertEqual(alpha['commits'], 2)
        self.assertEqual(alpha['estimated_hours'], 10.0)
        self.assertEqual(alpha['active_days'], 2)


class TestExportReport(unittest.TestCase):
    def test_writes_expected_sheets(self):
        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "nested" / "timesheet.xlsx"
            written = export_report(make_result(), out)

            self.assertEqual(written, out)
            self.assertTrue(out.exists())
            self.assertEqual(
                set(pd.ExcelFile(out).sheet_names),
                {"Commits", "Daily Summary", "Project Summary"},
            )
            commits = pd.read_excel(out, sheet_name="Commits")
            self.assertEqual(len(commits), 3)
            daily = pd.read_excel(out, sheet_name="Daily Summary")
            self.assertEqual(daily['estimated_hours'].sum(), 16.0)


class TestDefaultOutputPath(unittest.TestCase):
    def test_timestamped_workbook_path(self):
        with tempfile.TemporaryDirectory() as td:
            path = default_output_path(td, now=datetime(2024, 1, 10, 9, 30, 5))
            self.assertTrue(path.is_absolute())
            self.assertEqual(path.name, "commit_timesheet.xlsx")
            self.assertEqual(path.parent.name, "20240110_093005")
            self.assertEqual(path.parent.parent, Path(td).resolve())
            # Only the export creates the run directory
            self.assertFalse(path.parent.exists())

    def test_export_creates_default_run_directory(self):
        with tempfile.TemporaryDirectory() as td:
            out = default_output_path(td, now=datetime(2024, 1, 10, 9, 30, 5))
            written = export_report(make_result(), out)
            self.assertEqual(written, out)
            self.assertTrue(out.exists())


if __name__ == '__main__':
    unittest.main()
