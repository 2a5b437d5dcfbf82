#!/usr/bin/env python3
"""Unit tests for console reporting."""

import io
import unittest
from datetime import datetime, timezone

from rich.console import Console

from commit_timesheet.estimation.commits_parser import CalculationResult, Commit
from commit_timesheet.estimation.settings import Settings
from commit_timesheet.reporting.console_report import (
    FALLBACK_FORMAT,
    format_commit_date,
    report,
    report_daily_summary,
    resolve_locale_format,
)


def make_commit(hour=10, day=10, project="project", text="fix something", lines=10, time=1.0):
    date = datetime(2024, 1, day, hour, 5, tzinfo=timezone.utc)
    return Commit(
        fullhash="fb1eb3ead0e20fed1029bea0edd7626964df326b",
        hash="fb1eb3e",
        date=date,
        short_date=date.date().isoformat(),
        text=text,
        project=project,
        insertions=lines,
        lines=lines,
        time=time,
    )


def make_console():
    return Console(file=io.StringIO(), width=200, color_system=None)


class TestFormatCommitDate(unittest.TestCase):
    def setUp(self):
        self.date = datetime(2024, 1, 9, 14, 5)

    def test_english(self):
        self.assertEqual(format_commit_date(self.date, "en"), "01/09/2024 2:05 PM")

    def test_english_morning_and_midnight(self):
        self.assertEqual(format_commit_date(datetime(2024, 1, 9, 9, 30), "en"), "01/09/2024 9:30 AM")
        self.assertEqual(format_commit_date(datetime(2024, 1, 9, 0, 1), "en"), "01/09/2024 12:01 AM")

    def test_british_english(self):
        self.assertEqual(format_commit_date(self.date, "en-GB"), "09/01/2024 14:05")
        self.assertEqual(format_commit_date(self.date, "en_gb"), "09/01/2024 14:05")

    def test_german_and_polish(self):
        self.assertEqual(format_commit_date(self.date, "de"), "09.01.2024 14:05")
        self.assertEqual(format_commit_date(self.date, "pl"), "09.01.2024 14:05")

    def test_region_falls_back_to_language(self):
        self.assertEqual(format_commit_date(self.date, "de_AT"), "09.01.2024 14:05")

    def test_unknown_locale_uses_iso(self):
        self.assertEqual(resolve_locale_format("xx"), FALLBACK_FORMAT)
        self.assertEqual(format_commit_date(self.date, "xx"), "2024-01-09 14:05")
        self.assertEqual(format_commit_date(self.date, None), "2024-01-09 14:05")


class TestReport(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(
            datetime(2024, 1, 1, tzinfo=timezone.utc),
            datetime(2024, 2, 1, tzinfo=timezone.utc),
        )

    def test_one_line_per_commit_in_order(self):
        console = make_console()
        commits = [
            make_commit(hour=9, project="alpha", text="first"),
            make_commit(hour=11, project="beta", text="second"),
        ]
        report(commits, self.settings, console=console)

        lines = console.file.getvalue().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn("alpha", lines[0])
        self.assertIn("first", lines[0])
        self.assertIn("beta", lines[1])
        self.assertIn("second", lines[1])

    def test_commit_text_is_not_markup(self):
        console = make_console()
        report([make_commit(text="[bold]literal[/bold]")], self.settings, console=console)
        self.assertIn("[bold]literal[/bold]", console.file.getvalue())

    def test_long_message_stays_on_one_line_on_narrow_console(self):
        console = Console(file=io.StringIO(), width=40, color_system=None)
        text = "x" * 120
        report([make_commit(text=text), make_commit(hour=11, text="short")], self.settings, console=console)

        lines = console.file.getvalue().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].endswith(text))
        self.assertTrue(lines[1].endswith("short"))

    def test_empty_input_prints_nothing(self):
        console = make_console()
        report([], self.settings, console=console)
        self.assertEqual(console.file.getvalue(), "")


class TestDailySummary(unittest.TestCase):
    def test_rows_and_totals(self):
        commits = [
            make_commit(day=10, hour=9, lines=10, time=2.0),
            make_commit(day=10, hour=10, lines=30, time=6.0),
            make_commit(day=11, hour=9, lines=5, time=8.0),
        ]
        result = CalculationResult(commits=commits, commits_length_map={"2024-01-10": 2, "2024-01-11": 1})
        console = make_console()
        report_daily_summary(result, console=console)

        output = console.file.getvalue()
        self.assertIn("2024-01-10", output)
        self.assertIn("2024-01-11", output)
        self.assertIn("8.00", output)
        self.assertIn("Total", output)
        self.assertIn("16.00", output)


if __name__ == '__main__':
    unittest.main()
