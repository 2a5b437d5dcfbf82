"""Commit history based work time estimation.

Package layout:
- commit_timesheet.estimation: commit parsing and time calculation methods
- commit_timesheet.collection: git log collection from local repositories
- commit_timesheet.reporting: console output and Excel export
"""

__version__ = "0.1.0"

__all__ = [
    "estimation",
    "collection",
    "reporting",
]
