from __future__ import annotations

import os
import shutil
import subprocess
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from commit_timesheet.estimation.commits_parser import CommitTimesheetError, RawRepositoryLog
from commit_timesheet.estimation.settings import env_flag


RECORD_SEPARATOR = "\x1e"
LOG_FORMAT = "--pretty=format:%x1e%H;%h;%at;%s"


class GitNotFound(CommitTimesheetError):
    pass


class GitCommandError(CommitTimesheetError):
    pass


def _git_timeout_seconds() -> Optional[float]:
    value = (os.getenv("COMMIT_TIMESHEET_GIT_TIMEOUT_SECONDS") or "").strip()
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    if seconds <= 0:
        return None
    return seconds


def ensure_git_available() -> str:
    git = shutil.which("git")
    if not git:
        raise GitNotFound("There is no git installed (git not found in PATH).")
    version = run_git(["--version"])
    if "git version" not in version:
        raise GitNotFound(f"Unexpected `git --version` output: {version!r}")
    return git


def run_git(args: List[str], *, cwd: Optional[Path] = None) -> str:
    git = shutil.which("git")
    if not git:
        raise GitNotFound("There is no git installed (git not found in PATH).")
    cmd = [git] + args

    timeout = _git_timeout_seconds()
    verbose = env_flag("VERBOSE") or env_flag("DEBUG")

    if verbose:
        pretty = " ".join(cmd)
        if timeout:
            print(f"[git] -> {pretty} (cwd={cwd}, timeout={timeout}s)")
        else:
            print(f"[git] -> {pretty} (cwd={cwd})")
        start = time.perf_counter()

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise GitCommandError(
            f"Timed out while running git command: {' '.join(cmd)}. "
            "Tip: increase the timeout via COMMIT_TIMESHEET_GIT_TIMEOUT_SECONDS."
        )

    if verbose:
        elapsed = time.perf_counter() - start
        print(f"[git] <- exit={proc.returncode} ({elapsed:.2f}s)")
    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        stdout = (proc.stdout or "").strip()
        raise GitCommandError(stderr or stdout or f"git exited with code {proc.returncode}")
    return (proc.stdout or "").strip()


def is_bare_git_repo(path: Path) -> bool:
    return (
        (path / "HEAD").is_file()
        and (path / "objects").is_dir()
        and ((path / "refs").is_dir() or (path / "packed-refs").is_file())
        and (path / "config").is_file()
    )


def is_git_repo(path: Path) -> bool:
    return (path / ".git").exists() or is_bare_git_repo(path)


def find_git_repositories(base_path: Path, max_depth: int = 5) -> List[Path]:
    """
    Find all git repositories under the base path.

    Args:
        base_path: Directory to search (returned as is when it is a repository)
        max_depth: Maximum directory depth to search

    Returns:
        List of working tree or bare repository paths
    """
    repos: List[Path] = []
    base_path = Path(base_path).expanduser().resolve()

    def search_dir(path: Path, depth: int) -> None:
        if depth > max_depth:
            return
        try:
            if is_git_repo(path):
                repos.append(path)
                return  # Don't search inside git repos

            if path.is_dir():
                for item in sorted(path.iterdir()):
                    if item.is_dir() and not item.name.startswith('.'):
                        search_dir(item, depth + 1)
        except (PermissionError, OSError):
            pass  # Skip directories we can't access

    search_dir(base_path, 0)
    return repos


def git_dir_for(repo_path: Path) -> Path:
    git_dir = repo_path / ".git"
    if git_dir.exists():
        return git_dir
    return repo_path


def split_log_output(output: str) -> List[str]:
    """Split ``%x1e`` separated ``git log --shortstat`` output into commit blocks.

    Each block keeps the description on its first line and the stats (if
    any) on the second.
    """
    blocks: List[str] = []
    for record in output.split(RECORD_SEPARATOR):
        lines = [line.strip() for line in record.splitlines() if line.strip()]
        if not lines:
            continue
        description = lines[0]
        stats = " ".join(lines[1:])
        blocks.append(f"{description}\n{stats}" if stats else description)
    return blocks


def collect_repository_log(
    repo_path: Path,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    author: Optional[str] = None,
    include_merges: bool = False,
) -> RawRepositoryLog:
    """Run ``git log`` for one repository and wrap its commit blocks."""
    repo_path = Path(repo_path)
    args = ["log", "--all", LOG_FORMAT, "--shortstat"]
    if not include_merges:
        args.append("--no-merges")
    if start_date:
        args.append(f"--since={start_date.isoformat()}")
    if end_date:
        args.append(f"--until={end_date.isoformat()}")
    if author:
        args.append(f"--author={author}")

    output = run_git(args, cwd=repo_path)
    return RawRepositoryLog(
        repository_path=str(git_dir_for(repo_path)),
        commit_blocks=split_log_output(output),
    )


def collect_raw_logs(
    repositories: Iterable[Path],
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    author: Optional[str] = None,
    include_merges: bool = False,
) -> List[RawRepositoryLog]:
    repositories = list(repositories)
    raw_logs: List[RawRepositoryLog] = []

    for idx, repo in enumerate(repositories, 1):
        print(f"[{idx}/{len(repositories)}] Reading git log: {repo.name}")
        try:
            raw_log = collect_repository_log(repo, start_date, end_date, author, include_merges)
        except GitCommandError as e:
            print(f"Warning: Error reading git log from {repo.name}: {e}")
            continue
        raw_logs.append(raw_log)

    return raw_logs
