"""Recent commits, file diffs and working-tree status read from git."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_LOG_FORMAT = "--pretty=format:%H|%h|%s|%an|%ae|%aI"
_HUNK_RE = re.compile(r"^@@.+@@", re.MULTILINE)
_HUNK_LIMIT = 2000
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _parse_time(text: str) -> datetime:
    """Parse an RFC 3339 timestamp; unparseable input gives the zero time."""
    value = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return _ZERO_TIME
    if parsed.tzinfo is None:
        return _ZERO_TIME
    return parsed


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0) and text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def _git_output(repo_path: str, args: list[str]) -> str:
    completed = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        capture_output=True,
        encoding="utf-8",
        errors="replace",
        check=True,
    )
    return completed.stdout


@dataclass
class GitChange:
    """One commit with its line counts and touched files."""

    hash: str = ""
    short_hash: str = ""
    message: str = ""
    author: str = ""
    author_email: str = ""
    date: datetime = _ZERO_TIME
    files_changed: list[str] = field(default_factory=list)
    insertions: int = 0
    deletions: int = 0
    impact_level: str = ""
    related_feature: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "hash": self.hash,
            "short_hash": self.short_hash,
            "message": self.message,
            "author": self.author,
            "author_email": self.author_email,
            "date": _format_time(self.date),
            "files_changed": list(self.files_changed),
            "insertions": self.insertions,
            "deletions": self.deletions,
            "impact_level": self.impact_level,
        }
        if self.related_feature:
            data["related_feature"] = self.related_feature
        return data


@dataclass
class GitDiff:
    """The state of one file against a revision or the index."""

    path: str = ""
    old_path: str = ""
    status: str = ""
    insertions: int = 0
    deletions: int = 0
    hunks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path}
        if self.old_path:
            data["old_path"] = self.old_path
        data.update(
            status=self.status,
            insertions=self.insertions,
            deletions=self.deletions,
            hunks=list(self.hunks),
        )
        return data


def get_recent_changes(repo_path: str, since: str = "", limit: int = 0) -> list[GitChange]:
    """Return recent commits with numstat data, newest first."""
    if limit <= 0:
        limit = 20
    args = ["log", _LOG_FORMAT, "--numstat", "-n", str(limit)]
    if since:
        args.append("--since=" + since)
    return parse_git_log(_git_output(repo_path, args))


def get_recent_changes_for_path(repo_path: str, file_path: str, limit: int = 0) -> list[GitChange]:
    """Return recent commits touching one path."""
    if limit <= 0:
        limit = 10
    args = ["log", _LOG_FORMAT, "--numstat", "-n", str(limit), "--", file_path]
    return parse_git_log(_git_output(repo_path, args))


def get_file_diff(repo_path: str, file_path: str, compare_with: str = "") -> GitDiff:
    """Diff one file against a revision; a failing git call means unchanged."""
    if not compare_with:
        compare_with = "HEAD~1"
    try:
        output = _git_output(repo_path, ["diff", compare_with, "--", file_path])
    except (subprocess.CalledProcessError, OSError):
        return GitDiff(path=file_path, status="unchanged")
    return parse_diff(file_path, output)


def parse_diff(file_path: str, diff_text: str) -> GitDiff:
    """Count changed lines and cut a unified diff into hunks."""
    diff = GitDiff(path=file_path)
    if not diff_text:
        diff.status = "unchanged"
        return diff
    diff.status = "modified"

    for line in diff_text.split("\n"):
        if line.startswith("+") and not line.startswith("+++"):
            diff.insertions += 1
        elif line.startswith("-") and not line.startswith("---"):
            diff.deletions += 1

    starts = [match.start() for match in _HUNK_RE.finditer(diff_text)]
    ends = starts[1:] + [len(diff_text)]
    for start, end in zip(starts, ends):
        hunk = diff_text[start:end]
        if len(hunk) > _HUNK_LIMIT:
            hunk = hunk[:_HUNK_LIMIT] + "\n... (truncated)"
        diff.hunks.append(hunk)
    return diff


def get_uncommitted_changes(repo_path: str) -> list[GitDiff]:
    """List files changed in the working tree or index."""
    return parse_porcelain_status(_git_output(repo_path, ["status", "--porcelain"]))


def parse_porcelain_status(output: str) -> list[GitDiff]:
    """Turn `git status --porcelain` output into diff records."""
    diffs = []
    for line in output.split("\n"):
        if len(line) < 3:
            continue
        status = line[:2].strip()
        path = line[3:].strip()
        diff = GitDiff(path=path)
        if "A" in status:
            diff.status = "added"
        elif "M" in status:
            diff.status = "modified"
        elif "D" in status:
            diff.status = "deleted"
        elif "R" in status:
            diff.status = "renamed"
            parts = path.split(" -> ")
            if len(parts) == 2:
                diff.old_path, diff.path = parts
        elif "?" in status:
            diff.status = "untracked"
        else:
            diff.status = "unknown"
        diffs.append(diff)
    return diffs


def get_branch(repo_path: str) -> str:
    """Return the name of the checked-out branch."""
    return _git_output(repo_path, ["branch", "--show-current"]).strip()


def get_file_history(repo_path: str, file_path: str, limit: int = 0) -> list[GitChange]:
    """Return commits touching a file, following renames."""
    if limit <= 0:
        limit = 10
    args = ["log", "--follow", _LOG_FORMAT, "-n", str(limit), "--", file_path]
    return parse_git_log_simple(_git_output(repo_path, args))


def parse_git_log(output: str) -> list[GitChange]:
    """Parse log output made of header lines followed by numstat lines."""
    changes = []
    for block in split_commit_blocks(output):
        if not block.strip():
            continue
        header, *stat_lines = block.split("\n")
        parts = header.split("|")
        if len(parts) < 6:
            continue
        change = GitChange(
            hash=parts[0],
            short_hash=parts[1],
            message=parts[2],
            author=parts[3],
            author_email=parts[4],
            date=_parse_time(parts[5]),
        )
        for line in stat_lines:
            fields = line.split()
            if len(fields) >= 3:
                change.insertions += _to_int(fields[0])
                change.deletions += _to_int(fields[1])
                change.files_changed.append(fields[2])
        change.impact_level = estimate_impact(change)
        changes.append(change)
    return changes


def parse_git_log_simple(output: str) -> list[GitChange]:
    """Parse log output holding one header line per commit."""
    changes = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        parts = line.split("|")
        if len(parts) < 6:
            continue
        changes.append(
            GitChange(
                hash=parts[0],
                short_hash=parts[1],
                message=parts[2],
                author=parts[3],
                author_email=parts[4],
                date=_parse_time(parts[5]),
            )
        )
    return changes


def _is_commit_header(line: str) -> bool:
    return len(line) > 41 and line[40] == "|" and all(c in _HEX_DIGITS for c in line[:40])


def split_commit_blocks(output: str) -> list[str]:
    """Cut log output into blocks, each starting at a full commit hash."""
    blocks: list[str] = []
    current: list[str] = []
    for line in output.split("\n"):
        if _is_commit_header(line) and current:
            blocks.append("".join(current))
            current = []
        current.append(line + "\n")
    if current:
        blocks.append("".join(current))
    return blocks


def estimate_impact(change: GitChange) -> str:
    """Rate a commit low, medium or high by its size."""
    total = change.insertions + change.deletions
    file_count = len(change.files_changed)
    if total > 500 or file_count > 20:
        return "high"
    if total > 100 or file_count > 5:
        return "medium"
    return "low"