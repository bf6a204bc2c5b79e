"""Records for the one-pass git history report and the log parser feeding it."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from .history import FileCorrelation, KnowledgeRisk

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_NUMSTAT_RE = re.compile(r"^(\d+|-)\s+(\d+|-)\s+(.+)$")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _parse_time(text: str) -> datetime:
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


@dataclass
class ContributorInfo:
    """A contributor's totals across the whole repository."""

    name: str = ""
    email: str = ""
    commits: int = 0
    added: int = 0
    removed: int = 0
    active: bool = False
    active_in_repo: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "email": self.email,
            "commits": self.commits,
            "lines_added": self.added,
            "lines_removed": self.removed,
            "active": self.active,
        }
        if self.active_in_repo:
            data["active_in_repo"] = self.active_in_repo
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContributorInfo":
        return cls(
            name=data.get("name") or "",
            email=data.get("email") or "",
            commits=int(data.get("commits") or 0),
            added=int(data.get("lines_added") or 0),
            removed=int(data.get("lines_removed") or 0),
            active=bool(data.get("active", False)),
            active_in_repo=data.get("active_in_repo") or "",
        )


@dataclass
class FileActivity:
    """How many commits touched a file."""

    path: str = ""
    changes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "changes": self.changes}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileActivity":
        return cls(path=data.get("path") or "", changes=int(data.get("changes") or 0))


@dataclass
class ExpertEntry:
    """A contributor's share of the commits in one directory."""

    name: str = ""
    email: str = ""
    commits: int = 0
    ownership: float = 0.0
    active: bool = False
    active_in_repo: str = ""
    last_commit: datetime = _ZERO_TIME

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "email": self.email,
            "commits": self.commits,
            "ownership": self.ownership,
            "active": self.active,
        }
        if self.active_in_repo:
            data["active_in_repo"] = self.active_in_repo
        data["last_commit"] = _format_time(self.last_commit)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExpertEntry":
        last_commit = data.get("last_commit")
        return cls(
            name=data.get("name") or "",
            email=data.get("email") or "",
            commits=int(data.get("commits") or 0),
            ownership=float(data.get("ownership") or 0.0),
            active=bool(data.get("active", False)),
            active_in_repo=data.get("active_in_repo") or "",
            last_commit=_parse_time(last_commit) if last_commit else _ZERO_TIME,
        )


@dataclass
class DirectoryExpert:
    """A directory and the people who know it best."""

    directory: str = ""
    file_count: int = 0
    total_commits: int = 0
    top_experts: list[ExpertEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "directory": self.directory,
            "file_count": self.file_count,
            "total_commits": self.total_commits,
            "top_experts": [e.to_dict() for e in self.top_experts],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DirectoryExpert":
        return cls(
            directory=data.get("directory") or "",
            file_count=int(data.get("file_count") or 0),
            total_commits=int(data.get("total_commits") or 0),
            top_experts=[ExpertEntry.from_dict(e) for e in data.get("top_experts") or []],
        )


@dataclass
class GitSummary:
    """High-level statistics of a repository."""

    total_commits: int = 0
    contributors: list[ContributorInfo] = field(default_factory=list)
    first_commit_date: str = ""
    last_commit_date: str = ""
    active_branch: str = ""
    top_files: list[FileActivity] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_commits": self.total_commits,
            "contributors": [c.to_dict() for c in self.contributors],
            "first_commit_date": self.first_commit_date,
            "last_commit_date": self.last_commit_date,
            "active_branch": self.active_branch,
            "top_files": [f.to_dict() for f in self.top_files],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GitSummary":
        return cls(
            total_commits=int(data.get("total_commits") or 0),
            contributors=[ContributorInfo.from_dict(c) for c in data.get("contributors") or []],
            first_commit_date=data.get("first_commit_date") or "",
            last_commit_date=data.get("last_commit_date") or "",
            active_branch=data.get("active_branch") or "",
            top_files=[FileActivity.from_dict(f) for f in data.get("top_files") or []],
        )


@dataclass
class GitHistoryReport:
    """Everything computed from one pass over the git log."""

    summary: GitSummary = field(default_factory=GitSummary)
    experts: list[DirectoryExpert] = field(default_factory=list)
    risks: list[KnowledgeRisk] = field(default_factory=list)
    correlations: list[FileCorrelation] = field(default_factory=list)
    processed_at: datetime = _ZERO_TIME
    commit_count: int = 0
    contributors: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "experts": [e.to_dict() for e in self.experts],
            "risks": [r.to_dict() for r in self.risks],
            "correlations": [c.to_dict() for c in self.correlations],
            "processed_at": _format_time(self.processed_at),
            "commit_count": self.commit_count,
            "contributors": self.contributors,
        }


@dataclass
class ProcessedCommit:
    """A commit read by the report parser."""

    hash: str = ""
    author: str = ""
    author_email: str = ""
    date: datetime = _ZERO_TIME
    message: str = ""
    files_changed: list[str] = field(default_factory=list)
    insertions: int = 0
    deletions: int = 0


def _is_full_hash(text: str) -> bool:
    return len(text) == 40 and all(c in _HEX_DIGITS for c in text)


def parse_processor_log(output: str) -> list[ProcessedCommit]:
    """Parse `hash|short|author|email|date|subject` headers followed by numstat lines."""
    commits: list[ProcessedCommit] = []
    current: ProcessedCommit | None = None
    for raw in output.split("\n"):
        line = raw.strip()
        if not line:
            continue
        parts = line.split("|", 5)
        if len(parts) == 6 and _is_full_hash(parts[0]):
            if current is not None:
                commits.append(current)
            current = ProcessedCommit(
                hash=parts[0],
                author=parts[2],
                author_email=parts[3],
                date=_parse_time(parts[4]),
                message=parts[5],
            )
            continue
        if current is not None:
            match = _NUMSTAT_RE.match(line)
            if match:
                current.insertions += _to_int(match.group(1))
                current.deletions += _to_int(match.group(2))
                current.files_changed.append(match.group(3))
    if current is not None:
        commits.append(current)
    return commits