"""Records and parsers for mining ownership and context from git history."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_NUMSTAT_RE = re.compile(r"^(\d+|-)\s+(\d+|-)\s+(.+)$")


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


def _months_ago(now: datetime, months: int) -> datetime:
    """Step back whole months, letting overflowing days roll forward."""
    total = now.year * 12 + (now.month - 1) - months
    year, month_index = divmod(total, 12)
    first = now.replace(year=year, month=month_index + 1, day=1)
    return first + timedelta(days=now.day - 1)


@dataclass
class CommitInfo:
    """A parsed git commit."""

    hash: str = ""
    short_hash: str = ""
    author: str = ""
    author_email: str = ""
    date: datetime = _ZERO_TIME
    message: str = ""
    files_changed: list[str] = field(default_factory=list)
    insertions: int = 0
    deletions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "short_hash": self.short_hash,
            "author": self.author,
            "author_email": self.author_email,
            "date": _format_time(self.date),
            "message": self.message,
            "files_changed": list(self.files_changed),
            "insertions": self.insertions,
            "deletions": self.deletions,
        }


@dataclass
class ContributorStat:
    """One person's involvement with a file."""

    name: str = ""
    email: str = ""
    commits: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    first_commit: datetime = _ZERO_TIME
    last_commit: datetime = _ZERO_TIME
    ownership: float = 0.0
    is_active: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "commits": self.commits,
            "lines_added": self.lines_added,
            "lines_removed": self.lines_removed,
            "first_commit": _format_time(self.first_commit),
            "last_commit": _format_time(self.last_commit),
            "ownership": self.ownership,
            "is_active": self.is_active,
        }


@dataclass
class FileExpertise:
    """Who knows a file best, and how often it changes."""

    file: str = ""
    total_commits: int = 0
    total_lines: int = 0
    contributors: list[ContributorStat] = field(default_factory=list)
    last_modified: datetime = _ZERO_TIME
    last_modified_by: str = ""
    churn_rate: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "total_commits": self.total_commits,
            "total_lines": self.total_lines,
            "contributors": [c.to_dict() for c in self.contributors],
            "last_modified": _format_time(self.last_modified),
            "last_modified_by": self.last_modified_by,
            "churn_rate": self.churn_rate,
        }


@dataclass
class Expert:
    """A person with expertise across a set of files."""

    name: str = ""
    email: str = ""
    score: float = 0.0
    commits: int = 0
    files_touched: int = 0
    is_active: bool = False
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "score": self.score,
            "commits": self.commits,
            "files_touched": self.files_touched,
            "is_active": self.is_active,
            "reasons": list(self.reasons),
        }


@dataclass
class KnowledgeRisk:
    """An area whose knowledge is concentrated in too few people."""

    area: str = ""
    risk_level: str = ""
    reason: str = ""
    files: list[str] = field(default_factory=list)
    primary_expert: str = ""
    expert_is_active: bool = False
    last_activity: str = ""
    mitigation: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "area": self.area,
            "risk_level": self.risk_level,
            "reason": self.reason,
            "files": list(self.files),
        }
        if self.primary_expert:
            data["primary_expert"] = self.primary_expert
        data.update(
            expert_is_active=self.expert_is_active,
            last_activity=self.last_activity,
            mitigation=self.mitigation,
        )
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KnowledgeRisk":
        return cls(
            area=data.get("area") or "",
            risk_level=data.get("risk_level") or "",
            reason=data.get("reason") or "",
            files=list(data.get("files") or []),
            primary_expert=data.get("primary_expert") or "",
            expert_is_active=bool(data.get("expert_is_active", False)),
            last_activity=data.get("last_activity") or "",
            mitigation=data.get("mitigation") or "",
        )


@dataclass
class FileCorrelation:
    """Two files that tend to change in the same commits."""

    file1: str = ""
    file2: str = ""
    co_changes: int = 0
    correlation: float = 0.0
    confidence: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "file1": self.file1,
            "file2": self.file2,
            "co_changes": self.co_changes,
            "correlation": self.correlation,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileCorrelation":
        return cls(
            file1=data.get("file1") or "",
            file2=data.get("file2") or "",
            co_changes=int(data.get("co_changes") or 0),
            correlation=float(data.get("correlation") or 0.0),
            confidence=data.get("confidence") or "",
        )


@dataclass
class CommitContext:
    """The commits that explain why some code exists."""

    file: str = ""
    lines: list[int] = field(default_factory=list)
    commits: list[CommitInfo] = field(default_factory=list)
    summary: str = ""
    contributors: list[str] = field(default_factory=list)
    time_span: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"file": self.file}
        if self.lines:
            data["lines"] = list(self.lines)
        data.update(
            commits=[c.to_dict() for c in self.commits],
            summary=self.summary,
            contributors=list(self.contributors),
            time_span=self.time_span,
        )
        return data


def parse_commit_log(output: str) -> list[CommitInfo]:
    """Parse `hash|short|author|email|date|subject` headers with numstat lines."""
    commits: list[CommitInfo] = []
    current: CommitInfo | None = None
    for raw in output.split("\n"):
        line = raw.strip()
        if not line:
            continue
        parts = line.split("|")
        if len(parts) == 6:
            if current is not None:
                commits.append(current)
            current = CommitInfo(
                hash=parts[0],
                short_hash=parts[1],
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


def build_file_expertise(file_path: str, output: str, now: datetime | None = None) -> FileExpertise:
    """Build per-contributor stats from `hash|author|email|date` log output with numstat."""
    if now is None:
        now = datetime.now(timezone.utc)
    expertise = FileExpertise(file=file_path)
    contributors: dict[str, ContributorStat] = {}
    current_email = ""

    for raw in output.split("\n"):
        line = raw.strip()
        if not line:
            continue
        parts = line.split("|")
        if len(parts) == 4:
            author, current_email = parts[1], parts[2]
            date = _parse_time(parts[3])
            stat = contributors.setdefault(
                current_email,
                ContributorStat(name=author, email=current_email, first_commit=date, last_commit=date),
            )
            stat.commits += 1
            stat.last_commit = max(stat.last_commit, date)
            stat.first_commit = min(stat.first_commit, date)
            expertise.total_commits += 1
            if date > expertise.last_modified:
                expertise.last_modified = date
                expertise.last_modified_by = author
            continue

        match = _NUMSTAT_RE.match(line)
        if match:
            additions = _to_int(match.group(1))
            stat = contributors.get(current_email)
            if stat is not None:
                stat.lines_added += additions
                stat.lines_removed += _to_int(match.group(2))
            expertise.total_lines += additions

    three_months_ago = _months_ago(now, 3)
    for stat in contributors.values():
        if expertise.total_commits > 0:
            stat.ownership = stat.commits / expertise.total_commits
        stat.is_active = stat.last_commit > three_months_ago
    expertise.contributors = sorted(contributors.values(), key=lambda s: s.ownership, reverse=True)

    if expertise.total_commits > 20:
        expertise.churn_rate = "high"
    elif expertise.total_commits > 5:
        expertise.churn_rate = "medium"
    else:
        expertise.churn_rate = "low"
    return expertise


def parse_commit_context(file_path: str, lines: Iterable[int] | None, output: str) -> CommitContext:
    """Summarise `hash|short|author|email|date|subject` log output for a file."""
    context = CommitContext(file=file_path, lines=list(lines or []))
    authors: dict[str, None] = {}
    oldest = _ZERO_TIME
    newest = _ZERO_TIME

    for raw in output.split("\n"):
        line = raw.strip()
        if not line or "|" not in line:
            continue
        parts = line.split("|")
        if len(parts) < 6:
            continue
        date = _parse_time(parts[4])
        commit = CommitInfo(
            hash=parts[0],
            short_hash=parts[1],
            author=parts[2],
            author_email=parts[3],
            date=date,
            message=parts[5],
        )
        context.commits.append(commit)
        authors[commit.author] = None
        if oldest == _ZERO_TIME or date < oldest:
            oldest = date
        if date > newest:
            newest = date

    context.contributors = list(authors)
    if oldest != _ZERO_TIME:
        context.time_span = format_time_span(oldest, newest)
    if context.commits:
        context.summary = (
            f"Code evolved through {len(context.commits)} commits "
            f"by {len(context.contributors)} contributors"
        )
    return context


def format_time_span(oldest: datetime, newest: datetime) -> str:
    """Describe the gap between two moments in years, months or days."""
    days = int((newest - oldest).total_seconds() / 86400)
    if days > 365:
        return f"{days // 365} years"
    if days > 30:
        return f"{days // 30} months"
    if days > 0:
        return f"{days} days"
    return "same day"