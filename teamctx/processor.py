"""One-pass processing of git history into a summary, experts, risks and correlations."""

from __future__ import annotations

import os
import subprocess
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Sequence

from .history import FileCorrelation, KnowledgeRisk
from .report import (
    ContributorInfo,
    DirectoryExpert,
    ExpertEntry,
    FileActivity,
    GitHistoryReport,
    GitSummary,
    ProcessedCommit,
    parse_processor_log,
)

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_LOG_FORMAT = "--pretty=format:%H|%h|%an|%ae|%aI|%s"
_MAX_COMMITS = "2000"
_TOP_FILES = 20
_TOP_EXPERTS = 5
_MAX_CORRELATIONS = 50
_HUGE_COMMIT = 30
_RISK_ORDER = {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 2, "LOW": 3}


def _git(repo_path: str, args: Sequence[str]) -> str:
    completed = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        capture_output=True,
        encoding="utf-8",
        errors="replace",
        check=True,
    )
    return completed.stdout


def _months_ago(now: datetime, months: int) -> datetime:
    total = now.year * 12 + (now.month - 1) - months
    year, month_index = divmod(total, 12)
    first = now.replace(year=year, month=month_index + 1, day=1)
    return first + timedelta(days=now.day - 1)


def _directory(path: str) -> str:
    directory = os.path.dirname(path)
    return os.path.normpath(directory) if directory else "."


def _rfc3339(moment: datetime) -> str:
    text = moment.isoformat(timespec="seconds")
    if moment.utcoffset() == timedelta(0) and text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def _last_activity(last_commit: datetime, now: datetime) -> str:
    days = int((now - last_commit).total_seconds() / 86400)
    if days <= 7:
        return "Within the last week"
    if days <= 30:
        return f"{days} days ago"
    if days <= 365:
        return f"{days // 30} months ago"
    return "Over a year ago"


def _classify_directory(
    directory: str,
    entries: dict[str, ExpertEntry],
    contributors: dict[str, ContributorInfo],
    now: datetime,
) -> KnowledgeRisk | None:
    total = sum(entry.commits for entry in entries.values())
    top: ExpertEntry | None = None
    for entry in entries.values():
        if top is None or entry.commits > top.commits:
            top = entry
    if top is None or total == 0:
        return None

    ownership = top.commits / total
    owner = contributors.get(top.email)
    globally_active = owner.active if owner is not None else False
    expert_active = top.active or globally_active

    risk = KnowledgeRisk(area=directory, primary_expert=top.name, expert_is_active=expert_active)
    if top.last_commit != _ZERO_TIME:
        risk.last_activity = _last_activity(top.last_commit, now)

    percent = f"{ownership * 100:.0f}%"
    if ownership > 0.8:
        if not expert_active:
            risk.risk_level = "CRITICAL"
            risk.reason = f"Primary contributor ({top.name}) owns {percent} and is inactive"
            risk.mitigation = "Urgent: Assign new maintainer, schedule knowledge transfer"
        elif not top.active and globally_active:
            risk.risk_level = "MEDIUM"
            risk.reason = (
                f"Single contributor ({top.name}) owns {percent}; "
                "active elsewhere but not in this area recently"
            )
            risk.mitigation = "Consider pairing to spread knowledge"
        else:
            risk.risk_level = "MEDIUM"
            risk.reason = f"Single contributor ({top.name}) owns {percent} of this area"
            risk.mitigation = "Consider pairing to spread knowledge"
    elif not expert_active and len(entries) < 3:
        risk.risk_level = "HIGH"
        risk.reason = "Top contributor is no longer active and few contributors"
        risk.mitigation = "Identify current maintainer or assign one"
    else:
        risk.risk_level = "LOW"
        risk.reason = "Knowledge is distributed among active contributors"
        risk.mitigation = "None needed"
    return risk


def _correlations(commit_files: Sequence[Sequence[str]]) -> list[FileCorrelation]:
    pair_counts: Counter[tuple[str, str]] = Counter()
    file_counts: Counter[str] = Counter()
    for files in commit_files:
        if len(files) > _HUGE_COMMIT:
            continue
        file_counts.update(files)
        for i, first in enumerate(files):
            for second in files[i + 1 :]:
                pair_counts[(min(first, second), max(first, second))] += 1

    correlations = []
    for (first, second), count in pair_counts.items():
        if count < 5:
            continue
        min_commits = min(file_counts[first], file_counts[second])
        if min_commits == 0:
            continue
        correlation = count / min_commits
        if correlation < 0.5:
            continue
        if count > 15:
            confidence = "high"
        elif count <= 8:
            continue
        else:
            confidence = "medium"
        correlations.append(
            FileCorrelation(
                file1=first,
                file2=second,
                co_changes=count,
                correlation=correlation,
                confidence=confidence,
            )
        )
    correlations.sort(key=lambda c: c.correlation, reverse=True)
    return correlations[:_MAX_CORRELATIONS]


def build_report(
    commits: Sequence[ProcessedCommit],
    branch: str = "",
    now: datetime | None = None,
) -> GitHistoryReport:
    """Compute the full history report from parsed commits, newest first."""
    if now is None:
        now = datetime.now(timezone.utc)
    if not commits:
        return GitHistoryReport(processed_at=now)

    three_months_ago = _months_ago(now, 3)
    contributors: dict[str, ContributorInfo] = {}
    file_changes: Counter[str] = Counter()
    by_directory: dict[str, dict[str, ExpertEntry]] = {}

    for commit in commits:
        info = contributors.setdefault(
            commit.author_email, ContributorInfo(name=commit.author, email=commit.author_email)
        )
        info.commits += 1
        info.added += commit.insertions
        info.removed += commit.deletions
        if commit.date > three_months_ago:
            info.active = True

        for path in commit.files_changed:
            file_changes[path] += 1
            entries = by_directory.setdefault(_directory(path), {})
            entry = entries.setdefault(
                commit.author_email, ExpertEntry(name=commit.author, email=commit.author_email)
            )
            entry.commits += 1
            if commit.date > entry.last_commit:
                entry.last_commit = commit.date
            if commit.date > three_months_ago:
                entry.active = True

    summary = GitSummary(
        total_commits=len(commits),
        first_commit_date=_rfc3339(commits[-1].date),
        last_commit_date=_rfc3339(commits[0].date),
        active_branch=branch,
        contributors=sorted(contributors.values(), key=lambda c: c.commits, reverse=True),
    )
    ranked_files = sorted(file_changes.items(), key=lambda item: item[1], reverse=True)
    summary.top_files = [FileActivity(path=p, changes=n) for p, n in ranked_files[:_TOP_FILES]]

    files_per_directory: Counter[str] = Counter(_directory(path) for path in file_changes)

    experts = []
    for directory, entries in by_directory.items():
        total = sum(entry.commits for entry in entries.values())
        for entry in entries.values():
            if total > 0:
                entry.ownership = entry.commits / total
        top = sorted(entries.values(), key=lambda e: e.ownership, reverse=True)
        experts.append(
            DirectoryExpert(
                directory=directory,
                file_count=files_per_directory[directory],
                total_commits=total,
                top_experts=[
                    ExpertEntry(
                        name=e.name,
                        email=e.email,
                        commits=e.commits,
                        ownership=e.ownership,
                        active=e.active,
                        active_in_repo=e.active_in_repo,
                        last_commit=e.last_commit,
                    )
                    for e in top[:_TOP_EXPERTS]
                ],
            )
        )
    experts.sort(key=lambda d: d.total_commits, reverse=True)

    risks = []
    for directory, entries in by_directory.items():
        if files_per_directory[directory] < 2:
            continue
        risk = _classify_directory(directory, entries, contributors, now)
        if risk is not None and risk.risk_level != "LOW":
            risks.append(risk)
    risks.sort(key=lambda r: _RISK_ORDER.get(r.risk_level, 0))

    return GitHistoryReport(
        summary=summary,
        experts=experts,
        risks=risks,
        correlations=_correlations([c.files_changed for c in commits]),
        processed_at=now,
        commit_count=len(commits),
        contributors=len(contributors),
    )


def process_git_history(repo_path: str) -> GitHistoryReport:
    """Read up to 2000 commits of the default branch and compute the report."""
    default_branch = detect_default_branch(repo_path)
    try:
        output = _git(repo_path, ["log", default_branch, _LOG_FORMAT, "--numstat", "-n", _MAX_COMMITS])
    except (subprocess.CalledProcessError, OSError):
        try:
            output = _git(repo_path, ["log", "--all", _LOG_FORMAT, "--numstat", "-n", _MAX_COMMITS])
        except (subprocess.CalledProcessError, OSError) as exc:
            raise RuntimeError(f"git log failed: {exc}") from exc

    commits = parse_processor_log(output)
    now = datetime.now(timezone.utc)
    if not commits:
        return GitHistoryReport(processed_at=now)

    try:
        branch = _git(repo_path, ["branch", "--show-current"]).strip()
    except (subprocess.CalledProcessError, OSError):
        branch = ""
    return build_report(commits, branch, now)


def detect_default_branch(repo_path: str) -> str:
    """Find the default branch: origin's HEAD, then main, then master, else HEAD."""
    try:
        ref = _git(repo_path, ["symbolic-ref", "refs/remotes/origin/HEAD", "--short"]).strip()
    except (subprocess.CalledProcessError, OSError):
        pass
    else:
        parts = ref.split("/", 1)
        return parts[1] if len(parts) == 2 else ref

    for candidate in ("main", "master"):
        try:
            _git(repo_path, ["rev-parse", "--verify", candidate])
        except (subprocess.CalledProcessError, OSError):
            continue
        return candidate
    return "HEAD"